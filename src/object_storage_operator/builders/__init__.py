"""Builders turning Kubernetes objects into operator models."""
