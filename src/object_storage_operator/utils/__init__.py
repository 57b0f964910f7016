"""Utility helpers for the Object Storage Operator."""
