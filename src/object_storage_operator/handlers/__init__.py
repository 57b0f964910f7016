"""Kopf handlers for the Object Storage Operator."""
