"""Cloud provider storage and access-role services."""
