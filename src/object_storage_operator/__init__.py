"""Object Storage Operator: reconciles Bucket records into AWS S3 and Azure Blob storage."""

__version__ = "0.1.0"
