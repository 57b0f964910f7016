"""AWS S3 and IAM adapters."""

from .factory import AWSServiceFactory
from .iam import IAMAccessRoleService
from .s3 import S3ObjectStorageService

__all__ = ["AWSServiceFactory", "IAMAccessRoleService", "S3ObjectStorageService"]
