"""Constants for the Object Storage Operator."""

# API Group
API_GROUP = "objectstorage.giantswarm.io"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_BUCKET = "Bucket"
PLURAL_BUCKETS = "buckets"

# Cluster API infrastructure records
CAPI_INFRA_GROUP = "infrastructure.cluster.x-k8s.io"
AWS_CLUSTER_VERSION = "v1beta2"
AWS_CLUSTER_PLURAL = "awsclusters"
AWS_CLUSTER_ROLE_IDENTITY_PLURAL = "awsclusterroleidentities"
AZURE_CLUSTER_VERSION = "v1beta1"
AZURE_CLUSTER_PLURAL = "azureclusters"
AZURE_CLUSTER_IDENTITY_PLURAL = "azureclusteridentities"

# Providers
PROVIDER_AWS = "capa"
PROVIDER_AZURE = "capz"

# Reclaim policies
RECLAIM_POLICY_RETAIN = "Retain"
RECLAIM_POLICY_DELETE = "Delete"

# Labels
LABEL_MANAGED_BY = "giantswarm.io/managed-by"
MANAGED_BY_VALUE = "object-storage-operator"

# Finalizers
FINALIZER = f"bucket.{API_GROUP}"
AZURE_SECRET_FINALIZER = "giantswarm.io/object-storage-operator"

# Field Manager
FIELD_MANAGER = "object-storage-operator"
CONTROLLER_NAME = "object-storage-operator"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_BUCKET_CREATED = "BucketCreated"
EVENT_REASON_BUCKET_UPDATED = "BucketUpdated"
EVENT_REASON_BUCKET_CONFIGURED = "BucketConfigured"
EVENT_REASON_BUCKET_DELETED = "BucketDeleted"
EVENT_REASON_BUCKET_RETAINED = "BucketRetained"
EVENT_REASON_ACCESS_ROLE_CONFIGURED = "AccessRoleConfigured"
EVENT_REASON_ACCESS_ROLE_DELETED = "AccessRoleDeleted"
