"""
Constants used throughout the Pocket ID operator.

This module defines all constant values used by the operator including:
- Custom resource coordinates and finalizer name
- Status phases and condition vocabulary
- Retry/backoff configuration
- Secret naming and labelling
"""

from enum import Enum

# Custom resource coordinates
API_GROUP = "jeffrescignano.io"
API_VERSION = "v1alpha1"
KIND = "PocketIDClient"
PLURAL = "pocketidclients"
SINGULAR = "pocketidclient"
SHORT_NAMES = ["pidc"]
CRD_NAME = f"{PLURAL}.{API_GROUP}"

# Finalizer blocking deletion until the Pocket ID client is removed
CLIENT_FINALIZER = "pocketidclient.jeffrescignano.io/finalizer"

# Label constants for resource identification and management
OPERATOR_LABEL_KEY = "app.kubernetes.io/managed-by"
OPERATOR_LABEL_VALUE = "pocketid-operator"
OWNER_LABEL_KEY = "jeffrescignano.io/pocketidclient"


class Phase(str, Enum):
    """Lifecycle phase recorded in status.phase."""

    PENDING = "Pending"
    READY = "Ready"
    FAILED = "Failed"
    RETRYING = "Retrying"
    REMOVING = "Removing"
    REMOVAL_FAILED = "RemovalFailed"


# Condition type constants (following Kubernetes conventions)
CONDITION_READY = "Ready"
CONDITION_RECONCILING = "Reconciling"
CONDITION_CLIENT_CREATED = "ClientCreated"
CONDITION_CLIENT_UPDATED = "ClientUpdated"
CONDITION_SECRET_CREATED = "SecretCreated"

# Condition status constants
CONDITION_TRUE = "True"
CONDITION_FALSE = "False"
CONDITION_UNKNOWN = "Unknown"

# Condition reasons
REASON_RECONCILE_STARTED = "ReconcileStarted"
REASON_RETRY_STARTED = "RetryStarted"
REASON_CREATE_SUCCEEDED = "CreateSucceeded"
REASON_UPDATE_SUCCEEDED = "UpdateSucceeded"
REASON_SECRET_READY = "SecretReady"
REASON_RECONCILE_SUCCEEDED = "ReconcileSucceeded"
REASON_RECONCILE_FAILED = "ReconcileFailed"
REASON_MAX_RETRIES_EXCEEDED = "MaxRetriesExceeded"
REASON_DELETION_FAILED = "DeletionFailed"

# Retry configuration (seconds)
RETRY_BASE_DELAY = 5.0
RETRY_MAX_DELAY = 300.0
RETRY_MAX_JITTER = 1.0
MAX_RETRIES = 10

# Secret naming
SECRET_NAME_SUFFIX = "-credentials"
DEFAULT_SECRET_ID_KEY = "CLIENT_ID"
DEFAULT_SECRET_SECRET_KEY = "CLIENT_SECRET"

# Pocket ID defaults
DEFAULT_POCKETID_API_URL = "http://pocket-id.pocket-id.svc"
POCKETID_API_KEY_HEADER = "X-API-KEY"
