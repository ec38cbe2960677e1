"""Constants for the Takaro Operator."""

# API Group
API_GROUP = "takaro.io"
API_VERSION = "v1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_DOMAIN = "Domain"
PLURAL_DOMAINS = "domains"

# Labels
LABEL_MANAGED_BY = f"{API_GROUP}/managed-by"
LABEL_DOMAIN_NAME = f"{API_GROUP}/domain-name"
LABEL_SECRET_TYPE = f"{API_GROUP}/secret-type"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Field Manager
FIELD_MANAGER = "takaro-operator"
CONTROLLER_NAME = "takaro-operator"

# Phases
PHASE_PENDING = "Pending"
PHASE_CREATING = "Creating"
PHASE_READY = "Ready"
PHASE_MAINTENANCE = "Maintenance"
PHASE_ERROR = "Error"
PHASE_DELETING = "Deleting"

# Condition Types
COND_READY = "Ready"
COND_SYNCED = "Synced"
COND_ERROR = "Error"

# Condition Reasons
REASON_CREATING = "Creating"
REASON_DOMAIN_CREATED = "DomainCreated"
REASON_DOMAIN_READY = "DomainReady"
REASON_CREATE_FAILED = "CreateFailed"
REASON_CREATE_ERROR = "CreateError"
REASON_SYNCHRONIZED = "Synchronized"
REASON_UPDATE_FAILED = "UpdateFailed"
REASON_UPDATE_ERROR = "UpdateError"
REASON_DELETE_ERROR = "DeleteError"
REASON_RECONCILE_ERROR = "ReconcileError"
REASON_MAINTENANCE_MODE = "MaintenanceMode"
REASON_MAINTENANCE_COMPLETE = "MaintenanceComplete"
REASON_NO_ERROR = "NoError"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_DOMAIN_CREATED = "DomainCreated"
EVENT_REASON_DOMAIN_UPDATED = "DomainUpdated"
EVENT_REASON_DOMAIN_DELETED = "DomainDeleted"
EVENT_REASON_DELETE_FAILED = "DeleteFailed"

# Derived secrets
SECRET_SUFFIX_REGISTRATION_TOKEN = "registration-token"
SECRET_SUFFIX_ROOT_CREDENTIALS = "root-credentials"
SECRET_KEY_TOKEN = "token"
SECRET_KEY_USERNAME = "username"
SECRET_KEY_PASSWORD = "password"

# Takaro domain states
TAKARO_STATE_ACTIVE = "ACTIVE"
TAKARO_STATE_MAINTENANCE = "MAINTENANCE"
