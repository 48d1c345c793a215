from steering.core.errors import (
    ConfigValidationError,
    NoConfigurationError,
    ParseError,
    SerializationError,
    SteeringError,
    ValidationReason,
)
from steering.core.locations import (
    DCSM_VERSION,
    ServiceLocation,
    ServiceLocationTable,
    SteeringParameters,
    SteeringSnapshot,
)
