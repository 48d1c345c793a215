"""
Error taxonomy for the steering core.
Every failure is raised to the caller; the HTTP layer maps status_code.
"""

from enum import Enum
from typing import Optional


class ValidationReason(str, Enum):
    EMPTY_RELOAD_URI = "Empty RELOAD-URI config"
    NON_POSITIVE_TTL = "Non-positive TTL value"
    EMPTY_SERVICE_LOCATION_ID = "Empty ServiceLocationId"
    EMPTY_SERVICE_LOCATION_URI = "Empty ServiceLocationUri"
    DUPLICATE_SERVICE_LOCATION_ID = "Duplicate ServiceLocationId"


class SteeringError(Exception):
    """Base class for all steering failures"""
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class ConfigValidationError(SteeringError):
    """Content steering configuration rejected"""
    status_code = 400

    def __init__(self, reason: ValidationReason, index: Optional[int] = None):
        self.reason = reason
        self.index = index
        message = reason.value
        if index is not None:
            message = f"{message} (serviceLocations[{index}])"
        super().__init__(message)


class NoConfigurationError(SteeringError):
    """No content steering configuration found. Please create one first"""
    status_code = 404


class ParseError(SteeringError):
    """Failed to parse MPD"""
    status_code = 500


class SerializationError(SteeringError):
    """Failed to serialize response"""
    status_code = 500
