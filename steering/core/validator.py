"""
Validation of candidate steering configurations.
Pure functions: nothing here touches the live configuration.
"""

import logging
from typing import Tuple

from steering.core.errors import ConfigValidationError, ValidationReason
from steering.core.locations import ServiceLocation, ServiceLocationTable, SteeringParameters
from steering.schemas.steering import ContentSteeringConfig

logger = logging.getLogger(__name__)


def validate_parameters(config: ContentSteeringConfig) -> SteeringParameters:
    if not config.RELOAD_URI:
        raise ConfigValidationError(ValidationReason.EMPTY_RELOAD_URI)
    if config.TTL <= 0:
        raise ConfigValidationError(ValidationReason.NON_POSITIVE_TTL)
    return SteeringParameters(reload_uri=config.RELOAD_URI, ttl_seconds=config.TTL)


def validate_service_locations(config: ContentSteeringConfig) -> ServiceLocationTable:
    """
    Build a table from the candidate entries, keeping their order.
    Stops at the first offending entry.
    """
    entries = []
    seen = set()
    for index, entry in enumerate(config.serviceLocations):
        if not entry.serviceLocationId:
            raise ConfigValidationError(ValidationReason.EMPTY_SERVICE_LOCATION_ID, index)
        if not entry.serviceLocationUri:
            raise ConfigValidationError(ValidationReason.EMPTY_SERVICE_LOCATION_URI, index)
        if entry.serviceLocationId in seen:
            raise ConfigValidationError(ValidationReason.DUPLICATE_SERVICE_LOCATION_ID, index)
        seen.add(entry.serviceLocationId)
        entries.append(ServiceLocation(id=entry.serviceLocationId, uri=entry.serviceLocationUri))
    return ServiceLocationTable(entries)


def validate_configuration(config: ContentSteeringConfig) -> Tuple[SteeringParameters, ServiceLocationTable]:
    """Validate a whole candidate configuration, parameters first."""
    parameters = validate_parameters(config)
    table = validate_service_locations(config)
    logger.debug(f"Validated configuration: ttl={parameters.ttl_seconds}, locations={table.ids()}")
    return parameters, table
