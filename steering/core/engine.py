"""
SteeringEngine: owner of the live steering configuration.

The live (parameters, table) pair is held in one immutable SteeringSnapshot.
Writers validate the candidate completely, then replace the snapshot under a
lock; readers grab the current snapshot once and never block.
"""

import logging
from threading import Lock
from typing import Optional, Union

from steering.core.augmenter import DocumentAugmenter
from steering.core.errors import ConfigValidationError, NoConfigurationError
from steering.core.locations import SteeringParameters, SteeringSnapshot
from steering.core.manifest import ManifestGenerator
from steering.core.validator import validate_configuration
from steering.schemas.steering import ContentSteeringConfig, ServiceLocationEntry
from steering.utils.settings import get_settings

logger = logging.getLogger(__name__)


class SteeringEngine:

    def __init__(self, parameters: Optional[SteeringParameters] = None,
                 generator: Optional[ManifestGenerator] = None,
                 augmenter: Optional[DocumentAugmenter] = None):
        if parameters is None:
            settings = get_settings()
            parameters = SteeringParameters(reload_uri=settings.steering_server_url,
                                            ttl_seconds=settings.dcsm_ttl)
        self._snapshot = SteeringSnapshot(parameters=parameters)
        self._lock = Lock()
        self._generator = generator or ManifestGenerator()
        self._augmenter = augmenter or DocumentAugmenter()

    def snapshot(self) -> SteeringSnapshot:
        return self._snapshot

    def update_configuration(self, config: ContentSteeringConfig) -> ContentSteeringConfig:
        """
        Validate the candidate and install it as one unit.
        On rejection the live configuration is left as it was.
        """
        try:
            parameters, table = validate_configuration(config)
        except ConfigValidationError as e:
            logger.warning(f"⚠️ Configuration rejected: {e.message}")
            raise

        with self._lock:
            revision = self._snapshot.revision + 1
            self._snapshot = SteeringSnapshot(parameters=parameters, table=table, revision=revision)

        logger.info(f"✅ Steering configuration r{revision} installed: "
                    f"TTL={parameters.ttl_seconds}, RELOAD_URI={parameters.reload_uri}, "
                    f"locations={table.ids()}")
        return config

    def current_configuration(self) -> ContentSteeringConfig:
        snapshot = self._snapshot
        if not snapshot.configured:
            raise NoConfigurationError()
        return ContentSteeringConfig(
            TTL=snapshot.parameters.ttl_seconds,
            RELOAD_URI=snapshot.parameters.reload_uri,
            serviceLocations=[
                ServiceLocationEntry(serviceLocationId=sl.id, serviceLocationUri=sl.uri)
                for sl in snapshot.table
            ],
        )

    def generate_manifest(self, session_id: str, pathway: Optional[str] = None,
                          throughput: Optional[str] = None) -> bytes:
        return self._generator.generate(self._snapshot, session_id, pathway, throughput)

    def augment_document(self, raw_mpd: Union[bytes, str]) -> bytes:
        document = self._augmenter.parse(raw_mpd)
        snapshot = self._snapshot
        output = self._augmenter.serialize(self._augmenter.augment(document, snapshot))
        logger.debug(f"New MPD ({len(output)} bytes) with locations {snapshot.table.ids()}")
        return output


# Process-wide engine used by the HTTP layer
engine = SteeringEngine()
