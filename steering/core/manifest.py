"""
DASH Content Steering Manifest (DCSM) generation.
"""

import logging
from typing import Optional

from steering.core.errors import NoConfigurationError, SerializationError
from steering.core.locations import SteeringSnapshot
from steering.schemas.steering import SteeringManifest

logger = logging.getLogger(__name__)

SESSION_ID_QUERY_PARAM = "sessionId"
DASH_PATHWAY_QUERY_PARAM = "_DASH_pathway"
DASH_THROUGHPUT_QUERY_PARAM = "_DASH_throughput"


class ManifestGenerator:
    """Builds DCSM bodies from a configuration snapshot."""

    def build(self, snapshot: SteeringSnapshot, session_id: str,
              pathway: Optional[str] = None, throughput: Optional[str] = None) -> SteeringManifest:
        if not snapshot.configured:
            raise NoConfigurationError()

        parameters = snapshot.parameters
        reload_uri = f"{parameters.reload_uri}?{SESSION_ID_QUERY_PARAM}={session_id}"

        return SteeringManifest(
            VERSION=parameters.version,
            TTL=parameters.ttl_seconds,
            RELOAD_URI=reload_uri,
            SERVICE_LOCATION_PRIORITY=self.rank(snapshot, pathway, throughput),
        )

    def rank(self, snapshot: SteeringSnapshot, pathway: Optional[str] = None,
             throughput: Optional[str] = None):
        """
        Service location ids in priority order.

        The pathway and throughput hints reported by the client are accepted
        here so a load-aware policy can use them; the current policy is the
        configured static order.
        """
        logger.debug(f"pathway={pathway!r} throughput={throughput!r}")
        return snapshot.table.ids()

    def render(self, manifest: SteeringManifest) -> bytes:
        try:
            return manifest.model_dump_json(by_alias=True).encode("utf-8")
        except ValueError as e:
            raise SerializationError(f"Failed to marshal DCSM JSON object: {e}") from e

    def generate(self, snapshot: SteeringSnapshot, session_id: str,
                 pathway: Optional[str] = None, throughput: Optional[str] = None) -> bytes:
        manifest = self.build(snapshot, session_id, pathway, throughput)
        body = self.render(manifest)
        logger.info(f"📄 DCSM response for session {session_id}: {body.decode('utf-8')}")
        return body
