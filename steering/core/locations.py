"""
Immutable data model for the live steering configuration.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple

DCSM_VERSION = 1


@dataclass(frozen=True)
class ServiceLocation:
    id: str
    uri: str


class ServiceLocationTable:
    """Ordered service locations; position 0 is the highest priority."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[ServiceLocation] = ()):
        self._entries: Tuple[ServiceLocation, ...] = tuple(entries)

    def __iter__(self) -> Iterator[ServiceLocation]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ServiceLocationTable):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"ServiceLocationTable({list(self._entries)!r})"

    def ids(self) -> List[str]:
        return [sl.id for sl in self._entries]

    def default(self) -> Optional[ServiceLocation]:
        # TODO: ask an external CDN ranking service instead of taking the head
        return self._entries[0] if self._entries else None


@dataclass(frozen=True)
class SteeringParameters:
    reload_uri: str
    ttl_seconds: int
    version: int = DCSM_VERSION


@dataclass(frozen=True)
class SteeringSnapshot:
    """Parameters and table that are swapped together."""
    parameters: SteeringParameters
    table: ServiceLocationTable = field(default_factory=ServiceLocationTable)
    revision: int = 0

    @property
    def configured(self) -> bool:
        return bool(self.table)
