"""
Sample Data Model
=================

Internal sample representation for the ingestion pipeline.

A Sample is one timestamped reading captured from the device. It is the
only record type stored in the SampleRing and handed to renderers and
summarizers.

Design Rules:
    - Created ONLY by the sample decoder
    - Immutable after creation (frozen, data deep-frozen on construction)
    - Any JSON object is accepted as data; consumers filter fields themselves
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Union


JsonValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]


def _freeze(value: Any) -> Any:
    """Objects become read-only mappings, arrays become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


@dataclass(frozen=True, slots=True)
class Sample:
    """
    Timestamped device reading.

    Nested objects are exposed as read-only mappings and nested arrays
    as tuples, so nothing reachable from a snapshot can be mutated.

    Attributes:
        timestamp: Capture time in milliseconds since the epoch
        data: Read-only mapping of field name to JSON value
    """

    timestamp: int
    data: Mapping[str, JsonValue]

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _freeze(self.data))

    def to_dict(self) -> Dict[str, Any]:
        """Wire form: {"timestamp": int, "data": {...}} with plain dicts and lists."""
        return {
            "timestamp": self.timestamp,
            "data": _thaw(self.data),
        }

    def __repr__(self) -> str:
        return f"Sample(timestamp={self.timestamp}, fields={list(self.data)})"
