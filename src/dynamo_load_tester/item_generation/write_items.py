"""Write item entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType

MAX_KEY_LENGTH = 255


@dataclass(frozen=True)
class WriteItem:
    """One payload to be written under a primary key."""

    key: str
    payload: str
    created_at: datetime
    attributes: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze the attribute mapping so a shared item cannot be mutated.
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def is_duplicate(self) -> bool:
        return bool(self.attributes.get("is_duplicate", False))

    def approximate_size(self) -> int:
        """Approximate stored size in bytes: key, payload, timestamp and attributes."""
        size = len(self.key.encode("utf-8"))
        size += len(self.payload.encode("utf-8"))
        size += len(self.created_at.isoformat().encode("utf-8"))
        for name, value in self.attributes.items():
            size += len(name.encode("utf-8"))
            if value is not None:
                size += len(str(value).encode("utf-8"))
        return size
