"""Host metric: a name, tags, ordered fields and a timestamp."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class Metric:
    """One measurement as produced by a collector."""
    name: str
    fields: dict[str, Any]
    tags: dict[str, str] = field(default_factory=dict)
    time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def field_list(self) -> list[tuple[str, Any]]:
        """Fields in insertion order."""
        return list(self.fields.items())
