"""
Wire models for the Monitoring data/write API.

Points and batches are plain dataclasses; `to_dict` produces the exact
JSON document the endpoint expects.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class MetricKind(Enum):
    """Metric types understood by the backend. DGAUGE when unset."""
    DGAUGE = "DGAUGE"
    IGAUGE = "IGAUGE"
    COUNTER = "COUNTER"
    RATE = "RATE"


@dataclass(frozen=True)
class MetricPoint:
    """A single named value derived from one field of one host metric."""
    name: str
    labels: dict[str, str]
    timestamp: str
    value: float
    kind: Optional[MetricKind] = None

    def to_dict(self) -> dict:
        data = {
            'name': self.name,
            'labels': dict(self.labels),
        }
        if self.kind is not None:
            data['type'] = self.kind.value
        if self.timestamp:
            data['ts'] = self.timestamp
        data['value'] = self.value
        return data


@dataclass(frozen=True)
class Batch:
    """One write request worth of points."""
    metrics: tuple[MetricPoint, ...] = ()
    timestamp: Optional[str] = None
    labels: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = {}
        if self.timestamp:
            data['ts'] = self.timestamp
        if self.labels:
            data['labels'] = dict(self.labels)
        data['metrics'] = [m.to_dict() for m in self.metrics]
        return data

    def to_json(self) -> bytes:
        """Serialize to the newline-terminated request body."""
        body = json.dumps(self.to_dict(), separators=(',', ':'), allow_nan=False)
        return body.encode('utf-8') + b'\n'


@dataclass(frozen=True)
class Credential:
    """An IAM bearer token and the instant it stops being valid."""
    access_token: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return bool(self.access_token) and now < self.expires_at
