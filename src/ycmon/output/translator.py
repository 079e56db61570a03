"""
Metric Translator.

Flattens host metrics into Monitoring points: every numeric field becomes
its own point named `<metric>_<field>`, carrying the metric's tags as labels.
"""

import logging
import math
import numbers
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from .exceptions import FieldCoercionError
from .models import Batch, MetricPoint

logger = logging.getLogger(__name__)

# "name" is the metric-name field of the wire schema
RESERVED_LABEL = "name"
RENAMED_LABEL = "_name"


@dataclass(frozen=True)
class SkippedField:
    """A field left out of the batch, and why."""
    metric: str
    field: str
    reason: str


@dataclass
class Translation:
    """Outcome of translating one set of host metrics."""
    points: list[MetricPoint] = field(default_factory=list)
    skipped: list[SkippedField] = field(default_factory=list)

    def to_batch(self) -> Batch:
        return Batch(metrics=tuple(self.points))


def to_float(value) -> float:
    """
    Coerce a field value to float.

    Accepts real numbers, booleans (1.0 / 0.0) and numeric strings or bytes.
    Non-finite results are rejected since the endpoint only takes JSON numbers.
    """
    if isinstance(value, bool):
        result = 1.0 if value else 0.0
    elif isinstance(value, numbers.Real):
        result = float(value)
    elif isinstance(value, (str, bytes)):
        text = value.decode('utf-8', errors='replace') if isinstance(value, bytes) else value
        try:
            result = float(text)
        except ValueError:
            raise FieldCoercionError(f"unable to convert {text!r} to float") from None
    else:
        raise FieldCoercionError(f"type {type(value).__name__!r} unsupported")

    if not math.isfinite(result):
        raise FieldCoercionError(f"non-finite value {value!r}")
    return result


def format_rfc3339(ts: datetime) -> str:
    """Format with whole seconds and the timestamp's own offset (Z for UTC)."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)

    base = ts.strftime('%Y-%m-%dT%H:%M:%S')
    offset = int(ts.utcoffset().total_seconds())
    if offset == 0:
        return base + 'Z'

    sign = '+' if offset > 0 else '-'
    offset = abs(offset)
    return f"{base}{sign}{offset // 3600:02d}:{offset % 3600 // 60:02d}"


def replace_reserved_tag_names(tags: dict[str, str]) -> dict[str, str]:
    """
    Copy tags, renaming `name` to `_name`.

    When both `name` and `_name` are present the renamed `name` wins.
    """
    labels = {}
    for key, value in tags.items():
        if key == RESERVED_LABEL:
            labels[RENAMED_LABEL] = value
        elif key == RENAMED_LABEL and RESERVED_LABEL in tags:
            continue
        else:
            labels[key] = value
    return labels


def translate(metrics: Iterable) -> Translation:
    """
    Translate host metrics into points.

    Each metric needs `name`, `tags`, `time` and `field_list()` (ordered
    key/value pairs). Non-numeric fields are skipped, never fatal.
    """
    result = Translation()

    for metric in metrics:
        labels = replace_reserved_tag_names(metric.tags)
        timestamp = format_rfc3339(metric.time)

        for key, value in metric.field_list():
            try:
                number = to_float(value)
            except FieldCoercionError as e:
                logger.error(f"Skipping value: {metric.name}.{key}: {e}")
                result.skipped.append(SkippedField(metric=metric.name, field=key, reason=str(e)))
                continue

            result.points.append(MetricPoint(
                name=f"{metric.name}_{key}",
                labels=dict(labels),
                timestamp=timestamp,
                value=number,
            ))

    return result
