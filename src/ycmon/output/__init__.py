"""
Yandex Cloud Monitoring output.

Turns host metrics into Monitoring points, keeps an IAM token from the
instance metadata service fresh, and POSTs batches to the data/write API.
"""

from .config import EndpointConfig, OutputConfig
from .credentials import CredentialCache
from .exceptions import (
    DeliveryError,
    FieldCoercionError,
    MetadataError,
    MetadataMalformedError,
    YcmonError,
)
from .metadata import MetadataClient
from .models import Batch, Credential, MetricKind, MetricPoint
from .plugin import YandexCloudMonitoring
from .sender import DeliveryClient, SendResult
from .translator import translate

__all__ = [
    "YandexCloudMonitoring",
    "OutputConfig",
    "EndpointConfig",
    "MetadataClient",
    "CredentialCache",
    "DeliveryClient",
    "SendResult",
    "translate",
    "Batch",
    "Credential",
    "MetricKind",
    "MetricPoint",
    "YcmonError",
    "MetadataError",
    "MetadataMalformedError",
    "FieldCoercionError",
    "DeliveryError",
]
