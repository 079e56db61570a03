"""
Output Configuration.
"""

import os
import re
import socket
from dataclasses import dataclass, field
from typing import Optional
import yaml


DEFAULT_TIMEOUT = "20s"
DEFAULT_ENDPOINT = "https://monitoring.api.cloud.yandex.net/monitoring/v2/data/write"
DEFAULT_SERVICE = "custom"

# The metadata service has no DNS name, only the link-local address.
DEFAULT_METADATA_TOKEN_URL = (
    "http://169.254.169.254/computeMetadata/v1/instance/service-accounts/default/token"
)
DEFAULT_METADATA_FOLDER_URL = "http://169.254.169.254/computeMetadata/v1/instance/vendor/folder-id"

_DURATION_UNITS = {
    'ns': 1e-9,
    'us': 1e-6,
    'µs': 1e-6,
    'ms': 1e-3,
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}
_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)')


def parse_duration(value) -> float:
    """
    Parse a duration such as "20s", "1m30s" or "500ms" into seconds.

    Plain numbers (or numeric strings) are taken as seconds.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    if not text:
        raise ValueError("invalid duration: empty string")
    try:
        return float(text)
    except ValueError:
        pass

    sign = 1.0
    if text[0] in '+-':
        sign = -1.0 if text[0] == '-' else 1.0
        text = text[1:]

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    if pos != len(text) or pos == 0:
        raise ValueError(f"invalid duration: {value!r}")
    return sign * total


@dataclass(frozen=True)
class EndpointConfig:
    """Resolved endpoint settings, fixed for the lifetime of an output."""
    timeout: float
    endpoint_url: str
    service: str
    metadata_token_url: str
    metadata_folder_url: str


@dataclass
class AgentConfig:
    """Settings of the bundled collection loop."""
    interval: int = 60  # seconds
    hostname: str = field(default_factory=lambda: socket.gethostname())


@dataclass
class OutputConfig:
    """User-facing output configuration. Empty values mean "use the default"."""
    timeout: str = DEFAULT_TIMEOUT
    endpoint: str = DEFAULT_ENDPOINT
    service: str = DEFAULT_SERVICE

    metadata_token_url: str = DEFAULT_METADATA_TOKEN_URL
    metadata_folder_url: str = DEFAULT_METADATA_FOLDER_URL

    agent: AgentConfig = field(default_factory=AgentConfig)

    def resolve(self) -> EndpointConfig:
        """Apply defaults and validate into an EndpointConfig."""
        timeout = parse_duration(self.timeout) if self.timeout not in (None, "") else 0.0
        if timeout <= 0:
            timeout = parse_duration(DEFAULT_TIMEOUT)

        return EndpointConfig(
            timeout=timeout,
            endpoint_url=self.endpoint or DEFAULT_ENDPOINT,
            service=self.service or DEFAULT_SERVICE,
            metadata_token_url=self.metadata_token_url or DEFAULT_METADATA_TOKEN_URL,
            metadata_folder_url=self.metadata_folder_url or DEFAULT_METADATA_FOLDER_URL,
        )

    @classmethod
    def from_yaml(cls, path: str) -> "OutputConfig":
        """Load configuration from YAML file."""
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        return cls._from_dict(data)

    @classmethod
    def from_env(cls) -> "OutputConfig":
        """Load configuration from environment variables."""
        config = cls()

        if os.getenv("YCMON_TIMEOUT"):
            config.timeout = os.getenv("YCMON_TIMEOUT")
        if os.getenv("YCMON_ENDPOINT"):
            config.endpoint = os.getenv("YCMON_ENDPOINT")
        if os.getenv("YCMON_SERVICE"):
            config.service = os.getenv("YCMON_SERVICE")
        if os.getenv("YCMON_METADATA_TOKEN_URL"):
            config.metadata_token_url = os.getenv("YCMON_METADATA_TOKEN_URL")
        if os.getenv("YCMON_METADATA_FOLDER_URL"):
            config.metadata_folder_url = os.getenv("YCMON_METADATA_FOLDER_URL")
        if os.getenv("YCMON_INTERVAL"):
            config.agent.interval = int(os.getenv("YCMON_INTERVAL"))

        return config

    @classmethod
    def load(cls, path: Optional[str] = None) -> "OutputConfig":
        """YAML file when a path is given, environment otherwise."""
        if path:
            return cls.from_yaml(path)
        return cls.from_env()

    @classmethod
    def _from_dict(cls, data: dict) -> "OutputConfig":
        """Create config from dictionary."""
        config = cls()

        # Output section may be nested or at the top level
        output = data.get("output", data)
        for key in ["endpoint", "service", "metadata_token_url", "metadata_folder_url"]:
            if key in output:
                setattr(config, key, output[key])
        if output.get("timeout") is not None:
            config.timeout = str(output["timeout"])

        if "agent" in data:
            config.agent = AgentConfig(**data["agent"])

        return config
