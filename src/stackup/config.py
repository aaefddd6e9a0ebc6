"""Configuration, client construction and logging setup for stackup."""

import logging
import os
from dataclasses import dataclass, field
from typing import Any

import boto3

from .exceptions import ValidationError
from .models import DEFAULT_CAPABILITIES

DEFAULT_POLL_INTERVAL = 5.0
"""Seconds between status polls while an operation is in progress."""

POLL_INTERVAL_ENV_VAR = "STACKUP_POLL_INTERVAL"
"""Environment variable for overriding the poll interval."""

TIMEOUT_ENV_VAR = "STACKUP_TIMEOUT"
"""Environment variable for setting a poll deadline (seconds). Unset means no limit."""

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class StackupConfig:
    """
    Options recognized by a Stack.

    Attributes:
        region: AWS region (default: use boto3 defaults)
        endpoint_url: Optional CloudFormation endpoint (for LocalStack)
        poll_interval: Seconds to sleep between status polls
        timeout: Give up waiting after this many seconds (None: wait forever)
        capabilities: Capabilities sent when a request does not specify any
    """

    region: str | None = None
    endpoint_url: str | None = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    timeout: float | None = None
    capabilities: tuple[str, ...] = field(default=DEFAULT_CAPABILITIES)

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ValidationError("poll_interval", self.poll_interval, "must be positive")
        if self.timeout is not None and self.timeout <= 0:
            raise ValidationError("timeout", self.timeout, "must be positive")
        if not self.capabilities:
            raise ValidationError("capabilities", self.capabilities, "cannot be empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> "StackupConfig":
        """
        Build a config from environment variables.

        Resolution order: explicit keyword argument → environment → default.
        ``None`` keyword arguments are treated as "not given".
        """
        values: dict[str, Any] = {
            "region": os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION"),
            "endpoint_url": os.environ.get("AWS_ENDPOINT_URL"),
            "poll_interval": _float_from_env(POLL_INTERVAL_ENV_VAR, DEFAULT_POLL_INTERVAL),
            "timeout": _float_from_env(TIMEOUT_ENV_VAR, None),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _float_from_env(name: str, default: float | None) -> float | None:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValidationError(name, raw, "must be a number") from None


def create_client(config: StackupConfig) -> Any:
    """Create a boto3 CloudFormation client for ``config``."""
    kwargs: dict[str, Any] = {}
    if config.region:
        kwargs["region_name"] = config.region
    if config.endpoint_url:
        kwargs["endpoint_url"] = config.endpoint_url
    return boto3.client("cloudformation", **kwargs)


def configure_logging(debug: bool = False) -> None:
    """
    Configure root logging for command-line use.

    Library code only ever logs through module loggers; this is called by
    the CLI. ``debug`` also turns on botocore request logging.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    if not debug:
        for name in ("botocore", "boto3", "urllib3"):
            logging.getLogger(name).setLevel(logging.WARNING)
