"""
Configuration for throttled queues: queue-level defaults, per-job options,
YAML loading and logging setup.

Option precedence is fixed: a per-job value wins when it is present and
nonzero, otherwise the queue default applies. Only the timeout can be
overridden per job.
"""
import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Hashable, Optional, Union

import yaml

from throttled_queue.errors import ConfigurationError
from throttled_queue.queue.models import DEFAULT_PRIORITY, Priority, validate_priority

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class QueueOptions:
    max_concurrent: int = 1
    min_delay_ms: float = 0
    timeout_ms: float = 0  # 0 disables the default job timeout

    def validate(self) -> "QueueOptions":
        if isinstance(self.max_concurrent, bool) or not isinstance(self.max_concurrent, int):
            raise ConfigurationError(f"max_concurrent must be an integer, got {self.max_concurrent!r}")
        if self.max_concurrent < 1:
            raise ConfigurationError(f"max_concurrent must be at least 1, got {self.max_concurrent}")
        for name in ("min_delay_ms", "timeout_ms"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} must be a number, got {value!r}")
            if value < 0:
                raise ConfigurationError(f"{name} must not be negative, got {value}")
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueueOptions":
        """Build validated options from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown queue option(s): {', '.join(sorted(unknown))}")
        return cls(**data).validate()


@dataclass(frozen=True)
class JobOptions:
    job_id: Optional[Hashable] = None
    priority: int = DEFAULT_PRIORITY
    timeout_ms: Optional[float] = None

    @classmethod
    def create(
        cls,
        job_id: Optional[Hashable] = None,
        priority: Union[int, str] = DEFAULT_PRIORITY,
        timeout_ms: Optional[float] = None,
    ) -> "JobOptions":
        """Validate and build job options. Priority may be a level name such as "high"."""
        if isinstance(priority, str):
            priority = Priority.from_string(priority)
        if timeout_ms is not None and (
            isinstance(timeout_ms, bool) or not isinstance(timeout_ms, (int, float)) or timeout_ms < 0
        ):
            raise ConfigurationError(f"timeout_ms must be a non-negative number, got {timeout_ms!r}")
        return cls(job_id=job_id, priority=validate_priority(priority), timeout_ms=timeout_ms)

    def effective_timeout_ms(self, defaults: QueueOptions) -> float:
        return resolve_timeout_ms(self.timeout_ms, defaults.timeout_ms)


def resolve_timeout_ms(job_timeout_ms: Optional[float], default_timeout_ms: float) -> float:
    """
    Effective timeout for one job.

    The job's own timeout wins when present and nonzero; otherwise the queue
    default applies. A result of 0 means the job runs without a timeout.
    """
    if job_timeout_ms:
        return job_timeout_ms
    return default_timeout_ms or 0


def _load_yaml(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise ConfigurationError(f"Missing config file: {path}")
    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid YAML root object in config file: {path}")
    return data


def load_queue_options(path: str, root_key: str = "throttled_queue") -> QueueOptions:
    """
    Read queue options from a YAML file such as::

        throttled_queue:
          max_concurrent: 2
          min_delay_ms: 100
          timeout_ms: 5000

    A missing root key yields the defaults.
    """
    section = _load_yaml(path).get(root_key) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{root_key}' in {path} must be a mapping")
    return QueueOptions.from_dict(section)


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Install a root handler with the standard format and set the package log level."""
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    logging.getLogger("throttled_queue").setLevel(level)
