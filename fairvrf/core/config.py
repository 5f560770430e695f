"""
Configuration parameters for fairvrf.

Defines the fairness timing window, housekeeping intervals and
performance budgets. Values can be overridden from the environment
(``FAIRVRF_*``), optionally loaded from a dotenv file.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

T = TypeVar("T")

ENV_PREFIX = "FAIRVRF_"


@dataclass
class VRFConfig:
    """Resolution and VRF configuration parameters"""

    # Fairness window (seconds since submission)
    min_resolution_delay: float = 5.0  # No fulfillment before this floor
    max_resolution_delay: float = 30.0  # Pending requests fail after this ceiling

    # Monitoring
    poll_interval: float = 1.0  # Seconds between monitoring ticks

    # Audit history kept in memory before purge
    retention_period: float = 24 * 60 * 60
    max_queued_events: int = 10_000  # Oldest lifecycle events dropped beyond this

    # Performance budgets
    latency_target_ms: float = 10.0  # Per prove/verify call
    max_selection_attempts: int = 100  # Rejection-sampling redraws per slot

    # Paths
    log_dir: Path = Path("logs")

    def __post_init__(self):
        """Validate the timing window"""
        if self.min_resolution_delay < 0:
            raise ValueError("min_resolution_delay must be >= 0")
        if self.max_resolution_delay <= self.min_resolution_delay:
            raise ValueError("max_resolution_delay must exceed min_resolution_delay")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        if self.retention_period <= 0:
            raise ValueError("retention_period must be > 0")
        if self.max_queued_events < 1:
            raise ValueError("max_queued_events must be >= 1")
        if self.latency_target_ms <= 0:
            raise ValueError("latency_target_ms must be > 0")
        if self.max_selection_attempts < 1:
            raise ValueError("max_selection_attempts must be >= 1")
        self.log_dir = Path(self.log_dir)


def _env(name: str, cast: Callable[[str], T], default: T) -> T:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ValueError(f"Invalid value for {ENV_PREFIX}{name}: {raw!r}") from e


def load_config(env_file: Optional[str] = None) -> VRFConfig:
    """
    Load configuration from the environment.

    Args:
        env_file: Optional dotenv file; its values do not override
            variables already set in the process environment

    Returns:
        VRFConfig instance
    """
    if env_file:
        load_dotenv(env_file, override=False)

    defaults = VRFConfig()
    return VRFConfig(
        min_resolution_delay=_env("MIN_RESOLUTION_DELAY", float, defaults.min_resolution_delay),
        max_resolution_delay=_env("MAX_RESOLUTION_DELAY", float, defaults.max_resolution_delay),
        poll_interval=_env("POLL_INTERVAL", float, defaults.poll_interval),
        retention_period=_env("RETENTION_PERIOD", float, defaults.retention_period),
        max_queued_events=_env("MAX_QUEUED_EVENTS", int, defaults.max_queued_events),
        latency_target_ms=_env("LATENCY_TARGET_MS", float, defaults.latency_target_ms),
        max_selection_attempts=_env("MAX_SELECTION_ATTEMPTS", int, defaults.max_selection_attempts),
        log_dir=_env("LOG_DIR", Path, defaults.log_dir),
    )
