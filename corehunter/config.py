# corehunter/config.py

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from .exceptions import ValidationError

# Environment variables read by CoreHunterSettings.from_environment()
ENV_MODE = "COREHUNTER_MODE"
ENV_TIME_LIMIT = "COREHUNTER_TIME_LIMIT"
ENV_MAX_TIME_WITHOUT_IMPROVEMENT = "COREHUNTER_MAX_TIME_WITHOUT_IMPROVEMENT"
ENV_SEED = "COREHUNTER_SEED"
ENV_DATA_PATH = "COREHUNTER_DATA_PATH"
ENV_LOG_LEVEL = "COREHUNTER_LOG_LEVEL"

DEFAULT_DATA_PATH = "corehunter_data"
DEFAULT_LOG_LEVEL = "WARNING"


class ExecutionMode(Enum):
    """
    Execution mode of a sampling or normalization run.

    The mode only fixes the default stop condition used when neither a time
    limit nor a maximum time without improvement is configured.
    """
    DEFAULT = "default"
    FAST = "fast"

    @property
    def default_max_time_without_improvement(self) -> float:
        """Seconds without improvement after which a run stops by default."""
        return 10.0 if self is ExecutionMode.DEFAULT else 2.0

    @classmethod
    def from_string(cls, value: str) -> "ExecutionMode":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValidationError(
                f"Unknown execution mode '{value}'. Expected one of: {[m.value for m in cls]}."
            ) from None


def _parse_seconds(name: str, raw: Optional[str]) -> Optional[float]:
    if raw is None or raw.strip() == "":
        return None
    try:
        seconds = float(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number of seconds, got '{raw}'.") from None
    if seconds <= 0:
        raise ValidationError(f"{name} must be positive, got {seconds}.")
    return seconds


def _parse_seed(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{ENV_SEED} must be an integer, got '{raw}'.") from None


@dataclass
class CoreHunterSettings:
    """
    Runtime settings shared by the executor, the normalization engine and the
    dataset repository.

    Attributes:
        mode (ExecutionMode): Execution mode.
        time_limit (float, optional): Absolute time limit per run, in seconds.
        max_time_without_improvement (float, optional): Idle time limit per run, in seconds.
        seed (int, optional): Base seed for the random generators of all runs.
        data_path (str): Root directory of the file-based dataset repository.
        log_level (str): Level applied by configure_logging().
    """
    mode: ExecutionMode = ExecutionMode.DEFAULT
    time_limit: Optional[float] = None
    max_time_without_improvement: Optional[float] = None
    seed: Optional[int] = None
    data_path: str = DEFAULT_DATA_PATH
    log_level: str = field(default=DEFAULT_LOG_LEVEL)

    def __post_init__(self):
        if isinstance(self.mode, str):
            self.mode = ExecutionMode.from_string(self.mode)
        for name in ("time_limit", "max_time_without_improvement"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValidationError(f"{name} must be positive, got {value}.")
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise ValidationError(f"Unknown log level '{self.log_level}'.")

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> "CoreHunterSettings":
        """
        Builds settings from environment variables (``os.environ`` by default).
        Unset variables fall back to the defaults of this class.
        """
        env = os.environ if environ is None else environ
        return cls(
            mode=ExecutionMode.from_string(env.get(ENV_MODE, ExecutionMode.DEFAULT.value)),
            time_limit=_parse_seconds(ENV_TIME_LIMIT, env.get(ENV_TIME_LIMIT)),
            max_time_without_improvement=_parse_seconds(
                ENV_MAX_TIME_WITHOUT_IMPROVEMENT, env.get(ENV_MAX_TIME_WITHOUT_IMPROVEMENT)
            ),
            seed=_parse_seed(env.get(ENV_SEED)),
            data_path=env.get(ENV_DATA_PATH, DEFAULT_DATA_PATH),
            log_level=env.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL),
        )


def configure_logging(level: Optional[str] = None) -> None:
    """
    Attaches a stream handler to the package logger.

    Args:
        level (str, optional): Logging level name. Defaults to the level found
                               in the environment (COREHUNTER_LOG_LEVEL).
    """
    if level is None:
        level = os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)
    logger = logging.getLogger("corehunter")
    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.NullHandler)
               for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level.upper())
