"""Configuration management using Pydantic v2 models.

Configuration covers the two things a caller tunes between runs: how a ruin
simulation is executed, and where its log output goes. Everything else in
the package is a pure function of its arguments.

Examples:
    Build a configuration in code::

        from bunpu.config import Config, RuinSimulationConfig

        config = Config(
            simulation=RuinSimulationConfig(
                initial_wealth=10.0, steps=250, n_trials=20_000, seed=7
            )
        )
        config.setup_logging()

    Load from YAML and tweak one field::

        config = Config.from_yaml(Path("ruin.yaml"))
        config = config.override(simulation__n_trials=100_000)
"""

import logging
from pathlib import Path
import sys
from typing import Any, Dict, List, Literal, Optional
import warnings

from pydantic import BaseModel, Field, field_validator, model_validator
import yaml

from ._warnings import ConfigurationWarning

_MIN_RELIABLE_TRIALS = 100
_PACKAGE_LOGGER = "bunpu"


class RuinSimulationConfig(BaseModel):
    """Execution parameters for a Monte Carlo ruin estimate.

    Attributes:
        initial_wealth: Wealth at the start of every trial.
        steps: Step budget per trial (the ruin horizon).
        n_trials: Number of independent trials.
        seed: Root seed. ``None`` draws fresh entropy.
        parallel: Split trials across worker processes.
        n_workers: Worker count for parallel runs; ``None`` lets the
            executor decide.
        chunk_size: Trials per parallel work unit. Each chunk draws from its
            own independent random stream.
        progress_bar: Show a ``tqdm`` progress bar.
        confidence_level: Level of the reported confidence interval.
    """

    initial_wealth: float = Field(description="Wealth at the start of each trial")
    steps: int = Field(ge=0, description="Step budget per trial")
    n_trials: int = Field(ge=0, description="Number of independent trials")
    seed: Optional[int] = Field(default=None, ge=0, description="Root random seed")
    parallel: bool = Field(default=False, description="Run trials in worker processes")
    n_workers: Optional[int] = Field(default=None, gt=0, description="Worker processes")
    chunk_size: int = Field(default=1000, gt=0, description="Trials per parallel chunk")
    progress_bar: bool = Field(default=False, description="Show progress bar")
    confidence_level: float = Field(
        default=0.95, gt=0, lt=1, description="Confidence interval level"
    )

    @model_validator(mode="after")
    def warn_on_suspicious_values(self):
        """Warn about legal settings that make the estimate uninformative.

        Returns:
            RuinSimulationConfig: The validated config object.
        """
        if 0 < self.n_trials < _MIN_RELIABLE_TRIALS:
            warnings.warn(
                f"Only {self.n_trials} trials requested; the ruin estimate will be noisy",
                ConfigurationWarning,
                stacklevel=2,
            )
        if self.initial_wealth <= 0 and self.steps > 0:
            warnings.warn(
                f"Initial wealth {self.initial_wealth} is not positive; "
                "every trial is ruined on its first step unless the increment is positive",
                ConfigurationWarning,
                stacklevel=2,
            )
        return self


class LoggingConfig(BaseModel):
    """Where the package logger sends its records.

    Only the ``bunpu`` logger hierarchy is touched; the root logger and
    other libraries keep whatever configuration the host application gave
    them.
    """

    enabled: bool = Field(default=True, description="Configure the package logger at all")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Threshold for the package logger"
    )
    log_file: Optional[Path] = Field(default=None, description="Also append records here")
    console_output: bool = Field(default=True, description="Echo records to stdout")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="logging.Formatter format string",
    )

    @field_validator("level", mode="before")
    @classmethod
    def upper_case_level(cls, v):
        """Accept level names in any case."""
        return v.upper() if isinstance(v, str) else v

    def configure(self, name: str = _PACKAGE_LOGGER) -> logging.Logger:
        """Replace the handlers of logger ``name`` according to these settings.

        Returns:
            The configured logger.
        """
        logger = logging.getLogger(name)
        if not self.enabled:
            return logger

        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(self.level)

        formatter = logging.Formatter(self.format)
        handlers: List[logging.Handler] = []
        if self.console_output:
            handlers.append(logging.StreamHandler(sys.stdout))
        if self.log_file is not None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.log_file, encoding="utf-8"))

        for handler in handlers:
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        return logger


def _deep_merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _nest(flat: Dict[str, Any]) -> Dict[str, Any]:
    """Turn ``{"a__b": 1}`` into ``{"a": {"b": 1}}``."""
    nested: Dict[str, Any] = {}
    for key, value in flat.items():
        *sections, field = key.split("__")
        target = nested
        for section in sections:
            target = target.setdefault(section, {})
        target[field] = value
    return nested


class Config(BaseModel):
    """Simulation settings plus logging, loadable from one YAML file.

    Top-level YAML keys starting with ``_`` are ignored, so files can hold
    anchors for shared values.
    """

    simulation: RuinSimulationConfig
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load and validate a YAML configuration file.

        Raises:
            FileNotFoundError: If ``path`` does not exist.
            ValidationError: If the contents are invalid.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return cls(**{k: v for k, v in data.items() if not k.startswith("_")})

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_config: Optional["Config"] = None) -> "Config":
        """Build a config from ``data``, merged over ``base_config`` when given."""
        if base_config is not None:
            data = _deep_merge(base_config.model_dump(), data)
        return cls(**data)

    def override(self, **kwargs) -> "Config":
        """Copy with ``section__field=value`` overrides, revalidated.

        Example:
            ``config.override(simulation__n_trials=50_000, logging__level="debug")``
        """
        return Config.from_dict(_nest(kwargs), base_config=self)

    def to_yaml(self, path: Path) -> None:
        """Write the configuration as YAML, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            yaml.safe_dump(self.model_dump(mode="json"), sort_keys=False), encoding="utf-8"
        )

    def setup_logging(self) -> None:
        """Apply the logging settings to the ``bunpu`` logger."""
        self.logging.configure()
