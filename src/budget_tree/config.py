"""Configuration system for budget-tree.

Provides hierarchical configuration with precedence:
1. CLI flags (highest)
2. Environment variables
3. Project config (.budget_tree/config.json)
4. Global config (~/.budget_tree_config.json)
5. Hardcoded defaults (lowest)
"""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from budget_tree.allocation.rounding import RoundingMode, RoundingPolicy

logger = logging.getLogger(__name__)

# Valid values for enums
VALID_OUTPUT_FORMATS = ("text", "json")
VALID_ROUNDING_MODES = tuple(mode.value for mode in RoundingMode)
MAX_PLACES = 6

# Hardcoded defaults
DEFAULT_OUTPUT_FORMAT = "text"
DEFAULT_PLACES = 2
DEFAULT_ROUNDING_MODE = RoundingMode.HALF_UP.value

# Project home
HOME_DIR_NAME = ".budget_tree"
ENV_HOME = "BUDGET_TREE_HOME"

# Environment variable names
ENV_OUTPUT_FORMAT = "BUDGET_TREE_OUTPUT_FORMAT"
ENV_QUIET = "BUDGET_TREE_QUIET"
ENV_ROUNDING_MODE = "BUDGET_TREE_ROUNDING_MODE"
ENV_ROUNDING_PLACES = "BUDGET_TREE_ROUNDING_PLACES"
ENV_VARIANCE_PLACES = "BUDGET_TREE_VARIANCE_PLACES"
ENV_WIDTH = "BUDGET_TREE_WIDTH"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


class ConfigLoadError(Exception):
    """Raised when configuration file cannot be loaded."""

    pass


def _reject_unknown(cls: type, data: dict[str, Any], section: str) -> None:
    known_fields = {f.name for f in fields(cls)}
    # "_comment_*" keys come from the generated template
    unknown = {k for k in data if not k.startswith("_")} - known_fields
    if unknown:
        raise ConfigValidationError(
            f"Unknown fields in {section} config: {', '.join(sorted(unknown))}"
        )


def _check_places(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_PLACES:
        raise ConfigValidationError(
            f"{name} must be an integer between 0 and {MAX_PLACES}, got {value!r}"
        )


@dataclass
class DefaultsConfig:
    """Default output behaviour."""

    output_format: str = DEFAULT_OUTPUT_FORMAT
    quiet: bool = False

    def validate(self) -> None:
        """Validate configuration values."""
        if self.output_format not in VALID_OUTPUT_FORMATS:
            raise ConfigValidationError(
                f"Invalid output_format '{self.output_format}'. "
                f"Valid values: {', '.join(VALID_OUTPUT_FORMATS)}"
            )

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"output_format": self.output_format, "quiet": self.quiet}

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], strict: bool = False
    ) -> "DefaultsConfig":
        """Create from dictionary."""
        if strict:
            _reject_unknown(cls, data, "defaults")

        return cls(
            output_format=data.get("output_format", DEFAULT_OUTPUT_FORMAT),
            quiet=data.get("quiet", False),
        )


@dataclass
class RoundingConfig:
    """Rounding applied to redistributed shares."""

    places: int = DEFAULT_PLACES
    mode: str = DEFAULT_ROUNDING_MODE

    def validate(self) -> None:
        """Validate rounding values."""
        _check_places("rounding.places", self.places)
        if self.mode not in VALID_ROUNDING_MODES:
            raise ConfigValidationError(
                f"Invalid rounding mode '{self.mode}'. "
                f"Valid values: {', '.join(VALID_ROUNDING_MODES)}"
            )

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"places": self.places, "mode": self.mode}

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], strict: bool = False
    ) -> "RoundingConfig":
        """Create from dictionary."""
        if strict:
            _reject_unknown(cls, data, "rounding")

        return cls(
            places=data.get("places", DEFAULT_PLACES),
            mode=data.get("mode", DEFAULT_ROUNDING_MODE),
        )


@dataclass
class DisplayConfig:
    """Display precision and table width."""

    value_places: int = DEFAULT_PLACES
    variance_places: int = DEFAULT_PLACES
    width: int | None = None

    def validate(self) -> None:
        """Validate display values."""
        _check_places("display.value_places", self.value_places)
        _check_places("display.variance_places", self.variance_places)
        if self.width is not None and self.width <= 0:
            raise ConfigValidationError(
                f"display.width must be positive, got {self.width}"
            )

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """Convert to dictionary."""
        result = {
            "value_places": self.value_places,
            "variance_places": self.variance_places,
            "width": self.width,
        }
        if exclude_none:
            return {k: v for k, v in result.items() if v is not None}
        return result

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], strict: bool = False
    ) -> "DisplayConfig":
        """Create from dictionary."""
        if strict:
            _reject_unknown(cls, data, "display")

        return cls(
            value_places=data.get("value_places", DEFAULT_PLACES),
            variance_places=data.get("variance_places", DEFAULT_PLACES),
            width=data.get("width"),
        )


@dataclass
class BudgetTreeConfig:
    """Main configuration container."""

    version: str = "1"
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    rounding: RoundingConfig = field(default_factory=RoundingConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    def validate(self) -> None:
        """Validate entire configuration."""
        self.defaults.validate()
        self.rounding.validate()
        self.display.validate()

    def rounding_policy(self) -> RoundingPolicy:
        """Build the rounding policy used by the distributor."""
        return RoundingPolicy(
            places=self.rounding.places,
            mode=RoundingMode(self.rounding.mode),
        )

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "version": self.version,
            "defaults": self.defaults.to_dict(exclude_none),
            "rounding": self.rounding.to_dict(exclude_none),
            "display": self.display.to_dict(exclude_none),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], strict: bool = False) -> "BudgetTreeConfig":
        """Create from dictionary."""
        if strict:
            known_fields = {"version", "defaults", "rounding", "display"}
            unknown = {k for k in data if not k.startswith("_")} - known_fields
            if unknown:
                raise ConfigValidationError(
                    f"Unknown fields in config: {', '.join(sorted(unknown))}"
                )

        return cls(
            version=data.get("version", "1"),
            defaults=DefaultsConfig.from_dict(data.get("defaults", {}), strict),
            rounding=RoundingConfig.from_dict(data.get("rounding", {}), strict),
            display=DisplayConfig.from_dict(data.get("display", {}), strict),
        )


def get_global_config_path() -> Path:
    """Get path to global config file."""
    return Path.home() / ".budget_tree_config.json"


def get_home(override: str | Path | None = None) -> Path:
    """Get the project home directory (not created)."""
    if override is not None:
        return Path(override)
    if env_home := os.environ.get(ENV_HOME):
        return Path(env_home)
    return Path.cwd() / HOME_DIR_NAME


def get_project_config_path(home: Path) -> Path:
    """Get path to project config file."""
    return home / "config.json"


def read_config_data(path: Path) -> dict[str, Any]:
    """Read the raw JSON object from a config file.

    Returns an empty dict when the file does not exist.

    Raises:
        ConfigLoadError: If file cannot be read or parsed
    """
    if not path.exists():
        return {}

    try:
        content = path.read_text()
    except PermissionError as e:
        raise ConfigLoadError(f"Permission denied reading {path}: {e}")
    except OSError as e:
        raise ConfigLoadError(f"Error reading {path}: {e}")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Invalid JSON in {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigLoadError(f"Config in {path} must be a JSON object")

    return data


def load_config_file(path: Path, strict: bool = False) -> BudgetTreeConfig:
    """Load configuration from a JSON file.

    Args:
        path: Path to the config file
        strict: If True, fail on unknown fields

    Returns:
        BudgetTreeConfig instance

    Raises:
        ConfigLoadError: If file cannot be read or parsed
        ConfigValidationError: If strict=True and unknown fields found
    """
    return BudgetTreeConfig.from_dict(read_config_data(path), strict=strict)


def merge_config_data(*layers: dict[str, Any]) -> dict[str, Any]:
    """Merge raw config dicts with later layers taking precedence.

    Only keys present in a layer override earlier layers, so a project
    config can set a field back to its default value.

    Args:
        *layers: Config dicts to merge (first is base, last has highest priority)

    Returns:
        Merged config dict
    """
    result: dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            if isinstance(value, dict) and isinstance(result.get(key), dict):
                result[key] = {**result[key], **copy.deepcopy(value)}
            else:
                result[key] = copy.deepcopy(value)
    return result


def _env_int(name: str) -> int | None:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigValidationError(f"{name} must be an integer, got '{raw}'")


def apply_env_overrides(config: BudgetTreeConfig) -> BudgetTreeConfig:
    """Apply environment variable overrides to config.

    Args:
        config: Base configuration

    Returns:
        New config with env var overrides applied

    Raises:
        ConfigValidationError: If env var value is invalid
    """
    result = copy.deepcopy(config)

    if output_format := os.environ.get(ENV_OUTPUT_FORMAT):
        result.defaults.output_format = output_format

    if quiet := os.environ.get(ENV_QUIET):
        result.defaults.quiet = quiet.lower() in ("true", "1", "yes")

    if mode := os.environ.get(ENV_ROUNDING_MODE):
        result.rounding.mode = mode

    if (places := _env_int(ENV_ROUNDING_PLACES)) is not None:
        result.rounding.places = places

    if (variance_places := _env_int(ENV_VARIANCE_PLACES)) is not None:
        result.display.variance_places = variance_places

    if (width := _env_int(ENV_WIDTH)) is not None:
        result.display.width = width

    return result


def get_config(home: Path | None = None) -> BudgetTreeConfig:
    """Load and merge configuration from all sources.

    Loads in order (later sources override earlier):
    1. Hardcoded defaults
    2. Global config (~/.budget_tree_config.json)
    3. Project config (<home>/config.json)
    4. Environment variables

    Args:
        home: Project home directory (for project config)

    Returns:
        Merged, validated configuration with all overrides applied
    """
    layers = [read_config_data(get_global_config_path())]
    if home is not None:
        layers.append(read_config_data(get_project_config_path(home)))

    merged = BudgetTreeConfig.from_dict(merge_config_data(*layers))
    config = apply_env_overrides(merged)
    config.validate()
    logger.debug("Effective config: %s", config.to_dict())
    return config


def generate_config_template() -> dict[str, Any]:
    """Generate a config template dictionary.

    Returns:
        Dictionary suitable for JSON serialization
    """
    return {
        "version": "1",
        "_comment_version": "Config file format version",
        "defaults": {
            "output_format": DEFAULT_OUTPUT_FORMAT,
            "_comment_output_format": f"Output format. Valid: {', '.join(VALID_OUTPUT_FORMATS)}",
            "quiet": False,
            "_comment_quiet": "Suppress non-essential output",
        },
        "rounding": {
            "places": DEFAULT_PLACES,
            "_comment_places": "Decimal places kept when a value is split across children",
            "mode": DEFAULT_ROUNDING_MODE,
            "_comment_mode": f"Tie-breaking rule. Valid: {', '.join(VALID_ROUNDING_MODES)}",
        },
        "display": {
            "value_places": DEFAULT_PLACES,
            "_comment_value_places": "Decimal places shown for values",
            "variance_places": DEFAULT_PLACES,
            "_comment_variance_places": "Decimal places shown for variance percentages",
            "width": None,
            "_comment_width": "Table width in columns (null: terminal width)",
        },
    }


def generate_config_template_string() -> str:
    """Generate a config template as a formatted JSON string."""
    return json.dumps(generate_config_template(), indent=2)
