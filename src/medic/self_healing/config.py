"""
Self-heal policy loaded from .medic/self_heal.yaml.

Functions:
- load_self_heal_config: Load the policy from YAML (defaults when absent)
- save_self_heal_config: Write the policy back as camelCase YAML
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from medic.self_healing.models import ErrorCategory
from medic.shared.domain.base_model import to_camel_case, to_snake_case
from medic.shared.domain.exceptions import ConfigurationError
from medic.shared.infrastructure.config import settings

DEFAULT_ENABLED_CATEGORIES = [
    ErrorCategory.JSX_ERROR,
    ErrorCategory.SYNTAX_ERROR,
    ErrorCategory.IMPORT_ERROR,
    ErrorCategory.DEPENDENCY_ERROR,
    ErrorCategory.RUNTIME_ERROR,
]

_POSITIVE_FIELDS = (
    "max_attempts",
    "backoff_base_ms",
    "backoff_cap_ms",
    "error_buffer_size",
    "console_buffer_size",
    "console_tail_size",
    "history_size",
)


@dataclass
class SelfHealConfig:
    max_attempts: int = 3
    backoff_base_ms: int = 2000
    backoff_cap_ms: int = 8000
    notify_user: bool = True
    enabled_categories: list[ErrorCategory] = field(default_factory=lambda: list(DEFAULT_ENABLED_CATEGORIES))
    error_buffer_size: int = 50
    console_buffer_size: int = 100
    console_tail_size: int = 20
    history_size: int = 10
    low_confidence_threshold: int = 60
    context_lines: int = 5

    def __post_init__(self) -> None:
        self.enabled_categories = [
            c if isinstance(c, ErrorCategory) else _parse_category(c) for c in self.enabled_categories
        ]
        for name in _POSITIVE_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{to_camel_case(name)} must be a positive integer, got {value!r}")
        if not 0 <= self.low_confidence_threshold <= 100:
            raise ConfigurationError(
                f"lowConfidenceThreshold must be between 0 and 100, got {self.low_confidence_threshold!r}"
            )
        if isinstance(self.context_lines, bool) or not isinstance(self.context_lines, int) or self.context_lines < 0:
            raise ConfigurationError(f"contextLines must be a non-negative integer, got {self.context_lines!r}")
        if self.backoff_cap_ms < self.backoff_base_ms:
            raise ConfigurationError("backoffCapMs must not be smaller than backoffBaseMs")

    def is_enabled(self, category: ErrorCategory) -> bool:
        return category in self.enabled_categories

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["enabled_categories"] = [c.value for c in self.enabled_categories]
        return data


def _parse_category(value: Any) -> ErrorCategory:
    try:
        return ErrorCategory.parse(str(value))
    except ValueError:
        raise ConfigurationError(f"Unknown error category in enabledCategories: {value!r}")


def _default_path() -> Path:
    return Path(settings.self_heal_config_path)


def load_self_heal_config(config_path: Path | None = None) -> SelfHealConfig:
    """
    Load the self-heal policy.

    Args:
        config_path: YAML file (defaults to settings.self_heal_config_path)

    Returns:
        SelfHealConfig from file, or defaults when the file is missing or empty

    Raises:
        ConfigurationError: If the YAML is invalid or holds invalid values
    """
    path = config_path or _default_path()
    if not path.exists():
        return SelfHealConfig()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}")

    if data is None:
        return SelfHealConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping in {path}, got {type(data).__name__}")

    known = {f.name for f in fields(SelfHealConfig)}
    kwargs = {}
    for key, value in data.items():
        name = to_snake_case(str(key))
        if name not in known:
            raise ConfigurationError(f"Unknown self-heal option: {key}")
        kwargs[name] = value

    return SelfHealConfig(**kwargs)


def save_self_heal_config(config: SelfHealConfig, config_path: Path | None = None) -> Path:
    """Write the policy as camelCase YAML, creating the parent directory."""
    path = config_path or _default_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {to_camel_case(k): v for k, v in config.to_dict().items()}
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    return path
