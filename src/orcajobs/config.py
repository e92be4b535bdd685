"""
orca-jobs | config.py

Immutable settings shared by every command. Built once at startup
(``load_settings``) and passed explicitly to each component.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, get_type_hints

import yaml
from pydantic import TypeAdapter, ValidationError

from orcajobs.errors import ConfigError

ENV_CONFIG = "ORCAJOBS_CONFIG"
USER_CONFIG = Path("~/.config/orcajobs/config.yaml")

# Partition names accepted on the command line. A config file may tune
# the limits of these, never add new ones.
PARTITION_NAMES = ("standard", "bigmem", "teaching")


@dataclass(frozen=True)
class PartitionLimits:
    max_cpus: int
    max_hours: int
    max_mem_per_core: int   # MB, compared against %maxcore


DEFAULT_PARTITIONS: Dict[str, PartitionLimits] = {
    "standard": PartitionLimits(max_cpus=40, max_hours=72, max_mem_per_core=4000),
    "bigmem":   PartitionLimits(max_cpus=40, max_hours=72, max_mem_per_core=16000),
    "teaching": PartitionLimits(max_cpus=16, max_hours=24, max_mem_per_core=2000),
}

DEFAULT_SPLIT_KEYWORDS: Dict[str, str] = {
    "sp":   "! B3LYP D3BJ def2-TZVP",
    "opt":  "! B3LYP D3BJ def2-SVP Opt Freq",
    "topt": "! B3LYP D3BJ def2-SVP TightOpt Freq",
}


@dataclass(frozen=True)
class Settings:
    # Submission defaults
    default_hours: int = 24
    default_partition: str = "standard"
    default_account: str = "chem"
    teaching_account: str = "teaching"
    teaching_partition: str = "teaching"

    # Program / environment
    module: str = "orca"
    program: str = "orca"
    input_ext: str = ".inp"
    output_ext: str = ".out"
    script_ext: str = ".sh"

    # Interaction
    overwrite_scripts: bool = False
    confirm_submit: bool = True

    # Structure splitter
    split_maxcore: int = 3000
    split_keywords: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SPLIT_KEYWORDS))

    partitions: Dict[str, PartitionLimits] = field(default_factory=lambda: dict(DEFAULT_PARTITIONS))

    def limits(self, partition: str) -> PartitionLimits:
        try:
            return self.partitions[partition]
        except KeyError:
            raise ConfigError(f"No limits configured for partition '{partition}'") from None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------
def _coerce_partitions(raw: Any, base: Mapping[str, PartitionLimits]) -> Dict[str, PartitionLimits]:
    if not isinstance(raw, dict):
        raise ConfigError("partitions must be a mapping of name -> limits")
    merged = dict(base)
    for name, limits in raw.items():
        if name not in PARTITION_NAMES:
            raise ConfigError(
                f"Unknown partition '{name}' in config. Expected one of {list(PARTITION_NAMES)}"
            )
        if not isinstance(limits, dict):
            raise ConfigError(f"partitions.{name} must be a mapping")
        current = asdict(merged.get(name, DEFAULT_PARTITIONS[name]))
        unknown = set(limits) - set(current)
        if unknown:
            raise ConfigError(f"Unknown keys in partitions.{name}: {sorted(unknown)}")
        current.update(limits)
        try:
            merged[name] = TypeAdapter(PartitionLimits).validate_python(current)
        except ValidationError:
            raise ConfigError(f"partitions.{name}: limits must be integers, got {limits!r}") from None
    return merged


def _coerce_scalar(key: str, value: Any) -> Any:
    # "no"/"off" become False, "6" becomes 6; anything else of the wrong type is rejected
    expected = get_type_hints(Settings)[key]
    try:
        return TypeAdapter(expected).validate_python(value)
    except ValidationError:
        raise ConfigError(
            f"{key} must be of type {getattr(expected, '__name__', expected)}, got {value!r}"
        ) from None


def settings_from_dict(data: Mapping[str, Any], base: Optional[Settings] = None) -> Settings:
    """Overlay a (YAML-derived) mapping on top of ``base`` (defaults if None)."""
    base = base or Settings()
    known = {f.name for f in fields(Settings)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown config keys: {sorted(unknown)}")

    updates: Dict[str, Any] = {}
    for key, value in data.items():
        if key == "partitions":
            updates[key] = _coerce_partitions(value, base.partitions)
        elif key == "split_keywords":
            if not isinstance(value, dict):
                raise ConfigError("split_keywords must be a mapping of jobtype -> keyword line")
            updates[key] = {**base.split_keywords, **{str(k): str(v) for k, v in value.items()}}
        else:
            updates[key] = _coerce_scalar(key, value)

    settings = replace(base, **updates)
    if settings.default_partition not in settings.partitions:
        raise ConfigError(f"default_partition '{settings.default_partition}' has no limits")
    return settings


def _config_path(explicit: Optional[Path]) -> Optional[Path]:
    if explicit is not None:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        return path
    env = os.environ.get(ENV_CONFIG)
    if env:
        path = Path(env).expanduser()
        if not path.is_file():
            raise ConfigError(f"{ENV_CONFIG} points to a missing file: {path}")
        return path
    user = USER_CONFIG.expanduser()
    return user if user.is_file() else None


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Resolve the effective settings.

    Order: explicit ``path`` > $ORCAJOBS_CONFIG > ~/.config/orcajobs/config.yaml
    > built-in defaults.
    """
    cfg = _config_path(path)
    if cfg is None:
        return Settings()
    try:
        data = yaml.safe_load(cfg.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse {cfg}: {exc}") from None
    if not isinstance(data, dict):
        raise ConfigError(f"{cfg} must contain a mapping at top level")
    return settings_from_dict(data)


def dump_settings(settings: Settings) -> str:
    return yaml.safe_dump(settings.to_dict(), sort_keys=False)
