"""Budget configuration: discovery, schema validation and normalization."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import yaml

from ..core.logging import log_event
from ..core.size import format_bytes, parse_size, to_display_size
from ..errors import KIND_CONFIG, OverweightError
from ..testers import DEFAULT_TESTER_ID
from .schema import validate_config_payload

if TYPE_CHECKING:
    from ..core.context import RunContext

SourceType = Literal["inline", "file", "package"]

DISCOVERED_CONFIG_FILES = ("overweight.json", "overweight.config.json")
PACKAGE_MANIFEST = "package.json"
PACKAGE_FIELD = "overweight"
YAML_SUFFIXES = frozenset({".yaml", ".yml"})


@dataclass(frozen=True)
class ConfigSource:
    type: SourceType = "inline"
    location: Path | None = None


@dataclass(frozen=True)
class SizeRule:
    pattern: str
    label: str
    tester_id: str
    max_bytes: int | float
    max_display: str
    max_formatted: str


@dataclass(frozen=True)
class NormalizedConfig:
    root: Path
    default_tester_id: str
    rules: tuple[SizeRule, ...]
    source: ConfigSource = ConfigSource()
    is_normalized: bool = True


def _ensure_object_config(raw: Any) -> Any:
    return {"files": raw} if isinstance(raw, list) else raw


def _build_rule(entry: dict[str, Any], default_tester_id: str) -> SizeRule:
    max_bytes = parse_size(entry["maxSize"])
    if max_bytes < 0:
        raise OverweightError(
            f'maxSize for "{entry["path"]}" must be greater than or equal to zero', kind=KIND_CONFIG
        )
    return SizeRule(
        pattern=entry["path"],
        label=entry.get("label") or entry["path"],
        tester_id=(entry.get("compression") or default_tester_id).lower(),
        max_bytes=max_bytes,
        max_display=to_display_size(entry["maxSize"], max_bytes),
        max_formatted=format_bytes(max_bytes),
    )


def normalize_config(
    raw: Any,
    *,
    cwd: Path | None = None,
    source: ConfigSource | None = None,
) -> NormalizedConfig:
    """Validate ``raw`` (rule list or ``{root?, defaultCompression?, files}``) and resolve it against ``cwd``."""
    if isinstance(raw, NormalizedConfig):
        return raw
    config_root = (cwd or Path.cwd()).resolve()
    payload = _ensure_object_config(raw)
    validate_config_payload(payload)
    default_tester_id = (payload.get("defaultCompression") or DEFAULT_TESTER_ID).lower()
    root = (config_root / payload["root"]).resolve() if payload.get("root") else config_root
    return NormalizedConfig(
        root=root,
        default_tester_id=default_tester_id,
        rules=tuple(_build_rule(entry, default_tester_id) for entry in payload["files"]),
        source=source or ConfigSource(),
    )


def ensure_normalized(config: Any, cwd: Path | None = None) -> NormalizedConfig:
    if isinstance(config, NormalizedConfig) and config.is_normalized:
        return config
    return normalize_config(config, cwd=cwd, source=ConfigSource("inline"))


def _read_json(path: Path) -> Any:
    raw = path.read_text(encoding="utf-8")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise OverweightError(f"Failed to parse JSON file at {path}: {exc}", kind=KIND_CONFIG) from exc


def _read_config_file(path: Path) -> Any:
    if path.suffix.lower() not in YAML_SUFFIXES:
        return _read_json(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise OverweightError(f"Failed to parse YAML file at {path}: {exc}", kind=KIND_CONFIG) from exc


def load_config(
    cwd: Path | None = None,
    *,
    config_path: str | Path | None = None,
    inline_config: Any = None,
    ctx: RunContext | None = None,
) -> NormalizedConfig:
    """Resolve configuration by precedence.

    Inline config wins, then an explicit ``config_path`` (which must exist),
    then ``overweight.json``, ``overweight.config.json`` and finally the
    ``overweight`` field of ``package.json``.
    """
    root = (cwd or Path.cwd()).resolve()

    if inline_config is not None:
        log_event(ctx, "debug", "config", "load", source="inline")
        return normalize_config(inline_config, cwd=root, source=ConfigSource("inline"))

    if config_path:
        explicit = (root / config_path).resolve()
        if not explicit.is_file():
            raise OverweightError(f'Could not find config file at "{explicit}"', kind=KIND_CONFIG)
        log_event(ctx, "debug", "config", "load", source="file", path=str(explicit))
        return normalize_config(_read_config_file(explicit), cwd=root, source=ConfigSource("file", explicit))

    attempted: list[str] = []
    for name in DISCOVERED_CONFIG_FILES:
        candidate = root / name
        attempted.append(str(candidate))
        if candidate.is_file():
            log_event(ctx, "debug", "config", "load", source="file", path=str(candidate))
            return normalize_config(_read_json(candidate), cwd=root, source=ConfigSource("file", candidate))

    manifest = root / PACKAGE_MANIFEST
    attempted.append(f"{manifest}#{PACKAGE_FIELD}")
    if manifest.is_file():
        field = _read_json(manifest)
        field = field.get(PACKAGE_FIELD) if isinstance(field, dict) else None
        if field:
            log_event(ctx, "debug", "config", "load", source="package", path=str(manifest))
            return normalize_config(field, cwd=root, source=ConfigSource("package", manifest))

    raise OverweightError(
        "No overweight configuration found. Create an overweight.json or overweight.config.json file, "
        "add an `overweight` field to package.json, or pass --config. Tried: " + ", ".join(attempted),
        kind=KIND_CONFIG,
    )
