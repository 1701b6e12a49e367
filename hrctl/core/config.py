"""Settings loading and validation for the optional YAML config file."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from hrctl.core.errors import ConfigLoadError, ConfigValidationError
from hrctl.core.uuids import HEART_RATE_MEASUREMENT_UUID, HEART_RATE_SERVICE_UUID, normalize_uuid

LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class Settings:
    adapter: str | None = None
    scan_window_s: float = 2.0
    connect_timeout_s: float = 10.0
    service_uuid: str = HEART_RATE_SERVICE_UUID
    characteristic_uuid: str = HEART_RATE_MEASUREMENT_UUID

    def with_overrides(self, **overrides: Any) -> Settings:
        """Return a copy with every non-None override applied."""
        return replace(self, **{key: value for key, value in overrides.items() if value is not None})


def default_config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "hrctl/config.yaml"


def _load_schema_validator() -> Any:
    schema_text = resources.files("hrctl.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping at root")
    return loaded


def _normalize_uuid(value: str, *, context: str) -> str:
    try:
        return normalize_uuid(value)
    except ValueError as exc:
        raise ConfigValidationError(f"{context} must be a 16-bit, 32-bit, or 128-bit UUID string") from exc


def _build_settings(doc: dict[str, Any], source: Path) -> Settings:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ConfigValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    settings = Settings()
    return settings.with_overrides(
        adapter=doc.get("adapter"),
        scan_window_s=float(doc["scan_window_s"]) if "scan_window_s" in doc else None,
        connect_timeout_s=float(doc["connect_timeout_s"]) if "connect_timeout_s" in doc else None,
        service_uuid=_normalize_uuid(doc["service_uuid"], context="service_uuid")
        if "service_uuid" in doc
        else None,
        characteristic_uuid=_normalize_uuid(doc["characteristic_uuid"], context="characteristic_uuid")
        if "characteristic_uuid" in doc
        else None,
    )


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from path, or from the default location when it exists.

    An explicit path that does not exist is an error; a missing default file
    just yields the built-in defaults.
    """
    if path is None:
        path = default_config_path()
        if not path.is_file():
            LOGGER.debug("No config file at %s, using defaults", path)
            return Settings()

    doc = _read_yaml(path)
    settings = _build_settings(doc, path)
    LOGGER.debug("Loaded settings from %s: %s", path, settings)
    return settings
