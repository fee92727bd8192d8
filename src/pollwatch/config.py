"""Configuration loading utilities for the polling file watcher."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml  # type: ignore

from .content_types import ContentType

logger = logging.getLogger(__name__)

DEFAULT_ROOT = "./storage/app/private"
DEFAULT_INTERVAL = 1.0


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""


@dataclass
class MonitorConfig:
    """Options describing how the filesystem monitor should behave."""

    root_path: Path
    poll_interval: float = DEFAULT_INTERVAL
    suppression_ttl: float = 2.0
    max_workers: int = 4


@dataclass
class EndpointsConfig:
    """Remote services used by the deletion reaction and handlers."""

    placeholder_api: str = "https://meme-api.com/gimme"
    sample_text_api: str = "https://baconipsum.com/api/?type=meat-and-filler"
    json_forward: str = "https://fswatcher.requestcatcher.com"
    timeout: float = 10.0


@dataclass
class HandlerConfig:
    """Handler definition: a callable plus the media types it is registered for."""

    name: str
    module: str
    function: str
    mime_types: List[str]
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AppConfig:
    """Top-level configuration structure."""

    monitor: MonitorConfig
    endpoints: EndpointsConfig = field(default_factory=EndpointsConfig)
    handlers: List[HandlerConfig] = field(default_factory=list)


def default_handlers() -> List[HandlerConfig]:
    """Built-in media type routing used when no configuration file is given."""

    return [
        HandlerConfig(
            name="optimize_jpeg",
            module="pollwatch.image_actions",
            function="optimize_jpeg",
            mime_types=[ContentType.JPEG.value],
        ),
        HandlerConfig(
            name="forward_json",
            module="pollwatch.file_actions",
            function="forward_json",
            mime_types=[ContentType.JSON.value, ContentType.JSON_LD.value],
        ),
        HandlerConfig(
            name="append_sample_text",
            module="pollwatch.file_actions",
            function="append_sample_text",
            mime_types=[ContentType.TXT.value],
        ),
        HandlerConfig(
            name="extract_zip",
            module="pollwatch.file_actions",
            function="extract_zip",
            mime_types=[ContentType.ZIP.value, ContentType.ZIP_COMPRESSED.value],
        ),
    ]


def default_config(root_path: Path, poll_interval: float = DEFAULT_INTERVAL) -> AppConfig:
    return AppConfig(
        monitor=MonitorConfig(root_path=root_path, poll_interval=poll_interval),
        handlers=default_handlers(),
    )


def load_config(path: Path) -> AppConfig:
    """Load and validate the YAML configuration file."""

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:  # pragma: no cover - logging helper
        raise ConfigError(f"Failed to parse YAML configuration: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    monitor_cfg = _parse_monitor_config(data.get("monitor", {}), config_path=path)
    endpoints_cfg = _parse_endpoints_config(data.get("endpoints"))
    if "handlers" in data:
        handlers_cfg = _parse_handlers_config(data.get("handlers"))
    else:
        handlers_cfg = default_handlers()

    return AppConfig(monitor=monitor_cfg, endpoints=endpoints_cfg, handlers=handlers_cfg)


def _parse_monitor_config(raw: Any, *, config_path: Path) -> MonitorConfig:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("'monitor' section must be a mapping")

    root_path_raw = raw.get("root_path", DEFAULT_ROOT)
    if not isinstance(root_path_raw, str):
        raise ConfigError("monitor.root_path must be a string")

    root_path = Path(root_path_raw)
    if not root_path.is_absolute():
        root_path = (config_path.parent / root_path).resolve()

    poll_interval = _positive_float(raw.get("poll_interval", DEFAULT_INTERVAL), "monitor.poll_interval")
    suppression_ttl = _positive_float(raw.get("suppression_ttl", 2.0), "monitor.suppression_ttl")

    max_workers = raw.get("max_workers", 4)
    if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
        raise ConfigError("monitor.max_workers must be a positive integer")

    return MonitorConfig(
        root_path=root_path,
        poll_interval=poll_interval,
        suppression_ttl=suppression_ttl,
        max_workers=max_workers,
    )


def _parse_endpoints_config(raw: Any) -> EndpointsConfig:
    if raw is None:
        return EndpointsConfig()
    if not isinstance(raw, dict):
        raise ConfigError("'endpoints' section must be a mapping")

    defaults = EndpointsConfig()
    values: Dict[str, Any] = {}
    for key in ("placeholder_api", "sample_text_api", "json_forward"):
        value = raw.get(key, getattr(defaults, key))
        if not isinstance(value, str) or not value:
            raise ConfigError(f"endpoints.{key} must be a non-empty string")
        values[key] = value
    values["timeout"] = _positive_float(raw.get("timeout", defaults.timeout), "endpoints.timeout")
    return EndpointsConfig(**values)


def _parse_handlers_config(raw: Any) -> List[HandlerConfig]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError("'handlers' section must be a list")

    handlers: List[HandlerConfig] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ConfigError(f"handlers[{index}] must be a mapping")

        name = item.get("name") or f"handler_{index}"
        module = item.get("module")
        function = item.get("function")
        options = item.get("options", {})

        if not isinstance(module, str) or not isinstance(function, str):
            raise ConfigError(f"handlers[{index}] must include 'module' and 'function' strings")
        if options is None:
            options = {}
        if not isinstance(options, dict):
            raise ConfigError(f"handlers[{index}].options must be a mapping if provided")

        mime_types = [
            mime_type.strip().lower()
            for mime_type in _ensure_str_list(item.get("mime_types"), f"handlers[{index}].mime_types")
        ]
        if not mime_types:
            raise ConfigError(f"handlers[{index}].mime_types must list at least one media type")
        if ContentType.EMPTY.value in mime_types:
            raise ConfigError(f"handlers[{index}].mime_types cannot include {ContentType.EMPTY.value}")

        handler_cfg = HandlerConfig(
            name=str(name),
            module=module,
            function=function,
            mime_types=mime_types,
            options=options,
        )
        logger.info(
            "Loaded handler '%s' (%s.%s) for %s",
            handler_cfg.name,
            handler_cfg.module,
            handler_cfg.function,
            ", ".join(handler_cfg.mime_types),
        )
        handlers.append(handler_cfg)

    return handlers


def _positive_float(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be numeric")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be numeric") from exc
    if number <= 0:
        raise ConfigError(f"{field_name} must be positive")
    return number


def _ensure_str_list(value: Any, field_name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"{field_name} must be a list of strings")
    items: List[str] = []
    for elem in value:
        if not isinstance(elem, str):
            raise ConfigError(f"{field_name} must contain only strings")
        items.append(elem)
    return items


def override(config: AppConfig, *, root_path: Optional[Path] = None, poll_interval: Optional[float] = None) -> AppConfig:
    """Apply command-line overrides on top of a loaded configuration."""

    if root_path is not None:
        config.monitor.root_path = root_path
    if poll_interval is not None:
        if poll_interval <= 0:
            raise ConfigError("--interval must be positive")
        config.monitor.poll_interval = poll_interval
    return config
