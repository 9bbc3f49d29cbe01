"""Site configuration for Noctule.

The configuration is one YAML file (``noctule.yaml`` by default). Its
top-level keys are merged over DEFAULT_CONFIG; keys Noctule does not know
become site variables available to every template. Directories are resolved
relative to the configuration file.

A configuration file that cannot be read or parsed is logged and replaced by
the defaults, unless ``strict=True`` is passed to load_config.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "noctule.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "source_dir": "source",
    "output_dir": "output",
    "layouts_dir": "layouts",
    "renderers": {"md": "markdown", "markdown": "markdown", "html": "template"},
    "collections": {},
    "locale": "en",
    "messages": {},
    "layout_renderer": "template",
    "fail_fast": False,
}

_KEY_ALIASES = {
    "sourceDir": "source_dir",
    "outputDir": "output_dir",
    "layoutsDir": "layouts_dir",
    "layoutRenderer": "layout_renderer",
    "failFast": "fail_fast",
    "sortFields": "sort_fields",
    "pageSize": "page_size",
    "groupBy": "group_by",
}


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    return {_KEY_ALIASES.get(str(key), str(key)): value for key, value in data.items()}


@dataclass(frozen=True)
class CollectionConfig:
    """A named grouping of pages rendered as listing pages.

    Attributes:
        name: Collection name, also the default output prefix.
        filter: Field -> expected value; ``source`` is a glob over the source
            path, ``extension`` matches the file extension.
        sort_fields: Short sort specs, ``-field`` for descending.
        page_size: Items per listing page, None for a single page.
        layout: Layout used to render listing pages; None renders none.
        url: Output prefix of the listing pages.
        group_by: Field whose values split the collection into groups.
    """

    name: str
    filter: Mapping[str, Any] = field(default_factory=dict)
    sort_fields: tuple[str, ...] = ()
    page_size: int | None = None
    layout: str | None = None
    url: str = ""
    group_by: str | None = None

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any] | None) -> CollectionConfig:
        """Build a collection from its configuration entry.

        Raises:
            ConfigError: If a field has the wrong type.
        """
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigError(f"Collection {name!r} must be a mapping")
        data = _normalize_keys(data)

        filter_ = data.get("filter") or {}
        if not isinstance(filter_, Mapping):
            raise ConfigError(f"Collection {name!r}: 'filter' must be a mapping")

        sort_fields = data.get("sort_fields") or ()
        if isinstance(sort_fields, str):
            sort_fields = (sort_fields,)
        if not all(isinstance(f, str) and f.lstrip("-") for f in sort_fields):
            raise ConfigError(f"Collection {name!r}: 'sort_fields' must be field names")

        page_size = data.get("page_size")
        if page_size is not None and (
            isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1
        ):
            raise ConfigError(f"Collection {name!r}: 'page_size' must be a positive integer")

        url = str(data.get("url", name)).strip("/")
        return cls(
            name=name,
            filter=MappingProxyType(dict(filter_)),
            sort_fields=tuple(sort_fields),
            page_size=page_size,
            layout=data.get("layout"),
            url=url,
            group_by=data.get("group_by"),
        )


@dataclass(frozen=True)
class Config:
    """Immutable site configuration shared by every pipeline stage.

    Attributes:
        source_dir: Directory holding the source documents.
        output_dir: Directory receiving rendered pages.
        layouts_dir: Directory holding layout templates.
        renderers: File extension -> renderer name.
        collections: Configured collections, in declaration order.
        locale: Default locale for formatting and translations.
        variables: Site-wide variables exposed to templates.
        messages: Locale -> message key -> message pattern.
        layout_renderer: Renderer used for layout templates.
        fail_fast: Abort on the first render error instead of skipping.
        config_path: File the configuration was loaded from, if any.
    """

    source_dir: Path
    output_dir: Path
    layouts_dir: Path
    renderers: Mapping[str, str]
    collections: tuple[CollectionConfig, ...] = ()
    locale: str = "en"
    variables: Mapping[str, Any] = field(default_factory=dict)
    messages: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    layout_renderer: str = "template"
    fail_fast: bool = False
    config_path: Path | None = None

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any] | None = None,
        base_dir: Path | None = None,
        config_path: Path | None = None,
    ) -> Config:
        """Merge ``data`` over DEFAULT_CONFIG and build a Config.

        Args:
            data: Parsed configuration mapping.
            base_dir: Directory relative paths are resolved against.
            config_path: File the mapping came from.

        Raises:
            ConfigError: If a known key has the wrong type.
        """
        base_dir = base_dir or Path.cwd()
        merged = dict(DEFAULT_CONFIG)
        extra = _normalize_keys(data or {})
        merged.update(extra)

        variables = dict(merged.pop("variables", None) or {})
        for key in list(merged):
            if key not in DEFAULT_CONFIG:
                variables[key] = merged.pop(key)

        renderers = merged["renderers"] or {}
        if not isinstance(renderers, Mapping):
            raise ConfigError("'renderers' must map extensions to renderer names", config_path)
        collections = merged["collections"] or {}
        if not isinstance(collections, Mapping):
            raise ConfigError("'collections' must be a mapping", config_path)
        messages = merged["messages"] or {}
        if not isinstance(messages, Mapping):
            raise ConfigError("'messages' must be a mapping of locales", config_path)

        return cls(
            source_dir=_resolve(base_dir, merged["source_dir"]),
            output_dir=_resolve(base_dir, merged["output_dir"]),
            layouts_dir=_resolve(base_dir, merged["layouts_dir"]),
            renderers=MappingProxyType(
                {str(ext).lstrip("."): str(name) for ext, name in renderers.items()}
            ),
            collections=tuple(
                CollectionConfig.from_mapping(str(name), entry)
                for name, entry in collections.items()
            ),
            locale=str(merged["locale"]),
            variables=MappingProxyType(variables),
            messages=MappingProxyType(
                {str(loc): MappingProxyType(dict(msgs or {})) for loc, msgs in messages.items()}
            ),
            layout_renderer=str(merged["layout_renderer"]),
            fail_fast=bool(merged["fail_fast"]),
            config_path=config_path,
        )


def _resolve(base_dir: Path, value: Any) -> Path:
    path = Path(str(value))
    return path if path.is_absolute() else base_dir / path


def _read_config(path: Path) -> Config:
    try:
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration ({exc.strerror or exc})", path) from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Cannot parse YAML: {exc}", path) from exc
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigError("Configuration must be a YAML mapping", path)
    return Config.from_mapping(loaded, base_dir=path.parent, config_path=path)


def load_config(path: Path | str = DEFAULT_CONFIG_NAME, *, strict: bool = False) -> Config:
    """Load site configuration from a YAML file.

    Args:
        path: Configuration file.
        strict: Raise ConfigError instead of falling back to the defaults.

    Returns:
        Config with defaults applied.

    Raises:
        ConfigError: Only when ``strict`` is set.
    """
    path = Path(path)
    try:
        return _read_config(path)
    except ConfigError as exc:
        if strict:
            raise
        logger.error("%s; continuing with default configuration", exc)
        return Config.from_mapping({}, base_dir=path.parent, config_path=path)
