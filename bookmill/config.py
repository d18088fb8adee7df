"""The book configuration: typed sections plus free-form tables for renderers and plugins."""

from __future__ import annotations

import copy
import datetime as _dt
import json
import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import tomli_w

from bookmill.settings import BookConfig, BuildConfig, ConfigError, HtmlConfig, RustConfig

__all__ = ["Config", "parse_env"]

log = logging.getLogger(__name__)

_ENV_PREFIX = "MDBOOK_"
_LEGACY_KEYS = ("title", "authors", "source", "description", "output.html.destination")
_TOML_SCALARS = (str, bool, int, float, _dt.datetime, _dt.date, _dt.time)


def parse_env(key: str) -> str | None:
    """Turn an environment variable name into a dotted config key, or ``None``."""
    if not key.startswith(_ENV_PREFIX):
        return None
    return key[len(_ENV_PREFIX):].lower().replace("__", ".").replace("_", "-")


def _read(table: Any, key: str) -> Any:
    current = table
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


def _insert(table: dict, key: str, value: Any) -> None:
    head, sep, rest = key.partition(".")
    if not sep:
        table[key] = value
        return
    child = table.get(head)
    if not isinstance(child, dict):
        child = {}
        table[head] = child
    _insert(child, rest, value)


def _delete(table: Any, key: str) -> Any:
    *parents, last = key.split(".")
    parent = _read(table, ".".join(parents)) if parents else table
    if isinstance(parent, dict):
        return parent.pop(last, None)
    return None


def _to_toml_value(value: Any) -> Any:
    """Convert ``value`` into plain TOML data, raising if it has no TOML form."""
    if isinstance(value, _TOML_SCALARS):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Enum):
        return _to_toml_value(value.value)
    if isinstance(value, Mapping):
        out = {}
        for k, v in value.items():
            if isinstance(k, Path):
                k = str(k)
            if not isinstance(k, str):
                raise ConfigError("Unable to represent the item as a TOML value: non-string key")
            out[k] = _to_toml_value(v)
        return out
    if isinstance(value, (list, tuple)):
        return [_to_toml_value(item) for item in value]
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return _to_toml_value(to_dict())
    raise ConfigError(
        f"Unable to represent the item as a TOML value: {type(value).__name__}"
    )


def _sorted_tables(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _sorted_tables(value[k]) for k in sorted(value)}
    if isinstance(value, list):
        return [_sorted_tables(item) for item in value]
    return value


def _reject_constant(name: str) -> Any:
    raise ValueError(f"not a JSON value: {name}")


def _parse_env_value(raw: str) -> Any:
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except ValueError:
        return raw


def _update_section(section: Any, key: str, value: Any) -> Any:
    """Return ``section`` with ``key`` replaced, or unchanged if the result is invalid."""
    raw = section.to_dict()
    _insert(raw, key, value)
    try:
        return type(section).from_dict(raw)
    except ConfigError:
        return section


def _is_legacy_format(raw: Any) -> bool:
    return any(_read(raw, item) is not None for item in _LEGACY_KEYS)


@dataclass
class Config:
    """In-memory form of ``book.toml``."""

    book: BookConfig = field(default_factory=BookConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    rust: RustConfig = field(default_factory=RustConfig)
    rest: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_str(cls, src: str) -> "Config":
        """Load a configuration from TOML text."""
        try:
            raw = tomllib.loads(src)
            return cls.from_dict(raw)
        except (tomllib.TOMLDecodeError, ConfigError) as exc:
            raise ConfigError(f"Invalid configuration file: {exc}") from exc

    @classmethod
    def from_disk(cls, config_file: str | Path) -> "Config":
        """Load a configuration from a TOML file."""
        text = Path(config_file).read_text(encoding="utf-8")
        return cls.from_str(text)

    @classmethod
    def from_dict(cls, raw: Any) -> "Config":
        """Build a configuration from parsed TOML data."""
        if _is_legacy_format(raw):
            log.warning("It looks like you are using the legacy book.toml format.")
            log.warning(
                "Move top level entries like `title`, `authors` and `description` under "
                "a `[book]` table, and `destination` from `[output.html]` to `build-dir` "
                "under `[build]`."
            )
            return cls._from_legacy(copy.deepcopy(raw))

        if not isinstance(raw, Mapping):
            raise ConfigError("A config file should always be a toml table")

        table = copy.deepcopy(dict(raw))
        book = BookConfig.from_dict(table.pop("book")) if "book" in table else BookConfig()
        build = BuildConfig.from_dict(table.pop("build")) if "build" in table else BuildConfig()
        rust = RustConfig.from_dict(table.pop("rust")) if "rust" in table else RustConfig()
        return cls(book=book, build=build, rust=rust, rest=table)

    @classmethod
    def _from_legacy(cls, table: dict[str, Any]) -> "Config":
        cfg = cls()
        legacy_fields = (
            ("title", "title", lambda v: v if isinstance(v, str) else None),
            (
                "authors",
                "authors",
                lambda v: list(v)
                if isinstance(v, list) and all(isinstance(a, str) for a in v)
                else None,
            ),
            ("source", "src", lambda v: Path(v) if isinstance(v, str) else None),
            ("description", "description", lambda v: v if isinstance(v, str) else None),
        )
        for key, attr, convert in legacy_fields:
            if key in table:
                value = convert(table.pop(key))
                if value is not None:
                    setattr(cfg.book, attr, value)

        destination = _delete(table, "output.html.destination")
        if isinstance(destination, str):
            cfg.build.build_dir = Path(destination)

        cfg.rest = table
        return cfg

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as TOML-ready data."""
        table = copy.deepcopy(self.rest)
        table["book"] = self.book.to_dict()
        if self.build != BuildConfig():
            table["build"] = self.build.to_dict()
        if self.rust != RustConfig():
            table["rust"] = self.rust.to_dict()
        return table

    def to_toml(self) -> str:
        """Serialise the configuration as TOML text with sorted keys."""
        return tomli_w.dumps(_sorted_tables(self.to_dict()))

    def update_from_env(self, environ: Mapping[str, str] | None = None) -> None:
        """Apply overrides from ``MDBOOK_*`` environment variables."""
        log.debug("Updating the config from environment variables")
        if environ is None:
            environ = os.environ

        for name, raw in list(environ.items()):
            key = parse_env(name)
            if key is None:
                continue
            log.debug("%s => %s", key, raw)
            value = _parse_env_value(raw)

            if key in ("book", "build") and isinstance(value, dict):
                for k, v in value.items():
                    self.set(f"{key}.{k}", v)
                return

            self.set(key, value)

    def get(self, key: str) -> Any:
        """Fetch an item from the free-form tables by dotted key, or ``None``."""
        return _read(self.rest, key)

    def get_deserialized(self, name: str) -> Any:
        """Return a copy of the item at ``name``; raise ``KeyError`` if it is missing."""
        value = self.get(name)
        if value is None:
            raise KeyError(f"Key not found, {name!r}")
        return copy.deepcopy(value)

    def set(self, index: str, value: Any) -> None:
        """Set a dotted key, clobbering anything in the way."""
        value = _to_toml_value(value)
        if index.startswith("book."):
            self.book = _update_section(self.book, index[len("book."):], value)
        elif index.startswith("build."):
            self.build = _update_section(self.build, index[len("build."):], value)
        else:
            _insert(self.rest, index, value)

    def html_config(self) -> HtmlConfig | None:
        """The HTML renderer's settings, or ``None`` if absent or invalid."""
        raw = self.get("output.html")
        if raw is None:
            return None
        try:
            return HtmlConfig.from_dict(raw)
        except ConfigError as exc:
            log.error("Parsing configuration [output.html]: %s", exc)
            return None

    def get_renderer(self, index: str) -> dict[str, Any] | None:
        """The table for the named renderer, if it is a table."""
        value = self.get(f"output.{index}")
        return value if isinstance(value, dict) else None

    def get_preprocessor(self, index: str) -> dict[str, Any] | None:
        """The table for the named preprocessor, if it is a table."""
        value = self.get(f"preprocessor.{index}")
        return value if isinstance(value, dict) else None