"""Typed sections of the book configuration: book, build, rust and html output."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import MISSING, dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any

__all__ = [
    "ConfigError",
    "TextDirection",
    "RustEdition",
    "BookConfig",
    "BuildConfig",
    "RustConfig",
    "Print",
    "Fold",
    "Playground",
    "Code",
    "Search",
    "HtmlConfig",
]


class ConfigError(ValueError):
    """Raised when configuration data has the wrong shape or type."""


_RTL_LANGUAGES = frozenset(
    {
        "ar", "ara", "arc", "ae", "ave", "egy", "he", "heb", "nqo", "pal", "phn",
        "sam", "syc", "syr", "fa", "per", "fas", "ku", "kur", "ur", "urd",
        "pus", "ps", "yi", "yid",
    }
)


class TextDirection(Enum):
    """Direction of text in the rendered book."""

    LEFT_TO_RIGHT = "ltr"
    RIGHT_TO_LEFT = "rtl"

    @classmethod
    def from_lang_code(cls, code: str) -> "TextDirection":
        """Derive the text direction from a language code."""
        return cls.RIGHT_TO_LEFT if code in _RTL_LANGUAGES else cls.LEFT_TO_RIGHT


class RustEdition(Enum):
    """Rust edition used for code in the book."""

    E2024 = "2024"
    E2021 = "2021"
    E2018 = "2018"
    E2015 = "2015"


Parser = Callable[[Any, str], Any]
Dumper = Callable[[Any], Any]


def _identity(value: Any) -> Any:
    return value


def _type_error(key: str, expected: str, value: Any) -> ConfigError:
    return ConfigError(
        f"invalid type for `{key}`: expected {expected}, found {type(value).__name__}"
    )


def _parse_str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise _type_error(key, "a string", value)
    return value


def _parse_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise _type_error(key, "a boolean", value)
    return value


def _uint(bits: int) -> Parser:
    limit = (1 << bits) - 1

    def parse(value: Any, key: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise _type_error(key, f"an unsigned {bits}-bit integer", value)
        if not 0 <= value <= limit:
            raise ConfigError(f"invalid value for `{key}`: {value} is out of range 0..={limit}")
        return value

    return parse


def _parse_path(value: Any, key: str) -> Path:
    return Path(_parse_str(value, key))


def _optional(parser: Parser) -> Parser:
    def parse(value: Any, key: str) -> Any:
        return None if value is None else parser(value, key)

    return parse


def _list_of(parser: Parser) -> Parser:
    def parse(value: Any, key: str) -> list:
        if not isinstance(value, (list, tuple)):
            raise _type_error(key, "a sequence", value)
        return [parser(item, key) for item in value]

    return parse


def _parse_str_map(value: Any, key: str) -> dict[str, str]:
    if not isinstance(value, Mapping):
        raise _type_error(key, "a table", value)
    return {_parse_str(k, key): _parse_str(v, f"{key}.{k}") for k, v in value.items()}


def _enum(enum_cls: type[Enum]) -> Parser:
    def parse(value: Any, key: str) -> Enum:
        try:
            return enum_cls(value)
        except ValueError:
            choices = ", ".join(repr(member.value) for member in enum_cls)
            raise ConfigError(
                f"unknown variant {value!r} for `{key}`, expected one of {choices}"
            ) from None

    return parse


def _section(cls: type) -> Parser:
    def parse(value: Any, key: str) -> Any:
        if not isinstance(value, Mapping):
            raise _type_error(key, "a table", value)
        return cls.from_dict(value)

    return parse


def _dump_path(value: Path) -> str:
    return value.as_posix() if isinstance(value, Path) else str(value)


def _dump_paths(value: list[Path]) -> list[str]:
    return [_dump_path(item) for item in value]


def _dump_enum(value: Enum) -> Any:
    return value.value


def _dump_section(value: Any) -> dict[str, Any]:
    return value.to_dict()


def _dump_map(value: Mapping[str, str]) -> dict[str, str]:
    return dict(value)


def _dump_list(value: list) -> list:
    return list(value)


def _opt(
    parse: Parser,
    dump: Dumper = _identity,
    *,
    default: Any = MISSING,
    factory: Any = MISSING,
    aliases: tuple[str, ...] = (),
) -> Any:
    metadata = {"parse": parse, "dump": dump, "aliases": aliases}
    if factory is not MISSING:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def _from_table(cls: type, raw: Mapping[str, Any] | None) -> Any:
    """Build a section from a kebab-case table, filling in defaults for missing keys."""
    if raw is None:
        return cls()
    if not isinstance(raw, Mapping):
        raise _type_error(cls.__name__, "a table", raw)
    values: dict[str, Any] = {}
    for f in fields(cls):
        key = f.name.replace("_", "-")
        for name in (key, *f.metadata["aliases"]):
            if name in raw:
                values[f.name] = f.metadata["parse"](raw[name], name)
                break
    return cls(**values)


def _to_table(section: Any) -> dict[str, Any]:
    """Return a section as a kebab-case table, leaving out unset optionals."""
    out: dict[str, Any] = {}
    for f in fields(section):
        value = getattr(section, f.name)
        if value is None:
            continue
        out[f.name.replace("_", "-")] = f.metadata["dump"](value)
    return out


class _Section:
    """Shared conversion between a section and its kebab-case table form."""

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None):
        """Build the section from a table, filling in defaults for missing keys."""
        return _from_table(cls, raw)

    def to_dict(self) -> dict[str, Any]:
        """Return the section as a kebab-case table, leaving out unset optionals."""
        return _to_table(self)


@dataclass
class BookConfig(_Section):
    """Metadata about the book."""

    title: str | None = _opt(_optional(_parse_str), default=None)
    authors: list[str] = _opt(_list_of(_parse_str), _dump_list, factory=list)
    description: str | None = _opt(_optional(_parse_str), default=None)
    src: Path = _opt(_parse_path, _dump_path, default=Path("src"))
    multilingual: bool = _opt(_parse_bool, default=False)
    language: str | None = _opt(_optional(_parse_str), default="en")
    text_direction: TextDirection | None = _opt(
        _optional(_enum(TextDirection)), _dump_enum, default=None
    )

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "BookConfig":
        """Build the book section from its table."""
        return _from_table(cls, raw)

    def to_dict(self) -> dict[str, Any]:
        """Return the book section as a kebab-case table."""
        return _to_table(self)

    def realized_text_direction(self) -> TextDirection:
        """The explicit text direction, or the one implied by the language."""
        if self.text_direction is not None:
            return self.text_direction
        return TextDirection.from_lang_code(self.language or "")


@dataclass
class BuildConfig(_Section):
    """Settings for the build procedure."""

    build_dir: Path = _opt(_parse_path, _dump_path, default=Path("book"))
    create_missing: bool = _opt(_parse_bool, default=True)
    use_default_preprocessors: bool = _opt(_parse_bool, default=True)
    extra_watch_dirs: list[Path] = _opt(_list_of(_parse_path), _dump_paths, factory=list)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "BuildConfig":
        """Build the build section from its table."""
        return _from_table(cls, raw)

    def to_dict(self) -> dict[str, Any]:
        """Return the build section as a kebab-case table."""
        return _to_table(self)


@dataclass
class RustConfig(_Section):
    """Settings for Rust code support."""

    edition: RustEdition | None = _opt(_optional(_enum(RustEdition)), _dump_enum, default=None)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "RustConfig":
        """Build the rust section from its table."""
        return _from_table(cls, raw)

    def to_dict(self) -> dict[str, Any]:
        """Return the rust section as a kebab-case table."""
        return _to_table(self)


@dataclass
class Print(_Section):
    """Print page settings."""

    enable: bool = _opt(_parse_bool, default=True)
    page_break: bool = _opt(_parse_bool, default=True)


@dataclass
class Fold(_Section):
    """Sidebar folding settings."""

    enable: bool = _opt(_parse_bool, default=False)
    level: int = _opt(_uint(8), default=0)


@dataclass
class Playground(_Section):
    """Playground settings for code snippets."""

    editable: bool = _opt(_parse_bool, default=False)
    copyable: bool = _opt(_parse_bool, default=True)
    copy_js: bool = _opt(_parse_bool, default=True)
    line_numbers: bool = _opt(_parse_bool, default=False)
    runnable: bool = _opt(_parse_bool, default=True)


@dataclass
class Code(_Section):
    """Code block settings."""

    hidelines: dict[str, str] = _opt(_parse_str_map, _dump_map, factory=dict)


@dataclass
class Search(_Section):
    """Search settings of the HTML output."""

    enable: bool = _opt(_parse_bool, default=True)
    limit_results: int = _opt(_uint(32), default=30)
    teaser_word_count: int = _opt(_uint(32), default=30)
    use_boolean_and: bool = _opt(_parse_bool, default=False)
    boost_title: int = _opt(_uint(8), default=2)
    boost_hierarchy: int = _opt(_uint(8), default=1)
    boost_paragraph: int = _opt(_uint(8), default=1)
    expand: bool = _opt(_parse_bool, default=True)
    heading_split_level: int = _opt(_uint(8), default=3)
    copy_js: bool = _opt(_parse_bool, default=True)


@dataclass
class HtmlConfig(_Section):
    """Settings of the HTML renderer."""

    theme: Path | None = _opt(_optional(_parse_path), _dump_path, default=None)
    default_theme: str | None = _opt(_optional(_parse_str), default=None)
    preferred_dark_theme: str | None = _opt(_optional(_parse_str), default=None)
    smart_punctuation: bool = _opt(_parse_bool, default=False)
    curly_quotes: bool = _opt(_parse_bool, default=False)
    mathjax_support: bool = _opt(_parse_bool, default=False)
    copy_fonts: bool = _opt(_parse_bool, default=True)
    google_analytics: str | None = _opt(_optional(_parse_str), default=None)
    additional_css: list[Path] = _opt(_list_of(_parse_path), _dump_paths, factory=list)
    additional_js: list[Path] = _opt(_list_of(_parse_path), _dump_paths, factory=list)
    fold: Fold = _opt(_section(Fold), _dump_section, factory=Fold)
    playground: Playground = _opt(
        _section(Playground), _dump_section, factory=Playground, aliases=("playpen",)
    )
    code: Code = _opt(_section(Code), _dump_section, factory=Code)
    print: Print = _opt(_section(Print), _dump_section, factory=Print)
    no_section_label: bool = _opt(_parse_bool, default=False)
    search: Search | None = _opt(_optional(_section(Search)), _dump_section, default=None)
    git_repository_url: str | None = _opt(_optional(_parse_str), default=None)
    git_repository_icon: str | None = _opt(_optional(_parse_str), default=None)
    input_404: str | None = _opt(_optional(_parse_str), default=None)
    site_url: str | None = _opt(_optional(_parse_str), default=None)
    cname: str | None = _opt(_optional(_parse_str), default=None)
    edit_url_template: str | None = _opt(_optional(_parse_str), default=None)
    live_reload_endpoint: str | None = _opt(_optional(_parse_str), default=None)
    redirect: dict[str, str] = _opt(_parse_str_map, _dump_map, factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "HtmlConfig":
        """Build the html output settings from their table."""
        return _from_table(cls, raw)

    def theme_dir(self, root: str | Path) -> Path:
        """The theme directory under ``root``, ``theme`` when none is set."""
        root = Path(root)
        return root / self.theme if self.theme is not None else root / "theme"

    def uses_smart_punctuation(self) -> bool:
        """Whether smart punctuation is on, through either of its two keys."""
        return self.smart_punctuation or self.curly_quotes