"""Preprocessors: steps that transform a loaded book before it is rendered."""

from __future__ import annotations

import io
import json
import logging
import re
import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

from bookmill.config import Config
from bookmill.settings import ConfigError

__all__ = [
    "VERSION",
    "PreprocessorError",
    "PreprocessorContext",
    "Preprocessor",
    "CmdPreprocessor",
    "is_readme_file",
]

log = logging.getLogger(__name__)

VERSION = "0.1.0"

_README = re.compile(r"readme", re.IGNORECASE)


class PreprocessorError(RuntimeError):
    """Raised when a preprocessor cannot be started, fails, or returns bad data."""


def _json_default(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, Path):
        return str(value)
    # dates and times from TOML have no JSON form; send them as text
    return str(value)


@dataclass
class PreprocessorContext:
    """Extra information handed to a preprocessor alongside the book."""

    root: Path
    config: Config
    renderer: str
    mdbook_version: str = VERSION
    chapter_titles: dict[Path, str] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        self.root = Path(self.root)

    def to_dict(self) -> dict[str, Any]:
        """Return the context in its JSON form; chapter titles are not included."""
        return {
            "root": str(self.root),
            "config": self.config.to_dict(),
            "renderer": self.renderer,
            "mdbook_version": self.mdbook_version,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> "PreprocessorContext":
        """Build a context from its JSON form."""
        if not isinstance(raw, dict):
            raise PreprocessorError("A preprocessor context should be a JSON object")
        try:
            return cls(
                root=Path(raw["root"]),
                config=Config.from_dict(raw["config"]),
                renderer=str(raw["renderer"]),
                mdbook_version=str(raw["mdbook_version"]),
            )
        except KeyError as exc:
            raise PreprocessorError(f"Missing field in preprocessor context: {exc}") from exc
        except ConfigError as exc:
            raise PreprocessorError(f"Invalid configuration in preprocessor context: {exc}") from exc


class Preprocessor(ABC):
    """An operation run on a book after loading it and before rendering it."""

    name: str

    @abstractmethod
    def run(self, ctx: PreprocessorContext, book: Any) -> Any:
        """Return the book, possibly updated."""

    def supports_renderer(self, renderer: str) -> bool:
        """Whether this preprocessor works with ``renderer``; always true by default."""
        return True


@dataclass
class CmdPreprocessor(Preprocessor):
    """A preprocessor that runs an external program.

    ``run`` sends ``[context, book]`` as JSON on the program's stdin and reads
    the processed book as JSON from its stdout. ``supports_renderer`` runs
    ``<cmd> supports <renderer>`` and checks for a zero exit code.
    """

    name: str
    cmd: str

    @staticmethod
    def parse_input(reader: IO[Any]) -> tuple[PreprocessorContext, Any]:
        """Parse the ``[context, book]`` pair a preprocessor receives on stdin."""
        try:
            data = json.load(reader)
            if not isinstance(data, list) or len(data) != 2:
                raise ValueError("expected a two-element array")
            ctx_raw, book = data
            return PreprocessorContext.from_dict(ctx_raw), book
        except PreprocessorError as exc:
            raise PreprocessorError(f"Unable to parse the input: {exc}") from exc
        except (ValueError, TypeError) as exc:
            raise PreprocessorError(f"Unable to parse the input: {exc}") from exc

    def write_input(self, writer: IO[str], book: Any, ctx: PreprocessorContext) -> None:
        """Write ``[context, book]`` as JSON to ``writer``."""
        json.dump([ctx.to_dict(), book], writer, default=_json_default)

    def command(self) -> list[str]:
        """Split the command string into an argument list."""
        try:
            words = shlex.split(self.cmd)
        except ValueError as exc:
            raise PreprocessorError(f"Unable to parse the command string: {exc}") from exc
        if not words:
            raise PreprocessorError("Command string was empty")
        return words

    def run(self, ctx: PreprocessorContext, book: Any) -> Any:
        argv = self.command()
        buffer = io.StringIO()
        self.write_input(buffer, book, ctx)
        try:
            completed = subprocess.run(
                argv,
                input=buffer.getvalue().encode("utf-8"),
                stdout=subprocess.PIPE,
                check=False,
            )
        except OSError as exc:
            raise PreprocessorError(
                f'Unable to start the "{self.name}" preprocessor. Is it installed?'
            ) from exc

        log.debug("%s exited with code %s", self.cmd, completed.returncode)
        if completed.returncode != 0:
            raise PreprocessorError(
                f'The "{self.name}" preprocessor exited unsuccessfully with '
                f"exit status: {completed.returncode} status"
            )

        try:
            return json.loads(completed.stdout)
        except ValueError as exc:
            raise PreprocessorError(
                f'Unable to parse the preprocessed book from "{self.name}" processor'
            ) from exc

    def supports_renderer(self, renderer: str) -> bool:
        log.debug('Checking if the "%s" preprocessor supports "%s"', self.name, renderer)
        try:
            argv = self.command()
        except PreprocessorError as exc:
            log.warning(
                'Unable to create the command for the "%s" preprocessor, %s', self.name, exc
            )
            return False

        try:
            completed = subprocess.run(
                [*argv, "supports", renderer],
                stdin=subprocess.DEVNULL,
                check=False,
            )
        except FileNotFoundError:
            log.warning(
                'The command wasn\'t found, is the "%s" preprocessor installed?', self.name
            )
            log.warning("\tCommand: %s", self.cmd)
            return False
        except OSError:
            return False
        return completed.returncode == 0


def is_readme_file(path: str | Path) -> bool:
    """Whether the file's stem is ``readme``, ignoring case."""
    return _README.fullmatch(Path(path).stem) is not None