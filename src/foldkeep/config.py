"""Configuration loading from environment variables and foldkeep.toml."""

from __future__ import annotations

import codecs
import os
import sys
from dataclasses import dataclass

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

from foldkeep.errors import ConfigError

_DEFAULT_PERSIST_DIR = Path.home() / ".foldkeep" / "folds"
_CONFIG_FILENAME = "foldkeep.toml"

PLACEMENTS = ("left-fringe", "right-fringe", "none")
_CODING_SAMPLE = ";; -*- coding: x -*-\n((0 9))"


@dataclass
class FoldConfig:
    """Top-level foldkeep configuration."""

    persist_dir: Path = _DEFAULT_PERSIST_DIR
    blank_header: str = "..."
    placement: str = "left-fringe"
    escape_char: str = "!"
    encoding: str = "utf-8"
    log_level: str = "INFO"

    def decoration_placement(self) -> str | None:
        """Where the host draws the fold marker. None means no marker."""
        if self.placement not in PLACEMENTS:
            raise ConfigError(
                f"Unknown decoration placement {self.placement!r}, expected one of {PLACEMENTS}"
            )
        return None if self.placement == "none" else self.placement

    def escape(self) -> str:
        if len(self.escape_char) != 1 or self.escape_char in ("/", "\\", "\0"):
            raise ConfigError(f"Invalid escape character {self.escape_char!r}")
        return self.escape_char

    def file_encoding(self) -> str:
        """Codec name for fold files. Must keep the ASCII coding line readable."""
        try:
            name = codecs.lookup(self.encoding).name
            ascii_compatible = _CODING_SAMPLE.encode(name) == _CODING_SAMPLE.encode("ascii")
        except (LookupError, UnicodeError):
            raise ConfigError(f"Unknown encoding {self.encoding!r}") from None
        if not ascii_compatible:
            raise ConfigError(f"Encoding {self.encoding!r} is not ASCII-compatible")
        return name


def load_config(config_path: Path | None = None) -> FoldConfig:
    """Load configuration from environment variables and optional foldkeep.toml.

    Priority: environment variables > foldkeep.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = _read_toml(config_path)
    else:
        # Search current dir and ~/.foldkeep/
        for candidate in [
            Path.cwd() / _CONFIG_FILENAME,
            Path.home() / ".foldkeep" / _CONFIG_FILENAME,
        ]:
            if candidate.exists():
                file_data = _read_toml(candidate)
                break

    persist_dir = os.getenv("FOLDKEEP_DIR", file_data.get("persist_dir"))
    return FoldConfig(
        persist_dir=Path(persist_dir).expanduser() if persist_dir else _DEFAULT_PERSIST_DIR,
        blank_header=os.getenv("FOLDKEEP_BLANK_HEADER", file_data.get("blank_header", "...")),
        placement=os.getenv("FOLDKEEP_PLACEMENT", file_data.get("placement", "left-fringe")),
        escape_char=file_data.get("escape_char", "!"),
        encoding=file_data.get("encoding", "utf-8"),
        log_level=os.getenv("FOLDKEEP_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )


def _read_toml(path: Path) -> dict:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e
