"""
Formatter configuration: defaults, validation and TOML loading.

A config file is a flat TOML table, for example:

    indent_width = 4
    use_tabs = false
    max_line_length = 120
    auto_wrap_long_lines = true
"""

from __future__ import annotations
import dataclasses
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from sv_fmt.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "sv-fmt.toml"
DEFAULT_INDENT_WIDTH = 2


@dataclass(frozen=True)
class FormatConfig:
    indent_width: int = DEFAULT_INDENT_WIDTH
    use_tabs: bool = False
    align_preprocessor: bool = True
    wrap_multiline_blocks: bool = True
    inline_end_else: bool = True
    space_after_comma: bool = True
    remove_call_space: bool = True
    max_line_length: int = 100
    align_case_colon: bool = True
    auto_wrap_long_lines: bool = False

    def __post_init__(self):
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if f.type == "bool":
                if not isinstance(value, bool):
                    raise ConfigError(f"'{f.name}' must be true or false, got {value!r}")
            elif isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"'{f.name}' must be an integer, got {value!r}")
            elif value < 0:
                raise ConfigError(f"'{f.name}' must not be negative, got {value}")
        if self.indent_width == 0:
            object.__setattr__(self, "indent_width", DEFAULT_INDENT_WIDTH)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> FormatConfig:
        """Build a config from a parsed TOML table, ignoring unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        for key in sorted(set(data) - known):
            logger.warning("Ignoring unknown config key '%s'", key)
        return cls(**{k: v for k, v in data.items() if k in known})


def load_config(path: Optional[Union[str, Path]] = None) -> FormatConfig:
    """Load configuration.

    An explicit `path` must exist. Without one, sv-fmt.toml in the working
    directory is used if present, otherwise the defaults.
    """
    if path is None:
        candidate = Path(DEFAULT_CONFIG_NAME)
        if not candidate.is_file():
            logger.debug("No %s found, using defaults", DEFAULT_CONFIG_NAME)
            return FormatConfig()
        path = candidate

    path = Path(path)
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    logger.debug("Loaded config from %s", path)
    return FormatConfig.from_mapping(data)
