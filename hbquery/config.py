"""Configuration file discovery.

The config is a small TOML file::

    path = "~/finances/household.xhb"
    log_level = "INFO"

It is read once by the caller and handed to the core explicitly.
"""
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from hbquery.errors import ConfigError

APP_NAME = "hb"
ENV_CONFIG = "HBQUERY_CONFIG"


@dataclass(frozen=True)
class Config:
    path: Optional[Path] = None      # database file
    log_level: str = "WARNING"


def default_config_dir() -> Path:
    base = os.getenv("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / APP_NAME


def default_config_file() -> Path:
    override = os.getenv(ENV_CONFIG)
    if override:
        return Path(override).expanduser()
    return default_config_dir() / "config.toml"


def parse_config(text: str, origin: str = "<string>") -> Config:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{origin}: invalid TOML: {e}") from e

    raw_path = data.get("path")
    if raw_path is not None and not isinstance(raw_path, str):
        raise ConfigError(f"{origin}: 'path' must be a string")
    level = data.get("log_level", Config.log_level)
    if not isinstance(level, str):
        raise ConfigError(f"{origin}: 'log_level' must be a string")

    return Config(
        path=Path(raw_path).expanduser() if raw_path else None,
        log_level=level.upper(),
    )


def load_config(path: Union[str, os.PathLike, None] = None) -> Config:
    """Read the configuration file.

    Without an explicit `path` the default location is used, and a missing
    default file just means default settings.
    """
    explicit = path is not None
    cfg_file = Path(path).expanduser() if explicit else default_config_file()
    try:
        text = cfg_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        if explicit:
            raise ConfigError(f"config file not found: {cfg_file}") from None
        return Config()
    except OSError as e:
        raise ConfigError(f"could not read config file {cfg_file}: {e}") from e
    return parse_config(text, str(cfg_file))
