"""Engine options and the optional .square.yml file."""

from __future__ import annotations

import getpass
import os
import socket
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from .errors import ConfigError
from .manifest import DISTRIBUTIONS

CONFIG_FILENAME = ".square.yml"
_ENV_KEYS = ("SQUARE_ENV", "PYTHON_ENV")


@dataclass
class EngineOptions:
    """Explicit inputs for an engine; nothing in the core reads the process state."""

    env: str = "development"
    home: Optional[str] = None
    cwd: Optional[Path] = None
    user: str = "anonymous"
    host: str = "localhost"
    writable: bool = True
    stdout: bool = False
    cache_ttl: float = 180.0
    distributions: Tuple[str, ...] = DISTRIBUTIONS
    plugins: List[str] = field(default_factory=list)
    storages: List[str] = field(default_factory=list)

    @classmethod
    def from_environment(
        cls, environ: Mapping[str, str] | None = None, **overrides: Any
    ) -> "EngineOptions":
        """Capture env name, home, cwd, user and host from the running process."""
        environ = os.environ if environ is None else environ
        env = next((environ[key] for key in _ENV_KEYS if environ.get(key)), "development")
        options = cls(
            env=env.lower(),
            home=environ.get("HOME") or environ.get("USERPROFILE") or str(Path.home()),
            cwd=Path.cwd(),
            user=environ.get("USER") or environ.get("USERNAME") or _current_user(),
            host=socket.gethostname() or "localhost",
        )
        return replace(options, **overrides) if overrides else options


def load_options(config_path: Path, base: EngineOptions | None = None) -> EngineOptions:
    """Overlay settings from .square.yml on top of ``base``."""
    options = base or EngineOptions()
    config_file = _resolve_config_path(config_path)
    if not config_file.is_file():
        return options

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    changes: Dict[str, Any] = {}

    env = _as_str(data.get("env"))
    if env:
        changes["env"] = env.lower()

    writable = _as_bool(data.get("writable"))
    if writable is not None:
        changes["writable"] = writable

    cache_ttl = _as_float(data.get("cache_ttl"))
    if cache_ttl is not None:
        if cache_ttl <= 0:
            raise ConfigError("cache_ttl must be a positive number of seconds")
        changes["cache_ttl"] = cache_ttl

    distributions = _as_str_list(data.get("distributions"))
    if distributions:
        changes["distributions"] = tuple(distributions)

    if "plugins" in data:
        changes["plugins"] = _as_str_list(data.get("plugins"))
    if "storages" in data:
        changes["storages"] = _as_str_list(data.get("storages"))

    return replace(options, **changes)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "anonymous"


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = ["CONFIG_FILENAME", "EngineOptions", "load_options"]
