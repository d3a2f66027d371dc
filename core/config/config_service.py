"""Typed, layered configuration loader with precedence handling."""
from __future__ import annotations

import configparser
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, get_type_hints

# --------------------------------------------------------------------------- #
#  Paths & default definitions
# --------------------------------------------------------------------------- #

CONFIG_DIR = Path(__file__).resolve().parent
DEFAULTS_INI = CONFIG_DIR / "defaults.ini"
ENV_PREFIX = "EASYSIGN_"

_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "Database": {
        "path": "data/easysign.db",
    },
    "Storage": {
        "upload_dir": "uploads",
        "max_file_size": "10485760",       # 10 MB
        "max_signature_size": "5242880",   # 5 MB
    },
    "Notifications": {
        "enabled": "true",
        "workers": "2",
    },
    "General": {
        "app_name": "EasySign",
        "log_level": "INFO",
    },
}


# --------------------------------------------------------------------------- #
#  Datamodels
# --------------------------------------------------------------------------- #

@dataclass
class DatabaseConfig:
    path: Path = Path("data/easysign.db")


@dataclass
class StorageConfig:
    upload_dir: Path = Path("uploads")
    max_file_size: int = 10485760
    max_signature_size: int = 5242880


@dataclass
class NotificationsConfig:
    enabled: bool = True
    workers: int = 2


@dataclass
class GeneralConfig:
    app_name: str = "EasySign"
    log_level: str = "INFO"


@dataclass
class AppConfig:
    database: DatabaseConfig
    storage: StorageConfig
    notifications: NotificationsConfig
    general: GeneralConfig


# --------------------------------------------------------------------------- #
#  Helpers
# --------------------------------------------------------------------------- #

def _cp_to_dict(cp: configparser.ConfigParser) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {}
    for section in cp.sections():
        data[section] = {k: v for k, v in cp.items(section)}
    return data


def _read_ini(path: Path) -> Dict[str, Dict[str, Any]]:
    cp = configparser.ConfigParser()
    cp.read(path, encoding="utf-8")
    return _cp_to_dict(cp)


def _apply(target: Dict[str, Dict[str, Any]], source: Dict[str, Dict[str, Any]],
           layer: str, origin: str,
           sources: Dict[Tuple[str, str], Dict[str, str]]) -> None:
    for section, items in source.items():
        sec = target.setdefault(section, {})
        for key, value in items.items():
            sec[key] = value
            sources[(section, key)] = {"layer": layer, "source": origin}


def _cast(value: Any, typ: type) -> Any:
    if typ is Path:
        return Path(str(value)).expanduser()
    if typ is bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if typ is int:
        return int(value)
    if typ is float:
        return float(value)
    return typ(value)


def _build_dataclass(cls: type, data: Dict[str, Any]) -> Any:
    hints = get_type_hints(cls)
    kwargs = {}
    for field in fields(cls):
        val = data.get(field.name, field.default)
        kwargs[field.name] = _cast(val, hints[field.name])
    return cls(**kwargs)


def _env_overlays(environ: Mapping[str, str]) -> Dict[str, Dict[str, Any]]:
    result: Dict[str, Dict[str, Any]] = {}
    for env_key, value in environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        remainder = env_key[len(ENV_PREFIX):]
        parts = remainder.split("__", 1)
        if len(parts) != 2:
            continue
        section, key = parts
        section = section.title()
        key = key.lower()
        result.setdefault(section, {})[key] = value
    return result


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #


class ConfigService:
    """
    Facade merging layered configuration with type safety.

    Precedence (lowest first): embedded defaults, ``defaults.ini`` next to this
    module, ``EASYSIGN_<SECTION>__<KEY>`` environment variables, and finally the
    machine INI passed as *ini_path*.
    """

    def __init__(self, ini_path: Optional[Path | str] = None, *,
                 environ: Optional[Mapping[str, str]] = None) -> None:
        self._lock = RLock()
        self._ini_path = Path(ini_path) if ini_path else None
        self._environ = environ if environ is not None else os.environ
        self.reload()

    # ------------------------------------------------------------------ #
    def reload(self) -> None:
        with self._lock:
            merged: Dict[str, Dict[str, Any]] = {}
            sources: Dict[Tuple[str, str], Dict[str, str]] = {}

            # Layer 0: embedded defaults
            _apply(merged, _DEFAULTS, "code", "embedded", sources)

            # Layer 1: defaults.ini
            if DEFAULTS_INI.exists():
                _apply(merged, _read_ini(DEFAULTS_INI), "defaults.ini", str(DEFAULTS_INI), sources)

            # Layer 2: environment variables
            _apply(merged, _env_overlays(self._environ), "env", "os.environ", sources)

            # Layer 3: machine config
            if self._ini_path is not None and self._ini_path.exists():
                _apply(merged, _read_ini(self._ini_path), "machine", str(self._ini_path), sources)

            self._merged = merged
            self._sources = sources

            self.database = _build_dataclass(DatabaseConfig, merged.get("Database", {}))
            self.storage = _build_dataclass(StorageConfig, merged.get("Storage", {}))
            self.notifications = _build_dataclass(NotificationsConfig, merged.get("Notifications", {}))
            self.general = _build_dataclass(GeneralConfig, merged.get("General", {}))

    # ------------------------------------------------------------------ #
    def app_config(self) -> AppConfig:
        return AppConfig(
            database=self.database,
            storage=self.storage,
            notifications=self.notifications,
            general=self.general,
        )

    def get(self, section: str, key: str, *, cast: Callable[[Any], Any] | type = str) -> Any:
        val = self._merged.get(section, {}).get(key)
        if val is None:
            return None
        if isinstance(cast, type):
            return _cast(val, cast)
        return cast(val)

    def meta_source(self, section: str, key: str) -> Dict[str, str] | None:
        return self._sources.get((section, key))


def configure_logging(general: GeneralConfig) -> None:
    """Apply the configured log level and a uniform format to the root logger."""
    logging.basicConfig(
        level=getattr(logging, str(general.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
