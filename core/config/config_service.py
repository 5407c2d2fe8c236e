"""Typed, layered configuration loader with precedence handling."""
from __future__ import annotations

import os
import configparser
from dataclasses import dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Optional, Tuple

# --------------------------------------------------------------------------- #
#  Paths & default definitions
# --------------------------------------------------------------------------- #

def _find_project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "core").is_dir():
            return parent
    return here.parent

PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "core" / "config"
DEFAULTS_INI = CONFIG_DIR / "defaults.ini"
MACHINE_INI = CONFIG_DIR / "config.ini"

ENV_PREFIX = "SIGNDESK_"


_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "Database": {
        "signing": (PROJECT_ROOT / "databases" / "signdesk.db").as_posix(),
        "logging": (PROJECT_ROOT / "databases" / "logs.db").as_posix(),
    },
    "Storage": {
        "documents_dir": (PROJECT_ROOT / "data" / "documents").as_posix(),
        "key_file": (PROJECT_ROOT / "data" / "keys" / "artifacts.keyring").as_posix(),
    },
    "Placement": {
        "grid_rows": "3",
        "grid_cols": "3",
        "grid_margin": "0.05",
        "cell_width": "0.25",
        "cell_height": "0.10",
        "epsilon": "1e-6",
        "batch_concurrency": "1",
    },
    "Logging": {
        "level": "INFO",
    },
    "General": {
        "app_name": "signdesk",
        "version": "",
    },
}


# --------------------------------------------------------------------------- #
#  Datamodels
# --------------------------------------------------------------------------- #

@dataclass
class DatabaseConfig:
    signing: Path
    logging: Path


@dataclass
class StorageConfig:
    documents_dir: Path
    key_file: Path


@dataclass
class PlacementConfig:
    grid_rows: int = 3
    grid_cols: int = 3
    grid_margin: float = 0.05
    cell_width: float = 0.25
    cell_height: float = 0.10
    epsilon: float = 1e-6
    batch_concurrency: int = 1


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class GeneralConfig:
    app_name: str = ""
    version: str = ""


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


def _cast(value: Any, typ: Any) -> Any:
    # dataclass annotations are strings under `from __future__ import annotations`
    typ = {"Path": Path, "bool": bool, "int": int, "float": float, "str": str}.get(typ, typ)
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
    kwargs = {}
    for field in fields(cls):
        val = data.get(field.name, field.default)
        kwargs[field.name] = _cast(val, field.type)
    return cls(**kwargs)


def _env_overlays(environ: Optional[Dict[str, str]] = None) -> Dict[str, Dict[str, Any]]:
    """Collect ``SIGNDESK_<SECTION>__<KEY>`` variables."""
    result: Dict[str, Dict[str, Any]] = {}
    for env_key, value in (environ if environ is not None else os.environ).items():
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


def _user_config_path() -> Path:
    if os.name == "nt":
        appdata = os.environ.get("APPDATA") or (Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "signdesk" / "config.ini"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "signdesk" / "config.ini"


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #


class ConfigService:
    """Facade merging layered configuration with type safety.

    Precedence (lowest first): embedded defaults, ``defaults.ini``, environment,
    machine ``config.ini``, user config.
    """

    def __init__(
        self,
        *,
        defaults_ini: Path = DEFAULTS_INI,
        machine_ini: Path = MACHINE_INI,
        user_ini: Optional[Path] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> None:
        self._lock = RLock()
        self._defaults_ini = Path(defaults_ini)
        self._machine_ini = Path(machine_ini)
        self._user_ini = Path(user_ini) if user_ini is not None else _user_config_path()
        self._environ = environ
        self.reload()

    # ------------------------------------------------------------------ #
    def reload(self) -> None:
        with self._lock:
            merged: Dict[str, Dict[str, Any]] = {}
            sources: Dict[Tuple[str, str], Dict[str, str]] = {}

            # Layer 0: embedded defaults
            _apply(merged, _DEFAULTS, "code", "embedded", sources)

            # Layer 1: defaults.ini
            if self._defaults_ini.exists():
                _apply(merged, _read_ini(self._defaults_ini), "defaults.ini",
                       str(self._defaults_ini), sources)

            # Layer 2: environment variables
            _apply(merged, _env_overlays(self._environ), "env", "os.environ", sources)

            # Layer 3: machine config
            if self._machine_ini.exists():
                _apply(merged, _read_ini(self._machine_ini), "machine",
                       str(self._machine_ini), sources)

            # Layer 4: user overrides
            if self._user_ini.exists():
                _apply(merged, _read_ini(self._user_ini), "user", str(self._user_ini), sources)

            self._merged = merged
            self._sources = sources

            self.database = _build_dataclass(DatabaseConfig, merged.get("Database", {}))
            self.storage = _build_dataclass(StorageConfig, merged.get("Storage", {}))
            self.placement = _build_dataclass(PlacementConfig, merged.get("Placement", {}))
            self.logging = _build_dataclass(LoggingConfig, merged.get("Logging", {}))
            self.general = _build_dataclass(GeneralConfig, merged.get("General", {}))

    # ------------------------------------------------------------------ #
    def get(self, section: str, key: str, *, cast: Callable[[Any], Any] | type = str) -> Any:
        val = self._merged.get(section, {}).get(key)
        if val is None:
            return None
        if isinstance(cast, type):
            return _cast(val, cast)
        return cast(val)

    def meta_source(self, section: str, key: str) -> Dict[str, str] | None:
        return self._sources.get((section, key))


# Global singleton
config_service = ConfigService()
