import configparser
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union, get_args, get_origin

from pydantic import BaseModel, SecretStr
from pydantic_settings import BaseSettings


class PEOPLEDB_DIR_PATHS(BaseModel):
    ROOT: str
    TEMP_DIR: str
    LOGGER_DIR: str
    STRUCT_LOGGER_DIR: str


class PEOPLEDB_LOGGER(BaseModel):
    USE_STRUCTLOG: bool = False


def load_ini_as_dict(ini_path: Path) -> Dict[str, Any]:
    """
    Load and parse an INI file into a nested dictionary with normalized keys.

    Sections and keys are converted to uppercase for uniform access. Tilde (`~`)
    in values is expanded to the user home directory.

    Args:
        ini_path (Path): Path to the `.ini` configuration file.

    Returns:
        Dict[str, Any]: A dictionary where each section is a key mapped to another
        dictionary of key-value pairs from that section.

    Example:
        .. code-block:: ini

            [PEOPLEDB_DIR_PATHS]
            LOGGER_DIR = ~/logs

        .. code-block:: python

            config = load_ini_as_dict(Path("config.ini"))
            print(config["PEOPLEDB_DIR_PATHS"]["LOGGER_DIR"])
    """
    if not ini_path.exists():
        return {}

    config = configparser.ConfigParser(interpolation=configparser.ExtendedInterpolation())
    config.optionxform = str
    config.read(ini_path)

    result = {}
    for section in config.sections():
        result[section.upper()] = {
            key.upper(): os.path.expanduser(value) if value.startswith("~") else value
            for key, value in config[section].items()
        }
    return result


def load_ini_settings() -> Dict[str, Any]:
    ini_path = Path(__file__).parent / "config.ini"
    return load_ini_as_dict(ini_path)


class CoreSettings(BaseSettings):
    PEOPLEDB_DIR_PATHS: PEOPLEDB_DIR_PATHS
    PEOPLEDB_LOGGER: PEOPLEDB_LOGGER

    model_config = {
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        def _expand_tilde(obj):
            if isinstance(obj, str):
                return os.path.expanduser(obj) if obj.startswith("~") else obj
            if isinstance(obj, dict):
                return {k: _expand_tilde(v) for k, v in obj.items()}
            if isinstance(obj, (list, tuple, set)):
                t = type(obj)
                return t(_expand_tilde(v) for v in obj)
            return obj

        def env_settings_expanded():
            return _expand_tilde(env_settings())

        return (
            init_settings,  # constructor kwargs
            env_settings_expanded,  # env vars (with '~' expanded) take precedence
            dotenv_settings,  # then .env
            load_ini_settings,  # then INI file (lowest precedence)
            file_secret_settings,
        )


SettingsLike = Union[
    Dict[str, Any],
    List[Union[Dict[str, Any], BaseSettings, BaseModel]],
    BaseSettings,
    BaseModel,
    None,
]


class _AttrView:
    """
    Lightweight attribute-access wrapper around a mapping.

    Enables access like obj.SECTION.KEY for nested dictionaries.
    """

    def __init__(self, data: Dict[str, Any]):
        self._data = data

    def __getattr__(self, name: str):
        if name in self._data:
            return _wrap(self._data[name])
        raise AttributeError(f"No such attribute: {name}")

    def __getitem__(self, key: str):
        return _wrap(self._data[key])

    def __repr__(self) -> str:
        return f"_AttrView({self._data!r})"


def _wrap(value: Any) -> Any:
    if isinstance(value, dict):
        return _AttrView(value)
    if isinstance(value, list):
        return [(_AttrView(v) if isinstance(v, dict) else v) for v in value]
    return value


class Config(dict):
    """
    Unified configuration manager for peopledb components.

    The `Config` class consolidates configuration from dictionaries and Pydantic `BaseSettings` or `BaseModel`
    objects. Later sources override earlier ones.

    Secret fields (``pydantic.SecretStr``) are masked in the mapping itself; the real value is kept aside and is only
    available through :meth:`get_secret`.

    Args:
        extra_settings: Configuration overrides or full config objects.
            Can be a `dict`, `BaseSettings`, `BaseModel`, or list of any of these.

    Example:
        >>> from peopledb.core.config import Config
        >>> from peopledb.database.core.settings import DatabaseSettings
        >>> config = Config(DatabaseSettings(MONGO_URI="mongodb://user:pw@host/db"))
        >>> config["MONGO_URI"]
        '********'
        >>> config.get_secret("MONGO_URI")
        'mongodb://user:pw@host/db'
    """

    def __init__(self, extra_settings: SettingsLike = None):
        self._secret_paths: set[Tuple[str, ...]] = set()
        self._secrets: Dict[Tuple[str, ...], str] = {}

        if extra_settings is None:
            items = []
        elif isinstance(extra_settings, list):
            items = extra_settings
        else:
            items = [extra_settings]

        merged: Dict[str, Any] = {}
        for item in items:
            if isinstance(item, (BaseSettings, BaseModel)):
                self._secret_paths.update(self._collect_secret_paths_from_model(type(item)))
                # Keep SecretStr instances so that masking below can capture the real value
                item = {name: getattr(item, name) for name in type(item).model_fields}
                item = {k: (v.model_dump() if isinstance(v, BaseModel) else v) for k, v in item.items()}
            if isinstance(item, dict):
                merged = self._deep_update(merged, deepcopy(item))

        super().__init__(self._stringify_and_mask(merged))

    def __getattr__(self, name: str):
        """Enable attribute-style access for top-level keys."""
        if name in self:
            return _wrap(self[name])
        raise AttributeError(f"No such attribute: {name}")

    def get_secret(self, *path: str) -> Optional[str]:
        """Retrieve a secret by path components, e.g., get_secret("MONGO_URI")."""
        return self._secrets.get(tuple(path))

    def secret_paths(self) -> List[str]:
        """Return dotted paths of fields considered secrets."""
        return sorted(".".join(p) for p in self._secret_paths)

    def _deep_update(self, base: dict, override: dict) -> dict:
        """
        Recursively update nested dictionaries.
        """
        for k, v in override.items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                base[k] = self._deep_update(base.get(k, {}), v)
            else:
                base[k] = v
        return base

    def _stringify_and_mask(self, data: Dict[str, Any], mask: str = "********") -> Dict[str, Any]:
        def convert(v: Any, path: Tuple[str, ...]) -> Any:
            if isinstance(v, SecretStr):
                self._secrets[path] = v.get_secret_value()
                return mask
            if isinstance(v, dict):
                return {k: convert(x, path + (k,)) for k, x in v.items()}
            if isinstance(v, (list, tuple, set)):
                return [convert(x, path) for x in v]
            if v is None:
                return None
            sval = str(v)
            if path in self._secret_paths:
                self._secrets[path] = sval
                return mask
            return os.path.expanduser(sval) if sval.startswith("~") else sval

        return convert(data, ())

    def _collect_secret_paths_from_model(
        self, model_cls: type[BaseModel], prefix: Tuple[str, ...] = ()
    ) -> set[Tuple[str, ...]]:
        paths: set[Tuple[str, ...]] = set()
        for name, field in model_cls.model_fields.items():
            ann = field.annotation
            if self._is_secret_annotation(ann):
                paths.add(prefix + (name,))
                continue
            nested_cls = self._extract_model_class(ann)
            if nested_cls is not None:
                paths.update(self._collect_secret_paths_from_model(nested_cls, prefix + (name,)))
        return paths

    @staticmethod
    def _is_secret_annotation(ann: Any) -> bool:
        if ann is SecretStr:
            return True
        return any(a is SecretStr for a in get_args(ann)) if get_origin(ann) is not None else False

    @staticmethod
    def _extract_model_class(ann: Any) -> Optional[type]:
        candidates = get_args(ann) if get_origin(ann) is not None else (ann,)
        for a in candidates:
            if isinstance(a, type) and issubclass(a, BaseModel):
                return a
        return None


class CoreConfig(Config):
    """
    Wrapper around `Config` that always includes `CoreSettings` by default.

    Usage:
        from peopledb.core.config import CoreConfig
        cfg = CoreConfig()  # loads CoreSettings (env + .env + INI with '~' expansion)

    Extra overrides are applied on top of CoreSettings and remain highest precedence.
    """

    def __init__(self, extra_settings: SettingsLike = None):
        if extra_settings is None:
            extras: List[Any] = [CoreSettings()]
        elif isinstance(extra_settings, list):
            extras = [CoreSettings()] + extra_settings
        else:
            extras = [CoreSettings(), extra_settings]
        super().__init__(extra_settings=extras)
