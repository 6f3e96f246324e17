# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Layered application configuration.

The effective configuration is merged from these sources (later sources
override earlier ones)::

    appwire.default_conf.DEFAULT_CONFIG
    <config_dir>/config.yaml            base settings
    <config_dir>/config_<mode>.yaml     per-mode settings, e.g. config_prod.yaml
    <config_dir>/local.yaml             local overrides (not under version control)
    dict passed to the application      programmatic overrides

Every file may also use the ``.yml`` or ``.json`` extension (JSON files are
parsed with json5, so comments and trailing commas are allowed).
Missing files are skipped.

The camelCase option names ``baseUri``, ``auth.uriSignIn`` and
``auth.userMapping`` are accepted as aliases (with a warning).
"""

import copy
import os

import json5
import yaml

from appwire import util
from appwire.default_conf import DEFAULT_CONFIG

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)

#: Extensions that are tried (in this order) for every config layer
CONFIG_FILE_EXTENSIONS = (".yaml", ".yml", ".json")


def read_config_file(config_file):
    """Read configuration file options into a dictionary.

    Returns an empty dict if the file does not exist.
    """
    config_file = os.path.abspath(config_file)

    if not os.path.exists(config_file):
        return {}

    if config_file.endswith(".json"):
        with open(config_file, encoding="utf-8-sig") as fp:
            conf = json5.load(fp)

    elif config_file.endswith((".yaml", ".yml")):
        with open(config_file, encoding="utf-8-sig") as fp:
            conf = yaml.safe_load(fp)

    else:
        raise ValueError(
            f"Unsupported config file format (expected yaml or json): {config_file}"
        )

    if conf is None:
        # Empty YAML file
        conf = {}
    elif not isinstance(conf, dict):
        raise ValueError(f"Config file must contain a mapping: {config_file}")

    _logger.debug(f"Read configuration file {config_file!r}")
    return conf


def find_config_file(config_dir, name):
    """Return the path of `<config_dir>/<name>.<ext>` or None."""
    for ext in CONFIG_FILE_EXTENSIONS:
        path = os.path.join(config_dir, name + ext)
        if os.path.isfile(path):
            return path
    return None


#: Alternative (camelCase) option names and their canonical names
OPTION_ALIASES = {
    "baseUri": "base_uri",
    "auth.uriSignIn": "auth.uri_sign_in",
    "auth.userMapping": "auth.user_mapping",
}


def resolve_option_aliases(config):
    """Return a copy of `config` with alias names replaced by canonical names.

    If both names are used, the canonical one wins.
    """
    config = copy.deepcopy(config)
    for alias, name in OPTION_ALIASES.items():
        *parents, alias_key = alias.split(".")
        key = name.split(".")[-1]
        d = config
        for seg in parents:
            d = d.get(seg) if isinstance(d, dict) else None
        if not isinstance(d, dict) or alias_key not in d:
            continue
        value = d.pop(alias_key)
        if key in d:
            _logger.warning(f"Ignoring option {alias!r}: {name!r} is also set.")
        else:
            _logger.warning(f"Option {alias!r} is deprecated: use {name!r} instead.")
            d[key] = value
    return config


def check_config(config):
    """Raise ValueError for malformed options."""
    errors = []

    base_uri = config.get("base_uri") or "/"
    if not base_uri.startswith("/"):
        errors.append(f"Option 'base_uri' must start with '/': {base_uri!r}.")

    for key in ("routes", "middlewares"):
        value = config.get(key)
        if value is not None and not isinstance(value, dict):
            errors.append(f"Option {key!r} must be a mapping: {value!r}.")

    database = config.get("database")
    if database is not None and not isinstance(database, dict):
        errors.append(f"Option 'database' must be a mapping: {database!r}.")

    if errors:
        raise ValueError("Invalid configuration:\n  - " + "\n  - ".join(errors))

    return True


# ========================================================================
# Config
# ========================================================================
class Config:
    """Read access to a (nested) configuration dictionary.

    Keys are dot-separated paths into nested dicts::

        config.get("auth.uri_sign_in")
        config.has("database")
    """

    def __init__(self, data=None):
        self._data = data if data is not None else {}

    def __repr__(self):
        return f"{self.__class__.__name__}({sorted(self._data.keys())})"

    @classmethod
    def from_layers(cls, *layers):
        """Merge `DEFAULT_CONFIG` with the given dicts (later wins)."""
        data = copy.deepcopy(DEFAULT_CONFIG)
        for layer in layers:
            if layer:
                util.deep_update(data, resolve_option_aliases(layer))
        return cls(data)

    def get(self, key, default=None):
        """Return the value for a dotted key path, or `default`."""
        return util.get_dict_value(self._data, key, default)

    def get_dict(self, key):
        """Return a sub-dict (`{}` if missing or None)."""
        return util.get_dict_value(self._data, key, as_dict=True)

    def require(self, key):
        """Return the value for a dotted key path or raise ValueError."""
        value = util.get_dict_value(self._data, key, None)
        if value is None:
            raise ValueError(f"Missing required option {key!r}.")
        return value

    def has(self, key):
        """Return True if the key path exists and is not None."""
        return util.get_dict_value(self._data, key, None) is not None

    def set(self, key, value):
        """Set a (dotted) key, creating intermediate dicts."""
        seg_list = key.split(".")
        d = self._data
        for seg in seg_list[:-1]:
            if not isinstance(d.get(seg), dict):
                d[seg] = {}
            d = d[seg]
        d[seg_list[-1]] = value

    def __getitem__(self, key):
        return util.get_dict_value(self._data, key)

    def __contains__(self, key):
        return self.has(key)

    def as_dict(self):
        """Return the underlying dict (not a copy)."""
        return self._data
