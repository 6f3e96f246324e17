# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""Unit tests for appwire.config"""

import os
import shutil
import tempfile
import unittest

from appwire.config import (
    Config,
    check_config,
    find_config_file,
    read_config_file,
)
from appwire.default_conf import DEFAULT_CONFIG


def _write(folder, name, content):
    path = os.path.join(folder, name)
    with open(path, "w", encoding="utf-8") as fp:
        fp.write(content)
    return path


class ConfigFileTest(unittest.TestCase):
    def setUp(self):
        self.folder = tempfile.mkdtemp(prefix="appwire-config-")

    def tearDown(self):
        shutil.rmtree(self.folder, ignore_errors=True)

    def testPreconditions(self):
        """Environment must be set."""
        self.assertTrue(
            __debug__, "__debug__ must be True, otherwise asserts are ignored"
        )

    def testReadYaml(self):
        path = _write(
            self.folder,
            "config.yaml",
            "secret: abc\nauth:\n  uri_sign_in: /login\nroutes:\n  /: myapp.Home\n",
        )
        conf = read_config_file(path)
        assert conf == {
            "secret": "abc",
            "auth": {"uri_sign_in": "/login"},
            "routes": {"/": "myapp.Home"},
        }

    def testReadJson5(self):
        # Comments and trailing commas are allowed
        path = _write(
            self.folder,
            "config.json",
            '{\n  // a comment\n  "base_uri": "/app",\n  "port": 8081,\n}\n',
        )
        assert read_config_file(path) == {"base_uri": "/app", "port": 8081}

    def testEmptyAndMissing(self):
        assert read_config_file(os.path.join(self.folder, "missing.yaml")) == {}
        path = _write(self.folder, "empty.yaml", "")
        assert read_config_file(path) == {}

    def testInvalidFiles(self):
        path = _write(self.folder, "config.ini", "[section]\n")
        self.assertRaises(ValueError, read_config_file, path)
        path = _write(self.folder, "list.yaml", "- a\n- b\n")
        self.assertRaises(ValueError, read_config_file, path)

    def testFindConfigFile(self):
        assert find_config_file(self.folder, "config") is None
        _write(self.folder, "config.json", "{}")
        assert find_config_file(self.folder, "config").endswith("config.json")
        # .yaml is preferred
        _write(self.folder, "config.yaml", "{}")
        assert find_config_file(self.folder, "config").endswith("config.yaml")


class ConfigTest(unittest.TestCase):
    def testCheckConfig(self):
        assert check_config(DEFAULT_CONFIG) is True
        assert check_config({"base_uri": "/app", "routes": {"/": "x.Y"}}) is True

        self.assertRaises(ValueError, check_config, {"base_uri": "app"})
        self.assertRaises(ValueError, check_config, {"routes": ["/", "x.Y"]})
        self.assertRaises(ValueError, check_config, {"database": "sqlite:///x"})

    def testAccess(self):
        config = Config.from_layers(
            {"secret": "abc", "auth": {"uri_sign_in": "/login"}},
            None,
            {"auth": {"user_mapping": {"joe": {"password": "pw"}}}},
        )
        # Defaults are merged
        assert config.get("port") == 8080
        assert config.get("session.cookie_name") == "session"
        # Later layers override earlier ones, nested dicts are merged
        assert config.get("auth.uri_sign_in") == "/login"
        assert config.get("auth.user_mapping.joe.password") == "pw"

        assert config.get("no.such.key") is None
        assert config.get("no.such.key", 42) == 42
        assert config.has("secret")
        assert "secret" in config
        assert not config.has("database")
        assert config.get_dict("database") == {}
        assert config["auth.uri_sign_in"] == "/login"
        self.assertRaises(KeyError, config.__getitem__, "no_such_key")

        assert config.require("secret") == "abc"
        self.assertRaises(ValueError, config.require, "database")

        config.set("web.templates_path", "/tmp")
        config.set("new.nested.key", 1)
        assert config.get("web.templates_path") == "/tmp"
        assert config.as_dict()["new"] == {"nested": {"key": 1}}

        # DEFAULT_CONFIG must not be modified
        assert DEFAULT_CONFIG["auth"]["uri_sign_in"] == "/sign-in"
        assert DEFAULT_CONFIG["web"]["templates_path"] is None

    def testLayersAreCopied(self):
        overrides = {"auth": {"user_mapping": {"joe": {"password": "pw"}}}}
        config = Config.from_layers(overrides)
        config.set("auth.user_mapping.joe.password", "changed")
        config.as_dict()["auth"]["user_mapping"]["ann"] = {"password": "x"}
        assert overrides == {"auth": {"user_mapping": {"joe": {"password": "pw"}}}}

    def testOptionAliases(self):
        layer = {"baseUri": "/app", "auth": {"uriSignIn": "/login"}}
        with self.assertLogs("appwire.config", level="WARNING") as cm:
            config = Config.from_layers(layer)
        assert len(cm.output) == 2
        assert config.get("base_uri") == "/app"
        assert config.get("auth.uri_sign_in") == "/login"
        assert not config.has("baseUri")
        assert not config.has("auth.uriSignIn")
        # The source layer is left alone
        assert layer == {"baseUri": "/app", "auth": {"uriSignIn": "/login"}}

        # A later alias overrides an earlier canonical name
        config = Config.from_layers(
            {"base_uri": "/a", "auth": {"user_mapping": {}}},
            {"baseUri": "/b", "auth": {"userMapping": {"joe": {"password": "pw"}}}},
        )
        assert config.get("base_uri") == "/b"
        assert config.get("auth.user_mapping.joe.password") == "pw"

        # The canonical name wins within the same layer
        with self.assertLogs("appwire.config", level="WARNING"):
            config = Config.from_layers({"baseUri": "/b", "base_uri": "/a"})
        assert config.get("base_uri") == "/a"
        assert check_config(config.as_dict()) is True


if __name__ == "__main__":
    unittest.main()
