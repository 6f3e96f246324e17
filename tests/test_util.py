# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""Unit tests for appwire.util"""

import logging
import logging.handlers
import sys
import unittest
from io import StringIO

from appwire.util import (
    BASE_LOGGER_NAME,
    check_tags,
    deep_update,
    dynamic_import_class,
    dynamic_instantiate_class_from_opts,
    fix_path,
    get_dict_value,
    get_module_logger,
    init_logging,
    purge_passwords,
    re_encode_wsgi,
    to_bytes,
    to_list,
    to_str,
)


class BasicTest(unittest.TestCase):
    """Test ."""

    def setUp(self):
        pass

    def tearDown(self):
        pass

    def testPreconditions(self):
        """Environment must be set."""
        self.assertTrue(
            __debug__, "__debug__ must be True, otherwise asserts are ignored"
        )

    def testBasics(self):
        """Test basic tool functions."""
        assert to_bytes("ä") == b"\xc3\xa4"
        assert to_str(b"\xc3\xa4") == "ä"
        assert to_list(None) == []
        assert to_list("auth") == ["auth"]
        assert to_list(("auth", "csrf")) == ["auth", "csrf"]

        assert re_encode_wsgi("/caf\xc3\xa9") == "/café"
        assert re_encode_wsgi("/\xff", fallback=True) == "/\xff"
        self.assertRaises(UnicodeError, re_encode_wsgi, "/\xff")

        assert check_tags("b", ["a", "b", "c"]) is None
        assert check_tags("b", "a, b, c") is None
        known = {"a", "b", "c"}
        assert check_tags(("a", "c"), known) is None
        assert check_tags({"a": 1, "c": 3}, known) is None
        self.assertRaises(ValueError, check_tags, {"a", "x"}, known)
        self.assertRaises(ValueError, check_tags, {"a", "c"}, known, required=True)

        self.assertRaises(ValueError, fix_path, "a/b", "/root/x")
        assert fix_path(None, "/root/x") is None
        if sys.platform != "win32":
            assert fix_path("a/b", "/root/x", must_exist=False) == "/root/x/a/b"
            assert fix_path("/a/b", "/root/x", must_exist=False) == "/a/b"

    def testDictTools(self):
        d_org = {"b": True, "d": {"i": 1, "t": (1, 2)}}
        assert deep_update(d_org.copy(), {}) == d_org
        assert deep_update(d_org.copy(), {"b": False}) == {
            "b": False,
            "d": {"i": 1, "t": (1, 2)},
        }
        assert deep_update(d_org.copy(), {"b": {"class": "c"}}) == {
            "b": {"class": "c"},
            "d": {"i": 1, "t": (1, 2)},
        }
        assert deep_update({"auth": {"uri_sign_in": "/a", "user_mapping": None}}, {
            "auth": {"uri_sign_in": "/b"}
        }) == {"auth": {"uri_sign_in": "/b", "user_mapping": None}}

        # Nested dicts are copied, not shared with the source
        src = {"auth": {"user_mapping": {"joe": {"password": "x"}}}}
        merged = deep_update({"auth": None}, src)
        merged["auth"]["user_mapping"]["joe"]["password"] = "y"
        assert src["auth"]["user_mapping"]["joe"]["password"] == "x"

        d = {"b": True, "d": {"i": 1, "t": (1, 2)}}
        assert get_dict_value(d, "b") is True
        assert get_dict_value(d, "d.i") == 1
        assert get_dict_value(d, "d.q", default="def") == "def"
        assert get_dict_value(d, "q.q.q", default="def") == "def"
        assert get_dict_value(d, "d.t.[1]") == 2
        self.assertRaises(IndexError, get_dict_value, d, "d.t.[2]")
        self.assertRaises(KeyError, get_dict_value, d, "d.q")

        d = {"a": None, "b": {}, "c": False}
        assert get_dict_value(d, "a", as_dict=True) == {}
        assert get_dict_value(d, "b", as_dict=True) == {}
        assert get_dict_value(d, "x", as_dict=True) == {}

        conf = {"secret": "s3cr3t", "database": {"user": "u", "password": "pw"}}
        purged = purge_passwords(conf)
        assert purged["secret"] == "<REMOVED>"
        assert purged["database"] == {"user": "u", "password": "<REMOVED>"}
        assert conf["secret"] == "s3cr3t", "original must be unchanged"

    def testDynamicImport(self):
        assert dynamic_import_class("appwire.router.Router").__name__ == "Router"
        self.assertRaises(ValueError, dynamic_import_class, "Router")
        self.assertRaises(ImportError, dynamic_import_class, "appwire.no_such.Foo")
        self.assertRaises(AttributeError, dynamic_import_class, "appwire.router.Foo")

        session = dynamic_instantiate_class_from_opts(
            {"class": "appwire.session.Session", "kwargs": {"secret": "${secret}"}},
            expand={"${secret}": "s3cr3t"},
        )
        assert session.secret == "s3cr3t"
        self.assertRaises(
            ValueError,
            dynamic_instantiate_class_from_opts,
            {"class": "appwire.router.Router", "foo": 1},
        )


class LoggerTest(unittest.TestCase):
    """Test configurable logging."""

    def setUp(self):
        # We add handlers that store root- and base-logger output
        self.rootBuffer = StringIO()
        rootLogger = logging.getLogger()
        self.prevRootLogLevel = rootLogger.getEffectiveLevel()
        self.rootLogHandler = logging.StreamHandler(self.rootBuffer)
        rootLogger.addHandler(self.rootLogHandler)

        self.baseBuffer = StringIO()
        baseLogger = logging.getLogger(BASE_LOGGER_NAME)
        self.prevBaseLogLevel = baseLogger.getEffectiveLevel()
        self.prevBasePropagate = baseLogger.propagate
        self.baseLogHandler = logging.StreamHandler(self.baseBuffer)
        baseLogger.addHandler(self.baseLogHandler)

    def tearDown(self):
        rootLogger = logging.getLogger()
        self.rootLogHandler.close()
        rootLogger.setLevel(self.prevRootLogLevel)
        rootLogger.removeHandler(self.rootLogHandler)

        baseLogger = logging.getLogger(BASE_LOGGER_NAME)
        self.baseLogHandler.close()
        baseLogger.setLevel(self.prevBaseLogLevel)
        baseLogger.propagate = self.prevBasePropagate
        baseLogger.removeHandler(self.baseLogHandler)

    def getLogOutput(self):
        self.rootLogHandler.flush()
        self.baseLogHandler.flush()
        return (self.rootBuffer.getvalue(), self.baseBuffer.getvalue())

    def testDefault(self):
        """By default, there should be no logging."""
        _baseLogger = logging.getLogger(BASE_LOGGER_NAME)
        _baseLogger.setLevel(logging.INFO)

        _baseLogger.debug("_baseLogger.debug")
        _baseLogger.info("_baseLogger.info")
        _baseLogger.warning("_baseLogger.warning")
        _baseLogger.error("_baseLogger.error")

        rootOutput, baseOutput = self.getLogOutput()
        # Printed for debugging, when test fails:
        print(f"ROOT OUTPUT:\n{rootOutput!r}\nBASE OUTPUT:\n{baseOutput!r}")

        # No output should be generated in the root logger
        assert rootOutput == ""
        assert ".debug" not in baseOutput
        assert ".info" in baseOutput
        assert ".warning" in baseOutput
        assert ".error" in baseOutput

    def testEnablePropagation(self):
        """Users can enable logging by propagating to root logger."""
        _baseLogger = logging.getLogger(BASE_LOGGER_NAME)
        _baseLogger.setLevel(logging.INFO)
        _baseLogger.propagate = True

        _baseLogger.debug("_baseLogger.debug")
        _baseLogger.info("_baseLogger.info")
        _baseLogger.warning("_baseLogger.warning")
        _baseLogger.error("_baseLogger.error")

        rootOutput, baseOutput = self.getLogOutput()
        # Printed for debugging, when test fails:
        print(f"ROOT OUTPUT:\n{rootOutput!r}\nBASE OUTPUT:\n{baseOutput!r}")

        # Now we should see output in the root logger
        assert rootOutput == baseOutput
        assert ".debug" not in baseOutput
        assert ".info" in baseOutput

    def testCliLogging(self):
        """CLI initializes logging."""
        config = {
            "verbose": 3,
            "logging": {
                "enable_loggers": ["test"],
            },
        }
        init_logging(config)

        _baseLogger = logging.getLogger(BASE_LOGGER_NAME)
        _enabledLogger = get_module_logger("test")
        _disabledLogger = get_module_logger("test2")

        assert _baseLogger.level == logging.INFO
        assert _enabledLogger.level == logging.DEBUG
        assert _disabledLogger.getEffectiveLevel() == logging.INFO
        assert _enabledLogger.name == "appwire.test"

        _baseLogger.info("_baseLogger.info")
        _enabledLogger.debug("_enabledLogger.debug")

        rootOutput, baseOutput = self.getLogOutput()
        # Printed for debugging, when test fails:
        print(f"ROOT OUTPUT:\n{rootOutput!r}\nBASE OUTPUT:\n{baseOutput!r}")

        # init_logging() removes all other handlers
        assert rootOutput == ""
        assert baseOutput == ""


if __name__ == "__main__":
    unittest.main()
