# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""Unit tests for appwire.session"""

import unittest
from http.cookies import SimpleCookie

from appwire.request import Request
from appwire.response import Response
from appwire.session import Session, decode_cookie_value, encode_cookie_value

SECRET = "0123456789abcdef"


def _request_with_cookie(name, value):
    cookie = SimpleCookie()
    cookie[name] = value
    environ = {
        "REQUEST_METHOD": "GET",
        "PATH_INFO": "/",
        "HTTP_COOKIE": cookie.output(header="", sep=";").strip(),
    }
    return Request(environ)


def _cookie_from_response(res, name):
    cookie = SimpleCookie()
    for n, v in res.headers:
        if n == "Set-Cookie":
            cookie.load(v)
    return cookie.get(name)


class SessionTest(unittest.TestCase):
    def testPreconditions(self):
        """Environment must be set."""
        self.assertTrue(
            __debug__, "__debug__ must be True, otherwise asserts are ignored"
        )

    def testCookieValue(self):
        value = encode_cookie_value({"user": "joe", "n": 1}, SECRET)
        payload, signature = value.rsplit(".", 1)
        assert len(signature) == 64
        assert decode_cookie_value(value, SECRET) == {"user": "joe", "n": 1}

        self.assertRaises(ValueError, decode_cookie_value, value, "other secret")
        self.assertRaises(ValueError, decode_cookie_value, "no-signature", SECRET)
        tampered = payload[:-2] + "AA." + signature
        self.assertRaises(ValueError, decode_cookie_value, tampered, SECRET)

    def testMapping(self):
        session = Session(secret=SECRET)
        assert not session.modified
        assert session.get("a") is None
        assert session.get("a", 1) == 1

        session.set("a", 1)
        session["b"] = [1, 2]
        assert session.modified
        assert session["a"] == 1
        assert "b" in session
        assert session.has("b")
        assert len(session) == 2

        session.remove("a")
        del session["b"]
        assert len(session) == 0
        self.assertRaises(KeyError, session.__delitem__, "b")
        self.assertRaises(KeyError, session.__getitem__, "b")

        self.assertRaises(ValueError, Session, secret=None)

    def testLoadAndSave(self):
        # Fresh session: nothing to save
        session = Session.load(Request({"PATH_INFO": "/"}), SECRET)
        res = Response()
        assert session.save(res) is False
        assert res.get_header("Set-Cookie") is None

        session.set("user", "joe")
        assert session.save(res, max_age=3600, path="/app") is True
        morsel = _cookie_from_response(res, "session")
        assert morsel["max-age"] == "3600"
        assert morsel["path"] == "/app"
        assert morsel["httponly"]

        # Round trip through a request cookie
        session = Session.load(_request_with_cookie("session", morsel.value), SECRET)
        assert session.from_cookie
        assert session.get("user") == "joe"
        assert not session.modified

        # Emptied sessions delete the cookie
        session.clear()
        res = Response()
        assert session.save(res) is True
        morsel = _cookie_from_response(res, "session")
        assert morsel.value == ""
        assert morsel["max-age"] == "0"

    def testTamperedCookie(self):
        value = encode_cookie_value({"user": "admin"}, "attacker secret")
        request = _request_with_cookie("sid", value)
        with self.assertLogs("appwire.session", level="WARNING"):
            session = Session.load(request, SECRET, cookie_name="sid")
        assert len(session) == 0
        assert not session.from_cookie
        assert session.cookie_name == "sid"


if __name__ == "__main__":
    unittest.main()
