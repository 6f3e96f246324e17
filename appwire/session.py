# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Cookie based session store.

The session data is kept client side in a signed cookie::

    <base64(json(data))>.<hex(hmac_sha256(secret, base64(json(data))))>

Cookies with a bad signature (or any other defect) are ignored: the request
gets an empty session and a warning is logged.
"""

import base64
import hashlib
import hmac
import json

from appwire import util

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


def sign(value: str, secret: str) -> str:
    return hmac.new(
        util.to_bytes(secret), util.to_bytes(value), hashlib.sha256
    ).hexdigest()


def encode_cookie_value(data: dict, secret: str) -> str:
    payload = json.dumps(data, separators=(",", ":"), sort_keys=True)
    payload = base64.urlsafe_b64encode(util.to_bytes(payload)).decode("ascii")
    # Padding would force quoting of the cookie value
    payload = payload.rstrip("=")
    return f"{payload}.{sign(payload, secret)}"


def decode_cookie_value(value: str, secret: str) -> dict:
    """Return the session dict stored in a cookie value.

    Raises:
        ValueError: if the value is malformed or the signature does not match
    """
    payload, sep, signature = value.rpartition(".")
    if not sep or not payload:
        raise ValueError("Malformed session cookie")
    if not hmac.compare_digest(sign(payload, secret), signature):
        raise ValueError("Invalid session cookie signature")
    try:
        padded = payload + "=" * (-len(payload) % 4)
        data = json.loads(base64.urlsafe_b64decode(util.to_bytes(padded)))
    except (ValueError, TypeError) as e:
        raise ValueError(f"Malformed session cookie: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Malformed session cookie: expected an object")
    return data


# ========================================================================
# Session
# ========================================================================
class Session:
    """Request session (a dict with change tracking).

    Values must be JSON serializable.
    """

    def __init__(self, data=None, *, secret, cookie_name="session"):
        if not secret:
            raise ValueError("Sessions require the 'secret' option.")
        self._data = dict(data or {})
        self.secret = secret
        self.cookie_name = cookie_name
        self.modified = False
        #: True if the request contained a session cookie
        self.from_cookie = False

    def __repr__(self):
        return f"Session({sorted(self._data.keys())}, modified={self.modified})"

    @classmethod
    def load(cls, request, secret, *, cookie_name="session"):
        """Return the session stored in the request cookie (or an empty one)."""
        data = None
        value = request.cookies.get(cookie_name)
        if value:
            try:
                data = decode_cookie_value(value, secret)
            except ValueError as e:
                _logger.warning(f"Ignoring session cookie from {request.remote_addr}: {e}")
        session = cls(data, secret=secret, cookie_name=cookie_name)
        session.from_cookie = data is not None
        return session

    def get(self, key, default=None):
        return self._data.get(key, default)

    def set(self, key, value):
        self._data[key] = value
        self.modified = True

    def has(self, key):
        return key in self._data

    def remove(self, key):
        if key in self._data:
            del self._data[key]
            self.modified = True

    def clear(self):
        if self._data:
            self._data.clear()
            self.modified = True

    def as_dict(self):
        return dict(self._data)

    def __getitem__(self, key):
        return self._data[key]

    def __setitem__(self, key, value):
        self.set(key, value)

    def __delitem__(self, key):
        if key not in self._data:
            raise KeyError(key)
        self.remove(key)

    def __contains__(self, key):
        return key in self._data

    def __len__(self):
        return len(self._data)

    def save(self, response, *, max_age=None, path="/"):
        """Write the session cookie to `response` (if the session was modified).

        An emptied session deletes the cookie.
        """
        if not self.modified:
            return False
        if self._data:
            value = encode_cookie_value(self._data, self.secret)
            response.set_cookie(self.cookie_name, value, max_age=max_age, path=path)
        elif self.from_cookie:
            response.delete_cookie(self.cookie_name, path=path)
        self.modified = False
        return True
