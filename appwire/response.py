# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Response object that is returned by request handlers and sent as WSGI
response.
"""

from http.cookies import SimpleCookie

from appwire import util
from appwire.http_error import (
    HTTP_FOUND,
    HTTP_NO_CONTENT,
    HTTP_NOT_MODIFIED,
    HTTPError,
    get_http_status_string,
)

__docformat__ = "reStructuredText"

DEFAULT_CONTENT_TYPE = "text/html; charset=utf-8"


# ========================================================================
# Response
# ========================================================================
class Response:
    """An outgoing HTTP response.

    Args:
        body (str | bytes): response body; str is encoded as UTF-8
        headers (dict | list): initial headers, e.g. ``{"location": "/"}``
        status (int): HTTP status code
        content_type (str): Content-Type (unless `headers` define one)
    """

    def __init__(
        self, body="", headers=None, *, status=200, content_type=DEFAULT_CONTENT_TYPE
    ):
        self.status_code = int(status)
        self.body = util.to_bytes(body) if body is not None else b""
        self.headers = []
        if isinstance(headers, dict):
            headers = headers.items()
        for name, value in headers or ():
            self.set_header(name, value)
        if content_type and self.get_header("Content-Type") is None:
            self.set_header("Content-Type", content_type)

    def __repr__(self):
        return f"Response({self.status!r}, {len(self.body)} bytes)"

    @classmethod
    def redirect(cls, location, *, status=HTTP_FOUND):
        """Return an empty response that redirects to `location`."""
        return cls("", {"Location": location}, status=status)

    @classmethod
    def from_error(cls, e):
        """Return an HTML error page for an HTTPError or status code."""
        if not isinstance(e, HTTPError):
            e = HTTPError(e)
        content_type, body = e.get_response_page()
        res = cls(body, status=e.value, content_type=content_type)
        for name, value in e.add_headers or ():
            res.add_header(name, value)
        return res

    @property
    def status(self):
        """Status line, e.g. '404 Not Found'."""
        return get_http_status_string(self.status_code)

    # --- Headers --------------------------------------------------------------

    def get_header(self, name, default=None):
        name = name.lower()
        for n, v in self.headers:
            if n.lower() == name:
                return v
        return default

    def set_header(self, name, value):
        """Replace all headers named `name` (case insensitive)."""
        self.remove_header(name)
        self.headers.append((_canonical_header_name(name), str(value)))

    def add_header(self, name, value):
        """Append a header, keeping existing ones (e.g. Set-Cookie)."""
        self.headers.append((_canonical_header_name(name), str(value)))

    def remove_header(self, name):
        name = name.lower()
        self.headers = [(n, v) for n, v in self.headers if n.lower() != name]

    def set_cookie(
        self,
        name,
        value,
        *,
        max_age=None,
        path="/",
        http_only=True,
        secure=False,
        same_site="Lax",
    ):
        cookie = SimpleCookie()
        cookie[name] = value
        morsel = cookie[name]
        morsel["path"] = path
        if max_age is not None:
            morsel["max-age"] = int(max_age)
        if http_only:
            morsel["httponly"] = True
        if secure:
            morsel["secure"] = True
        if same_site:
            morsel["samesite"] = same_site
        self.add_header("Set-Cookie", morsel.OutputString())

    def delete_cookie(self, name, *, path="/"):
        self.set_cookie(name, "", max_age=0, path=path)

    # --- WSGI -----------------------------------------------------------------

    def send(self, start_response, *, is_head=False):
        """Start the WSGI response and return the body iterable."""
        headers = list(self.headers)
        body = self.body
        if self.status_code in (HTTP_NOT_MODIFIED, HTTP_NO_CONTENT):
            # These codes don't have content
            body = b""
            headers = [(n, v) for n, v in headers if n.lower() != "content-type"]
        headers = [(n, v) for n, v in headers if n.lower() != "content-length"]
        headers.append(("Content-Length", str(len(body))))
        if self.get_header("Date") is None:
            headers.append(("Date", util.get_rfc1123_time()))
        start_response(self.status, headers)
        if is_head:
            return [b""]
        return [body]

    def __call__(self, environ, start_response):
        return self.send(start_response, is_head=environ.get("REQUEST_METHOD") == "HEAD")


def _canonical_header_name(name):
    return "-".join(part.capitalize() for part in name.split("-"))
