# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Request object that wraps a WSGI ``environ``.
"""

from http.cookies import CookieError, SimpleCookie
from urllib.parse import parse_qs

from appwire import util

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


def normalize_uri(path):
    """Return `path` with exactly one leading '/' and no trailing '/'."""
    path = "/" + path.lstrip("/")
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def _parse_qs_first(qs):
    return {k: v[0] for k, v in parse_qs(qs, keep_blank_values=True).items()}


# ========================================================================
# Request
# ========================================================================
class Request:
    """An incoming HTTP request.

    Attributes:
        environ (dict): the WSGI environment
        method (str): upper case request method
        uri (str): request path relative to the application's `base_uri`,
            always starting with '/'
        outside_base (bool): True if the request path is not below `base_uri`
            (`uri` is the full path then)
        app: the application that handles the request (may be None)
        container: the request scope (a child of the application container)
    """

    def __init__(self, environ, *, base_uri="/", app=None, container=None):
        self.environ = environ
        self.app = app
        self.container = container
        self.method = environ.get("REQUEST_METHOD", "GET").upper()

        path = environ.get("PATH_INFO") or "/"
        path = util.re_encode_wsgi(path, fallback=True)
        script_name = environ.get("SCRIPT_NAME") or ""
        full_path = normalize_uri(script_name + path)

        base_uri = normalize_uri(base_uri or "/")
        self.outside_base = False
        if base_uri != "/":
            if full_path == base_uri or full_path.startswith(base_uri + "/"):
                full_path = full_path[len(base_uri) :] or "/"
            else:
                self.outside_base = True
        self.base_uri = base_uri
        self.uri = normalize_uri(full_path)

        self.query_string = environ.get("QUERY_STRING", "")
        self._query = None
        self._form = None
        self._body = None
        self._cookies = None
        self._headers = None

    def __repr__(self):
        return f"Request({self.method} {self.uri!r})"

    @property
    def query(self):
        """Query string arguments (first value per name)."""
        if self._query is None:
            self._query = _parse_qs_first(self.query_string)
        return self._query

    @property
    def headers(self):
        """Request headers as dict with lower case names."""
        if self._headers is None:
            headers = {}
            for key, value in self.environ.items():
                if key.startswith("HTTP_"):
                    name = key[5:].replace("_", "-").lower()
                    headers[name] = value
            for key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
                if self.environ.get(key):
                    headers[key.replace("_", "-").lower()] = self.environ[key]
            self._headers = headers
        return self._headers

    def get_header(self, name, default=None):
        return self.headers.get(name.lower(), default)

    @property
    def remote_addr(self):
        return self.environ.get("REMOTE_ADDR", "")

    @property
    def content_type(self):
        return self.environ.get("CONTENT_TYPE", "")

    @property
    def content_length(self):
        return util.get_content_length(self.environ)

    @property
    def body(self):
        """Request body as bytes (read on first access)."""
        if self._body is None:
            length = self.content_length
            stream = self.environ.get("wsgi.input")
            if length and stream is not None:
                self._body = stream.read(length)
            else:
                self._body = b""
        return self._body

    @property
    def form(self):
        """Fields of an ``application/x-www-form-urlencoded`` body."""
        if self._form is None:
            if self.content_type.startswith("application/x-www-form-urlencoded"):
                self._form = _parse_qs_first(util.to_str(self.body))
            else:
                self._form = {}
        return self._form

    @property
    def cookies(self):
        """Request cookies as dict."""
        if self._cookies is None:
            cookie = SimpleCookie()
            try:
                cookie.load(self.environ.get("HTTP_COOKIE", ""))
            except CookieError as e:
                _logger.warning(f"Ignoring malformed cookie header: {e}")
            self._cookies = {k: m.value for k, m in cookie.items()}
        return self._cookies

    # --- Request scope shortcuts ---------------------------------------------

    def get(self, key):
        """Return a service from the request scope."""
        if self.container is None:
            raise RuntimeError(f"{self} is not bound to a container")
        return self.container.get(key)

    @property
    def session(self):
        from appwire.session import Session

        return self.get(Session)

    @property
    def auth(self):
        from appwire.auth.authorisation import Authorisation

        return self.get(Authorisation)

    @property
    def database(self):
        from appwire.database import DatabaseConnection

        return self.get(DatabaseConnection)
