# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Implements an HTTPError class that is used to signal HTTP errors from request
handlers and middlewares.
"""

import datetime
from html import escape

from appwire import __version__

__docformat__ = "reStructuredText"

# ========================================================================
# List of HTTP Response Codes.
# ========================================================================
HTTP_OK = 200
HTTP_CREATED = 201
HTTP_NO_CONTENT = 204

HTTP_MOVED = 301
HTTP_FOUND = 302
HTTP_SEE_OTHER = 303
HTTP_NOT_MODIFIED = 304
HTTP_TEMP_REDIRECT = 307

HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_METHOD_NOT_ALLOWED = 405
HTTP_CONFLICT = 409
HTTP_GONE = 410
HTTP_REQUEST_ENTITY_TOO_LARGE = 413
HTTP_MEDIATYPE_NOT_SUPPORTED = 415
HTTP_UNPROCESSABLE_ENTITY = 422

HTTP_INTERNAL_ERROR = 500
HTTP_NOT_IMPLEMENTED = 501
HTTP_BAD_GATEWAY = 502
HTTP_SERVICE_UNAVAILABLE = 503


# ========================================================================
# if ERROR_DESCRIPTIONS exists for a status code, the description will be
# sent with the response status line.
# Otherwise '<code> Status' is sent.
# ========================================================================
ERROR_DESCRIPTIONS = {
    HTTP_OK: "200 OK",
    HTTP_CREATED: "201 Created",
    HTTP_NO_CONTENT: "204 No Content",
    HTTP_MOVED: "301 Moved Permanently",
    HTTP_FOUND: "302 Found",
    HTTP_SEE_OTHER: "303 See Other",
    HTTP_NOT_MODIFIED: "304 Not Modified",
    HTTP_TEMP_REDIRECT: "307 Temporary Redirect",
    HTTP_BAD_REQUEST: "400 Bad Request",
    HTTP_UNAUTHORIZED: "401 Unauthorized",
    HTTP_FORBIDDEN: "403 Forbidden",
    HTTP_NOT_FOUND: "404 Not Found",
    HTTP_METHOD_NOT_ALLOWED: "405 Method Not Allowed",
    HTTP_CONFLICT: "409 Conflict",
    HTTP_GONE: "410 Gone",
    HTTP_REQUEST_ENTITY_TOO_LARGE: "413 Request Entity Too Large",
    HTTP_MEDIATYPE_NOT_SUPPORTED: "415 Media Type Not Supported",
    HTTP_UNPROCESSABLE_ENTITY: "422 Unprocessable Entity",
    HTTP_INTERNAL_ERROR: "500 Internal Server Error",
    HTTP_NOT_IMPLEMENTED: "501 Not Implemented",
    HTTP_BAD_GATEWAY: "502 Bad Gateway",
    HTTP_SERVICE_UNAVAILABLE: "503 Service Unavailable",
}

# ========================================================================
# if ERROR_RESPONSES exists for an error code, a html output will be sent as
# response body including the ERROR_RESPONSES value.
# Mostly for browser viewing
# ========================================================================

ERROR_RESPONSES = {
    HTTP_BAD_REQUEST: "An invalid request was specified",
    HTTP_UNAUTHORIZED: "Authentication is required to access this resource",
    HTTP_NOT_FOUND: "The specified resource was not found",
    HTTP_FORBIDDEN: "Access denied to the specified resource",
    HTTP_METHOD_NOT_ALLOWED: "The request method is not allowed here",
    HTTP_INTERNAL_ERROR: "An internal server error occurred",
    HTTP_NOT_IMPLEMENTED: "Not implemented",
}


# ========================================================================
# HTTPError
# ========================================================================


class HTTPError(Exception):
    """General error class that is used to signal HTTP errors."""

    def __init__(
        self,
        status_code,
        context_info=None,
        *,
        src_exception=None,
        add_headers=None,
    ):
        self.value = int(status_code)
        self.context_info = context_info
        self.src_exception = src_exception
        self.add_headers = add_headers

    def __repr__(self):
        s = self.get_user_info()
        if self.src_exception:
            s += f"\n    Source exception: {self.src_exception!r}"
        return f"HTTPError({s})"

    def __str__(self):
        return self.__repr__()

    def get_user_info(self):
        """Return readable string (without the source exception)."""
        if self.value in ERROR_DESCRIPTIONS:
            s = f"{ERROR_DESCRIPTIONS[self.value]}"
        else:
            s = f"{self.value}"

        if self.context_info:
            s += f": {self.context_info}"
        elif self.value in ERROR_RESPONSES:
            s += f": {ERROR_RESPONSES[self.value]}"

        return s

    def get_response_page(self):
        """Return a tuple (content-type, response page)."""
        status = get_http_status_string(self)
        html = []
        html.append("<!DOCTYPE html>")
        html.append("<html><head>")
        html.append("  <meta http-equiv='Content-Type' content='text/html; charset=UTF-8'>")
        html.append(f"  <title>{status}</title>")
        html.append("</head><body>")
        html.append(f"  <h1>{status}</h1>")
        html.append(f"  <p>{escape(self.get_user_info())}</p>")
        html.append("<hr/>")
        html.append(
            "AppWire/{} - {}".format(
                __version__, escape(str(datetime.datetime.now()))
            )
        )
        html.append("</body></html>")
        html = "\n".join(html)
        return ("text/html; charset=utf-8", html.encode("utf-8"))


def get_http_status_code(v):
    """Return HTTP response code as integer, e.g. 204."""
    if hasattr(v, "value"):
        return int(v.value)  # v is a HTTPError
    return int(v)


def get_http_status_string(v):
    """Return HTTP response string, e.g. 204 -> ('204 No Content').

    `v`: status code or HTTPError
    """
    code = get_http_status_code(v)
    try:
        return ERROR_DESCRIPTIONS[code]
    except KeyError:
        return f"{code} Status"


def as_HTTPError(e):
    """Convert any non-HTTPError exception to HTTP_INTERNAL_ERROR."""
    if isinstance(e, HTTPError):
        return e
    elif isinstance(e, Exception):
        return HTTPError(HTTP_INTERNAL_ERROR, src_exception=e)
    else:
        return HTTPError(HTTP_INTERNAL_ERROR, f"{e}")
