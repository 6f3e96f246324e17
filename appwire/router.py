# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
URI router.

Route patterns::

    /users              static path, matched literally
    /users/:id          ':name' matches exactly one segment -> {"id": "42"}
    /static/*path       '*name' (last segment only) matches the rest of the
                        path -> {"path": "css/site.css"}

Routes are tried in the order they were added; the first match wins.
Trailing slashes are not significant.

A route whose handler is a :class:`~appwire.handler.RequestDispatcher` is
matched as path prefix: the remaining sub-path (at least '/') is passed to
``dispatcher.dispatch(sub_uri, args)``.
"""

import re

from appwire import util
from appwire.handler import RequestDispatcher, RequestHandler
from appwire.request import normalize_uri

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)

_SEGMENT_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class RouteNotFoundError(LookupError):
    """Raised by Router.dispatch() if no route matches."""

    def __init__(self, uri):
        super().__init__(f"No route for {uri!r}")
        self.uri = uri


def compile_pattern(path, *, prefix=False):
    """Return (regex, param_names) for a route pattern.

    If `prefix` is true, the regex also matches sub-paths and captures them
    in the group ``_sub_uri``.
    """
    path = normalize_uri(path)
    param_names = []
    parts = []
    segments = [s for s in path.split("/") if s]

    for i, seg in enumerate(segments):
        if seg.startswith(":"):
            name = seg[1:]
            _check_param_name(path, name, param_names)
            param_names.append(name)
            parts.append(f"/(?P<{name}>[^/]+)")
        elif seg.startswith("*"):
            name = seg[1:]
            if i != len(segments) - 1:
                raise ValueError(f"Wildcard must be the last segment: {path!r}")
            if prefix:
                raise ValueError(f"Dispatcher routes cannot use wildcards: {path!r}")
            _check_param_name(path, name, param_names)
            param_names.append(name)
            parts.append(f"(?:/(?P<{name}>.*))?")
        else:
            parts.append("/" + re.escape(seg))

    pattern = "".join(parts)
    if prefix:
        pattern += "(?P<_sub_uri>/.*)?"
    elif not pattern:
        pattern = "/"
    return re.compile(f"^{pattern}$"), param_names


def _check_param_name(path, name, known):
    if not _SEGMENT_NAME.match(name):
        raise ValueError(f"Invalid parameter name {name!r} in route {path!r}")
    if name in known:
        raise ValueError(f"Duplicate parameter name {name!r} in route {path!r}")


# ========================================================================
# Route
# ========================================================================
class Route:
    def __init__(self, path, handler):
        if not isinstance(handler, (RequestHandler, RequestDispatcher)):
            raise TypeError(
                f"Route handler for {path!r} must implement "
                f"RequestHandler or RequestDispatcher: {handler!r}"
            )
        self.path = normalize_uri(path)
        self.handler = handler
        self.is_dispatcher = isinstance(handler, RequestDispatcher)
        self.regex, self.param_names = compile_pattern(
            self.path, prefix=self.is_dispatcher
        )

    def __repr__(self):
        kind = "dispatcher" if self.is_dispatcher else "handler"
        return f"Route({self.path!r}, {kind}={self.handler!r})"

    def match(self, uri):
        """Return the route arguments if `uri` matches, else None."""
        m = self.regex.match(uri)
        if not m:
            return None
        args = {k: v for k, v in m.groupdict().items() if k != "_sub_uri"}
        # Unmatched optional wildcard
        for name in self.param_names:
            if args.get(name) is None:
                args[name] = ""
        return args

    def sub_uri(self, uri):
        """Return the part of `uri` below the route path (dispatchers only)."""
        m = self.regex.match(uri)
        return normalize_uri((m and m.group("_sub_uri")) or "/")


# ========================================================================
# Router
# ========================================================================
class Router:
    def __init__(self):
        self.routes = []
        self._paths = set()

    def __repr__(self):
        return f"{self.__class__.__name__}({len(self.routes)} routes)"

    def add(self, path, handler):
        """Register a handler or dispatcher for a route pattern."""
        route = Route(path, handler)
        if route.path in self._paths:
            raise ValueError(f"Duplicate route {route.path!r}")
        self._paths.add(route.path)
        self.routes.append(route)
        _logger.debug(f"Added {route}")
        return route

    def dispatch(self, uri, arguments=None):
        """Return (handler, route_args) for `uri`.

        `arguments` are initial route arguments (updated by the matched route).

        Raises:
            RouteNotFoundError: if no route matches
        """
        uri = normalize_uri(uri)
        for route in self.routes:
            args = route.match(uri)
            if args is None:
                continue
            merged = dict(arguments or {})
            merged.update(args)
            if route.is_dispatcher:
                sub_uri = route.sub_uri(uri)
                handler = route.handler.dispatch(sub_uri, merged)
                _logger.debug(f"Dispatched {uri!r} via {route} ({sub_uri!r})")
            else:
                handler = route.handler
                _logger.debug(f"Matched {uri!r} to {route}")
            return handler, merged

        raise RouteNotFoundError(uri)


def parse_route_entry(path, entry):
    """Split a route table entry into (middleware_names, handler).

    Supported formats::

        <handler>
        (<middleware name or list of names>, <handler>)
        {"handler": <handler>, "middlewares": <name or list of names>}
    """
    if isinstance(entry, dict):
        unknown = set(entry.keys()) - {"handler", "middlewares"}
        if unknown or "handler" not in entry:
            raise ValueError(
                f"Route {path!r}: expected {{'handler': ..., 'middlewares': ...}}"
            )
        middlewares, handler = entry.get("middlewares"), entry["handler"]
    elif isinstance(entry, (list, tuple)):
        if len(entry) != 2:
            raise ValueError(f"Route {path!r}: expected [middlewares, handler]")
        middlewares, handler = entry
    else:
        middlewares, handler = None, entry

    middlewares = util.to_list(middlewares)
    for name in middlewares:
        if not util.is_str(name):
            raise ValueError(f"Route {path!r}: invalid middleware name {name!r}")
    return middlewares, handler
