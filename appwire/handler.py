# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Request handlers and dispatchers.

A *request handler* turns a request into a response::

    class Hello(RequestHandler):
        def handle(self, request, args):
            return Response(f"Hello {args['name']}")

A *request dispatcher* resolves a sub-path to a handler. It is registered
for a path prefix, e.g. a controller mounted at ``/admin`` receives
``/users/42`` for a request to ``/admin/users/42``.

Plain callables are accepted wherever a handler is expected. They are called
with the request and the route arguments as keyword arguments::

    def hello(request, name):
        return Response(f"Hello {name}")
"""

import inspect
from abc import ABC, abstractmethod

from appwire import util
from appwire.response import Response

__docformat__ = "reStructuredText"


class RequestHandler(ABC):
    @abstractmethod
    def handle(self, request, args):
        """Return a Response for `request` (`args` are the route arguments)."""
        raise NotImplementedError

    def __repr__(self):
        return f"{self.__module__}.{self.__class__.__name__}"


class RequestDispatcher(ABC):
    @abstractmethod
    def dispatch(self, uri, args):
        """Return the RequestHandler for a sub-path.

        Raises:
            RouteNotFoundError: if `uri` is not handled
        """
        raise NotImplementedError

    def __repr__(self):
        return f"{self.__module__}.{self.__class__.__name__}"


class FunctionHandler(RequestHandler):
    """Adapt a callable ``fn(request, **args)`` to the RequestHandler API."""

    def __init__(self, fn):
        if not callable(fn):
            raise TypeError(f"Expected a callable: {fn!r}")
        self.fn = fn

    def __repr__(self):
        name = getattr(self.fn, "__qualname__", None) or repr(self.fn)
        return f"FunctionHandler({name})"

    def handle(self, request, args):
        return self.fn(request, **args)


def is_handler_class(cls):
    return inspect.isclass(cls) and issubclass(cls, (RequestHandler, RequestDispatcher))


def resolve_handler(path, handler, container, *, app=None):
    """Return a RequestHandler or RequestDispatcher for a route entry.

    `handler` may be an instance, a class or a ``path.to.ClassName`` string
    (instantiated by the container), or a plain callable.

    Raises:
        TypeError: if `handler` cannot be used for route `path`
    """
    if isinstance(handler, (RequestHandler, RequestDispatcher)):
        pass
    elif util.is_str(handler) or inspect.isclass(handler):
        cls = util.dynamic_import_class(handler) if util.is_str(handler) else handler
        if not is_handler_class(cls):
            raise TypeError(
                f"Route handler for {path!r} must be a callable or implement "
                "RequestHandler or RequestDispatcher"
            )
        handler = container.get(cls)
    elif callable(handler):
        handler = FunctionHandler(handler)
    else:
        raise TypeError(
            f"Route handler for {path!r} must be a callable or implement "
            "RequestHandler or RequestDispatcher"
        )

    # Controllers need to know the application they belong to
    if app is not None and callable(getattr(handler, "set_application", None)):
        handler.set_application(app)
    return handler


def redirect_uri_handler(uri):
    """Return a handler that redirects every request to `uri`."""

    def _redirect(request, **_args):
        return Response.redirect(uri)

    return FunctionHandler(_redirect)
