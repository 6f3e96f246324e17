# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Abstract base class for route middlewares.

Route middlewares wrap a request handler. They are bound to names (see
``MiddlewareRouter.register_middleware()``) and referenced by those names in
the route table::

    routes:
        /admin: [["auth", "csrf"], "myapp.handlers.AdminPage"]

Derived classes in AppWire include::

    appwire.mw.authorised.AuthorisedMiddleware
"""

from abc import ABC, abstractmethod

__docformat__ = "reStructuredText"


class BaseMiddleware(ABC):
    @abstractmethod
    def process(self, request, args, next_handler):
        """Return a Response.

        Call ``next_handler.handle(request, args)`` to continue the chain, or
        return a response of your own to short-circuit it.
        """
        raise NotImplementedError

    def __repr__(self):
        return f"{self.__module__}.{self.__class__.__name__}"


class FunctionMiddleware(BaseMiddleware):
    """Adapt a callable ``fn(request, args, next_handler)``."""

    def __init__(self, fn):
        if not callable(fn):
            raise TypeError(f"Expected a callable: {fn!r}")
        self.fn = fn

    def __repr__(self):
        name = getattr(self.fn, "__qualname__", None) or repr(self.fn)
        return f"FunctionMiddleware({name})"

    def process(self, request, args, next_handler):
        return self.fn(request, args, next_handler)


def as_middleware(mw):
    """Return `mw` as BaseMiddleware instance (wrapping plain callables)."""
    if isinstance(mw, BaseMiddleware):
        return mw
    if callable(mw) and not isinstance(mw, type):
        return FunctionMiddleware(mw)
    raise TypeError(f"Not a middleware: {mw!r}")
