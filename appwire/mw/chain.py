# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Compose route middlewares and request handlers.

``MiddlewareChain(a, b).wrap_handler(h)`` returns a handler that runs
``a``, then ``b``, then ``h``. Every middleware may return its own response
instead of calling the next one.
"""

from appwire import util
from appwire.handler import RequestDispatcher, RequestHandler
from appwire.mw.base_mw import as_middleware

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


class UnregisteredMiddlewareError(LookupError):
    """A route references a middleware name that was never registered."""

    def __init__(self, name):
        super().__init__(f"Unregistered middleware: {name!r}")
        self.name = name


# ========================================================================
# _ChainedHandler
# ========================================================================
class _ChainedHandler(RequestHandler):
    """Run one middleware in front of `next_handler`."""

    def __init__(self, middleware, next_handler):
        self.middleware = middleware
        self.next_handler = next_handler

    def __repr__(self):
        return f"{self.middleware!r} -> {self.next_handler!r}"

    def handle(self, request, args):
        return self.middleware.process(request, args, self.next_handler)


# ========================================================================
# MiddlewareDispatcher
# ========================================================================
class MiddlewareDispatcher(RequestDispatcher):
    """Wrap every handler returned by `dispatcher` with `chain`."""

    def __init__(self, dispatcher, chain):
        self.dispatcher = dispatcher
        self.chain = chain

    def __repr__(self):
        return f"MiddlewareDispatcher({self.dispatcher!r}, {self.chain!r})"

    def dispatch(self, uri, args):
        handler = self.dispatcher.dispatch(uri, args)
        return self.chain.wrap_handler(handler)

    def set_application(self, app):
        set_app = getattr(self.dispatcher, "set_application", None)
        if callable(set_app):
            set_app(app)


# ========================================================================
# MiddlewareChain
# ========================================================================
class MiddlewareChain:
    def __init__(self, *middlewares):
        self.middlewares = [as_middleware(mw) for mw in middlewares]

    def __repr__(self):
        return f"MiddlewareChain({', '.join(repr(m) for m in self.middlewares)})"

    def __len__(self):
        return len(self.middlewares)

    def wrap_handler(self, handler):
        """Return a handler that runs all middlewares in front of `handler`."""
        # Wrap from the inside out, so the first middleware runs first
        for mw in reversed(self.middlewares):
            handler = _ChainedHandler(mw, handler)
        return handler

    def wrap_dispatcher(self, dispatcher):
        if not self.middlewares:
            return dispatcher
        return MiddlewareDispatcher(dispatcher, self)

    def wrap(self, handler):
        """Wrap a RequestHandler or RequestDispatcher."""
        if isinstance(handler, RequestDispatcher):
            return self.wrap_dispatcher(handler)
        if isinstance(handler, RequestHandler):
            return self.wrap_handler(handler)
        raise TypeError(f"Expected RequestHandler or RequestDispatcher: {handler!r}")
