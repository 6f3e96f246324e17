# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Router that resolves route handlers and wraps them with named middlewares.

Middleware names are bound to container keys once, then routes reference
them by name::

    router = MiddlewareRouter(container)
    router.set_middlewares({"auth": AuthorisedMiddleware})
    router.add("/account", AccountPage, ["auth"])
    router.add_routes({"/": home, "/admin": (["auth"], AdminController)})
"""

from appwire import util
from appwire.handler import resolve_handler
from appwire.mw.base_mw import as_middleware
from appwire.mw.chain import MiddlewareChain, UnregisteredMiddlewareError
from appwire.router import Router, parse_route_entry

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


# ========================================================================
# MiddlewareRouter
# ========================================================================
class MiddlewareRouter(Router):
    def __init__(self, container):
        super().__init__()
        self.container = container
        #: middleware name -> container key
        self.middleware_keys = {}

    def register_middleware(self, name, key):
        """Bind a middleware name to a container key (class or class path)."""
        self.middleware_keys[name] = key

    def set_middlewares(self, mapping):
        for name, key in mapping.items():
            self.register_middleware(name, key)

    def get_middleware(self, name):
        """Return the middleware bound to `name`.

        Raises:
            UnregisteredMiddlewareError: if `name` was never registered
        """
        try:
            key = self.middleware_keys[name]
        except KeyError:
            raise UnregisteredMiddlewareError(name) from None
        return as_middleware(self.container.get(key))

    def add(self, path, handler, middlewares=(), *, app=None):
        """Resolve `handler`, wrap it with `middlewares` and register it."""
        handler = resolve_handler(path, handler, self.container, app=app)
        names = util.to_list(middlewares)
        if names:
            chain = MiddlewareChain(*(self.get_middleware(name) for name in names))
            handler = chain.wrap(handler)
        return super().add(path, handler)

    def add_routes(self, route_table, app=None):
        """Register all entries of a route table (in order)."""
        for path, entry in route_table.items():
            middlewares, handler = parse_route_entry(path, entry)
            self.add(path, handler, middlewares, app=app)
