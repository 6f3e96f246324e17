# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Application with inline route middlewares.

Route middlewares are bound to names by the application itself and
referenced by name in the route table::

    class MyApp(Application):
        def dependencies(self, container):
            super().dependencies(container)
            self.register_middleware("csrf", "myapp.mw.CsrfMiddleware")

        def get_routes(self):
            return {
                "/": home,
                "/account": ("auth", AccountPage),
                "/admin": (["auth", "csrf"], AdminController),
            }

    application = MyApp(root_path).run("prod")

See also :class:`appwire.router_app.RouterApplication`, which delegates
middleware binding to the router.
"""

from appwire import util
from appwire.auth.wiring import AUTH_MIDDLEWARE_NAME, AuthorisationWiring
from appwire.base_app import BaseApplication
from appwire.handler import resolve_handler
from appwire.mw.authorised import AuthorisedMiddleware
from appwire.mw.base_mw import as_middleware
from appwire.mw.chain import MiddlewareChain, UnregisteredMiddlewareError
from appwire.router import RouteNotFoundError, Router, parse_route_entry

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


# ========================================================================
# Application
# ========================================================================
class Application(AuthorisationWiring, BaseApplication):
    def __init__(self, root_path=None, *, config_dir=None, config=None):
        super().__init__(root_path, config_dir=config_dir, config=config)
        #: middleware name -> container key
        self.middleware_keys = {}
        self.router = None

    def dependencies(self, container):
        super().dependencies(container)
        self.auth_dependencies(container)
        self.register_middleware(AUTH_MIDDLEWARE_NAME, AuthorisedMiddleware)

    def register_middleware(self, name, key):
        """Bind a route middleware name to a container key (class or class path)."""
        self.middleware_keys[name] = key

    def get_middleware(self, name):
        """Return the middleware instance bound to `name`.

        Raises:
            UnregisteredMiddlewareError: if `name` was never registered
        """
        try:
            key = self.middleware_keys[name]
        except KeyError:
            raise UnregisteredMiddlewareError(name) from None
        return as_middleware(self.container.get(key))

    def chain_middlewares(self, handler, *names):
        """Wrap a handler or dispatcher with the named middlewares."""
        chain = MiddlewareChain(*(self.get_middleware(name) for name in names))
        return chain.wrap(handler)

    def get_routes(self):
        """Return the route table (default: the ``routes`` option)."""
        routes = self.config.get("routes") or {}
        if not routes:
            _logger.warning("No routes defined: every request will return 404.")
        return routes

    def setup_routes(self):
        self.router = Router()
        for path, entry in self.get_routes().items():
            names, handler = parse_route_entry(path, entry)
            handler = resolve_handler(path, handler, self.container, app=self)
            if names:
                handler = self.chain_middlewares(handler, *names)
            self.router.add(path, handler)

    def log_routes(self):
        _logger.info("Registered routes:")
        for route in self.router.routes:
            _logger.info(f"  - {route.path!r}: {route.handler!r}")

    def dispatch(self, request):
        try:
            return self.router.dispatch(request.uri)
        except RouteNotFoundError:
            _logger.debug(f"No route for {request.uri!r}")
            return self.get_404_handler(), {}
