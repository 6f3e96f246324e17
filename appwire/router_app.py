# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Application that delegates route registration and middleware wrapping to a
:class:`~appwire.middleware_router.MiddlewareRouter`.

The application only supplies the route table and the middleware bindings,
by default from the configuration::

    middlewares:
        csrf: "myapp.mw.CsrfMiddleware"
    routes:
        /: "myapp.handlers.Home"
        /admin:
            middlewares: ["csrf"]
            handler: "myapp.handlers.AdminController"
"""

from appwire import util
from appwire.base_app import BaseApplication
from appwire.middleware_router import MiddlewareRouter
from appwire.router import RouteNotFoundError, Router

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


# ========================================================================
# RouterApplication
# ========================================================================
class RouterApplication(BaseApplication):
    def __init__(self, root_path=None, *, config_dir=None, config=None):
        super().__init__(root_path, config_dir=config_dir, config=config)
        self.router = None

    def dependencies(self, container):
        super().dependencies(container)
        container.set_shared(MiddlewareRouter, lambda c: MiddlewareRouter(c))
        container.set_dependencies({Router: MiddlewareRouter})

    def get_routes(self):
        """Return the route table (default: the ``routes`` option)."""
        routes = self.config.get("routes") or {}
        if not routes:
            _logger.warning("No routes defined: every request will return 404.")
        return routes

    def get_middlewares(self):
        """Return route middleware bindings {name: container key}.

        Default: the ``middlewares`` option (values are class paths).
        """
        return dict(self.config.get("middlewares") or {})

    def setup_routes(self):
        self.router = self.container.get(Router)
        self.router.set_middlewares(self.get_middlewares())
        self.router.add_routes(self.get_routes(), app=self)

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
