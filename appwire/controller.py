# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Controllers group related actions under one route prefix.

A controller is a :class:`~appwire.handler.RequestDispatcher`: it is mounted
at a path prefix and maps the remaining sub-path to one of its methods::

    class UserController(Controller):
        routes = {
            "/": "list_users",
            "/:id": "show_user",
        }

        def list_users(self, request):
            ...

        def show_user(self, request, id):
            return Response(f"User {id}")

    routes = {"/users": UserController}

Action methods are called like plain function handlers:
``method(request, **route_args)``. The application is injected by
``set_application()`` when the route table is built.
"""

from appwire import util
from appwire.handler import FunctionHandler, RequestDispatcher
from appwire.router import Router

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


class Controller(RequestDispatcher):
    #: {<sub-path pattern>: <method name>}
    routes = {}

    def __init__(self):
        self.app = None
        self._router = Router()
        for path, method_name in self.routes.items():
            method = getattr(self, method_name, None)
            if not callable(method):
                raise TypeError(
                    f"{self.__class__.__name__}.routes[{path!r}]: "
                    f"no such method {method_name!r}"
                )
            self._router.add(path, FunctionHandler(method))

    def set_application(self, app):
        self.app = app

    @property
    def config(self):
        return self.app.config

    def dispatch(self, uri, args):
        handler, _args = self._router.dispatch(uri, args)
        # Router.dispatch() merged the sub-route arguments into a copy
        args.update(_args)
        return handler
