# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
r"""
::

       _               __      ___
      /_\  _ __ _ __  \ \    / (_)_ _ ___
     / _ \| '_ \ '_ \  \ \/\/ /| | '_/ -_)
    /_/ \_\ .__/ .__/   \_/\_/ |_|_| \___|
          |_|  |_|

Base class of AppWire applications. An application object is passed to the
WSGI server and represents the web application to the outside.

On ``run(mode)``:

    Merge the layered configuration files and initialize logging.

    Create the dependency container and register the process-wide services
    (``dependencies()``).

    Build the route table (``setup_routes()``) and the WSGI middleware stack.

For every request:

    Create a request scope (a child container) and register the
    request-bound services (``request_dependencies()``).

    Pass the request through the WSGI middleware stack to ``execute()``,
    which dispatches it to a handler and persists the session.

    Log the request and dispose the request scope.

Typical WSGI entry point::

    from myapp import MyApp

    application = MyApp(os.path.dirname(__file__)).run("prod")
"""

import inspect
import os
import platform
import sys
import time
from abc import ABC, abstractmethod

from appwire import __version__, util
from appwire.auth.authorisation import Authorisation
from appwire.auth.user_provider import BaseUserProvider, SimpleUserProvider
from appwire.config import Config, check_config, find_config_file, read_config_file
from appwire.container import Container
from appwire.database import DatabaseConnection
from appwire.handler import FunctionHandler
from appwire.mw.wsgi_mw import BaseWsgiMiddleware
from appwire.request import Request
from appwire.response import Response
from appwire.session import Session
from appwire.util import check_python_version, dynamic_import_class

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)

#: Minimal Python version that is supported by AppWire
MIN_PYTHON_VERSION_INFO = (3, 9)

check_python_version(MIN_PYTHON_VERSION_INFO)

MODE_DEV = "dev"
MODE_TEST = "test"
MODE_PROD = "prod"
MODES = (MODE_DEV, MODE_TEST, MODE_PROD)

#: Config layers, loaded in this order from `config_dir`
CONFIG_LAYERS = ("config", "config_{mode}", "local")


# ========================================================================
# BaseApplication
# ========================================================================
class BaseApplication(ABC):
    MODE_DEV = MODE_DEV
    MODE_TEST = MODE_TEST
    MODE_PROD = MODE_PROD

    def __init__(self, root_path=None, *, config_dir=None, config=None):
        self.root_path = os.path.abspath(root_path or os.getcwd())
        if config_dir is None:
            config_dir = os.path.join(self.root_path, "config")
        self.config_dir = config_dir
        self.config_overrides = config

        self.mode = None
        #: `Config` instance (available after `run()`)
        self.config = None
        #: The application container (available after `run()`)
        self.container = None
        self.verbose = 3
        #: The 'outer' WSGI application, i.e. the top of the middleware stack
        self.application = None
        self.middlewares = []

    def __repr__(self):
        return f"{self.__class__.__name__}({self.root_path!r}, mode={self.mode!r})"

    @property
    def is_running(self):
        return self.config is not None

    # --- Bootstrap ----------------------------------------------------------

    def run(self, mode=MODE_DEV):
        """Load configuration and set up the application.

        Returns:
            self, so this can be used as WSGI application.
        """
        if self.is_running:
            raise RuntimeError(f"{self} is already running")
        if mode not in MODES:
            raise ValueError(f"Invalid mode {mode!r}: expected one of {MODES}")
        self.mode = mode

        config = self.get_config()
        check_config(config)

        if util.get_dict_value(config, "logging.enable", None) is not False:
            util.init_logging(config)
        self.verbose = config.get("verbose", 3)

        self.config = Config(config)
        try:
            self.container = self.create_container()
            self.dependencies(self.container)
            self.setup_routes()
            self.check_routes()
            self._build_middleware_stack()
        except Exception:
            self.config = None
            raise

        self._log_startup()
        return self

    def get_config(self):
        """Return the merged configuration dict for the current mode."""
        layers = []
        for name in CONFIG_LAYERS:
            path = find_config_file(self.config_dir, name.format(mode=self.mode))
            if path:
                layers.append(self.load_config(path))
        layers.append(self.config_overrides)
        return Config.from_layers(*layers).as_dict()

    def load_config(self, path):
        """Read one configuration file (YAML or JSON)."""
        return read_config_file(path)

    def create_container(self):
        return Container()

    def dependencies(self, container):
        """Register process-wide services."""
        config = self.config
        container.set_instance(Config, config)
        container.set_instance(Container, container)
        container.set_instance(BaseApplication, self)
        container.set_instance(self.__class__, self)

        if config.has("auth.user_mapping"):
            container.set_shared(
                BaseUserProvider, lambda c: SimpleUserProvider(c.get(Config))
            )

        if config.has("database"):
            # A new connection per get(). Requests share one (see below)
            container.set(
                DatabaseConnection, lambda c: DatabaseConnection(config.get("database"))
            )

    def request_dependencies(self, scope, request):
        """Register request-bound services on the request scope."""
        config = self.config
        scope.set_instance(Request, request)
        scope.set_shared(
            Session,
            lambda c: Session.load(
                request, self.secret, cookie_name=config.get("session.cookie_name")
            ),
        )
        scope.set_shared(
            Authorisation,
            lambda c: Authorisation(
                c.get(Session),
                c.get(BaseUserProvider) if c.has(BaseUserProvider) else None,
            ),
        )
        if config.has("database"):
            scope.set_shared(
                DatabaseConnection, lambda c: DatabaseConnection(config.get("database"))
            )

    @abstractmethod
    def setup_routes(self):
        """Build the route table (called once by `run()`)."""

    def check_routes(self):
        """Raise ValueError if the route table needs missing options."""

    def _build_middleware_stack(self):
        config = self.config.as_dict()
        middleware_stack = config.get("middleware_stack") or []
        mw_list = []

        self.application = self.handle_wsgi

        # The first entry of `middleware_stack` should be called first. Since
        # every app wraps its predecessor, we iterate in reverse order
        for mw in reversed(middleware_stack):
            # Entries may be plain strings, dicts, classes, or instances
            if util.is_basestring(mw):
                app_class = dynamic_import_class(mw)
                app = app_class(self, self.application, config)
            elif type(mw) is dict:
                expand = {"${application}": self.application}
                app = util.dynamic_instantiate_class_from_opts(mw, expand=expand)
            elif inspect.isclass(mw):
                if not issubclass(mw, BaseWsgiMiddleware):
                    raise ValueError(f"Expected BaseWsgiMiddleware subclass: {mw!r}")
                app = mw(self, self.application, config)
            else:
                app = mw

            if not app:
                raise ValueError(f"Could not add middleware {mw!r}")
            if callable(getattr(app, "is_disabled", None)) and app.is_disabled():
                _logger.warning(f"App {app}.is_disabled() returned True: skipping.")
                continue
            mw_list.append(app)
            self.application = app

        # We traversed the stack in reverse order
        self.middlewares = list(reversed(mw_list))

    def _log_startup(self):
        _logger.info(
            f"AppWire/{__version__} Python/{util.PYTHON_VERSION} "
            f"{platform.platform(aliased=True)}"
        )
        if self.verbose >= 4:
            _logger.info(
                f"Default encoding: {sys.getdefaultencoding()!r} "
                f"(file system: {sys.getfilesystemencoding()!r})"
            )
        if self.verbose >= 5:
            _logger.info(
                f"Configuration: {util.purge_passwords(self.config.as_dict())}"
            )
        if self.verbose >= 3:
            _logger.info(f"Application: {self}")
            _logger.info(f"Base URI:    {self.base_uri!r}")
        if self.verbose >= 4:
            _logger.info("Middleware stack:")
            for mw in self.middlewares:
                _logger.info(f"  - {mw}")
        if self.verbose >= 3:
            self.log_routes()

    def log_routes(self):
        """Log the route table (implemented by subclasses)."""

    # --- Accessors ------------------------------------------------------------

    @property
    def secret(self):
        secret = self.config.get("secret")
        if not secret:
            raise ValueError("Missing required option 'secret'.")
        return secret

    @property
    def base_uri(self):
        return self.config.get("base_uri") or "/"

    # --- Request handling -----------------------------------------------------

    @abstractmethod
    def dispatch(self, request):
        """Return (handler, route_args) for a request."""

    def page_404(self, request):
        return Response(
            "404 page not found", status=404, content_type="text/plain; charset=utf-8"
        )

    def get_404_handler(self):
        """Return a handler that renders `page_404()`."""

        def _not_found(request, **_args):
            return self.page_404(request)

        return FunctionHandler(_not_found)

    def execute(self, request):
        """Dispatch `request`, run the handler and persist the session."""
        if request.outside_base:
            _logger.debug(f"{request.uri!r} is outside base_uri {self.base_uri!r}")
            handler, args = self.get_404_handler(), {}
        else:
            handler, args = self.dispatch(request)
        response = handler.handle(request, args)
        if util.is_basestring(response):
            response = Response(response)
        elif not isinstance(response, Response):
            raise TypeError(f"{handler!r} returned {response!r} instead of a Response")

        scope = request.container
        if scope is not None and scope.has_instance(Session):
            scope.get(Session).save(
                response,
                max_age=self.config.get("session.max_age"),
                path=self.config.get("session.path") or "/",
            )
        return response

    def handle_wsgi(self, environ, start_response):
        """The innermost WSGI application, below the middleware stack."""
        request = environ["appwire.request"]
        response = self.execute(request)
        return response.send(start_response, is_head=request.method == "HEAD")

    def __call__(self, environ, start_response):
        if not self.is_running:
            raise RuntimeError(f"{self}.run() must be called first")

        scope = self.container.scope()
        request = Request(environ, base_uri=self.base_uri, app=self, container=scope)
        self.request_dependencies(scope, request)

        environ["appwire.app"] = self
        environ["appwire.request"] = request
        return self._serve(environ, start_response, request, scope)

    def _serve(self, environ, start_response, request, scope):
        start_time = time.time()

        def _start_response_wrapper(status, response_headers, exc_info=None):
            if self.verbose >= 3:
                extra = []
                if environ.get("CONTENT_LENGTH", "") != "":
                    extra.append(f"length={environ.get('CONTENT_LENGTH')}")
                if self.verbose >= 4 and "HTTP_USER_AGENT" in environ:
                    extra.append(f'agent="{environ.get("HTTP_USER_AGENT")}"')
                extra.append(f"elap={time.time() - start_time:.3f}sec")
                extra = ", ".join(extra)
                _logger.info(
                    '{addr} - [{time}] "{method} {path}" {extra} -> {status}'.format(
                        addr=environ.get("REMOTE_ADDR", ""),
                        time=util.get_log_time(),
                        method=request.method,
                        path=request.uri,
                        extra=extra,
                        status=status,
                    )
                )
            return start_response(status, response_headers, exc_info)

        try:
            app_iter = self.application(environ, _start_response_wrapper)
            try:
                yield from app_iter
            finally:
                if hasattr(app_iter, "close"):
                    app_iter.close()
        finally:
            scope.dispose()
