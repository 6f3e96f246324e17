# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Default configuration.
"""

from appwire.mw.error_printer import ErrorPrinter

__docformat__ = "reStructuredText"

# Use these settings, if config files do not define them (or are totally missing)
DEFAULT_VERBOSE = 3
DEFAULT_LOGGER_DATE_FORMAT = "%H:%M:%S"
DEFAULT_LOGGER_FORMAT = "%(asctime)s.%(msecs)03d - %(levelname)-8s: %(message)s"

DEFAULT_CONFIG = {
    #: Options used by the `appwire` command line server
    "server": "cheroot",
    "server_args": {},
    "host": "localhost",
    "port": 8080,
    #: Used to sign session cookies (required when sessions are used)
    "secret": None,
    #: Application root, e.g. <base_uri>/<route>
    "base_uri": "/",
    #: Connection parameters for `DatabaseConnection`, e.g.
    #: ``{"driver": "sqlite3", "database": "app.db"}``. None: no database.
    "database": None,
    #: Route table: {<path>: <handler> | [<middlewares>, <handler>] | {...}}
    "routes": {},
    #: Route middleware bindings: {<name>: <path.to.MiddlewareClass>}
    "middlewares": {},
    #: WSGI middlewares wrapped around the application (first is outermost)
    "middleware_stack": [
        ErrorPrinter,
    ],
    "error_printer": {
        "enable": True,
    },
    "session": {
        "cookie_name": "session",
        "max_age": None,  # None: session cookie is dropped when the browser closes
        "path": "/",
    },
    "auth": {
        #: Unauthorised requests are redirected here
        "uri_sign_in": "/sign-in",
        #: Used by SimpleUserProvider only:
        #: {<login>: {"password": <password>, "roles": [<role>, ...]}}
        "user_mapping": None,
    },
    #: Options for `WebApplication`
    "web": {
        #: Folder that contains 404.html. Default: the package's templates
        "templates_path": None,
    },
    #: Verbose Output
    #: 0 - no output
    #: 1 - no output (excepting application exceptions)
    #: 2 - show warnings
    #: 3 - show single line request summaries (for HTTP logging)
    #: 4 - show additional events
    #: 5 - show full configuration on startup
    "verbose": DEFAULT_VERBOSE,
    #: Log options
    "logging": {
        "enable": None,  # False: don't touch the 'appwire' logger
        "logger_date_format": DEFAULT_LOGGER_DATE_FORMAT,
        "logger_format": DEFAULT_LOGGER_FORMAT,
        "enable_loggers": [],
    },
}
