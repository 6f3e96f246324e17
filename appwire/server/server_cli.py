"""
server_cli
==========

:Copyright: Licensed under the MIT license, see LICENSE file in this package.

Standalone server that runs an AppWire application.

These tasks are performed:

    - Import the application class (``--app=path.to.AppClass``).
    - Instantiate it for the application root folder (``--root``) and call
      ``run(mode)``, which reads ``<root>/config/config.yaml``,
      ``config_<mode>.yaml`` and ``local.yaml``.
    - Start a WSGI server for the application object.

Command line options override the configuration files:

    ``--host`` option overrides ``host`` setting.

    ``--port`` option overrides ``port`` setting.

    ``--server`` option overrides ``server`` setting.

    ``-v`` and ``-q`` options override ``verbose`` setting.
"""

import argparse
import logging
import os
import platform
import sys
import webbrowser
from threading import Timer

from appwire import __version__, util
from appwire.base_app import MODE_DEV, MODES, BaseApplication
from appwire.default_conf import DEFAULT_VERBOSE

__docformat__ = "reStructuredText"

#: Used if no --app=... option is specified
DEFAULT_APP_CLASS = "appwire.web_app.WebApplication"

_logger = logging.getLogger("appwire")


class FullExpandedPath(argparse.Action):
    """Expand user- and relative-paths"""

    def __call__(self, parser, namespace, values, option_string=None):
        new_val = os.path.abspath(os.path.expanduser(values))
        setattr(namespace, self.dest, new_val)


def _init_command_line_options(args=None):
    """Parse command line options into a dictionary."""
    description = """\

Run an AppWire web application.

Examples:

  Serve the application in the current folder (uses ./config/config.yaml):
    appwire --app=myapp.app.MyApp

  Run in production mode, public on port 80:
    appwire --app=myapp.app.MyApp --root=/srv/myapp --mode=prod --host=0.0.0.0 --port=80
  """

    epilog = """\
Licensed under the MIT license.
"""

    parser = argparse.ArgumentParser(
        prog="appwire",
        description=description,
        epilog=epilog,
        allow_abbrev=False,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "--app",
        dest="app_class",
        default=DEFAULT_APP_CLASS,
        help="application class (default: %(default)s)",
    )
    parser.add_argument(
        "-r",
        "--root",
        dest="root_path",
        action=FullExpandedPath,
        help="application root folder (default: current directory)",
    )
    parser.add_argument(
        "--config-dir",
        action=FullExpandedPath,
        help="folder that contains the configuration files (default: <root>/config)",
    )
    parser.add_argument(
        "--mode",
        choices=MODES,
        default=MODE_DEV,
        help="selects config_<mode>.yaml (default: %(default)s)",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        help="port to serve on (default: 8080)",
    )
    parser.add_argument(
        "-H",  # '-h' conflicts with --help
        "--host",
        help=(
            "host to serve from (default: localhost). 'localhost' is only "
            "accessible from the local computer. Use 0.0.0.0 to make your "
            "application public"
        ),
    )
    parser.add_argument(
        "--server",
        choices=SUPPORTED_SERVERS.keys(),
        help="type of pre-installed WSGI server to use (default: cheroot).",
    )

    qv_group = parser.add_mutually_exclusive_group()
    qv_group.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=DEFAULT_VERBOSE,
        help="increment verbosity by one (default: %(default)s, range: 0..5)",
    )
    qv_group.add_argument(
        "-q", "--quiet", default=0, action="count", help="decrement verbosity by one"
    )

    parser.add_argument(
        "--browse",
        action="store_true",
        help="open browser on start",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="print version info and exit (may be combined with --verbose)",
    )

    args = parser.parse_args(args)

    args.verbose -= args.quiet
    del args.quiet

    if args.root_path and not os.path.isdir(args.root_path):
        parser.error(f"{args.root_path} is not a directory")

    if args.version:
        if args.verbose >= 4:
            version_info = "AppWire/{} {}/{}({} bit) {}".format(
                __version__,
                platform.python_implementation(),
                util.PYTHON_VERSION,
                "64" if sys.maxsize > 2**32 else "32",
                platform.platform(aliased=True),
            )
            version_info += f"\nPython from: {sys.executable}"
        else:
            version_info = f"{__version__}"
        print(version_info)
        sys.exit()

    cmdLineOpts = args.__dict__.copy()
    if args.verbose >= 5:
        print("Command line args:")
        for k, v in cmdLineOpts.items():
            print(f"    {k:>12}: {v}")
    return cmdLineOpts, parser


def _get_config_overrides(cli_opts):
    """Return the options that are passed on the command line."""
    overrides = {}
    if cli_opts.get("port"):
        overrides["port"] = cli_opts["port"]
    if cli_opts.get("host"):
        overrides["host"] = cli_opts["host"]
    if cli_opts.get("server") is not None:
        overrides["server"] = cli_opts["server"]
    # Command line overrides file only if -v or -q where passed:
    if cli_opts.get("verbose", DEFAULT_VERBOSE) != DEFAULT_VERBOSE:
        overrides["verbose"] = cli_opts["verbose"]
    return overrides


def create_app(cli_opts):
    """Instantiate the application class and call `run(mode)`."""
    app_class = util.dynamic_import_class(cli_opts["app_class"])
    if not (isinstance(app_class, type) and issubclass(app_class, BaseApplication)):
        raise ValueError(f"{cli_opts['app_class']} is not a BaseApplication subclass")

    app = app_class(
        cli_opts.get("root_path"),
        config_dir=cli_opts.get("config_dir"),
        config=_get_config_overrides(cli_opts),
    )
    return app.run(cli_opts.get("mode") or MODE_DEV)


def _get_url(config):
    return f"http://{config['host']}:{config['port']}"


def _run_cheroot(app, config, _server):
    """Run the application using cheroot.server (https://cheroot.cherrypy.dev/)."""
    try:
        from cheroot import wsgi
    except ImportError:
        _logger.exception("Could not import Cheroot (https://cheroot.cherrypy.dev/).")
        _logger.error("Try `pip install cheroot`.")
        return False

    version = f"{util.public_appwire_info} {wsgi.Server.version}"

    _logger.info(f"Running {version}")
    _logger.info(f"Serving on {_get_url(config)} ...")

    server_args = {
        "bind_addr": (config["host"], config["port"]),
        "wsgi_app": app,
        "server_name": version,
        "numthreads": 10,
    }
    # Override or add custom args
    custom_args = util.get_dict_value(config, "server_args", as_dict=True)
    server_args.update(custom_args)

    server = wsgi.Server(**server_args)
    try:
        server.start()
    except KeyboardInterrupt:
        _logger.warning("Caught Ctrl-C, shutting down...")
    finally:
        server.stop()
    return True


def _run_wsgiref(app, config, _server):
    """Run the application using wsgiref.simple_server (https://docs.python.org/3/library/wsgiref.html)."""
    from wsgiref.simple_server import WSGIRequestHandler, make_server

    version = WSGIRequestHandler.server_version
    version = f"{util.public_appwire_info} {version}"
    _logger.info(f"Running {version} ...")

    _logger.warning(
        "WARNING: This single threaded server (wsgiref) is not meant for production."
    )
    WSGIRequestHandler.server_version = version
    httpd = make_server(config["host"], config["port"], app)
    _logger.info(f"Serving on {_get_url(config)} ...")
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        _logger.warning("Caught Ctrl-C, shutting down...")
    finally:
        httpd.server_close()
    return True


SUPPORTED_SERVERS = {
    "cheroot": _run_cheroot,
    "wsgiref": _run_wsgiref,
}


def run(args=None):
    cli_opts, parser = _init_command_line_options(args)

    try:
        app = create_app(cli_opts)
    except (ImportError, AttributeError, ValueError) as e:
        parser.error(f"Could not start application: {e}")

    config = app.config.as_dict()
    server = config["server"]
    handler = SUPPORTED_SERVERS.get(server)
    if not handler:
        raise RuntimeError(
            "Unsupported server type {!r} (expected {!r})".format(
                server, "', '".join(SUPPORTED_SERVERS.keys())
            )
        )

    if cli_opts["browse"]:
        BROWSE_DELAY = 2.0

        def _worker():
            url = _get_url(config).replace("0.0.0.0", "127.0.0.1")
            _logger.info(f"Starting browser on {url} ...")
            webbrowser.open(url)

        Timer(BROWSE_DELAY, _worker).start()

    return handler(app, config, server)


if __name__ == "__main__":
    run()
