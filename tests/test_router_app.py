# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Unit tests for appwire.router_app.RouterApplication and
appwire.web_app.WebApplication (using webtest.TestApp).
"""

import os
import shutil
import sys
import tempfile
import unittest

import pytest

from appwire.middleware_router import MiddlewareRouter
from appwire.mw.authorised import AuthorisedMiddleware
from appwire.mw.base_mw import BaseMiddleware
from appwire.mw.chain import UnregisteredMiddlewareError
from appwire.response import Response
from appwire.router import Router
from appwire.router_app import RouterApplication
from appwire.web_app import WebApplication

try:
    import webtest
except ImportError:
    print("*" * 70, file=sys.stderr)
    print("Could not import webtest.TestApp: some tests will fail.", file=sys.stderr)
    print("Try 'pip install WebTest' to run these tests.", file=sys.stderr)
    print("*" * 70, file=sys.stderr)
    raise pytest.skip(
        "Skip tests that require WebTest", allow_module_level=True
    ) from None


class PoweredBy(BaseMiddleware):
    """Add an X-Powered-By header to the response."""

    def process(self, request, args, next_handler):
        res = next_handler.handle(request, args)
        res.set_header("X-Powered-By", "AppWire")
        return res


class DenyAll(BaseMiddleware):
    def process(self, request, args, next_handler):
        return Response("denied", status=403)


def sign_in(request):
    if request.method == "POST":
        if request.auth.sign_in(request.form.get("login"), request.form.get("password")):
            return Response.redirect("/account")
        return Response("Invalid credentials", status=401)
    return Response("Please sign in")


def account(request):
    return Response(f"Welcome {request.auth.user_id}")


_BASE_CONFIG = {
    "verbose": 1,
    "logging": {"enable": False},
    "middlewares": {
        "powered": "tests.test_router_app.PoweredBy",
        "deny": "tests.test_router_app.DenyAll",
    },
    "routes": {
        "/": "tests.test_router.Hello",
        "/powered": ["powered", "tests.test_router.Hello"],
        "/denied": {"middlewares": ["powered", "deny"], "handler": "tests.test_router.Hello"},
        "/users": ["powered", "tests.test_router.UserController"],
        "/prefix": "tests.test_router.PrefixDispatcher",
    },
}


# ========================================================================
# RouterApplicationTest
# ========================================================================


class RouterApplicationTest(unittest.TestCase):
    def setUp(self):
        self.root_path = tempfile.mkdtemp(prefix="appwire-test-")

    def tearDown(self):
        shutil.rmtree(self.root_path, ignore_errors=True)

    def _make_app(self, app_class=RouterApplication, **config):
        conf = dict(_BASE_CONFIG)
        conf.update(config)
        return app_class(self.root_path, config=conf).run("test")

    def testPreconditions(self):
        """Environment must be set."""
        self.assertTrue(
            __debug__, "__debug__ must be True, otherwise asserts are ignored"
        )

    def testRouterService(self):
        wsgi_app = self._make_app()
        router = wsgi_app.container.get(Router)
        assert isinstance(router, MiddlewareRouter)
        assert router is wsgi_app.router
        assert router is wsgi_app.container.get(MiddlewareRouter)
        assert isinstance(router.get_middleware("powered"), PoweredBy)
        # RouterApplication has no 'auth' binding
        self.assertRaises(UnregisteredMiddlewareError, router.get_middleware, "auth")

    def testConfiguredRoutes(self):
        app = webtest.TestApp(self._make_app())

        res = app.get("/", status=200)
        assert res.text == "hello"
        assert "X-Powered-By" not in res.headers

        res = app.get("/powered", status=200)
        assert res.text == "hello"
        assert res.headers["X-Powered-By"] == "AppWire"

        res = app.get("/denied", status=403)
        assert res.text == "denied"
        assert res.headers["X-Powered-By"] == "AppWire"

        res = app.get("/users/42/posts/7", status=200)
        assert res.text == "user 42 post 7"
        assert res.headers["X-Powered-By"] == "AppWire"
        assert app.get("/users").text == "users"

        assert app.get("/prefix/info").text == "info"
        app.get("/prefix/other", status=404)

        res = app.get("/nope", status=404)
        assert res.text == "404 page not found"
        assert res.content_type == "text/plain"

    def testUnregisteredMiddleware(self):
        routes = {"/": ["auth", "tests.test_router.Hello"]}
        app = RouterApplication(
            self.root_path,
            config={"logging": {"enable": False}, "routes": routes},
        )
        self.assertRaises(UnregisteredMiddlewareError, app.run)
        assert not app.is_running

    def testDuplicateRoute(self):
        class DuplicateApp(RouterApplication):
            def get_routes(self):
                routes = super().get_routes()
                routes = dict(routes)
                routes["/users/"] = "tests.test_router.Hello"
                return routes

        self.assertRaises(ValueError, self._make_app, DuplicateApp)


# ========================================================================
# WebApplicationTest
# ========================================================================


class WebApplicationTest(unittest.TestCase):
    def setUp(self):
        self.root_path = tempfile.mkdtemp(prefix="appwire-test-")

    def tearDown(self):
        shutil.rmtree(self.root_path, ignore_errors=True)

    def _make_app(self, **config):
        class DemoWebApp(WebApplication):
            def get_routes(self):
                routes = dict(super().get_routes())
                routes["/sign-in"] = sign_in
                routes["/account"] = ("auth", account)
                return routes

        conf = dict(_BASE_CONFIG)
        conf.update(
            {
                "secret": "s3cr3t",
                "auth": {
                    "uri_sign_in": "/sign-in",
                    "user_mapping": {"joe": {"password": "secret"}},
                },
            }
        )
        conf.update(config)
        return DemoWebApp(self.root_path, config=conf).run("test")

    def testNotFoundPage(self):
        app = webtest.TestApp(self._make_app())
        res = app.get("/no/such/<page>", status=404)
        assert res.content_type == "text/html"
        assert "404 page not found" in res.text
        # The uri is escaped
        assert "/no/such/&lt;page&gt;" in res.text
        assert "AppWire/" in res.text

    def testCustomTemplates(self):
        templates_path = os.path.join(self.root_path, "my_templates")
        os.mkdir(templates_path)
        with open(os.path.join(templates_path, "404.html"), "w") as fp:
            fp.write("Nothing at {{ uri }} ({{ request.method }})")

        app = webtest.TestApp(self._make_app(web={"templates_path": "my_templates"}))
        res = app.get("/missing", status=404)
        assert res.text == "Nothing at /missing (GET)"

        self.assertRaises(
            ValueError, self._make_app, web={"templates_path": "no_such_folder"}
        )

    def testAuth(self):
        wsgi_app = self._make_app()
        assert isinstance(wsgi_app.router.get_middleware("auth"), AuthorisedMiddleware)

        app = webtest.TestApp(wsgi_app)
        res = app.get("/account", status=302)
        assert res.headers["Location"] == "/sign-in"

        app.post("/sign-in", {"login": "joe", "password": "wrong"}, status=401)
        app.post("/sign-in", {"login": "joe", "password": "secret"}, status=302)
        res = app.get("/account", status=200)
        assert res.text == "Welcome joe"

    def testMiddlewareOverride(self):
        # A configured 'auth' binding replaces the default
        middlewares = dict(_BASE_CONFIG["middlewares"])
        middlewares["auth"] = "tests.test_router_app.DenyAll"
        app = webtest.TestApp(self._make_app(middlewares=middlewares))
        res = app.get("/account", status=403)
        assert res.text == "denied"


if __name__ == "__main__":
    unittest.main()
