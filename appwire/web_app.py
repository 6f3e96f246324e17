# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Web application: a :class:`~appwire.router_app.RouterApplication` with an
HTML 404 page and the ``auth`` route middleware.

The 404 page is rendered from the Jinja2 template ``404.html``, which is
looked up in ``web.templates_path`` (default: the ``templates`` folder of
this package). The template receives ``uri``, ``request`` and ``version``.
"""

import os

from jinja2 import Environment, FileSystemLoader, select_autoescape

from appwire import util
from appwire.auth.wiring import AUTH_MIDDLEWARE_NAME, AuthorisationWiring
from appwire.http_error import HTTP_NOT_FOUND
from appwire.mw.authorised import AuthorisedMiddleware
from appwire.response import Response
from appwire.router_app import RouterApplication

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)

DEFAULT_TEMPLATES_PATH = os.path.join(os.path.dirname(__file__), "templates")


# ========================================================================
# WebApplication
# ========================================================================
class WebApplication(AuthorisationWiring, RouterApplication):
    def __init__(self, root_path=None, *, config_dir=None, config=None):
        super().__init__(root_path, config_dir=config_dir, config=config)
        self.template_env = None

    def dependencies(self, container):
        super().dependencies(container)
        self.auth_dependencies(container)

        templates_path = util.fix_path(
            self.config.get("web.templates_path"), self.root_path, must_exist=False
        )
        if not templates_path:
            templates_path = DEFAULT_TEMPLATES_PATH
        if not os.path.isdir(templates_path):
            raise ValueError(f"Invalid web.templates_path {templates_path!r}")

        # Prepare a Jinja2 environment
        templateLoader = FileSystemLoader(searchpath=templates_path)
        self.template_env = Environment(
            loader=templateLoader, autoescape=select_autoescape()
        )

    def get_middlewares(self):
        middlewares = super().get_middlewares()
        middlewares.setdefault(AUTH_MIDDLEWARE_NAME, AuthorisedMiddleware)
        return middlewares

    def render_template(self, name, **context):
        return self.template_env.get_template(name).render(**context)

    def page_404(self, request):
        html = self.render_template(
            "404.html", uri=request.uri, request=request, version=util.public_appwire_info
        )
        return Response(html, status=HTTP_NOT_FOUND)
