# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Authorisation wiring shared by `Application` and `WebApplication`.

Binds the route middleware name ``auth`` to an
:class:`~appwire.mw.authorised.AuthorisedMiddleware` that redirects
unauthorised requests to ``auth.uri_sign_in``::

    routes:
        /sign-in: "myapp.handlers.SignIn"
        /account: ["auth", "myapp.handlers.Account"]
"""

from appwire.handler import redirect_uri_handler
from appwire.mw.authorised import AuthorisedMiddleware

__docformat__ = "reStructuredText"

#: Route middleware name of the authorisation check
AUTH_MIDDLEWARE_NAME = "auth"


class AuthorisationWiring:
    """Mixin for application classes."""

    def get_unauthorised_handler(self):
        """Return the handler for requests that fail the ``auth`` check."""
        return redirect_uri_handler(self.config.get("auth.uri_sign_in"))

    def auth_dependencies(self, container):
        container.set_shared(
            AuthorisedMiddleware,
            lambda c: AuthorisedMiddleware(self.get_unauthorised_handler()),
        )

    def check_routes(self):
        """The ``auth`` middleware stores the user in the session, which needs
        a ``secret``.
        """
        super().check_routes()
        if self.container.has_instance(AuthorisedMiddleware) and not self.config.get(
            "secret"
        ):
            raise ValueError(
                "Missing required option 'secret' (used by the "
                f"{AUTH_MIDDLEWARE_NAME!r} route middleware)."
            )
