# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Route middleware that only lets authorised users pass.
"""

from appwire import util
from appwire.auth.authorisation import Authorisation
from appwire.mw.base_mw import BaseMiddleware

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


class AuthorisedMiddleware(BaseMiddleware):
    """Short-circuit with `unauthorised_handler` unless the user is signed in.

    The request's authorisation is looked up in the request scope under
    `auth_key`.
    """

    def __init__(self, unauthorised_handler, auth_key=Authorisation):
        self.unauthorised_handler = unauthorised_handler
        self.auth_key = auth_key

    def process(self, request, args, next_handler):
        auth = request.get(self.auth_key)
        if auth.is_authorised:
            return next_handler.handle(request, args)
        _logger.info(f"Unauthorised request for {request.uri!r}")
        return self.unauthorised_handler.handle(request, args)
