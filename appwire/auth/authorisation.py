# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Per-request authorisation state.

The id of the signed in user is stored in the session under
``SESSION_KEY``; the user object itself is loaded from the user provider
when it is first needed.
"""

from appwire import util

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)

SESSION_KEY = "auth.user_id"


# ========================================================================
# Authorisation
# ========================================================================
class Authorisation:
    def __init__(self, session, user_provider=None):
        self.session = session
        self.user_provider = user_provider
        self._user = None
        self._loaded = False

    def __repr__(self):
        return f"Authorisation(user_id={self.user_id!r})"

    @property
    def user_id(self):
        return self.session.get(SESSION_KEY)

    @property
    def user(self):
        """The signed in user (None if not authorised)."""
        if not self._loaded:
            self._loaded = True
            user_id = self.user_id
            if user_id is not None and self.user_provider is not None:
                self._user = self.user_provider.get_user(user_id)
                if self._user is None:
                    _logger.warning(f"Session references unknown user {user_id!r}")
                    self.session.remove(SESSION_KEY)
        return self._user

    @property
    def is_authorised(self):
        return self.user is not None

    def has_role(self, role):
        user = self.user
        if user is None:
            return False
        return role in self.user_provider.get_roles(user)

    def authorise(self, user):
        """Sign in `user` without checking a password."""
        if self.user_provider is None:
            raise RuntimeError("Cannot authorise users without a user provider")
        self.session.set(SESSION_KEY, self.user_provider.get_user_id(user))
        self._user = user
        self._loaded = True

    def sign_in(self, login, password):
        """Return True and authorise the user if the credentials are valid."""
        if self.user_provider is None:
            return False
        user = self.user_provider.find_user(login)
        if user is None or not self.user_provider.check_password(user, password):
            _logger.info(f"Failed sign in for {login!r}")
            return False
        self.authorise(user)
        _logger.info(f"Signed in {login!r}")
        return True

    def sign_out(self):
        self.session.remove(SESSION_KEY)
        self._user = None
        self._loaded = True
