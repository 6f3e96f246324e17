# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
User providers look up users for :class:`~appwire.auth.authorisation.Authorisation`.

Users are opaque objects for the rest of the framework. A provider must be
able to load a user by id (the id is stored in the session), find a user by
the login name that was entered, and verify a password.

:class:`SimpleUserProvider` reads users from the configuration::

    auth:
        user_mapping:
            "admin":
                password: "YouNeverGuessMe"
                roles: ["admin"]
            "joe":
                password: "DontGuessMeEither"

Note that the simple provider stores plain text passwords. It is meant for
tests and small installations.
"""

import hmac
from abc import ABC, abstractmethod

from appwire import util

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


class BaseUserProvider(ABC):
    @abstractmethod
    def get_user(self, user_id):
        """Return the user for a stored id (None if it does not exist)."""
        raise NotImplementedError

    @abstractmethod
    def find_user(self, login):
        """Return the user for a login name (None if it does not exist)."""
        raise NotImplementedError

    @abstractmethod
    def check_password(self, user, password) -> bool:
        raise NotImplementedError

    def get_user_id(self, user):
        """Return a JSON serializable id for `user`."""
        return user["id"]

    def get_roles(self, user):
        """Return the list of roles of `user`."""
        return []

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class SimpleUserProvider(BaseUserProvider):
    """Users from the ``auth.user_mapping`` option."""

    def __init__(self, config):
        user_map = config.get("auth.user_mapping")
        if user_map is None:
            raise RuntimeError("Missing option: auth.user_mapping")
        if not isinstance(user_map, dict):
            raise RuntimeError("Invalid option: auth.user_mapping must be a dict")

        self.users = {}
        for login, data in user_map.items():
            if not isinstance(data, dict) or "password" not in data:
                raise RuntimeError(
                    f"Invalid option: auth.user_mapping[{login!r}]: "
                    "must be a dict with a 'password' entry."
                )
            self.users[login] = {
                "id": login,
                "login": login,
                "password": data["password"],
                "roles": util.to_list(data.get("roles")),
            }

    def __repr__(self):
        return f"{self.__class__.__name__}({len(self.users)} users)"

    def get_user(self, user_id):
        return self.users.get(user_id)

    def find_user(self, login):
        return self.users.get(login)

    def check_password(self, user, password):
        return hmac.compare_digest(
            util.to_bytes(user["password"]), util.to_bytes(password or "")
        )

    def get_roles(self, user):
        return user["roles"]
