# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Abstract base class for WSGI middlewares (optional use).
"""

from abc import ABC, abstractmethod

from appwire.util import NO_DEFAULT, get_dict_value

__docformat__ = "reStructuredText"


class BaseWsgiMiddleware(ABC):
    """Abstract base class for entries of the ``middleware_stack`` option.

    Note: this is a convenience class. Any object that implements the WSGI
    specification can be added to the stack.

    Derived classes in AppWire include::

        appwire.mw.error_printer.ErrorPrinter
    """

    def __init__(self, app, next_app, config):
        self.app = app
        self.next_app = next_app
        self.config = config
        self.verbose = config.get("verbose", 3)

    @abstractmethod
    def __call__(self, environ, start_response):
        raise NotImplementedError

    def __repr__(self):
        return f"{self.__module__}.{self.__class__.__name__}"

    def is_disabled(self):
        """Optionally return True to skip this module on startup."""
        return False

    def get_config(self, key_path: str, default=NO_DEFAULT):
        """Return a (dotted) option from the application configuration."""
        return get_dict_value(self.config, key_path, default)
