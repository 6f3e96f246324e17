# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Dependency injection container.

Services are registered under a key (a class or a string) together with a
factory. Factories are called with the resolving container as single
argument, so they can pull their own dependencies::

    container.set_shared(DatabaseConnection, lambda c: DatabaseConnection(
        c.get(Config).get("database")
    ))
    db = container.get(DatabaseConnection)

Aliases map an interface to an implementation::

    container.set_dependencies({Router: MiddlewareRouter})

A class (or a ``path.to.ClassName`` string) that was never registered is
instantiated without arguments.

Request-bound services are registered on a child container created by
:meth:`Container.scope`; lookups fall back to the parent.
"""

import inspect

from appwire import util

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


class DependencyNotFoundError(LookupError):
    """Raised when a key can neither be resolved nor instantiated."""

    def __init__(self, key):
        super().__init__(f"Unresolvable dependency: {_key_name(key)}")
        self.key = key


def _key_name(key):
    if inspect.isclass(key):
        return f"{key.__module__}.{key.__qualname__}"
    return f"{key!r}"


# ========================================================================
# Container
# ========================================================================
class Container:
    def __init__(self, parent=None):
        self.parent = parent
        #: key -> (factory, shared)
        self._factories = {}
        #: key -> target key
        self._aliases = {}
        #: key -> instance (shared services that were already created)
        self._instances = {}

    def __repr__(self):
        kind = "scope" if self.parent else "root"
        return f"{self.__class__.__name__}<{kind}>({len(self._factories)} services)"

    def set(self, key, factory, *, shared=False):
        """Register a factory, called with the container on every get()."""
        if not callable(factory):
            raise TypeError(f"Factory for {_key_name(key)} must be callable")
        self._factories[key] = (factory, shared)
        self._aliases.pop(key, None)
        self._instances.pop(key, None)

    def set_shared(self, key, factory):
        """Register a factory that is called once; the result is cached."""
        self.set(key, factory, shared=True)

    def set_instance(self, key, instance):
        """Register an already created service."""
        self._factories[key] = (None, True)
        self._aliases.pop(key, None)
        self._instances[key] = instance

    def set_dependencies(self, mapping, *, shared=False):
        """Register aliases `{key: target}`.

        If `shared` is true, the target itself is registered as shared
        service, unless it was registered before.
        """
        for key, target in mapping.items():
            self._aliases[key] = target
            self._factories.pop(key, None)
            self._instances.pop(key, None)
            if shared and not self._find_owner(target):
                self.set_shared(target, _make_class_factory(target))

    def set_dependencies_shared(self, mapping):
        self.set_dependencies(mapping, shared=True)

    def scope(self):
        """Return a child container, e.g. for request-bound services."""
        return self.__class__(parent=self)

    def _resolve_alias(self, key):
        seen = set()
        while True:
            container = self
            target = None
            while container is not None:
                if key in container._factories:
                    return key
                if key in container._aliases:
                    target = container._aliases[key]
                    break
                container = container.parent
            if target is None:
                return key
            if target in seen:
                raise ValueError(f"Circular alias for {_key_name(key)}")
            seen.add(key)
            key = target

    def _find_owner(self, key):
        container = self
        while container is not None:
            if key in container._factories:
                return container
            container = container.parent
        return None

    def has(self, key):
        """Return True if `key` is registered (directly or as alias)."""
        key = self._resolve_alias(key)
        return self._find_owner(key) is not None

    def has_instance(self, key):
        """Return True if a shared instance of `key` was already created here."""
        return self._resolve_alias(key) in self._instances

    def get(self, key):
        """Return the service registered for `key`."""
        key = self._resolve_alias(key)
        owner = self._find_owner(key)

        if owner is None:
            factory = _make_class_factory(key, raise_error=False)
            if factory is None:
                raise DependencyNotFoundError(key)
            return factory(self)

        if key in owner._instances:
            return owner._instances[key]

        factory, shared = owner._factories[key]
        if shared:
            # Shared services are built by the container that registered
            # them, so they never capture a narrower scope
            instance = factory(owner)
            owner._instances[key] = instance
            _logger.debug(f"Created shared {_key_name(key)} in {owner}")
            return instance
        return factory(self)

    def dispose(self):
        """Close and forget shared instances created by this container."""
        instances = list(self._instances.values())
        self._instances.clear()
        for key in [k for k, (f, _s) in self._factories.items() if f is None]:
            del self._factories[key]
        for inst in reversed(instances):
            close = getattr(inst, "close", None)
            if callable(close):
                try:
                    close()
                except Exception:
                    _logger.exception(f"Error while closing {inst!r}")


def _make_class_factory(key, *, raise_error=True):
    """Return a factory that instantiates `key` (class or class path)."""
    the_class = key
    if util.is_str(key) and "." in key:
        try:
            the_class = util.dynamic_import_class(key)
        except (ImportError, AttributeError):
            if raise_error:
                raise
            return None
    if not inspect.isclass(the_class):
        if raise_error:
            raise DependencyNotFoundError(key)
        return None

    def factory(_container):
        return the_class()

    return factory
