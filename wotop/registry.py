"""Registration of use cases keyed by the package that defines them."""

from __future__ import annotations

from typing import Any


class UsecaseNotRegisteredError(LookupError):
    """Raised when no use case is registered for a package."""

    def __init__(self, package: str) -> None:
        self.package = package
        super().__init__(
            f'usecase with package "{package}" is not registered yet in application'
        )


def package_of(obj: Any) -> str:
    """Return the short name of the package that defines obj (or its class)."""
    cls = obj if isinstance(obj, type) else type(obj)
    module = cls.__module__
    package, _, _ = module.rpartition(".")
    if not package:
        return module
    return package.rpartition(".")[2]


class UsecaseRegistry:
    """Holds one use case per package, used by controllers, consumers and services."""

    def __init__(self) -> None:
        self._usecases: dict[str, Any] = {}

    def add_usecase(self, *args: Any) -> None:
        """Register each given use case under its package; later ones replace earlier."""
        for usecase in args:
            self._usecases[package_of(usecase)] = usecase

    def get_usecase(self, usecase_type: Any) -> Any:
        """Return the use case registered for the package of usecase_type."""
        package = package_of(usecase_type)
        try:
            return self._usecases[package]
        except KeyError:
            raise UsecaseNotRegisteredError(package) from None