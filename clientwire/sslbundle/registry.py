"""Registry resolving SSL bundles by name."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..exceptions import ConfigurationError, NoSuchSslBundleError
from .bundle import SslBundle


@runtime_checkable
class SslBundles(Protocol):
    """Read access to named SSL bundles."""

    def get_bundle(self, name: str) -> SslBundle: ...

    @property
    def bundle_names(self) -> list[str]: ...


class DefaultSslBundleRegistry:
    """In-memory bundle registry populated at startup."""

    def __init__(self, bundles: dict[str, SslBundle] | None = None) -> None:
        self._bundles: dict[str, SslBundle] = {}
        for name, bundle in (bundles or {}).items():
            self.register_bundle(name, bundle)

    def register_bundle(self, name: str, bundle: SslBundle) -> None:
        """Register ``bundle`` under ``name``.

        Raises:
            ConfigurationError: If the name is blank or already registered.
        """

        if not name or not name.strip():
            raise ConfigurationError("SSL bundle names must be non-empty")
        if name in self._bundles:
            raise ConfigurationError(f"Cannot replace existing SSL bundle '{name}'")
        self._bundles[name] = bundle

    def get_bundle(self, name: str) -> SslBundle:
        """Return the bundle registered under ``name``.

        Raises:
            NoSuchSslBundleError: If no bundle has that name.
        """

        try:
            return self._bundles[name]
        except KeyError:
            raise NoSuchSslBundleError(name) from None

    @property
    def bundle_names(self) -> list[str]:
        return sorted(self._bundles)

    def __contains__(self, name: object) -> bool:
        return name in self._bundles

    def __len__(self) -> int:
        return len(self._bundles)
