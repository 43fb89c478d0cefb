"""SSL bundle definitions and the registry that resolves them by name."""

from .bundle import PemSslStoreDetails, SslBundle, SslBundleKey, SslOptions, SslStoreBundle
from .properties import PemBundleProperties, SslProperties, build_ssl_bundles
from .registry import DefaultSslBundleRegistry, SslBundles

__all__ = [
    "DefaultSslBundleRegistry",
    "PemBundleProperties",
    "PemSslStoreDetails",
    "SslBundle",
    "SslBundleKey",
    "SslBundles",
    "SslOptions",
    "SslProperties",
    "SslStoreBundle",
    "build_ssl_bundles",
]
