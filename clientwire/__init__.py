"""clientwire: Kafka and MongoDB client wiring from externalized configuration."""

from .bootstrap import close_clients, configure_clients
from .configuration import ServiceConfiguration, ensure_runtime_configuration, get_service_configuration
from .context import AssemblyStep, ClientRegistry

__version__ = "0.1.0"

__all__ = [
    "AssemblyStep",
    "ClientRegistry",
    "ServiceConfiguration",
    "close_clients",
    "configure_clients",
    "ensure_runtime_configuration",
    "get_service_configuration",
]
