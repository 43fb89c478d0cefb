"""Custom exceptions for clientwire."""

from __future__ import annotations


class ClientWireError(Exception):
    """Base exception for all clientwire errors."""

    pass


class ConfigurationError(ClientWireError):
    """Raised when configuration is invalid or missing."""

    pass


class InvalidStateError(ClientWireError):
    """Raised when a component is asked to do something its state does not allow."""

    pass


class NoSuchSslBundleError(ClientWireError, KeyError):
    """Raised when an SSL bundle name is not registered."""

    def __init__(self, bundle_name: str, message: str | None = None) -> None:
        super().__init__(message or f"SSL bundle name '{bundle_name}' cannot be found")
        self.bundle_name = bundle_name

    def __str__(self) -> str:
        # KeyError would otherwise quote the message.
        return str(self.args[0])


class NoSuchClientError(ClientWireError):
    """Raised when no registered client matches a requested type or name."""

    pass


class NoUniqueClientError(NoSuchClientError):
    """Raised when more than one registered client matches a requested type."""

    def __init__(self, client_type: type, names: list[str]) -> None:
        super().__init__(
            f"Expected a single client of type '{client_type.__name__}' "
            f"but found {len(names)}: {', '.join(names)}"
        )
        self.client_type = client_type
        self.names = names


class DuplicateClientError(ClientWireError):
    """Raised when a client is registered under a name that is already taken."""

    pass


class KafkaAdminError(ClientWireError):
    """Raised when the Kafka admin cannot reach the cluster or create topics."""

    pass


class TransactionError(ClientWireError):
    """Raised when a Kafka transaction cannot be started, committed or aborted."""

    pass
