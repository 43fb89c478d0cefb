"""Client registry and the ordered assembly steps that populate it."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from .exceptions import DuplicateClientError, NoSuchClientError, NoUniqueClientError
from .ordering import sort_by_order
from .utils.logging import log_assembly_step, setup_logger

logger = setup_logger(__name__, context={"component": "ClientRegistry"})

T = TypeVar("T")


class ClientRegistry:
    """Named registry of constructed clients and collaborator objects.

    The embedding application registers its own objects first; assembly steps
    then add defaults only for the types that are still missing.
    """

    def __init__(self) -> None:
        self._clients: dict[str, Any] = {}

    def register(self, name: str, client: Any) -> Any:
        """Register ``client`` under ``name`` and return it.

        Raises:
            DuplicateClientError: If ``name`` is already registered.
        """

        if name in self._clients:
            raise DuplicateClientError(f"A client named '{name}' is already registered")
        self._clients[name] = client
        return client

    def get(self, name: str) -> Any:
        try:
            return self._clients[name]
        except KeyError:
            raise NoSuchClientError(f"No client named '{name}' is registered") from None

    def names_for_type(self, client_type: type) -> list[str]:
        return [name for name, client in self._clients.items() if isinstance(client, client_type)]

    def contains(self, client_type: type) -> bool:
        """Return True when at least one registered client is a ``client_type``."""

        return any(isinstance(client, client_type) for client in self._clients.values())

    def candidates(self, client_type: type[T]) -> list[T]:
        return [client for client in self._clients.values() if isinstance(client, client_type)]

    def get_by_type(self, client_type: type[T]) -> T:
        """Return the single client of ``client_type``.

        Raises:
            NoSuchClientError: If none is registered.
            NoUniqueClientError: If more than one is registered.
        """

        names = self.names_for_type(client_type)
        if not names:
            raise NoSuchClientError(f"No client of type '{client_type.__name__}' is registered")
        if len(names) > 1:
            raise NoUniqueClientError(client_type, names)
        return self._clients[names[0]]

    def get_if_unique(self, client_type: type[T]) -> T | None:
        """Return the client of ``client_type`` when exactly one is registered."""

        candidates = self.candidates(client_type)
        return candidates[0] if len(candidates) == 1 else None

    def ordered(self, client_type: type[T]) -> list[T]:
        """Return all clients of ``client_type`` sorted by their ``order``."""

        return sort_by_order(self.candidates(client_type))

    def __contains__(self, name: object) -> bool:
        return name in self._clients

    def __iter__(self) -> Iterator[str]:
        return iter(self._clients)

    def __len__(self) -> int:
        return len(self._clients)

    def items(self) -> list[tuple[str, Any]]:
        return list(self._clients.items())


def missing(client_type: type) -> Callable[[ClientRegistry], bool]:
    """Condition that holds while no client of ``client_type`` is registered."""

    def _condition(registry: ClientRegistry) -> bool:
        return not registry.contains(client_type)

    return _condition


def single_candidate(client_type: type) -> Callable[[ClientRegistry], bool]:
    """Condition that holds when exactly one client of ``client_type`` is registered."""

    def _condition(registry: ClientRegistry) -> bool:
        return len(registry.candidates(client_type)) == 1

    return _condition


def all_of(*conditions: Callable[[ClientRegistry], bool]) -> Callable[[ClientRegistry], bool]:
    def _condition(registry: ClientRegistry) -> bool:
        return all(condition(registry) for condition in conditions)

    return _condition


def when(flag: bool) -> Callable[[ClientRegistry], bool]:
    """Condition backed by a property evaluated once against the configuration snapshot."""

    def _condition(registry: ClientRegistry) -> bool:
        return flag

    return _condition


@dataclass(frozen=True, slots=True)
class AssemblyStep:
    """One conditional construction step.

    Attributes:
        name: Registry name of the produced client.
        provides: Type of the produced client, used by the default condition.
        factory: Builds the client from the registry.
        condition: Guard evaluated just before the step runs. Defaults to
            "no client of ``provides`` is registered yet".
    """

    name: str
    provides: type
    factory: Callable[[ClientRegistry], Any]
    condition: Callable[[ClientRegistry], bool] | None = None

    def should_run(self, registry: ClientRegistry) -> bool:
        condition = self.condition or missing(self.provides)
        return condition(registry)


def assemble(
    steps: Sequence[AssemblyStep] | Iterable[AssemblyStep],
    registry: ClientRegistry,
) -> list[str]:
    """Run ``steps`` in order against ``registry``; return the names registered.

    Errors raised by a factory propagate unchanged so startup fails fast.
    """

    registered: list[str] = []
    for step in steps:
        if not step.should_run(registry):
            log_assembly_step(logger, step.name, "skipped", provides=step.provides.__name__)
            continue
        try:
            client = step.factory(registry)
        except Exception:
            log_assembly_step(logger, step.name, "failed", provides=step.provides.__name__)
            raise
        if client is None:
            log_assembly_step(logger, step.name, "skipped", reason="factory returned None")
            continue
        registry.register(step.name, client)
        registered.append(step.name)
        log_assembly_step(logger, step.name, "registered", provides=step.provides.__name__)
    return registered
