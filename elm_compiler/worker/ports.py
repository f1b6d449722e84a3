"""Ports of an instantiated worker module and the handle that owns them."""

from __future__ import annotations

from typing import (
    Any,
    Awaitable,
    Callable,
    ClassVar,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Union,
)

PortCallback = Callable[[Any], None]
"""Callback receiving one value published by the module."""


class OutboundPort:
    """A port the module publishes on.

    Subscribers only see values published after they subscribed. Each value goes to every
    subscriber, in subscription order.
    """

    direction: ClassVar[str] = "outbound"

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: List[PortCallback] = []

    def subscribe(self, callback: PortCallback) -> None:
        """Register ``callback`` for every future value on this port."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: PortCallback) -> None:
        """Remove a subscriber. Unknown callbacks are ignored."""
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def publish(self, value: Any) -> None:
        """Deliver a value from the module to the current subscribers.

        Called by the artifact loader, not by embedding code.
        """
        for callback in list(self._subscribers):
            callback(value)

    def __repr__(self) -> str:
        return f"OutboundPort({self.name!r}, subscribers={len(self._subscribers)})"


class InboundPort:
    """A port the module listens on."""

    direction: ClassVar[str] = "inbound"

    def __init__(self, name: str, sender: Callable[[str, Any], None]) -> None:
        self.name = name
        self._sender = sender

    def send(self, value: Any) -> None:
        """Deliver ``value`` into the module. The value must be JSON-serializable."""
        self._sender(self.name, value)

    def __repr__(self) -> str:
        return f"InboundPort({self.name!r})"


Port = Union[OutboundPort, InboundPort]


class Ports(Mapping[str, Port]):
    """The ports declared by a module, by name.

    Ports are reachable both as items and as attributes: ``ports["log"]`` or ``ports.log``.
    """

    def __init__(self, ports: Optional[Mapping[str, Port]] = None) -> None:
        self._ports: Dict[str, Port] = dict(ports or {})

    def __getitem__(self, name: str) -> Port:
        return self._ports[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._ports)

    def __len__(self) -> int:
        return len(self._ports)

    def __getattr__(self, name: str) -> Port:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._ports[name]
        except KeyError:
            raise AttributeError(f"Module has no port named '{name}'") from None

    def __repr__(self) -> str:
        return f"Ports({list(self._ports)})"


class WorkerHandle:
    """A module instantiated in worker mode.

    The handle owns the host runtime the module runs in. Call ``close()`` (or use the handle
    as an async context manager) to stop it.
    """

    def __init__(
        self,
        module_name: str,
        ports: Ports,
        cleaner: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        """Constructor for the WorkerHandle class.

        Parameters
        ----------
        module_name : str
            Dotted name of the instantiated module.
        ports : Ports
            The ports the module declares.
        cleaner : Callable[[], Awaitable[None]], optional
            Coroutine function releasing the host runtime.
        """
        self.module_name = module_name
        self.ports = ports
        self._cleaner = cleaner
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        """Stop the host runtime. Idempotent."""
        self._closed = True
        if self._cleaner:
            try:
                await self._cleaner()
            finally:
                self._cleaner = None

    async def __aenter__(self) -> "WorkerHandle":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"WorkerHandle({self.module_name!r}, ports={list(self.ports)})"
