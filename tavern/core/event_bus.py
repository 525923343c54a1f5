"""EventBus - in-process domain event delivery between services.

Services never import each other; reactions travel over the bus. One bus
lives for one HTTP request. Every top-level emit opens a new chain, and
within a chain the bus enforces:

- delivery depth is capped at MAX_DEPTH
- a source may emit a given event type only once
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Set

from tavern.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5

# identifiers and small scalars; ORM rows never ride on the bus
PAYLOAD_TYPES = (str, int, float, bool, type(None))


@dataclass
class DomainEvent:
    """Event payload container.

    Args:
        event_type: event name, one of EventTypes
        data: identifiers and small scalars only
        source: name of the emitting service

    Raises:
        TypeError: a data value is not an identifier or scalar
    """

    event_type: str
    data: Dict[str, Any]
    source: str

    _depth: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        for key, value in self.data.items():
            if not isinstance(value, PAYLOAD_TYPES):
                raise TypeError(
                    f"{self.event_type}.{key}: event data must be ids or scalars, "
                    f"got {type(value).__name__}"
                )

    @property
    def chain_key(self) -> str:
        """Identity used by the per-chain duplicate guard"""
        return f"{self.source}:{self.event_type}"

    @property
    def depth(self) -> int:
        return self._depth


EventHandler = Callable[[DomainEvent], None]


class EventBus:
    """Synchronous, request-scoped event bus.

    Usage:
        bus = EventBus()
        bus.subscribe(EventTypes.QUEST_COMPLETED, notifications.on_quest_completed)
        bus.emit(DomainEvent(event_type=EventTypes.QUEST_COMPLETED, data={"quest_id": "q1"}, source="quest_service"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._current_depth: int = 0
        self._chain: Set[str] = set()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("EventBus subscribe: %s -> %s", event_type, handler.__qualname__)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            logger.debug("EventBus unsubscribe: %s -> %s", event_type, handler.__qualname__)
        else:
            logger.warning("Handler not registered: %s -> %s", event_type, handler.__qualname__)

    @property
    def in_chain(self) -> bool:
        """True while handlers of an earlier emit are still running"""
        return self._current_depth > 0

    @property
    def chain_keys(self) -> frozenset[str]:
        """source:event_type pairs already delivered in the current chain"""
        return frozenset(self._chain)

    def emit(self, event: DomainEvent) -> bool:
        """Deliver an event to every subscriber synchronously.

        Returns False when a guard dropped the event: past MAX_DEPTH, or a
        repeat of the same chain_key within the running chain.
        """
        if not self.in_chain:
            self._chain.clear()

        if self._current_depth >= MAX_DEPTH:
            logger.warning(
                "EventBus depth limit (%d) reached: %s dropped", MAX_DEPTH, event.chain_key
            )
            return False

        if event.chain_key in self._chain:
            logger.warning("EventBus duplicate event dropped: %s", event.chain_key)
            return False

        self._chain.add(event.chain_key)
        event._depth = self._current_depth

        handlers = list(self._handlers.get(event.event_type, []))
        if not handlers:
            logger.debug("EventBus: no subscribers for %s", event.event_type)
            return True

        logger.info(
            "EventBus deliver: %s (depth=%d, handlers=%d)",
            event.chain_key,
            event.depth,
            len(handlers),
        )

        self._current_depth += 1
        try:
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    # a failing reaction never undoes the committed change
                    logger.exception(
                        "EventBus handler error: %s (event=%s)",
                        handler.__qualname__,
                        event.event_type,
                    )
        finally:
            self._current_depth -= 1
        return True

    def clear(self) -> None:
        """Drop every subscription (tests)."""
        self._handlers.clear()
        self._chain.clear()
        self._current_depth = 0

    @property
    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values())
