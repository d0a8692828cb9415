"""
Discrete event channel between the orbit core and the rest of the game.

The core only produces notifications; whoever subscribes decides what the
player sees (warning dialogs, mission-failed screen, AI animation triggers).
"""

from collections import defaultdict
from enum import Enum
from typing import Callable, Dict, List


class GameEvent(Enum):
    MIN_RADIUS_BREACHED = 'min_radius_breached'
    MAX_RADIUS_BREACHED = 'max_radius_breached'
    MISSION_FAILED = 'mission_failed'
    STATE_ENTERED = 'state_entered'     # external state machines
    STATE_EXITED = 'state_exited'


class EventChannel:
    """
    Synchronous publish/subscribe hub for GameEvent notifications.

    Callbacks receive the payload as keyword arguments and run in
    subscription order inside ``emit``.

    Examples
    --------
    >>> events = EventChannel()
    >>> events.subscribe(GameEvent.MAX_RADIUS_BREACHED,
    ...                  lambda **kw: print("too high:", kw['body'].name))
    >>> events.emit(GameEvent.MAX_RADIUS_BREACHED, body=barge)
    """

    def __init__(self):
        self._subscribers: Dict[GameEvent, List[Callable]] = defaultdict(list)
        self._counts: Dict[GameEvent, int] = defaultdict(int)

    def subscribe(self, event: GameEvent, callback: Callable) -> Callable:
        """Register ``callback`` for ``event``; returns the callback."""
        event = self._parse_event(event)
        self._subscribers[event].append(callback)
        return callback

    def unsubscribe(self, event: GameEvent, callback: Callable):
        """Remove a previously registered callback."""
        event = self._parse_event(event)
        try:
            self._subscribers[event].remove(callback)
        except ValueError:
            raise ValueError(f"Callback {callback!r} is not subscribed to {event.value}")

    def emit(self, event: GameEvent, **payload):
        """Deliver ``event`` to every subscriber."""
        event = self._parse_event(event)
        self._counts[event] += 1
        for callback in list(self._subscribers[event]):
            callback(**payload)

    def count(self, event: GameEvent) -> int:
        """Number of times ``event`` has been emitted on this channel."""
        return self._counts[self._parse_event(event)]

    def enter_state(self, state, **payload):
        """Notify that an external state machine entered ``state``."""
        self.emit(GameEvent.STATE_ENTERED, state=state, **payload)

    def exit_state(self, state, **payload):
        """Notify that an external state machine left ``state``."""
        self.emit(GameEvent.STATE_EXITED, state=state, **payload)

    @staticmethod
    def _parse_event(event):
        """Convert string or enum to GameEvent enum"""
        if isinstance(event, GameEvent):
            return event
        elif isinstance(event, str):
            try:
                return GameEvent(event)
            except ValueError:
                raise ValueError(f"Unknown event '{event}'. "
                                 f"Use: {[e.value for e in GameEvent]}")
        else:
            raise TypeError(f"event must be GameEvent or str, got {type(event)}")
