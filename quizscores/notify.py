"""
Live push of accepted scores and clear events to connected observers.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

from starlette.websockets import WebSocketState

from quizscores.records import ScoreRecord

logger = logging.getLogger(__name__)

NEW_SCORE = "new-score"
CLEAR_SCORES = "clear-scores"


class Observer(Protocol):
    async def send_text(self, data: str) -> None:
        ...


def _is_open(observer: Any) -> bool:
    connected = WebSocketState.CONNECTED
    return (
        getattr(observer, "client_state", connected) == connected
        and getattr(observer, "application_state", connected) == connected
    )


class ScoreBroadcaster:
    """
    Registry of observers. Observers are registered on connect and removed on
    disconnect; closed, failing or stalled ones are also pruned while broadcasting.
    """

    def __init__(self, send_timeout: float = 5.0):
        self.send_timeout = send_timeout
        # Keyed by identity: starlette connections compare by scope contents.
        self._observers: dict[int, Observer] = {}

    def __len__(self) -> int:
        return len(self._observers)

    def register(self, observer: Observer) -> None:
        self._observers[id(observer)] = observer

    def unregister(self, observer: Observer) -> None:
        self._observers.pop(id(observer), None)

    async def publish_new_score(self, record: ScoreRecord) -> int:
        return await self._broadcast({"type": NEW_SCORE, "payload": record.as_dict()})

    async def publish_cleared(self) -> int:
        return await self._broadcast({"type": CLEAR_SCORES})

    async def _broadcast(self, envelope: dict) -> int:
        """Send to every open observer concurrently and return how many were reached."""
        message = json.dumps(envelope, default=str)
        targets = []
        for key, observer in list(self._observers.items()):
            if _is_open(observer):
                targets.append((key, observer))
            else:
                self._observers.pop(key, None)
        if not targets:
            return 0
        results = await asyncio.gather(
            *(self._send(key, observer, message) for key, observer in targets)
        )
        return sum(results)

    async def _send(self, key: int, observer: Observer, message: str) -> bool:
        # A stalled observer is dropped once its send exceeds the timeout.
        try:
            await asyncio.wait_for(observer.send_text(message), self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Dropping observer after send timed out (%.1fs)", self.send_timeout
            )
            self._observers.pop(key, None)
            return False
        except Exception as exc:
            logger.warning("Dropping observer after failed send: %s", exc)
            self._observers.pop(key, None)
            return False
        return True
