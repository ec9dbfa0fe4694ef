"""
Completion events for the downstream expense service.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Protocol, Tuple

JOB_COMPLETED_TOPIC = "job.completed"


class EventPublisher(Protocol):
    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        ...


class InMemoryEventPublisher:
    """Records published events; stands in for the message broker."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []
        self._lock = threading.Lock()

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            self.events.append((topic, payload))

    def by_topic(self, topic: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [payload for t, payload in self.events if t == topic]
