"""Newest-first log of realtime protocol events for one session."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Tuple

Event = Dict[str, Any]


class EventLog:
	"""Append-only event sequence, newest first.

	Events are stored exactly as logged. Nothing is merged or deduplicated;
	the log only shrinks when the whole session is cleared.
	"""

	def __init__(self) -> None:
		self._events: List[Event] = []

	def prepend(self, event: Event) -> None:
		"""Record an event as the most recent entry."""
		self._events.insert(0, event)

	def snapshot(self) -> Tuple[Event, ...]:
		"""Return an immutable view of the log, newest first."""
		return tuple(self._events)

	def clear(self) -> None:
		self._events.clear()

	def __len__(self) -> int:
		return len(self._events)

	def __iter__(self) -> Iterator[Event]:
		return iter(tuple(self._events))
