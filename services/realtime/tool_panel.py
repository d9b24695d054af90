"""Configure the search tool and answer the model's tool calls."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from models.search_models import condense_results
from models.session_models import SessionStatus
from services.realtime.prompts import SEARCH_TOOL_NAME, session_update_event
from services.realtime.response_parser import (
	ToolCall,
	parse_search_query,
	parse_tool_call,
	tool_error_event,
	tool_response_event,
)
from services.realtime.session_controller import RealtimeSessionController

LOGGER = logging.getLogger(__name__)


class ToolPanel:
	"""React to `session.created` and search tool calls for one controller.

	Tool calls are queued and served by a single worker, so at most one
	search is in flight and replies go out in the order the calls arrived.
	"""

	def __init__(self, controller: RealtimeSessionController, http_client: httpx.AsyncClient) -> None:
		if controller is None:
			raise ValueError("Session controller is required.")
		self.controller = controller
		self.http = http_client if http_client is not None else controller.http
		self.function_added = False
		self.last_query = ""
		self.is_searching = False
		self.search_results: Optional[Dict[str, Any]] = None
		self._queue: Optional[asyncio.Queue] = None
		self._worker: Optional[asyncio.Future] = None
		self._search_listeners: List[Callable[[str, bool], None]] = []
		controller.subscribe(self.handle_event)
		controller.on_status_change(self._on_status_change)

	def on_search(self, listener: Callable[[str, bool], None]) -> None:
		"""Call `listener(query, is_searching)` when a search starts and when it ends."""
		self._search_listeners.append(listener)

	def handle_event(self, event: Dict[str, Any]) -> None:
		"""Process one inbound event from the controller."""
		if event.get("type") == "session.created" and not self.function_added:
			self.function_added = True
			if self.controller.send_event(session_update_event()) is None:
				LOGGER.error("Failed to send tool configuration")
			return

		call = parse_tool_call(event)
		if call is None or call.name != SEARCH_TOOL_NAME:
			return
		self._enqueue(call)

	def _enqueue(self, call: ToolCall) -> None:
		if self._queue is None:
			self._queue = asyncio.Queue()
			self._worker = asyncio.ensure_future(self._run(self._queue))
		self._queue.put_nowait(call)

	async def _run(self, queue: asyncio.Queue) -> None:
		while True:
			call = await queue.get()
			try:
				await self.perform_search(call)
			except Exception:
				LOGGER.exception("Tool call %s failed", call.call_id)
			finally:
				queue.task_done()

	async def perform_search(self, call: ToolCall) -> None:
		"""Run the search for `call` and send its `tool_call.response`."""
		try:
			query = parse_search_query(call.arguments)
		except ValueError as exc:
			LOGGER.error("Error reading tool call arguments: %s", exc)
			self.controller.send_event(tool_error_event(call.call_id))
			return

		self.last_query = query
		self._set_searching(True)
		try:
			response = await self.http.get("/search", params={"q": query})
			response.raise_for_status()
			data = response.json()
		except (httpx.HTTPError, ValueError) as exc:
			LOGGER.error("Error performing search: %s", exc)
			self._set_searching(False)
			self.controller.send_event(tool_error_event(call.call_id))
			return

		self.search_results = data
		self._set_searching(False)
		self.controller.send_event(tool_response_event(call.call_id, condense_results(data)))

	def _set_searching(self, searching: bool) -> None:
		self.is_searching = searching
		for listener in list(self._search_listeners):
			try:
				listener(self.last_query, searching)
			except Exception:
				LOGGER.exception("Search listener failed")

	async def wait_idle(self) -> None:
		"""Wait until every queued tool call has been answered."""
		if self._queue is not None:
			await self._queue.join()

	def reset(self) -> None:
		"""Forget per-session state and drop any pending tool calls."""
		if self._worker is not None and not self._worker.done():
			self._worker.cancel()
		self._worker = None
		self._queue = None
		self.function_added = False
		self.search_results = None
		self.last_query = ""
		self.is_searching = False

	def _on_status_change(self, status: SessionStatus) -> None:
		if status == SessionStatus.INACTIVE:
			self.reset()
