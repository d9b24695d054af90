"""Own the lifecycle of one realtime voice connection.

The controller fetches an ephemeral credential from the token route,
negotiates a WebRTC peer connection directly with the realtime API, and
relays JSON events over the `oai-events` data channel. Every inbound message
goes through a single inbox drained by one pump task, so event handling,
sends and teardown never interleave mid-update.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

import httpx
from aiortc import RTCConfiguration, RTCIceServer, RTCPeerConnection, RTCSessionDescription

from models.session_models import MicrophoneStatus, RealtimeSession, SessionCredential, SessionStatus
from services.realtime.media import MICROPHONE_CONSTRAINTS, AudioOutput, MicrophoneSource
from services.realtime.prompts import WELCOME_TEXT, response_create_event, user_message_event
from utils.env_config import DEFAULT_REALTIME_MODEL

LOGGER = logging.getLogger(__name__)

REALTIME_URL = "https://api.openai.com/v1/realtime"
DATA_CHANNEL_LABEL = "oai-events"
ICE_SERVERS = ("stun:stun.l.google.com:19302", "stun:stun1.l.google.com:19302")
WELCOME_DELAY_SECONDS = 1.0

MICROPHONE_DENIED_MESSAGE = "Microphone access denied. Please allow microphone access and try again."
INVALID_TOKEN_MESSAGE = "Error: Invalid token response from API"
START_FAILED_MESSAGE = "Failed to start session. Check console for details."

Event = Dict[str, Any]
EventListener = Callable[[Event], None]
StatusListener = Callable[[SessionStatus], None]


class _StartAborted(Exception):
	"""A start step failed with a message meant for the user."""


class _SessionDiscarded(Exception):
	"""stop() ran while start() was suspended on a network round trip."""


def default_peer_connection_factory() -> RTCPeerConnection:
	"""Return a peer connection using the public STUN servers."""
	configuration = RTCConfiguration(iceServers=[RTCIceServer(urls=url) for url in ICE_SERVERS])
	return RTCPeerConnection(configuration=configuration)


def _log_alert(message: str) -> None:
	LOGGER.error("ALERT: %s", message)


class RealtimeSessionController:
	"""Start, drive and stop one realtime session at a time."""

	def __init__(
		self,
		http_client: httpx.AsyncClient,
		*,
		alert: Callable[[str], None] = _log_alert,
		model: str = DEFAULT_REALTIME_MODEL,
		realtime_url: str = REALTIME_URL,
		peer_connection_factory: Callable[[], Any] = default_peer_connection_factory,
		microphone_factory: Optional[Callable[[Dict[str, bool]], Any]] = None,
		audio_output_factory: Optional[Callable[[], Any]] = None,
		welcome_delay: float = WELCOME_DELAY_SECONDS,
	) -> None:
		"""Initialize the controller.

		Args:
			http_client: Client whose base URL points at the token/search server.
			alert: Blocking user notification, called with a human-readable message.
			model: Realtime model requested during the SDP exchange.
			realtime_url: Realtime signalling endpoint.
			peer_connection_factory: Builds the RTCPeerConnection.
			microphone_factory: Opens the capture device given audio constraints.
			audio_output_factory: Builds the playback sink for the model's audio.
			welcome_delay: Seconds between the data channel opening and the welcome message.
		"""
		if http_client is None:
			raise ValueError("httpx.AsyncClient is required.")
		self.http = http_client
		self._alert = alert
		self.model = model
		self.realtime_url = realtime_url
		self._peer_connection_factory = peer_connection_factory
		self._microphone_factory = microphone_factory or (lambda constraints: MicrophoneSource(constraints=constraints))
		self._audio_output_factory = audio_output_factory or AudioOutput
		self.welcome_delay = welcome_delay
		self.microphone_status = MicrophoneStatus.WAITING
		self._session: Optional[RealtimeSession] = None
		self._event_listeners: List[EventListener] = []
		self._sent_listeners: List[EventListener] = []
		self._status_listeners: List[StatusListener] = []

	# Read-only view

	@property
	def status(self) -> SessionStatus:
		return self._session.status if self._session is not None else SessionStatus.INACTIVE

	@property
	def is_active(self) -> bool:
		return self.status == SessionStatus.ACTIVE

	@property
	def events(self) -> tuple:
		"""Events of the current session, newest first."""
		return self._session.events.snapshot() if self._session is not None else ()

	@property
	def peer_connection(self) -> Any:
		return self._session.peer_connection if self._session is not None else None

	@property
	def data_channel(self) -> Any:
		return self._session.data_channel if self._session is not None else None

	@property
	def audio_output(self) -> Any:
		return self._session.audio_output if self._session is not None else None

	def subscribe(self, listener: EventListener) -> None:
		"""Call `listener` with every inbound event after it is logged."""
		self._event_listeners.append(listener)

	def on_send(self, listener: EventListener) -> None:
		"""Call `listener` with every outbound event after it is sent and logged."""
		self._sent_listeners.append(listener)

	def on_status_change(self, listener: StatusListener) -> None:
		self._status_listeners.append(listener)

	async def wait_idle(self) -> None:
		"""Wait until every queued inbound message has been handled."""
		session = self._session
		if session is not None and session.inbox is not None:
			await session.inbox.join()

	# Lifecycle

	async def start(self) -> bool:
		"""Negotiate a new session; return True once it is active.

		Failures alert the user and leave the controller inactive.
		"""
		if self._session is not None:
			LOGGER.warning("Session already %s; ignoring start", self._session.status.value)
			return False

		session = RealtimeSession()
		session.inbox = asyncio.Queue()
		session.pump_task = asyncio.ensure_future(self._pump(session))
		self._session = session
		self._notify_status()

		try:
			await self._negotiate(session)
		except _SessionDiscarded:
			LOGGER.info("Session stopped during negotiation; releasing its resources")
			await self._release(session)
			return False
		except _StartAborted as exc:
			self._alert(str(exc))
			await self._abort(session)
			return False
		except Exception as exc:
			LOGGER.exception("Error starting session: %s", exc)
			self._alert(START_FAILED_MESSAGE)
			await self._abort(session)
			return False

		session.status = SessionStatus.ACTIVE
		self._notify_status()
		LOGGER.info("Session initialized successfully")
		return True

	async def stop(self) -> None:
		"""Tear down the current session; safe to call at any time."""
		session = self._session
		if session is None:
			return
		self._session = None
		await self._release(session)
		self.microphone_status = MicrophoneStatus.WAITING
		self._notify_status()
		LOGGER.info("Session stopped")

	async def _abort(self, session: RealtimeSession) -> None:
		if self._session is session:
			self._session = None
			await self._release(session)
			self._notify_status()
		else:
			await self._release(session)

	async def _negotiate(self, session: RealtimeSession) -> None:
		credential = await self._fetch_credential()
		self._ensure_current(session)
		session.credential = credential

		pc = self._peer_connection_factory()
		session.peer_connection = pc
		pc.on("connectionstatechange", lambda: LOGGER.info("WebRTC connection state: %s", pc.connectionState))
		pc.on("iceconnectionstatechange", lambda: LOGGER.info("ICE connection state: %s", pc.iceConnectionState))

		session.audio_output = self._audio_output_factory()
		pc.on("track", lambda track: self._on_track(session, track))

		session.microphone = await self._open_microphone()
		self._ensure_current(session)
		pc.addTrack(session.microphone.audio)

		channel = pc.createDataChannel(DATA_CHANNEL_LABEL)
		session.data_channel = channel
		channel.on("open", lambda: self._on_channel_open(session))
		channel.on("close", lambda: LOGGER.info("Data channel closed"))
		channel.on("message", lambda message: self._on_channel_message(session, message))

		offer = await pc.createOffer()
		await pc.setLocalDescription(offer)
		self._ensure_current(session)

		answer_sdp = await self._exchange_sdp(session.credential, pc.localDescription.sdp)
		self._ensure_current(session)
		await pc.setRemoteDescription(RTCSessionDescription(sdp=answer_sdp, type="answer"))
		self._ensure_current(session)
		LOGGER.info("Set remote description")

	def _ensure_current(self, session: RealtimeSession) -> None:
		if self._session is not session:
			raise _SessionDiscarded()

	async def _fetch_credential(self) -> SessionCredential:
		response = await self.http.get("/token")
		try:
			data = response.json()
		except ValueError as exc:
			LOGGER.error("Token response was not JSON: %s", exc)
			raise _StartAborted(INVALID_TOKEN_MESSAGE) from exc

		if isinstance(data, dict) and data.get("error"):
			LOGGER.error("Token error: %s", data["error"])
			raise _StartAborted(f"Error starting session: {data['error']}")

		credential = SessionCredential.from_token_response(data)
		if credential is None:
			LOGGER.error("Invalid token response format: %s", data)
			raise _StartAborted(INVALID_TOKEN_MESSAGE)
		LOGGER.info("Received session credential (expires at %s)", credential.expires_at or "unknown")
		return credential

	async def _open_microphone(self) -> Any:
		self.microphone_status = MicrophoneStatus.REQUESTING
		try:
			# ffmpeg opens the capture device synchronously.
			microphone = await asyncio.to_thread(self._microphone_factory, dict(MICROPHONE_CONSTRAINTS))
		except Exception as exc:
			LOGGER.error("Error accessing microphone: %s", exc)
			self.microphone_status = MicrophoneStatus.DENIED
			raise _StartAborted(MICROPHONE_DENIED_MESSAGE) from exc
		self.microphone_status = MicrophoneStatus.GRANTED
		LOGGER.info("Microphone access granted")
		return microphone

	async def _exchange_sdp(self, credential: SessionCredential, offer_sdp: str) -> str:
		LOGGER.info("Sending offer to realtime API")
		response = await self.http.post(
			self.realtime_url,
			params={"model": self.model},
			content=offer_sdp,
			headers={
				"Authorization": f"Bearer {credential.value}",
				"Content-Type": "application/sdp",
			},
		)
		if response.is_error:
			LOGGER.error("SDP response error: %s", response.text)
			raise _StartAborted(f"SDP response error: {response.status_code} {response.text}")
		LOGGER.info("Received SDP answer")
		return response.text

	async def _release(self, session: RealtimeSession) -> None:
		"""Close everything the session holds; each step runs even if another fails."""
		channel = session.data_channel
		if channel is not None:
			try:
				channel.close()
			except Exception as exc:
				LOGGER.error("Error closing data channel: %s", exc)

		pc = session.peer_connection
		if pc is not None:
			try:
				for sender in pc.getSenders():
					if sender.track is not None:
						sender.track.stop()
			except Exception as exc:
				LOGGER.error("Error stopping local tracks: %s", exc)
			try:
				await pc.close()
			except Exception as exc:
				LOGGER.error("Error closing peer connection: %s", exc)

		if session.microphone is not None:
			try:
				await session.microphone.close()
			except Exception as exc:
				LOGGER.error("Error closing microphone: %s", exc)

		if session.audio_output is not None:
			try:
				await session.audio_output.close()
			except Exception as exc:
				LOGGER.error("Error cleaning up audio output: %s", exc)

		current = asyncio.current_task()
		for task in [session.pump_task, *session.tasks]:
			if task is not None and task is not current and not task.done():
				task.cancel()
		session.tasks.clear()

		session.data_channel = None
		session.peer_connection = None
		session.audio_output = None
		session.microphone = None
		session.events.clear()
		session.status = SessionStatus.INACTIVE

	# Peer connection and data channel callbacks

	def _spawn(self, session: RealtimeSession, coro) -> None:
		task = asyncio.ensure_future(coro)
		session.tasks.add(task)
		task.add_done_callback(session.tasks.discard)

	def _on_track(self, session: RealtimeSession, track: Any) -> None:
		if getattr(track, "kind", None) != "audio":
			return
		if self._session is not session or session.audio_output is None:
			return
		LOGGER.info("Received audio track from model")
		self._spawn(session, self._play(session.audio_output, track))

	async def _play(self, audio_output: Any, track: Any) -> None:
		try:
			await audio_output.attach(track)
		except Exception as exc:
			LOGGER.error("Audio play error: %s", exc)

	def _on_channel_open(self, session: RealtimeSession) -> None:
		LOGGER.info("Data channel opened")
		if self._session is not session or session.welcome_scheduled:
			return
		session.welcome_scheduled = True
		self._spawn(session, self._send_welcome(session))

	async def _send_welcome(self, session: RealtimeSession) -> None:
		await asyncio.sleep(self.welcome_delay)
		if self._session is not session:
			return
		self.send_text_message(WELCOME_TEXT)

	def _on_channel_message(self, session: RealtimeSession, message: Any) -> None:
		if self._session is not session:
			return
		session.inbox.put_nowait(message)

	async def _pump(self, session: RealtimeSession) -> None:
		inbox = session.inbox
		while True:
			message = await inbox.get()
			try:
				self.handle_message(message)
			finally:
				inbox.task_done()

	# Event exchange

	def handle_message(self, message: Any) -> Optional[Event]:
		"""Log one inbound data-channel payload and pass it to subscribers.

		Malformed payloads are logged and dropped; nothing is raised.
		"""
		session = self._session
		if session is None:
			LOGGER.debug("Dropping message received without an active session")
			return None
		try:
			event = json.loads(message)
		except (TypeError, ValueError) as exc:
			LOGGER.error("Error parsing data channel message: %s", exc)
			return None
		if not isinstance(event, dict) or not event.get("type"):
			LOGGER.error("Dropping data channel message without an event type: %r", event)
			return None

		LOGGER.debug("Received event from model: %s", event["type"])
		session.events.prepend(event)
		for listener in list(self._event_listeners):
			try:
				listener(event)
			except Exception:
				LOGGER.exception("Event listener failed for %s", event["type"])
		return event

	def send_event(self, event: Event) -> Optional[Event]:
		"""Stamp, send and log an outbound event; return what was sent.

		Returns None without sending when no session owns an open data channel.
		"""
		session = self._session
		channel = session.data_channel if session is not None else None
		if channel is None or channel.readyState != "open":
			LOGGER.error("Data channel not ready, state: %s", getattr(channel, "readyState", None))
			return None

		payload = dict(event)
		if not payload.get("event_id"):
			payload["event_id"] = str(uuid4())
		try:
			channel.send(json.dumps(payload))
		except Exception as exc:
			LOGGER.error("Error sending message %s: %s", payload.get("type"), exc)
			return None
		session.events.prepend(payload)
		for listener in list(self._sent_listeners):
			try:
				listener(payload)
			except Exception:
				LOGGER.exception("Send listener failed for %s", payload.get("type"))
		return payload

	def send_text_message(self, text: str) -> None:
		"""Send a user text message and ask the model to respond."""
		self.send_event(user_message_event(text))
		self.send_event(response_create_event())

	def _notify_status(self) -> None:
		status = self.status
		for listener in list(self._status_listeners):
			try:
				listener(status)
			except Exception:
				LOGGER.exception("Status listener failed for %s", status.value)
