"""Session domain models for the realtime voice client."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Set

from models.event_log import EventLog


class SessionStatus(str, Enum):
	"""Lifecycle of one realtime connection."""

	INACTIVE = "inactive"
	NEGOTIATING = "negotiating"
	ACTIVE = "active"


class MicrophoneStatus(str, Enum):
	"""Diagnostic state of the microphone request."""

	WAITING = "waiting"
	REQUESTING = "requesting"
	GRANTED = "granted"
	DENIED = "denied"


@dataclass(frozen=True)
class SessionCredential:
	"""Ephemeral bearer token minted by the token route."""

	value: str
	expires_at: Optional[int] = None

	@classmethod
	def from_token_response(cls, data: Any) -> Optional["SessionCredential"]:
		"""Return a credential from a `/token` body, or None if it has no secret."""
		if not isinstance(data, dict):
			return None
		secret = data.get("client_secret")
		if not isinstance(secret, dict) or not secret.get("value"):
			return None
		return cls(value=str(secret["value"]), expires_at=secret.get("expires_at"))


@dataclass
class RealtimeSession:
	"""Everything owned by one start/stop cycle of the controller."""

	status: SessionStatus = SessionStatus.NEGOTIATING
	credential: Optional[SessionCredential] = None
	peer_connection: Any = None
	data_channel: Any = None
	audio_output: Any = None
	microphone: Any = None
	events: EventLog = field(default_factory=EventLog)
	inbox: Any = None
	pump_task: Any = None
	tasks: Set[Any] = field(default_factory=set)
	welcome_scheduled: bool = False
