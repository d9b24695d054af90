"""Local audio capture and playback for the realtime voice client."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from aiortc.contrib.media import MediaPlayer, MediaRecorder

LOGGER = logging.getLogger(__name__)

MICROPHONE_CONSTRAINTS: Dict[str, bool] = {
	"echoCancellation": True,
	"noiseSuppression": True,
	"autoGainControl": True,
}


class MicrophoneSource:
	"""Capture microphone audio through ffmpeg via aiortc's MediaPlayer."""

	def __init__(
		self,
		device: str = "default",
		device_format: Optional[str] = "pulse",
		constraints: Optional[Dict[str, bool]] = None,
	) -> None:
		self.constraints = dict(constraints or MICROPHONE_CONSTRAINTS)
		# ffmpeg capture devices expose no echo/noise/gain switches; the
		# request is kept for diagnostics only.
		LOGGER.debug("Opening microphone %s (%s) with constraints %s", device, device_format, self.constraints)
		self._player = MediaPlayer(device, format=device_format)
		if self._player.audio is None:
			raise RuntimeError(f"No audio track available on capture device {device!r}")

	@property
	def audio(self) -> Any:
		return self._player.audio

	async def close(self) -> None:
		track = self._player.audio
		if track is not None:
			track.stop()


class AudioOutput:
	"""Play the model's audio track, the counterpart of a page audio element."""

	def __init__(self, sink: str = "default", sink_format: Optional[str] = "pulse") -> None:
		self._recorder = MediaRecorder(sink, format=sink_format)
		self._started = False
		self.track: Any = None

	async def attach(self, track: Any) -> None:
		"""Start playing `track`; later tracks are ignored."""
		if self._started:
			LOGGER.debug("Audio output already playing; ignoring extra track")
			return
		self.track = track
		self._recorder.addTrack(track)
		await self._recorder.start()
		self._started = True

	async def close(self) -> None:
		"""Stop playback and release the sink."""
		if self._started:
			self._started = False
			await self._recorder.stop()
		self.track = None
