from typing import List

import pytest

from services.realtime.session_controller import RealtimeSessionController
from services.realtime.tool_panel import ToolPanel
from tests.fakes import FakeAudioOutput, FakeBackend, FakeMicrophone, FakePeerConnection


class ControllerHarness:
    """A controller wired to fakes, with handles on everything it built."""

    def __init__(self, backend: FakeBackend, welcome_delay: float = 5.0) -> None:
        self.backend = backend
        self.alerts: List[str] = []
        self.peer_connections: List[FakePeerConnection] = []
        self.microphones: List[FakeMicrophone] = []
        self.audio_outputs: List[FakeAudioOutput] = []
        self.microphone_error: Exception = None
        self.http = backend.client()
        self.controller = RealtimeSessionController(
            self.http,
            alert=self.alerts.append,
            peer_connection_factory=self._peer_connection,
            microphone_factory=self._microphone,
            audio_output_factory=self._audio_output,
            welcome_delay=welcome_delay,
        )
        self.panel = ToolPanel(self.controller, self.http)

    def _peer_connection(self) -> FakePeerConnection:
        pc = FakePeerConnection()
        self.peer_connections.append(pc)
        return pc

    def _microphone(self, constraints) -> FakeMicrophone:
        if self.microphone_error is not None:
            raise self.microphone_error
        microphone = FakeMicrophone(constraints)
        self.microphones.append(microphone)
        return microphone

    def _audio_output(self) -> FakeAudioOutput:
        output = FakeAudioOutput()
        self.audio_outputs.append(output)
        return output

    @property
    def pc(self) -> FakePeerConnection:
        return self.peer_connections[-1]

    @property
    def channel(self):
        return self.pc.channel

    async def start_open(self) -> None:
        """Start a session and open its data channel."""
        assert await self.controller.start()
        self.channel.open()

    async def deliver(self, event) -> None:
        self.channel.deliver(event)
        await self.controller.wait_idle()
        await self.panel.wait_idle()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def harness(backend: FakeBackend) -> ControllerHarness:
    return ControllerHarness(backend)
