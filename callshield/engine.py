"""
callshield/engine.py
=====================
Engine assembly — CallShield

Wires the arbitrator, recorder, speech session and lifecycle controller
together around one event sink. The HTTP service and tests build their
engine here so every component shares the same sink and clock.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable

from callshield.api.webhook import WebhookSink
from callshield.audio.backend import DesktopAudioRouting, PydubCaptureBackend
from callshield.audio.recorder import RecordingAcquisitionMachine
from callshield.call.controller import CallLifecycleController
from callshield.config import Settings
from callshield.events import EventLog, FanOutSink
from callshield.fusion.arbitrator import RiskArbitrator
from callshield.stt.session import PushedRecognitionSession

logger = logging.getLogger("callshield.engine")


@dataclass
class Engine:
    settings: Settings
    events: EventLog
    sink: FanOutSink
    arbitrator: RiskArbitrator
    backend: PydubCaptureBackend
    recorder: RecordingAcquisitionMachine
    recognizer: PushedRecognitionSession
    controller: CallLifecycleController
    closers: list[Callable[[], None]] = field(default_factory=list)

    def shutdown(self) -> None:
        self.controller.shutdown()
        for close in self.closers:
            close()


def build_engine(settings: Settings) -> Engine:
    events = EventLog()
    sink = FanOutSink(events)
    closers = []

    if settings.webhook_url:
        webhook = WebhookSink(settings.webhook_url)
        sink.add(webhook)
        closers.append(webhook.close)
    else:
        logger.debug("WEBHOOK_URL not configured; events stay in-process.")

    arbitrator = RiskArbitrator(
        sink, alerts=sink, suppression_window=settings.suppression_window,
    )
    backend = PydubCaptureBackend()
    recorder = RecordingAcquisitionMachine(
        backend, DesktopAudioRouting(), settings.recordings_dir, sink=sink,
    )
    recognizer = PushedRecognitionSession()
    controller = CallLifecycleController(
        arbitrator, recorder, recognizer, sink, alerts=sink, settings=settings,
    )

    engine = Engine(
        settings=settings,
        events=events,
        sink=sink,
        arbitrator=arbitrator,
        backend=backend,
        recorder=recorder,
        recognizer=recognizer,
        controller=controller,
        closers=closers,
    )
    return engine
