"""
tests/test_controller.py
=========================
Call Lifecycle Controller Tests

Test categories:
    1. Full answered call (RINGING → OFFHOOK → speech → backup → IDLE)
    2. Late results and stale post-call analysis
    3. Outgoing calls, unanswered calls, call waiting
    4. Recording failure and recognizer errors
    5. RepeatingTimer

The backup timer and the post-call executor are replaced by fakes so the
lifecycle is driven step by step; the arbitrator clock is injected.
"""

import os
import shutil
import sys
import tempfile
import threading
import unittest
from concurrent.futures import Future

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from callshield.audio.backend import DesktopAudioRouting
from callshield.audio.normalizer import AudioValidationError
from callshield.audio.recorder import RecordingAcquisitionMachine, RecordingState
from callshield.audio.strategies import RecordingStrategy
from callshield.call.controller import RECORDING_FAILED, CallLifecycleController
from callshield.call.scheduler import RepeatingTimer
from callshield.config import Settings
from callshield.errors import ConfigurationError
from callshield.events import (
    AlertTier,
    CallStateChanged,
    EventLog,
    RiskAlert,
    RiskLevelChanged,
    StatusMessage,
)
from callshield.fusion.arbitrator import RiskArbitrator, SubmissionOutcome
from callshield.fusion.producers import DeepCallAnalyzer
from callshield.stt.session import PushedRecognitionSession
from callshield.validation import CallState

DIGITAL_ARREST_TEXT = (
    "this is from mumbai police cyber cell. you are now under digital arrest"
)


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeBackend:
    def __init__(self, fail_all=False):
        self.fail_all = fail_all
        self.stopped = 0

    def probe(self, source):
        pass

    def prepare(self, profile, output_path):
        if self.fail_all:
            raise RuntimeError("no capture")

    def start(self):
        pass

    def stop(self):
        self.stopped += 1

    def release(self):
        pass


class BlockingBackend(FakeBackend):
    """Backend whose first prepare blocks until the test releases it."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release_prepare = threading.Event()

    def prepare(self, profile, output_path):
        self.entered.set()
        self.release_prepare.wait(timeout=5)


class FakeTimer:
    def __init__(self, initial_delay, interval, callback):
        self.initial_delay = initial_delay
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.callback()


class ImmediateExecutor:
    def submit(self, fn, *args):
        future = Future()
        future.set_result(fn(*args))
        return future

    def shutdown(self, wait=True):
        pass


class DeferredExecutor:
    def __init__(self):
        self.pending = []

    def submit(self, fn, *args):
        future = Future()
        self.pending.append((future, fn, args))
        return future

    def run_all(self):
        for future, fn, args in self.pending:
            future.set_result(fn(*args))
        self.pending.clear()

    def shutdown(self, wait=True):
        pass


class ControllerTestCase(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.clock = FakeClock()
        self.events = EventLog()
        self.timers = []

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _timer_factory(self, initial_delay, interval, callback):
        timer = FakeTimer(initial_delay, interval, callback)
        self.timers.append(timer)
        return timer

    def build(self, executor=None, backend=None):
        self.arbitrator = RiskArbitrator(self.events, alerts=self.events, clock=self.clock)
        self.backend = backend or FakeBackend()
        self.recorder = RecordingAcquisitionMachine(
            self.backend, DesktopAudioRouting(), self.tmpdir,
            sink=self.events, sleep=lambda s: None,
        )
        self.recognizer = PushedRecognitionSession()
        # Recordings from the fake backend are never written; skip audio cleanly.
        deep = DeepCallAnalyzer(
            self.arbitrator,
            self.events,
            load_audio=_missing_audio,
        )
        self.controller = CallLifecycleController(
            self.arbitrator,
            self.recorder,
            self.recognizer,
            self.events,
            alerts=self.events,
            settings=Settings(),
            executor=executor or ImmediateExecutor(),
            timer_factory=self._timer_factory,
            deep_analyzer=deep,
        )
        return self.controller

    def risk_scores(self):
        return [e.score for e in self.events.of_type(RiskLevelChanged)]


def _missing_audio(path):
    raise AudioValidationError(f"Recording not found: {path}")


# ===================================================================
# 1. Answered call
# ===================================================================

class TestAnsweredCall(ControllerTestCase):

    def test_full_call(self):
        controller = self.build()

        controller.handle_call_state("RINGING", "+919876543210")
        generation = controller.generation
        self.assertEqual(self.risk_scores(), [10])
        self.assertEqual(controller.state.value, "RINGING")

        self.clock.now = 2.0
        controller.handle_call_state("OFFHOOK", "+919876543210")
        self.assertEqual(controller.generation, generation)
        self.assertTrue(controller.is_live)
        self.assertTrue(self.recognizer.active)
        self.assertEqual(self.recorder.state, RecordingState.ACTIVE)
        self.assertEqual(self.recorder.current_strategy, RecordingStrategy.VOICE_RECOGNITION)

        timer = self.timers[0]
        self.assertTrue(timer.started)
        self.assertEqual((timer.initial_delay, timer.interval), (3.0, 5.0))

        self.clock.now = 5.0
        self.assertTrue(self.recognizer.deliver_final(DIGITAL_ARREST_TEXT, "en-IN", 0.9))
        self.assertEqual(self.arbitrator.snapshot().max_score, 70)

        # Recent high-risk reading: the placeholder is skipped.
        self.clock.now = 8.0
        timer.fire()
        self.assertEqual(controller.status()["backup_checks"], 1)
        self.assertEqual(self.risk_scores(), [10, 70])

        self.clock.now = 12.0
        future = controller.handle_call_state("IDLE")
        self.assertTrue(timer.cancelled)
        self.assertFalse(self.recognizer.active)
        self.assertEqual(self.recorder.state, RecordingState.STOPPED)
        self.assertEqual(self.backend.stopped, 1)

        report = future.result()
        self.assertEqual(report.score, 60)
        self.assertEqual(report.outcome, SubmissionOutcome.SUPPRESSED)
        self.assertIsNone(report.audio)

        summary = [a for a in self.events.of_type(RiskAlert) if a.tier is AlertTier.SUMMARY]
        self.assertEqual(summary[0].message, "MEDIUM RISK: Some suspicious patterns - 60% risk")

        states = [e.state for e in self.events.of_type(CallStateChanged)]
        self.assertEqual(states, ["RINGING", "OFFHOOK", "IDLE"])

    def test_backup_ticks_escalate_when_quiet(self):
        controller = self.build()
        controller.handle_call_state("OFFHOOK", "+919876543210")
        self.clock.now = 3.0
        self.timers[0].fire()
        self.clock.now = 8.0
        self.timers[0].fire()
        self.assertEqual(self.risk_scores(), [32, 34])
        self.assertEqual(controller.status()["max_score"], 34)

    def test_partial_results_routed(self):
        controller = self.build()
        controller.handle_call_state("OFFHOOK", None)
        self.recognizer.deliver_partial("urgent police", "en-IN")
        self.assertEqual(self.arbitrator.snapshot().max_score, 35)

    def test_status_snapshot(self):
        controller = self.build()
        controller.handle_call_state("RINGING", None)
        status = controller.status()
        self.assertEqual(status["call_state"], "RINGING")
        self.assertEqual(status["phone_number"], "unknown")
        self.assertEqual(status["max_score"], 30)
        self.assertFalse(status["live"])
        self.assertFalse(status["recording"])


# ===================================================================
# 2. Late results and stale analysis
# ===================================================================

class TestLateResults(ControllerTestCase):

    def test_results_after_idle_are_dropped(self):
        controller = self.build()
        controller.handle_call_state("OFFHOOK", "+919876543210")
        controller.handle_call_state("IDLE")
        before = self.arbitrator.snapshot()

        self.assertIsNone(controller.on_final("police arrest warrant", "en", 0.9))
        self.assertIsNone(controller.on_partial("police arrest warrant"))
        self.assertFalse(self.recognizer.deliver_final("police", "en", 0.9))
        self.timers[0].fire()

        self.assertEqual(self.arbitrator.snapshot(), before)

    def test_deferred_analysis_after_new_call_is_stale(self):
        executor = DeferredExecutor()
        controller = self.build(executor=executor)
        controller.handle_call_state("OFFHOOK", "+919876543210")
        self.recognizer.deliver_final(DIGITAL_ARREST_TEXT, "en", 0.9)
        future = controller.handle_call_state("IDLE")

        controller.handle_call_state("RINGING", "+918888777766")
        new_max = self.arbitrator.snapshot().max_score
        executor.run_all()

        self.assertEqual(future.result().outcome, SubmissionOutcome.STALE)
        self.assertEqual(self.arbitrator.snapshot().max_score, new_max)
        summaries = [a for a in self.events.of_type(RiskAlert) if a.tier is AlertTier.SUMMARY]
        self.assertEqual(summaries, [])

    def test_transcript_collects_final_utterances(self):
        executor = DeferredExecutor()
        controller = self.build(executor=executor)
        controller.handle_call_state("OFFHOOK", None)
        self.recognizer.deliver_final("hello", "en", 0.5)
        self.recognizer.deliver_final("this is your bank", "en", 0.5)
        controller.handle_call_state("IDLE")
        _, _, args = executor.pending[0]
        self.assertEqual(args[0], "hello this is your bank")


# ===================================================================
# 3. Call shapes
# ===================================================================

class TestCallShapes(ControllerTestCase):

    def test_outgoing_call_resets_at_offhook(self):
        controller = self.build()
        controller.handle_call_state("RINGING", None)
        controller.handle_call_state("IDLE")
        first = controller.generation

        controller.handle_call_state("OFFHOOK", "+919876543210")
        self.assertEqual(controller.generation, first + 1)
        self.assertEqual(self.arbitrator.snapshot().max_score, 0)

    def test_unanswered_call_has_no_analysis(self):
        controller = self.build()
        controller.handle_call_state("RINGING", "+919876543210")
        self.assertIsNone(controller.handle_call_state("IDLE"))
        self.assertEqual(self.timers, [])
        self.assertEqual(self.backend.stopped, 0)

    def test_call_waiting_keeps_live_call(self):
        controller = self.build()
        controller.handle_call_state("OFFHOOK", "+919876543210")
        self.recognizer.deliver_final("police", "en", 0.9)
        generation = controller.generation

        controller.handle_call_state("RINGING", "+917777000011")
        self.assertEqual(controller.generation, generation)
        self.assertTrue(controller.is_live)
        self.assertEqual(self.arbitrator.snapshot().max_score, 60)

    def test_duplicate_offhook_ignored(self):
        controller = self.build()
        controller.handle_call_state("OFFHOOK", None)
        controller.handle_call_state("OFFHOOK", None)
        self.assertEqual(len(self.timers), 1)

    def test_lowercase_state_accepted(self):
        controller = self.build()
        controller.handle_call_state("ringing", None)
        self.assertEqual(controller.state.value, "RINGING")

    def test_invalid_state(self):
        controller = self.build()
        with self.assertRaises(ConfigurationError):
            controller.handle_call_state("HOLDING", None)

    def test_idle_during_recording_setup_ends_call(self):
        backend = BlockingBackend()
        controller = self.build(backend=backend)
        controller.handle_call_state("RINGING", "+919876543210")

        offhook = threading.Thread(
            target=controller.handle_call_state, args=("OFFHOOK", "+919876543210"),
        )
        offhook.start()
        self.assertTrue(backend.entered.wait(timeout=5))

        futures = []
        idle = threading.Thread(
            target=lambda: futures.append(controller.handle_call_state("IDLE")),
        )
        idle.start()
        idle.join(timeout=0.2)
        self.assertTrue(idle.is_alive())

        backend.release_prepare.set()
        offhook.join(timeout=5)
        idle.join(timeout=5)

        self.assertEqual(controller.state, CallState.IDLE)
        self.assertFalse(controller.is_live)
        self.assertEqual(len(self.timers), 1)
        self.assertTrue(self.timers[0].cancelled)
        self.assertEqual(backend.stopped, 1)
        self.assertEqual(self.recorder.state, RecordingState.STOPPED)
        self.assertIsNotNone(futures[0].result())

        before = self.arbitrator.snapshot()
        self.timers[0].fire()
        self.assertIsNone(controller.on_final("police arrest warrant", "en", 0.9))
        self.assertEqual(self.arbitrator.snapshot(), before)


# ===================================================================
# 4. Failures
# ===================================================================

class TestFailures(ControllerTestCase):

    def test_recording_failure_continues_monitoring(self):
        controller = self.build(backend=FakeBackend(fail_all=True))
        controller.handle_call_state("OFFHOOK", "+919876543210")

        self.assertIn(StatusMessage(RECORDING_FAILED), self.events.recent())
        self.assertTrue(controller.is_live)
        self.assertTrue(self.timers[0].started)

        future = controller.handle_call_state("IDLE")
        self.assertIsNotNone(future.result())

    def test_recognizer_error_is_logged_only(self):
        controller = self.build()
        controller.handle_call_state("OFFHOOK", None)
        before = self.events.recent()
        with self.assertLogs("callshield.call.controller", level="WARNING") as logs:
            self.assertTrue(self.recognizer.deliver_error("network timeout"))
        self.assertIn("network timeout", logs.output[0])
        self.assertEqual(self.events.recent(), before)
        self.assertTrue(controller.is_live)

    def test_shutdown_ends_live_call(self):
        controller = self.build()
        controller.handle_call_state("OFFHOOK", None)
        controller.shutdown()
        self.assertFalse(controller.is_live)
        self.assertTrue(self.timers[0].cancelled)
        self.assertEqual(self.recorder.state, RecordingState.IDLE)


# ===================================================================
# 5. RepeatingTimer
# ===================================================================

class TestRepeatingTimer(unittest.TestCase):

    def test_ticks_until_cancelled(self):
        ticks = []
        reached = threading.Event()

        def callback():
            ticks.append(1)
            if len(ticks) >= 3:
                reached.set()

        timer = RepeatingTimer(0.01, 0.01, callback)
        timer.start()
        self.assertTrue(reached.wait(5))
        timer.cancel()
        count = len(ticks)
        self.assertTrue(timer.cancelled)
        threading.Event().wait(0.05)
        self.assertEqual(len(ticks), count)

    def test_failing_tick_does_not_stop_schedule(self):
        ticks = []
        reached = threading.Event()

        def callback():
            ticks.append(1)
            if len(ticks) >= 2:
                reached.set()
            raise RuntimeError("tick failed")

        timer = RepeatingTimer(0.0, 0.01, callback)
        timer.start()
        self.assertTrue(reached.wait(5))
        timer.cancel()

    def test_cancel_before_first_tick(self):
        ticks = []
        timer = RepeatingTimer(10.0, 10.0, lambda: ticks.append(1))
        timer.start()
        timer.cancel()
        self.assertEqual(ticks, [])


if __name__ == "__main__":
    unittest.main()
