"""
tests/test_arbitrator.py
=========================
Temporal Risk Fusion Arbitrator Tests

Test categories:
    1. Raise / surface / suppress rules
    2. Call generations and reset
    3. Threshold alerts
    4. Event ordering and concurrency

Time is injected; no test sleeps.
"""

import os
import sys
import threading
import unittest

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from callshield.events import AlertTier, EventLog, RiskAlert, RiskLevelChanged
from callshield.fusion.alerts import alert_for
from callshield.fusion.arbitrator import RiskArbitrator, SubmissionOutcome


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _arbitrator(clock=None):
    events = EventLog()
    alerts = EventLog()
    arbitrator = RiskArbitrator(events, alerts=alerts, clock=clock or FakeClock())
    return arbitrator, events, alerts


# ===================================================================
# 1. Rules
# ===================================================================

class TestSubmissionRules(unittest.TestCase):

    def test_successive_raises_both_emit(self):
        arb, events, _ = _arbitrator()
        g = arb.reset()
        self.assertEqual(arb.submit(30, "partial", "SPEECH-PARTIAL", 0.0, generation=g),
                         SubmissionOutcome.RAISED)
        self.assertEqual(arb.submit(70, "final", "SPEECH-FINAL", 1.0, generation=g),
                         SubmissionOutcome.RAISED)

        emitted = events.of_type(RiskLevelChanged)
        self.assertEqual([e.score for e in emitted], [30, 70])
        self.assertEqual(emitted[0].analysis_text, "partial [SPEECH-PARTIAL]")
        self.assertEqual(emitted[1].analysis_text, "final [SPEECH-FINAL]")
        snap = arb.snapshot()
        self.assertEqual(snap.max_score, 70)
        self.assertEqual(snap.last_analysis_text, "final")

    def test_lower_reading_within_window_is_suppressed(self):
        arb, events, _ = _arbitrator()
        g = arb.reset()
        arb.submit(70, "high", "SPEECH-FINAL", 100.0, generation=g)
        outcome = arb.submit(50, "lower", "TIMER-BACKUP", 105.0, generation=g)

        self.assertEqual(outcome, SubmissionOutcome.SUPPRESSED)
        self.assertEqual(len(events.of_type(RiskLevelChanged)), 1)
        self.assertEqual(arb.snapshot().max_score, 70)

    def test_lower_reading_after_window_is_surfaced_with_tag(self):
        arb, events, _ = _arbitrator()
        g = arb.reset()
        arb.submit(70, "high", "SPEECH-FINAL", 100.0, generation=g)
        outcome = arb.submit(50, "lower", "TIMER-BACKUP", 131.0, generation=g)

        self.assertEqual(outcome, SubmissionOutcome.SURFACED)
        last = events.of_type(RiskLevelChanged)[-1]
        self.assertEqual(last.score, 50)
        self.assertEqual(last.analysis_text, "lower [TIMER-BACKUP]")
        snap = arb.snapshot()
        self.assertEqual(snap.max_score, 70)
        self.assertEqual(snap.last_analysis_text, "high")
        self.assertEqual(snap.last_high_risk_timestamp, 100.0)

    def test_window_boundary_is_exclusive(self):
        arb, _, _ = _arbitrator()
        g = arb.reset()
        arb.submit(70, "high", "SPEECH-FINAL", 100.0, generation=g)
        self.assertEqual(arb.submit(50, "x", "TIMER-BACKUP", 130.0, generation=g),
                         SubmissionOutcome.SUPPRESSED)

    def test_equal_score_does_not_raise(self):
        arb, _, _ = _arbitrator()
        g = arb.reset()
        arb.submit(60, "a", "SPEECH-FINAL", 10.0, generation=g)
        self.assertEqual(arb.submit(60, "b", "SPEECH-FINAL", 11.0, generation=g),
                         SubmissionOutcome.SUPPRESSED)

    def test_timestamp_defaults_to_clock(self):
        clock = FakeClock(42.0)
        arb, _, _ = _arbitrator(clock)
        arb.submit(55, "a", "SPEECH-FINAL", generation=arb.generation)
        self.assertEqual(arb.snapshot().last_high_risk_timestamp, 42.0)

    def test_out_of_range_score_is_clamped(self):
        arb, events, _ = _arbitrator()
        arb.submit(150, "too high", "SPEECH-FINAL", 0.0, generation=arb.generation)
        self.assertEqual(arb.snapshot().max_score, 100)
        self.assertEqual(events.of_type(RiskLevelChanged)[0].score, 100)

    def test_max_score_is_monotonic(self):
        arb, _, _ = _arbitrator()
        g = arb.reset()
        seen = []
        for t, score in enumerate([10, 40, 20, 80, 5, 79, 81]):
            arb.submit(score, "s", "X", float(t), generation=g)
            seen.append(arb.snapshot().max_score)
        self.assertEqual(seen, sorted(seen))
        self.assertEqual(seen[-1], 81)


# ===================================================================
# 2. Generations
# ===================================================================

class TestGenerations(unittest.TestCase):

    def test_reset_clears_state_and_advances_generation(self):
        arb, _, _ = _arbitrator()
        g1 = arb.reset()
        arb.submit(90, "x", "SPEECH-FINAL", 5.0, generation=g1)
        g2 = arb.reset()

        self.assertEqual(g2, g1 + 1)
        snap = arb.snapshot()
        self.assertEqual(snap.max_score, 0)
        self.assertEqual(snap.last_analysis_text, "")
        self.assertEqual(snap.last_high_risk_timestamp, 0.0)
        self.assertEqual(snap.call_generation, g2)

    def test_stale_submission_is_dropped(self):
        arb, events, alerts = _arbitrator()
        g1 = arb.reset()
        arb.reset()
        outcome = arb.submit(95, "late", "FINAL-RECORDING", 1.0, generation=g1)

        self.assertEqual(outcome, SubmissionOutcome.STALE)
        self.assertEqual(arb.snapshot().max_score, 0)
        self.assertEqual(events.recent(), [])
        self.assertEqual(alerts.recent(), [])

    def test_events_carry_generation(self):
        arb, events, _ = _arbitrator()
        arb.reset()
        g = arb.reset()
        arb.submit(30, "x", "PHONE-ANALYSIS", 0.0, generation=g)
        self.assertEqual(events.of_type(RiskLevelChanged)[0].generation, g)

    def test_submission_requires_generation(self):
        arb, events, _ = _arbitrator()
        arb.reset()
        with self.assertRaises(TypeError):
            arb.submit(80, "untagged", "SPEECH-FINAL", 0.0)
        self.assertEqual(events.recent(), [])


# ===================================================================
# 3. Alerts
# ===================================================================

class TestAlerts(unittest.TestCase):

    def test_alert_tiers(self):
        text = "SPEECH: this is a very long analysis text for the alert"
        self.assertEqual(alert_for(85, text),
                         RiskAlert(AlertTier.CRITICAL, "CRITICAL SCAM: " + text[:30], 85))
        self.assertEqual(alert_for(61, text),
                         RiskAlert(AlertTier.HIGH, "HIGH RISK: " + text[:25], 61))
        self.assertEqual(alert_for(41, text),
                         RiskAlert(AlertTier.SUSPICIOUS, "SUSPICIOUS: " + text[:20], 41))
        self.assertIsNone(alert_for(40, text))

    def test_alert_only_on_raise(self):
        arb, _, alerts = _arbitrator()
        g = arb.reset()
        arb.submit(85, "critical", "SPEECH-FINAL", 0.0, generation=g)
        arb.submit(65, "later", "SPEECH-FINAL", 100.0, generation=g)  # surfaced, not raised

        raised = alerts.of_type(RiskAlert)
        self.assertEqual(len(raised), 1)
        self.assertEqual(raised[0].tier, AlertTier.CRITICAL)

    def test_low_raise_has_no_alert(self):
        arb, events, alerts = _arbitrator()
        arb.submit(30, "low", "PHONE-ANALYSIS", 0.0, generation=arb.generation)
        self.assertEqual(len(events.recent()), 1)
        self.assertEqual(alerts.recent(), [])


# ===================================================================
# 4. Ordering and concurrency
# ===================================================================

class TestOrdering(unittest.TestCase):

    def test_event_emitted_after_state_update(self):
        observed = []
        holder = {}

        def sink(event):
            observed.append((event.score, holder["arb"].snapshot().max_score))

        arb = RiskArbitrator(sink, clock=FakeClock())
        holder["arb"] = arb
        arb.submit(45, "a", "X", 0.0, generation=arb.generation)
        arb.submit(75, "b", "X", 1.0, generation=arb.generation)

        self.assertEqual(observed, [(45, 45), (75, 75)])

    def test_concurrent_submissions(self):
        events = EventLog(capacity=10000)
        arb = RiskArbitrator(events, clock=FakeClock(0.0))
        g = arb.reset()

        def worker(offset):
            for i in range(100):
                arb.submit((i * 7 + offset) % 100, "s", f"W{offset}", generation=g)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(arb.snapshot().max_score, 99)
        scores = [e.score for e in events.of_type(RiskLevelChanged)]
        self.assertEqual(scores, sorted(set(scores)))


if __name__ == "__main__":
    unittest.main()
