"""
tests/test_support.py
======================
Supporting Module Tests

Test categories:
    1. Input normalization (numbers, call states, scores, confidences)
    2. Settings from the environment
    3. Event sinks and serialization
    4. Webhook retry policy and delivery

All tests are OFFLINE; the webhook session is a fake.
"""

import asyncio
import os
import sys
import unittest
from unittest.mock import patch

import aiohttp

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from callshield.api.webhook import (
    WebhookDeliveryError,
    backoff_delays,
    is_retryable,
    post_with_retry,
)
from callshield.config import Settings, load_settings
from callshield.errors import AcquisitionError, ConfigurationError
from callshield.events import (
    AlertTier,
    EventLog,
    FanOutSink,
    RiskAlert,
    RiskLevelChanged,
    StatusMessage,
    event_to_dict,
)
from callshield.stt.session import TranscriptBuffer, language_name
from callshield.validation import (
    CallState,
    clamp_confidence,
    clamp_score,
    normalize_phone_number,
    parse_call_state,
    sanitize_number_for_filename,
)


# ===================================================================
# 1. Normalization
# ===================================================================

class TestPhoneNumbers(unittest.TestCase):

    def test_absent_numbers(self):
        for raw in (None, "", "   "):
            self.assertEqual(normalize_phone_number(raw), "unknown")

    def test_trimmed(self):
        self.assertEqual(normalize_phone_number("  +919876543210 "), "+919876543210")

    def test_filename_fragment(self):
        self.assertEqual(sanitize_number_for_filename("+91 (987) 654-3210"), "+919876543210")
        self.assertEqual(sanitize_number_for_filename("../etc/passwd"), "unknown")
        self.assertEqual(sanitize_number_for_filename(None), "unknown")


class TestCallStates(unittest.TestCase):

    def test_parse(self):
        self.assertIs(parse_call_state("offhook"), CallState.OFFHOOK)
        self.assertIs(parse_call_state(" Idle "), CallState.IDLE)
        self.assertIs(parse_call_state(CallState.RINGING), CallState.RINGING)

    def test_invalid(self):
        for raw in ("HOLD", "", None, 3):
            with self.assertRaises(ConfigurationError):
                parse_call_state(raw)


class TestScores(unittest.TestCase):

    def test_in_range(self):
        self.assertEqual(clamp_score(42), 42)
        self.assertEqual(clamp_score(41.6), 42)

    def test_clamped(self):
        self.assertEqual(clamp_score(-5), 0)
        self.assertEqual(clamp_score(250), 100)

    def test_not_numeric(self):
        for raw in ("50", None, True):
            with self.assertRaises(ConfigurationError):
                clamp_score(raw)

    def test_confidence(self):
        self.assertEqual(clamp_confidence(0.85), 0.85)
        self.assertEqual(clamp_confidence(1.7), 1.0)
        self.assertEqual(clamp_confidence(-0.2), 0.0)
        self.assertEqual(clamp_confidence(None), 0.0)
        self.assertEqual(clamp_confidence(float("nan")), 0.0)


class TestErrors(unittest.TestCase):

    def test_acquisition_error_carries_strategy(self):
        err = AcquisitionError("VOICE_CALL", "permission denied")
        self.assertEqual(err.strategy, "VOICE_CALL")
        self.assertEqual(err.message, "permission denied")
        self.assertIn("VOICE_CALL", str(err))


# ===================================================================
# 2. Settings
# ===================================================================

class TestSettings(unittest.TestCase):

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = load_settings(dotenv=False)
        self.assertEqual(settings, Settings())
        self.assertEqual(settings.recordings_dir, "./call_recordings")
        self.assertEqual(settings.backup_initial_delay, 3.0)
        self.assertEqual(settings.backup_interval, 5.0)
        self.assertEqual(settings.suppression_window, 30.0)
        self.assertIsNone(settings.webhook_url)

    def test_overrides(self):
        env = {
            "CALLSHIELD_RECORDINGS_DIR": "/data/calls",
            "CALLSHIELD_LOG_LEVEL": "debug",
            "CALLSHIELD_BACKUP_INTERVAL": "2.5",
            "CALLSHIELD_DEEP_ANALYSIS_WORKERS": "3",
            "WEBHOOK_URL": "https://example.invalid/hook",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings(dotenv=False)
        self.assertEqual(settings.recordings_dir, "/data/calls")
        self.assertEqual(settings.log_level, "DEBUG")
        self.assertEqual(settings.backup_interval, 2.5)
        self.assertEqual(settings.deep_analysis_workers, 3)
        self.assertEqual(settings.webhook_url, "https://example.invalid/hook")

    def test_invalid_values_fall_back(self):
        env = {
            "CALLSHIELD_BACKUP_INITIAL_DELAY": "soon",
            "CALLSHIELD_SUPPRESSION_WINDOW": "-1",
            "CALLSHIELD_DEEP_ANALYSIS_WORKERS": "0",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings(dotenv=False)
        self.assertEqual(settings.backup_initial_delay, 3.0)
        self.assertEqual(settings.suppression_window, 30.0)
        self.assertEqual(settings.deep_analysis_workers, 1)


# ===================================================================
# 3. Events
# ===================================================================

class TestEvents(unittest.TestCase):

    def test_event_to_dict(self):
        payload = event_to_dict(RiskAlert(AlertTier.CRITICAL, "CRITICAL SCAM: x", 90))
        self.assertEqual(payload, {
            "tier": "CRITICAL",
            "message": "CRITICAL SCAM: x",
            "score": 90,
            "type": "RiskAlert",
        })

    def test_fan_out_survives_failing_sink(self):
        log = EventLog()

        def broken(event):
            raise RuntimeError("consumer down")

        sink = FanOutSink(broken)
        sink.add(log)
        sink(StatusMessage("hello"))
        self.assertEqual(log.recent(), [StatusMessage("hello")])

    def test_event_log_capacity(self):
        log = EventLog(capacity=3)
        for score in range(5):
            log(RiskLevelChanged(score, "x", 1))
        self.assertEqual([e.score for e in log.recent()], [2, 3, 4])
        self.assertEqual([e.score for e in log.recent(2)], [3, 4])
        log.clear()
        self.assertEqual(log.recent(), [])

    def test_transcript_buffer(self):
        buffer = TranscriptBuffer()
        buffer.append(" hello ")
        buffer.append("   ")
        buffer.append("your parcel")
        self.assertEqual(buffer.text(), "hello your parcel")
        self.assertEqual(len(buffer), 2)

    def test_language_names(self):
        self.assertEqual(language_name("hi-IN"), "Hindi")
        self.assertEqual(language_name("te_IN"), "Telugu")
        self.assertEqual(language_name("fr-FR"), "fr-FR")
        self.assertEqual(language_name(None), "Unknown")


# ===================================================================
# 4. Webhook
# ===================================================================

class _FakeResponse:
    def __init__(self, status):
        self.status = status


class _FakeRequest:
    def __init__(self, outcome):
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return _FakeResponse(self._outcome)

    async def __aexit__(self, exc_type, exc, tb):
        return False


class _FakeSession:
    """Each post() consumes the next outcome: a status code or an exception."""

    def __init__(self, outcomes):
        self._outcomes = list(outcomes)
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs["json"]))
        return _FakeRequest(self._outcomes.pop(0))


class TestWebhookPolicy(unittest.TestCase):

    def test_backoff_schedule(self):
        self.assertEqual(backoff_delays(), [1.0, 2.0, 4.0, 8.0])
        self.assertEqual(backoff_delays(6, base=10.0), [10.0, 20.0, 30.0, 30.0, 30.0, 30.0])

    def test_retryable(self):
        self.assertTrue(is_retryable(WebhookDeliveryError(503, "u")))
        self.assertTrue(is_retryable(WebhookDeliveryError(429, "u")))
        self.assertFalse(is_retryable(WebhookDeliveryError(404, "u")))
        self.assertTrue(is_retryable(aiohttp.ClientConnectionError()))
        self.assertTrue(is_retryable(asyncio.TimeoutError()))
        self.assertFalse(is_retryable(ValueError("bad payload")))


class TestWebhookDelivery(unittest.TestCase):
    URL = "https://example.invalid/hook"

    def _post(self, session, delays=(0.0, 0.0)):
        payload = {"type": "StatusMessage", "message": "hi"}
        return asyncio.run(post_with_retry(session, self.URL, payload, list(delays)))

    def test_first_attempt_succeeds(self):
        session = _FakeSession([200])
        self.assertEqual(self._post(session), 200)
        self.assertEqual(len(session.calls), 1)
        self.assertEqual(session.calls[0][1]["message"], "hi")

    def test_transient_failure_retried(self):
        session = _FakeSession([503, aiohttp.ClientConnectionError(), 204])
        self.assertEqual(self._post(session), 204)
        self.assertEqual(len(session.calls), 3)

    def test_permanent_failure_not_retried(self):
        session = _FakeSession([404, 200])
        with self.assertRaises(WebhookDeliveryError) as ctx:
            self._post(session)
        self.assertEqual(ctx.exception.status, 404)
        self.assertEqual(len(session.calls), 1)

    def test_retries_exhausted(self):
        session = _FakeSession([500, 500, 500, 200])
        with self.assertRaises(WebhookDeliveryError):
            self._post(session)
        self.assertEqual(len(session.calls), 3)


if __name__ == "__main__":
    unittest.main()
