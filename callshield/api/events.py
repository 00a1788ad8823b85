"""
callshield/api/events.py
=========================
HTTP bridge — CallShield

Responsibility:
    - Receive telephony transitions and recognizer results from the host
      shell and feed them to the call controller
    - Accept raw PCM for the desktop capture backend
    - Expose the current risk state, recent events and the audio source probe
    - Score ad-hoc text with the pattern engine

Endpoints:
    POST /api/v1/calls/state         {"state": "RINGING", "phone_number": "..."}
    POST /api/v1/speech/partial      {"text": "...", "language": "hi-IN"}
    POST /api/v1/speech/final        {"text": "...", "language": "...", "confidence": 0.9}
    POST /api/v1/speech/error        {"message": "..."}
    POST /api/v1/recording/frames    raw 16-bit mono PCM body
    GET  /api/v1/recording/sources
    GET  /api/v1/risk
    GET  /api/v1/events?limit=50
    POST /api/v1/analyze-text        {"text": "..."}
                                     response adds lexicon_version and
                                     pattern_count

Error mapping:
    ConfigurationError → 422, any other failure → 500.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from callshield.audio.strategies import format_source_report
from callshield.config import load_settings
from callshield.engine import Engine, build_engine
from callshield.errors import ConfigurationError
from callshield.events import event_to_dict
from callshield.risk.lexicon import LEXICON_VERSION, pattern_count
from callshield.risk.scorer import score_text

logger = logging.getLogger("callshield.api")


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class CallStateRequest(BaseModel):
    state: str
    phone_number: str | None = None


class PartialSpeechRequest(BaseModel):
    text: str
    language: str | None = None


class FinalSpeechRequest(BaseModel):
    text: str
    language: str | None = None
    confidence: float | None = None


class SpeechErrorRequest(BaseModel):
    message: str


class AnalyzeTextRequest(BaseModel):
    text: str


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def create_app(engine: Engine | None = None) -> FastAPI:
    """
    Build the FastAPI app around ``engine``.

    Without an engine one is built from the environment at startup and
    shut down with the app.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.engine is None
        if owned:
            app.state.engine = build_engine(load_settings())
        try:
            yield
        finally:
            if owned:
                await asyncio.to_thread(app.state.engine.shutdown)

    app = FastAPI(
        title="CallShield",
        description="Real-time phone-call scam risk engine.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _engine() -> Engine:
        current = app.state.engine
        if current is None:
            raise HTTPException(status_code=503, detail="Engine not started.")
        return current

    async def _run(func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except ConfigurationError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        except HTTPException:
            raise
        except Exception as exc:
            logger.error("Request failed: %s", exc, exc_info=True)
            raise HTTPException(status_code=500, detail=f"Request failed: {exc}")

    # ------------------------------------------------------------------
    # Telephony
    # ------------------------------------------------------------------

    @app.post("/api/v1/calls/state")
    async def call_state(body: CallStateRequest):
        engine = _engine()
        await _run(engine.controller.handle_call_state, body.state, body.phone_number)
        return engine.controller.status()

    # ------------------------------------------------------------------
    # Speech
    # ------------------------------------------------------------------

    @app.post("/api/v1/speech/partial")
    async def speech_partial(body: PartialSpeechRequest):
        engine = _engine()
        accepted = await _run(engine.recognizer.deliver_partial, body.text, body.language)
        return {"accepted": accepted, "max_score": engine.arbitrator.snapshot().max_score}

    @app.post("/api/v1/speech/final")
    async def speech_final(body: FinalSpeechRequest):
        engine = _engine()
        accepted = await _run(
            engine.recognizer.deliver_final, body.text, body.language, body.confidence,
        )
        return {"accepted": accepted, "max_score": engine.arbitrator.snapshot().max_score}

    @app.post("/api/v1/speech/error")
    async def speech_error(body: SpeechErrorRequest):
        engine = _engine()
        accepted = await _run(engine.recognizer.deliver_error, body.message)
        return {"accepted": accepted}

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    @app.post("/api/v1/recording/frames")
    async def recording_frames(request: Request):
        engine = _engine()
        if not engine.recorder.is_recording:
            raise HTTPException(status_code=409, detail="No recording in progress.")
        pcm = await request.body()
        if not pcm:
            raise HTTPException(status_code=400, detail="Empty frame payload.")
        await _run(engine.backend.write_frames, pcm)
        return {"received_bytes": len(pcm)}

    @app.get("/api/v1/recording/sources")
    async def recording_sources():
        engine = _engine()
        results = await _run(engine.recorder.test_sources)
        return {
            "sources": {source.value: ok for source, ok in results.items()},
            "report": format_source_report(results),
        }

    # ------------------------------------------------------------------
    # Risk
    # ------------------------------------------------------------------

    @app.get("/api/v1/risk")
    async def risk():
        return _engine().controller.status()

    @app.get("/api/v1/events")
    async def events(limit: int = 50):
        recent = _engine().events.recent(max(1, min(limit, 200)))
        return {"events": [event_to_dict(e) for e in recent]}

    @app.post("/api/v1/analyze-text")
    async def analyze_text(body: AnalyzeTextRequest):
        result = await _run(score_text, body.text)
        payload = result.to_dict()
        payload["lexicon_version"] = LEXICON_VERSION
        payload["pattern_count"] = pattern_count()
        return payload

    return app


app = create_app()
