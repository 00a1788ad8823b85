"""
callshield/audio/backend.py
============================
Capture backends — CallShield

The recorder state machine drives capture through two narrow protocols so
the platform specifics stay outside it:

    CaptureBackend  probe / prepare / start / stop / release
    AudioRouting    speakerphone and call-volume control

``PydubCaptureBackend`` is the desktop implementation used by the HTTP
service: the host pushes PCM frames in with ``write_frames`` and the
buffered audio is encoded with pydub (ffmpeg) when capture stops.
Sources listed as unsupported fail at probe and prepare time, which is how
a device without call-audio access is modelled.
"""

import logging
import threading
from typing import Iterable, Protocol

from pydub import AudioSegment

from callshield.audio.strategies import AudioSource, StrategyProfile

logger = logging.getLogger("callshield.audio.backend")


class CaptureBackend(Protocol):
    def probe(self, source: AudioSource) -> None:
        """Open and immediately release ``source``; raise if unavailable."""

    def prepare(self, profile: StrategyProfile, output_path: str) -> None:
        """Configure a capture for ``profile`` writing to ``output_path``."""

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def release(self) -> None:
        """Free any capture resource. Safe to call when nothing is held."""


class AudioRouting(Protocol):
    def set_speakerphone(self, enabled: bool) -> None: ...

    def call_volume(self) -> int: ...

    def max_call_volume(self) -> int: ...

    def set_call_volume(self, level: int) -> None: ...


# ---------------------------------------------------------------------------
# Desktop implementations
# ---------------------------------------------------------------------------

# Container → ffmpeg muxer
_EXPORT_FORMATS: dict[str, str] = {"mpeg4": "mp4", "3gpp": "3gp"}
# Codec → ffmpeg encoder
_EXPORT_CODECS: dict[str, str] = {
    "aac": "aac",
    "he-aac": "aac",
    "amr-nb": "libopencore_amrnb",
}


class PydubCaptureBackend:
    """Buffers pushed PCM and encodes it with pydub when capture stops."""

    def __init__(
        self,
        unsupported_sources: Iterable[AudioSource] = (),
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        self._unsupported = frozenset(unsupported_sources)
        self._sample_width = sample_width
        self._channels = channels
        self._lock = threading.Lock()
        self._profile: StrategyProfile | None = None
        self._output_path: str | None = None
        self._frames = bytearray()
        self._capturing = False

    def probe(self, source: AudioSource) -> None:
        if source in self._unsupported:
            raise RuntimeError(f"Audio source {source.value} is not available")

    def prepare(self, profile: StrategyProfile, output_path: str) -> None:
        self.probe(profile.source)
        with self._lock:
            if self._profile is not None:
                raise RuntimeError("Capture already prepared")
            self._profile = profile
            self._output_path = output_path
            self._frames = bytearray()

    def start(self) -> None:
        with self._lock:
            if self._profile is None:
                raise RuntimeError("Capture not prepared")
            self._capturing = True
        logger.debug("Capture started for %s", self._output_path)

    def write_frames(self, pcm: bytes) -> None:
        """Append raw little-endian PCM at the profile's sample rate."""
        with self._lock:
            if not self._capturing:
                raise RuntimeError("Capture not running")
            self._frames.extend(pcm)

    def stop(self) -> None:
        with self._lock:
            if not self._capturing or self._profile is None:
                raise RuntimeError("Capture not running")
            self._capturing = False
            profile, path = self._profile, self._output_path
            frame_bytes = self._sample_width * self._channels
            usable = len(self._frames) - len(self._frames) % frame_bytes
            data = bytes(self._frames[:usable])

        segment = AudioSegment(
            data=data,
            sample_width=self._sample_width,
            frame_rate=profile.sample_rate,
            channels=self._channels,
        )
        segment.export(
            path,
            format=_EXPORT_FORMATS[profile.container],
            codec=_EXPORT_CODECS[profile.codec],
            bitrate=f"{profile.bit_rate / 1000:g}k",
        )
        logger.info("Capture written to %s (%.1fs)", path, len(segment) / 1000.0)

    def release(self) -> None:
        with self._lock:
            self._profile = None
            self._output_path = None
            self._frames = bytearray()
            self._capturing = False


class DesktopAudioRouting:
    """In-memory routing state for hosts without a telephony audio stack."""

    def __init__(self, max_volume: int = 5, volume: int = 3) -> None:
        self._max_volume = max_volume
        self._volume = volume
        self.speakerphone = False

    def set_speakerphone(self, enabled: bool) -> None:
        self.speakerphone = enabled
        logger.debug("Speakerphone %s", "on" if enabled else "off")

    def call_volume(self) -> int:
        return self._volume

    def max_call_volume(self) -> int:
        return self._max_volume

    def set_call_volume(self, level: int) -> None:
        self._volume = max(0, min(self._max_volume, level))
