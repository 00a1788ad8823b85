"""
callshield/audio/strategies.py
===============================
Recording strategy catalogue — CallShield

Capture strategies in the fixed order they are attempted. Each profile
names the audio source to open, the container/codec/rate parameters and
the settle delay between preparing the capture and starting it.

    VOICE_RECOGNITION    mpeg4 / aac     44.1 kHz  128 kbps  0.5 s
    VOICE_COMMUNICATION  mpeg4 / he-aac  48 kHz    192 kbps  0.5 s
    VOICE_CALL           mpeg4 / aac     44.1 kHz  128 kbps  1.0 s
    MIC_WITH_SPEAKER     mpeg4 / aac     44.1 kHz  128 kbps  (speakerphone forced)
    MIC_ONLY             3gpp  / amr-nb  8 kHz     12.2 kbps
"""

from dataclasses import dataclass
from enum import Enum


class AudioSource(str, Enum):
    MIC = "MIC"
    VOICE_RECOGNITION = "VOICE_RECOGNITION"
    VOICE_COMMUNICATION = "VOICE_COMMUNICATION"
    VOICE_CALL = "VOICE_CALL"
    CAMCORDER = "CAMCORDER"


class RecordingStrategy(str, Enum):
    VOICE_RECOGNITION = "VOICE_RECOGNITION"
    VOICE_COMMUNICATION = "VOICE_COMMUNICATION"
    VOICE_CALL = "VOICE_CALL"
    MIC_WITH_SPEAKER = "MIC_WITH_SPEAKER"
    MIC_ONLY = "MIC_ONLY"


CONTAINER_EXTENSIONS: dict[str, str] = {
    "mpeg4": ".m4a",
    "3gpp": ".3gp",
}


@dataclass(frozen=True)
class StrategyProfile:
    strategy: RecordingStrategy
    source: AudioSource
    label: str
    container: str
    codec: str
    sample_rate: int
    bit_rate: int
    settle_seconds: float = 0.0
    force_speakerphone: bool = False

    @property
    def extension(self) -> str:
        return CONTAINER_EXTENSIONS[self.container]


STRATEGY_ORDER: tuple[StrategyProfile, ...] = (
    StrategyProfile(
        strategy=RecordingStrategy.VOICE_RECOGNITION,
        source=AudioSource.VOICE_RECOGNITION,
        label="Voice Recognition (Most Compatible)",
        container="mpeg4", codec="aac",
        sample_rate=44100, bit_rate=128000, settle_seconds=0.5,
    ),
    StrategyProfile(
        strategy=RecordingStrategy.VOICE_COMMUNICATION,
        source=AudioSource.VOICE_COMMUNICATION,
        label="Voice Communication (VoIP Optimized)",
        container="mpeg4", codec="he-aac",
        sample_rate=48000, bit_rate=192000, settle_seconds=0.5,
    ),
    StrategyProfile(
        strategy=RecordingStrategy.VOICE_CALL,
        source=AudioSource.VOICE_CALL,
        label="Voice Call (High Quality)",
        container="mpeg4", codec="aac",
        sample_rate=44100, bit_rate=128000, settle_seconds=1.0,
    ),
    StrategyProfile(
        strategy=RecordingStrategy.MIC_WITH_SPEAKER,
        source=AudioSource.MIC,
        label="Microphone with Speaker",
        container="mpeg4", codec="aac",
        sample_rate=44100, bit_rate=128000, force_speakerphone=True,
    ),
    StrategyProfile(
        strategy=RecordingStrategy.MIC_ONLY,
        source=AudioSource.MIC,
        label="Microphone Only (Limited)",
        container="3gpp", codec="amr-nb",
        sample_rate=8000, bit_rate=12200,
    ),
)

# Sources checked by the capability probe, in report order
PROBE_SOURCES: tuple[AudioSource, ...] = (
    AudioSource.MIC,
    AudioSource.VOICE_RECOGNITION,
    AudioSource.VOICE_COMMUNICATION,
    AudioSource.VOICE_CALL,
    AudioSource.CAMCORDER,
)


def format_source_report(results: dict[AudioSource, bool]) -> str:
    """Plain-text capability report, one source per line."""
    lines = ["Audio Source Compatibility:"]
    for source in PROBE_SOURCES:
        if source in results:
            status = "supported" if results[source] else "not supported"
            lines.append(f"- {source.value}: {status}")
    supported = sum(1 for ok in results.values() if ok)
    lines.append(f"{supported}/{len(results)} sources available")
    return "\n".join(lines)
