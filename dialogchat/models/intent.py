"""Intent detection request/response models."""

from dataclasses import dataclass, field
from typing import List

DEFAULT_BIAS_PHRASES = (
    "Dialogflow CX",
    "Dialogflow Essentials",
    "Action Builder",
    "HIPAA",
)
DEFAULT_BIAS_BOOST = 20.0


@dataclass(frozen=True)
class IntentResult:
    """Result of a non-streaming intent detection call."""
    query_text: str = ""
    fulfillment_text: str = ""


@dataclass(frozen=True)
class StreamingResult:
    """One message received on a streaming intent detection call.

    A message carries either a recognition update (``partial_transcript``),
    a query result (``query_text``/``fulfillment_text``), or both.
    """
    partial_transcript: str = ""
    is_final: bool = False
    query_text: str = ""
    fulfillment_text: str = ""


@dataclass
class BiasPhrases:
    """Hint list passed to the recognizer to boost specific vocabulary."""
    phrases: List[str] = field(default_factory=lambda: list(DEFAULT_BIAS_PHRASES))
    boost: float = DEFAULT_BIAS_BOOST


@dataclass
class StreamingConfig:
    """Audio input configuration for a streaming session."""
    encoding: str = "AUDIO_ENCODING_LINEAR_16"
    language_code: str = "en-US"
    sample_rate_hertz: int = 16000
    single_utterance: bool = False
    bias_phrases: BiasPhrases = field(default_factory=BiasPhrases)
