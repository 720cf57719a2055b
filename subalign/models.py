"""Data models for SubAlign."""

from dataclasses import dataclass

@dataclass
class SubtitleBlock:
    """Represents a single timed caption entry as emitted by the model."""
    id: int
    start_time: str  # HH:MM:SS,mmm, used verbatim
    end_time: str
    text: str

@dataclass
class EncodedAudio:
    """Audio payload ready for transmission. Never written to disk."""
    mime_type: str
    data: str  # base64
