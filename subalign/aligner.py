"""Handles transcript-to-audio alignment using a Gemini model."""

import base64
import logging
from abc import ABC, abstractmethod
from typing import Iterator, Optional

from google import genai
from google.genai import types

from .models import EncodedAudio
from .stream_parser import BlockCallback, SkipCallback, StreamParser, consume_stream
from .exceptions import TransportError

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "gemini-2.5-flash"
TRANSPORT_FAILURE_MESSAGE = "Failed to communicate with the AI model."

ALIGNMENT_PROMPT = """You are an expert audio-to-text synchronizer. Your task is to create perfectly synchronized subtitle data.

You will be given a full text transcript and the corresponding audio file.

Analyze the audio and align the provided text precisely with the speech timings.

The output must be a stream of valid JSON objects, with each object on a new line. Each JSON object represents a single subtitle block and must contain:
- "id": a sequential number starting from 1.
- "startTime": a string in 'HH:MM:SS,mmm' format.
- "endTime": a string in 'HH:MM:SS,mmm' format.
- "text": a string with the subtitle content.

Do not wrap the objects in a JSON array. Do not output any introductory text, closing text, or any markdown formatting like ```json. Just the raw JSON objects, one per line."""

def format_transcript_part(transcript: str) -> str:
    return f"TRANSCRIPT:\n---\n{transcript}\n---"

class SubtitleAligner(ABC):
    """Abstract base class for services that time-align a transcript to audio."""

    @abstractmethod
    def align(
        self,
        transcript: str,
        audio: EncodedAudio,
        on_block: BlockCallback,
        on_skip: Optional[SkipCallback] = None
    ) -> StreamParser:
        """
        Aligns the transcript with the audio, streaming blocks as they arrive.

        Args:
            transcript: The full transcript text.
            audio: The encoded audio payload.
            on_block: Called once per valid SubtitleBlock, in arrival order.
            on_skip: Called with each malformed line that was dropped.

        Returns:
            The closed StreamParser (delivered/skipped counters).

        Raises:
            TransportError: If the request or the stream fails. Blocks already
                            passed to `on_block` are not retracted.
        """
        pass

class GeminiAligner(SubtitleAligner):
    """Implements alignment with a single streamed Gemini generate_content call."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = DEFAULT_MODEL_NAME,
        client: Optional[genai.Client] = None,
        prompt: str = ALIGNMENT_PROMPT
    ):
        """
        Initializes the GeminiAligner.

        Args:
            api_key: Gemini API key. Ignored when `client` is given.
            model_name: Name of the Gemini model to call.
            client: An existing genai.Client (or compatible object).
            prompt: The fixed instruction describing the output format.
        """
        self.model_name = model_name
        self.prompt = prompt
        self.client = client if client is not None else genai.Client(api_key=api_key)
        logger.info(f"Initialized GeminiAligner with model '{self.model_name}'")

    def build_contents(self, transcript: str, audio: EncodedAudio) -> list:
        """Builds the three request parts: instruction, transcript, audio."""
        return [
            types.Part.from_text(text=self.prompt),
            types.Part.from_text(text=format_transcript_part(transcript)),
            types.Part.from_bytes(data=base64.b64decode(audio.data), mime_type=audio.mime_type),
        ]

    def _stream_text(self, transcript: str, audio: EncodedAudio) -> Iterator[Optional[str]]:
        stream = self.client.models.generate_content_stream(
            model=self.model_name,
            contents=self.build_contents(transcript, audio),
        )
        for chunk in stream:
            # Chunks carrying only metadata have text None
            yield chunk.text

    def align(
        self,
        transcript: str,
        audio: EncodedAudio,
        on_block: BlockCallback,
        on_skip: Optional[SkipCallback] = None
    ) -> StreamParser:
        logger.info(f"Requesting aligned subtitles from '{self.model_name}' ({audio.mime_type}, {len(transcript)} transcript chars)")
        try:
            return consume_stream(self._stream_text(transcript, audio), on_block, on_skip)
        except Exception as e:
            logger.error(f"Error calling Gemini API: {e}", exc_info=True)
            raise TransportError(TRANSPORT_FAILURE_MESSAGE) from e
