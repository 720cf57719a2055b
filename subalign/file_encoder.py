"""Reads the user's input files into the form sent to the model."""

import base64
import logging
import mimetypes
import os
from typing import Optional

from .models import EncodedAudio
from .exceptions import InputFileError

logger = logging.getLogger(__name__)

class FileEncoder:
    """Turns a transcript into text and an audio file into a base64 payload."""

    def __init__(self, default_mime_type: str = "audio/mpeg"):
        """
        Initializes the FileEncoder.

        Args:
            default_mime_type: MIME type used when neither the file name nor
                               the caller gives one.
        """
        self.default_mime_type = default_mime_type

    def read_text(self, file_path: str) -> str:
        """
        Reads the full contents of a transcript file as UTF-8.

        Args:
            file_path: Path to the transcript file.

        Returns:
            The file contents.

        Raises:
            InputFileError: If the file is missing, unreadable or not valid UTF-8.
        """
        logger.info(f"Reading transcript: {file_path}")
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Could not read transcript file {file_path}: {e}")
            raise InputFileError(f"Could not read transcript file {file_path}: {e}") from e
        logger.debug(f"Transcript read: {len(text)} characters")
        return text

    def read_as_base64(self, file_path: str, declared_mime_type: Optional[str] = None) -> EncodedAudio:
        """
        Reads an audio file and base64-encodes its raw bytes.

        The MIME type comes from the file's container type (guessed from its
        name), then `declared_mime_type`, then the encoder default.

        Args:
            file_path: Path to the audio file.
            declared_mime_type: MIME type the caller already knows, if any.

        Returns:
            An EncodedAudio payload.

        Raises:
            InputFileError: If the file cannot be read.
        """
        logger.info(f"Reading audio: {file_path}")
        try:
            with open(file_path, 'rb') as f:
                raw = f.read()
        except OSError as e:
            logger.error(f"Could not read audio file {file_path}: {e}")
            raise InputFileError(f"Could not read audio file {file_path}: {e}") from e

        mime_type = self.resolve_mime_type(file_path, declared_mime_type)
        data = base64.b64encode(raw).decode('ascii')
        logger.debug(f"Audio encoded: {len(raw)} bytes as {mime_type}")
        return EncodedAudio(mime_type=mime_type, data=data)

    def resolve_mime_type(self, file_path: str, declared_mime_type: Optional[str] = None) -> str:
        guessed, _ = mimetypes.guess_type(os.path.basename(file_path))
        return guessed or declared_mime_type or self.default_mime_type
