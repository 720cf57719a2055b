"""Utility functions for SubAlign."""

import os
import logging
from typing import Optional
from .exceptions import FileSystemError

logger = logging.getLogger(__name__)

DEFAULT_SRT_BASENAME = "subtitles"

def ensure_dir_exists(dir_path: str) -> None:
    """
    Ensures that a directory exists. Creates it if it doesn't.

    Args:
        dir_path: The path to the directory.

    Raises:
        FileSystemError: If the directory cannot be created due to permissions
                         or if the path exists but is not a directory.
    """
    if not dir_path:
        raise ValueError("Directory path cannot be empty.")
    try:
        if not os.path.exists(dir_path):
            os.makedirs(dir_path)
            logger.info(f"Created directory: {dir_path}")
        elif not os.path.isdir(dir_path):
            raise FileSystemError(f"Path exists but is not a directory: {dir_path}")
    except OSError as e:
        logger.error(f"Error creating or accessing directory {dir_path}: {e}", exc_info=True)
        raise FileSystemError(f"Could not create or access directory {dir_path}: {e}") from e

def srt_filename_for(audio_path: Optional[str]) -> str:
    """
    Derives the subtitle filename from the audio file's base name.

    The last extension is replaced by '.srt'. Falls back to 'subtitles.srt'
    when no usable audio name is available.

    Args:
        audio_path: Path (or bare name) of the audio file, or None.

    Returns:
        The subtitle file name, without any directory part.
    """
    base_name = ""
    if audio_path:
        base_name = os.path.splitext(os.path.basename(audio_path))[0]
    return f"{base_name or DEFAULT_SRT_BASENAME}.srt"
