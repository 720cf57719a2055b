"""Handles assembling subtitle blocks into SRT text and writing it out."""

import logging
from typing import Iterable

from .models import SubtitleBlock
from .exceptions import FormattingError

logger = logging.getLogger(__name__)

def format_block(block: SubtitleBlock) -> str:
    """
    Formats one block in SRT form: id, time range, text and a blank line.

    Times are used exactly as the model produced them.
    """
    return f"{block.id}\n{block.start_time} --> {block.end_time}\n{block.text}\n\n"


class SRTAssembler:
    """Accumulates SubtitleBlocks, in arrival order, into SubRip text."""

    def __init__(self):
        self._parts = []
        self.block_count = 0

    @property
    def text(self) -> str:
        """The text accumulated so far, untrimmed."""
        return "".join(self._parts)

    def append(self, block: SubtitleBlock) -> None:
        """Appends a block. Earlier content is never rewritten or reordered."""
        self._parts.append(format_block(block))
        self.block_count += 1

    def extend(self, blocks: Iterable[SubtitleBlock]) -> None:
        for block in blocks:
            self.append(block)

    def reset(self) -> None:
        self._parts = []
        self.block_count = 0

    def finalize(self) -> str:
        """Returns the accumulated text with trailing whitespace trimmed."""
        return self.text.rstrip()

    def write(self, output_path: str) -> str:
        """
        Writes the finalized SRT text to a file.

        Args:
            output_path: Destination path of the .srt file.

        Returns:
            The path written.

        Raises:
            FormattingError: If the file cannot be written.
        """
        logger.info(f"Writing {self.block_count} subtitle blocks to {output_path}")
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(self.finalize())
        except OSError as e:
            logger.error(f"Failed to write SRT file to {output_path}: {e}", exc_info=True)
            raise FormattingError(f"Could not write SRT file: {e}") from e
        logger.info(f"Successfully wrote SRT file: {output_path}")
        return output_path
