"""Splits the model's streamed text into validated subtitle blocks."""

import json
import logging
from typing import Callable, Iterable, Optional

from .models import SubtitleBlock
from .exceptions import RecordParseError

logger = logging.getLogger(__name__)

BlockCallback = Callable[[SubtitleBlock], None]
SkipCallback = Callable[[str], None]

# Wire field -> expected primitive type(s)
REQUIRED_FIELDS = (
    ('id', (int, float)),
    ('startTime', str),
    ('endTime', str),
    ('text', str),
)

def _reject_constant(name: str):
    # NaN and Infinity are not JSON
    raise ValueError(f"Non-standard JSON constant {name}")

def parse_subtitle_record(line: str) -> SubtitleBlock:
    """
    Parses one line of model output into a SubtitleBlock.

    Args:
        line: A single, already trimmed line of text.

    Returns:
        The validated SubtitleBlock.

    Raises:
        RecordParseError: If the line is not a JSON object, or a required
                          field is missing or has the wrong type.
    """
    try:
        record = json.loads(line, parse_constant=_reject_constant)
    except ValueError as e:
        raise RecordParseError(f"Line is not valid JSON: {e}") from e

    if not isinstance(record, dict):
        raise RecordParseError(f"Expected a JSON object, got {type(record).__name__}")

    for name, expected in REQUIRED_FIELDS:
        if name not in record:
            raise RecordParseError(f"Missing field '{name}'")
        value = record[name]
        # bool is an int subclass but never a valid id
        if isinstance(value, bool) or not isinstance(value, expected):
            raise RecordParseError(f"Field '{name}' has wrong type {type(value).__name__}")

    block_id = record['id']
    if isinstance(block_id, float) and block_id.is_integer():
        block_id = int(block_id)

    return SubtitleBlock(
        id=block_id,
        start_time=record['startTime'],
        end_time=record['endTime'],
        text=record['text'],
    )


class StreamParser:
    """
    Incremental newline-delimited JSON parser.

    Chunks may split a record anywhere or carry several records at once; the
    parser keeps only the unterminated tail between calls to `feed`. Each
    valid record is handed to `on_block` as soon as its line is complete.
    Invalid lines are logged, reported to `on_skip` if given, and dropped.
    """

    def __init__(self, on_block: BlockCallback, on_skip: Optional[SkipCallback] = None):
        self.on_block = on_block
        self.on_skip = on_skip
        self.buffer = ""
        self.delivered = 0
        self.skipped = 0

    def feed(self, chunk: Optional[str]) -> None:
        """Appends a chunk and dispatches every complete line it finishes."""
        if not chunk:
            return
        self.buffer += chunk
        newline_index = self.buffer.find('\n')
        while newline_index != -1:
            line = self.buffer[:newline_index].strip()
            self.buffer = self.buffer[newline_index + 1:]
            if line:
                self._dispatch(line)
            newline_index = self.buffer.find('\n')

    def close(self) -> None:
        """Handles a final record left without a trailing newline."""
        line = self.buffer.strip()
        self.buffer = ""
        if line:
            self._dispatch(line, final=True)
        if self.skipped:
            logger.warning(f"Stream finished: {self.delivered} blocks delivered, {self.skipped} lines skipped.")
        else:
            logger.info(f"Stream finished: {self.delivered} blocks delivered.")

    def _dispatch(self, line: str, final: bool = False) -> None:
        try:
            block = parse_subtitle_record(line)
        except RecordParseError as e:
            self.skipped += 1
            where = "final buffer" if final else "streaming line"
            logger.warning(f"Failed to parse {where}, skipping ({e}): {line[:120]}")
            if self.on_skip is not None:
                self.on_skip(line)
            return
        self.delivered += 1
        logger.debug(f"Block {block.id}: {block.start_time} --> {block.end_time}")
        self.on_block(block)


def consume_stream(
    chunks: Iterable[Optional[str]],
    on_block: BlockCallback,
    on_skip: Optional[SkipCallback] = None
) -> StreamParser:
    """
    Feeds every chunk of `chunks` through a new StreamParser, in order.

    Exceptions raised by the iterable itself propagate unchanged; blocks
    already passed to `on_block` stay delivered.

    Returns:
        The closed parser, for its delivered/skipped counters.
    """
    parser = StreamParser(on_block, on_skip)
    for chunk in chunks:
        parser.feed(chunk)
    parser.close()
    return parser
