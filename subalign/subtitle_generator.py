"""Orchestrates a subtitle generation run."""

import logging
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from .aligner import SubtitleAligner
from .file_encoder import FileEncoder
from .subtitle_assembler import SRTAssembler
from .models import SubtitleBlock
from .exceptions import SubAlignError, GenerationError
from .utils import ensure_dir_exists, srt_filename_for

logger = logging.getLogger(__name__)

USER_ERROR_MESSAGE = "Failed to generate subtitles. Please check the files and try again."

class Phase(Enum):
    """Coarse run phases, each with a fixed progress checkpoint and message."""
    IDLE = "idle"
    PREPARING = "preparing"
    UPLOADING = "uploading"
    GENERATING = "generating"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def percent(self) -> int:
        return PHASE_CHECKPOINTS[self][0]

    @property
    def message(self) -> str:
        return PHASE_CHECKPOINTS[self][1]

# Fixed checkpoints, not proportional to real work
PHASE_CHECKPOINTS = {
    Phase.IDLE: (0, ""),
    Phase.PREPARING: (10, "Preparing files..."),
    Phase.UPLOADING: (30, "Uploading and analyzing audio..."),
    Phase.GENERATING: (50, "Generating synchronized subtitles..."),
    Phase.SUCCESS: (100, "Subtitles generated successfully!"),
    Phase.ERROR: (0, ""),
}

RUNNING_PHASES = (Phase.PREPARING, Phase.UPLOADING, Phase.GENERATING)

@dataclass
class GenerationState:
    """Everything the user interface shows. Changed only by SubtitleGenerator."""
    transcript_path: Optional[str] = None
    audio_path: Optional[str] = None
    phase: Phase = Phase.IDLE
    progress: int = 0
    message: str = ""
    error: Optional[str] = None
    srt_content: str = ""
    blocks: List[SubtitleBlock] = field(default_factory=list)
    skipped_lines: int = 0
    generation_id: int = 0

    @property
    def is_running(self) -> bool:
        return self.phase in RUNNING_PHASES

StateListener = Callable[[GenerationState], None]

class SubtitleGenerator:
    """
    Manages one transcript + audio pair through encode, request, parse and assemble.

    Each call to `generate` gets a new generation id. Blocks arriving for an
    older id are ignored, so a stale stream can never write into the current
    run's subtitles.
    """

    def __init__(
        self,
        aligner: SubtitleAligner,
        file_encoder: Optional[FileEncoder] = None,
    ):
        """
        Initializes the SubtitleGenerator.

        Args:
            aligner: The service that turns transcript + audio into blocks.
            file_encoder: Reads the input files. A default FileEncoder if None.
        """
        self.aligner = aligner
        self.file_encoder = file_encoder or FileEncoder()
        self.assembler = SRTAssembler()
        self.state = GenerationState()
        self._listeners: List[StateListener] = []

    def add_listener(self, listener: StateListener) -> None:
        """Registers a callable notified after every phase change and block."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self.state)

    def _set_phase(self, phase: Phase) -> None:
        self.state.phase = phase
        self.state.progress = phase.percent
        self.state.message = phase.message
        logger.info(f"Phase: {phase.name} ({phase.percent}%)")
        self._notify()

    def _clear_output(self) -> None:
        self.assembler.reset()
        self.state.srt_content = ""
        self.state.blocks = []
        self.state.skipped_lines = 0
        self.state.error = None

    def select_transcript(self, path: Optional[str]) -> None:
        """Selects (or clears, with None) the transcript file."""
        self.state.transcript_path = path
        self._clear_output()
        self._notify()

    def select_audio(self, path: Optional[str]) -> None:
        """Selects (or clears, with None) the audio file."""
        self.state.audio_path = path
        self._clear_output()
        self._notify()

    @property
    def can_generate(self) -> bool:
        return bool(self.state.transcript_path and self.state.audio_path and not self.state.is_running)

    def _block_handler(self, generation_id: int) -> Callable[[SubtitleBlock], None]:
        def on_block(block: SubtitleBlock) -> None:
            if generation_id != self.state.generation_id:
                logger.warning(f"Ignoring block {block.id} from stale generation {generation_id}")
                return
            self.assembler.append(block)
            self.state.blocks.append(block)
            self.state.srt_content = self.assembler.text
            self._notify()
        return on_block

    def _skip_handler(self, generation_id: int) -> Callable[[str], None]:
        def on_skip(line: str) -> None:
            if generation_id != self.state.generation_id:
                return
            self.state.skipped_lines += 1
        return on_skip

    def generate(self) -> str:
        """
        Runs the full pipeline for the selected files.

        Returns:
            The finalized SRT text.

        Raises:
            GenerationError: If files are missing, or any step fails. The
                             state is left in Phase.ERROR with a single
                             user-facing message.
        """
        if not self.can_generate:
            raise GenerationError("Select both a transcript and an audio file before generating.")

        self.state.generation_id += 1
        generation_id = self.state.generation_id
        self._clear_output()
        start_time = time.time()
        logger.info(f"--- Starting generation {generation_id} for: {self.state.audio_path} ---")

        try:
            self._set_phase(Phase.PREPARING)
            transcript = self.file_encoder.read_text(self.state.transcript_path)

            self._set_phase(Phase.UPLOADING)
            audio = self.file_encoder.read_as_base64(self.state.audio_path)

            self._set_phase(Phase.GENERATING)
            self.aligner.align(
                transcript,
                audio,
                self._block_handler(generation_id),
                self._skip_handler(generation_id),
            )
        except SubAlignError as e:
            logger.error(f"Generation {generation_id} failed: {e}", exc_info=False)
            self._fail()
            raise GenerationError(USER_ERROR_MESSAGE) from e
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred during generation {generation_id}: {e}", exc_info=True)
            self._fail()
            raise GenerationError(USER_ERROR_MESSAGE) from e

        self._set_phase(Phase.SUCCESS)
        end_time = time.time()
        logger.info(
            f"--- Generation {generation_id} completed in {end_time - start_time:.2f} seconds: "
            f"{self.assembler.block_count} blocks, {self.state.skipped_lines} lines skipped ---"
        )
        return self.assembler.finalize()

    def _fail(self) -> None:
        self.state.error = USER_ERROR_MESSAGE
        self._set_phase(Phase.ERROR)

    def download_filename(self) -> str:
        return srt_filename_for(self.state.audio_path)

    def export(self, output_dir: str) -> str:
        """
        Writes the current subtitles into `output_dir`.

        Returns:
            The path of the written .srt file.

        Raises:
            GenerationError: If there is nothing to export, a run is in
                             progress, or the last run failed.
            FileSystemError: If the output directory cannot be created.
            FormattingError: If the file cannot be written.
        """
        if self.state.is_running or self.state.error or not self.state.srt_content:
            raise GenerationError("No generated subtitles available to export.")
        ensure_dir_exists(output_dir)
        output_path = os.path.join(output_dir, self.download_filename())
        return self.assembler.write(output_path)
