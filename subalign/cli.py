"""Command-Line Interface handler for SubAlign."""

import argparse
import logging
import os
import sys
from typing import List, Optional

from tqdm import tqdm

from .config_loader import ConfigLoader, get_api_key
from .log_setup import setup_logging, parse_log_level, LOG_LEVELS
from .file_encoder import FileEncoder
from .aligner import GeminiAligner
from .subtitle_assembler import format_block
from .subtitle_generator import SubtitleGenerator, GenerationState, Phase
from .exceptions import SubAlignError, ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"

def load_settings(config_path: Optional[str]) -> dict:
    """
    Loads the YAML config merged with defaults.

    A missing file is fatal only when the path was given explicitly;
    otherwise the built-in defaults are used.

    Raises:
        ConfigurationError: If the file is invalid or explicitly given but missing.
    """
    config_loader = ConfigLoader()
    if config_path is None:
        if not os.path.isfile(DEFAULT_CONFIG_PATH):
            logger.info(f"No {DEFAULT_CONFIG_PATH} found, using built-in defaults.")
            return config_loader.with_defaults({})
        config_path = DEFAULT_CONFIG_PATH
    try:
        config = config_loader.load_config(config_path)
    except FileNotFoundError as e:
        raise ConfigurationError(str(e)) from e
    return config_loader.with_defaults(config)

def build_generator(config: dict) -> SubtitleGenerator:
    """Wires the encoder and the Gemini aligner from configuration."""
    aligner = GeminiAligner(
        api_key=get_api_key(config.get('api_key_env')),
        model_name=config['model_name']
    )
    file_encoder = FileEncoder(default_mime_type=config['default_mime_type'])
    return SubtitleGenerator(aligner=aligner, file_encoder=file_encoder)

class ProgressReporter:
    """Mirrors the generator's state onto a tqdm bar, optionally echoing blocks."""

    def __init__(self, preview: bool = False, disable: bool = False):
        self.preview = preview
        self.bar = tqdm(total=100, unit="%", desc="Waiting", disable=disable, leave=False)
        self._shown_blocks = 0

    def __call__(self, state: GenerationState) -> None:
        if state.phase == Phase.ERROR:
            self.bar.set_description(state.error or "Failed")
            self.bar.n = 0
        else:
            self.bar.set_description(state.message or state.phase.name.title())
            self.bar.n = state.progress
        if state.phase == Phase.GENERATING:
            self.bar.set_postfix(blocks=len(state.blocks))
            if self.preview:
                for block in state.blocks[self._shown_blocks:]:
                    tqdm.write(format_block(block).rstrip("\n") + "\n")
        self._shown_blocks = len(state.blocks)
        self.bar.refresh()

    def close(self) -> None:
        self.bar.close()

class CLIHandler:
    """Parses arguments and orchestrates a single SubAlign run."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            description="SubAlign: generate synchronized SRT subtitles from a transcript and its audio using Gemini.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter
        )
        parser.add_argument(
            "-t", "--transcript",
            required=True,
            help="Path to the plain-text transcript file."
        )
        parser.add_argument(
            "-a", "--audio",
            required=True,
            help="Path to the matching audio file."
        )
        parser.add_argument(
            "-o", "--output-dir",
            default=None, # Default taken from config file
            help="Directory to save the generated .srt file. Overrides the config file."
        )
        parser.add_argument(
            "-c", "--config",
            default=None,
            help=f"Path to the configuration YAML file (default: {DEFAULT_CONFIG_PATH} if present)."
        )
        parser.add_argument(
            "--model",
            default=None,
            help="Override the Gemini model name specified in config."
        )
        parser.add_argument(
            "--log-level",
            default="INFO",
            choices=LOG_LEVELS,
            help="Set the logging level for console and file output."
        )
        parser.add_argument(
            "--preview",
            action="store_true",
            help="Print each subtitle block as it arrives."
        )
        parser.add_argument(
            "--no-progress",
            action="store_true",
            help="Disable the progress bar."
        )
        return parser

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Parses arguments, sets up logging, loads config, and runs the generator."""
        args = self.parser.parse_args(argv)

        log_level = parse_log_level(args.log_level)
        setup_logging(log_level=log_level, log_dir='logs', log_file='subalign_init.log')

        try:
            config = load_settings(args.config)
        except ConfigurationError as e:
            logger.critical(f"Failed to load configuration: {e}")
            sys.exit(1)

        setup_logging(log_level=log_level, log_dir=config['log_dir'], log_file=config['log_file'])
        logger.info("Logging re-configured with settings from config file.")

        if args.model:
            logger.info(f"Overriding model_name from config with CLI argument: {args.model}")
            config['model_name'] = args.model
        if args.output_dir:
            logger.info(f"Overriding output_dir from config with CLI argument: {args.output_dir}")
            config['output_dir'] = args.output_dir

        for label, path in (("transcript", args.transcript), ("audio", args.audio)):
            if not os.path.isfile(path):
                logger.critical(f"Input {label} file not found or is not a file: {path}")
                sys.exit(1)

        reporter = None
        try:
            generator = build_generator(config)
            reporter = ProgressReporter(preview=args.preview, disable=args.no_progress)
            generator.add_listener(reporter)
            generator.select_transcript(args.transcript)
            generator.select_audio(args.audio)

            generator.generate()
            reporter.close()
            output_path = generator.export(config['output_dir'])

            skipped = generator.state.skipped_lines
            summary = f"Wrote {len(generator.state.blocks)} subtitle blocks to {output_path}"
            if skipped:
                summary += f" ({skipped} malformed lines skipped)"
            logger.info(summary)
            sys.exit(0)

        except SubAlignError as e:
            logger.error(f"A SubAlign error occurred: {e}")
            sys.exit(1)
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
            sys.exit(1)
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
            sys.exit(2)
        finally:
            if reporter is not None:
                reporter.close()

def main() -> None:
    CLIHandler().run()
