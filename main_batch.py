#!/usr/bin/env python3
"""
SubAlign Batch Processing Entry Point

Processes every audio file in a directory that has a transcript with the same
name (e.g. 'talk.mp3' + 'talk.txt'), smallest audio first, writing one .srt
per pair into the output directory.
"""

import argparse
import logging
import mimetypes
import os
import sys
import time
from typing import List, Tuple

from tqdm import tqdm

from subalign.cli import load_settings, build_generator
from subalign.log_setup import setup_logging, parse_log_level, LOG_LEVELS
from subalign.exceptions import SubAlignError, ConfigurationError

logger = logging.getLogger(__name__)

TRANSCRIPT_EXTENSION = ".txt"

def is_audio_file(filename: str) -> bool:
    mime_type, _ = mimetypes.guess_type(filename)
    return bool(mime_type and mime_type.startswith("audio/"))

def find_and_sort_pairs(input_dir: str) -> List[Tuple[str, str, int]]:
    """
    Finds audio files with a same-stem .txt transcript and sorts them by audio size.

    Each stem is used once, since every pair is written to "<stem>.srt". When
    several audio files share a stem (talk.mp3, talk.wav), the first by name
    is kept and the others are skipped with a warning.

    Args:
        input_dir: The directory to search.

    Returns:
        A list of (audio_path, transcript_path, audio_size) tuples,
        smallest audio first.

    Raises:
        FileNotFoundError: If the input directory doesn't exist.
        ValueError: If the input path is not a directory.
    """
    if not os.path.exists(input_dir):
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    if not os.path.isdir(input_dir):
        raise ValueError(f"Input path is not a directory: {input_dir}")

    pairs = []
    claimed_stems = {}
    logger.info(f"Scanning directory for audio/transcript pairs: {input_dir}")
    for filename in sorted(os.listdir(input_dir)):
        audio_path = os.path.join(input_dir, filename)
        if not is_audio_file(filename) or not os.path.isfile(audio_path):
            continue
        stem = os.path.splitext(filename)[0]
        if stem in claimed_stems:
            logger.warning(f"{filename} would overwrite the subtitles of {claimed_stems[stem]} ({stem}.srt). Skipping.")
            continue
        transcript_path = os.path.join(input_dir, stem + TRANSCRIPT_EXTENSION)
        if not os.path.isfile(transcript_path):
            logger.warning(f"No transcript found for {filename} (expected {transcript_path}). Skipping.")
            continue
        try:
            pairs.append((audio_path, transcript_path, os.path.getsize(audio_path)))
            claimed_stems[stem] = filename
        except OSError as e:
            logger.warning(f"Could not access file {audio_path}: {e}. Skipping.")

    pairs.sort(key=lambda item: item[2])
    logger.info(f"Found {len(pairs)} audio/transcript pairs. Sorted by audio size (smallest first).")
    return pairs


def run_batch_processing(argv=None):
    """Parses arguments, sets up, and runs the batch subtitle generation."""
    parser = argparse.ArgumentParser(
        description="SubAlign Batch: generate SRT subtitles for every audio/transcript pair in a directory.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "-i", "--input-dir",
        required=True,
        help="Directory containing audio files and their same-named .txt transcripts."
    )
    parser.add_argument(
        "-o", "--output-dir",
        default=None,
        help="Directory for the .srt files. Defaults to a 'Subs' folder inside the input directory."
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to the configuration YAML file (default: config.yaml if present)."
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

    args = parser.parse_args(argv)

    log_level = parse_log_level(args.log_level)
    setup_logging(log_level=log_level, log_dir='logs', log_file='subalign_batch_init.log')

    try:
        config = load_settings(args.config)
    except ConfigurationError as e:
        logger.critical(f"Failed to load configuration: {e}")
        sys.exit(1)

    setup_logging(log_level=log_level, log_dir=config['log_dir'], log_file='subalign_batch.log')
    logger.info("Logging re-configured with settings from config file for batch processing.")

    if args.model:
        logger.info(f"Overriding model_name from config with CLI argument: {args.model}")
        config['model_name'] = args.model

    try:
        pairs = find_and_sort_pairs(args.input_dir)
    except (FileNotFoundError, ValueError) as e:
        logger.critical(f"Input directory error: {e}")
        sys.exit(1)
    if not pairs:
        logger.warning(f"No audio/transcript pairs found in {args.input_dir}. Exiting.")
        sys.exit(0)

    output_dir = args.output_dir or os.path.join(args.input_dir, "Subs")

    # One client for the whole batch
    try:
        generator = build_generator(config)
    except Exception as e:
        logger.critical(f"An unexpected error occurred during component initialization: {e}", exc_info=True)
        sys.exit(1)

    total_files = len(pairs)
    files_processed = 0
    files_failed = 0
    batch_start_time = time.time()

    logger.info(f"--- Starting Batch Subtitle Generation for {total_files} files ---")

    with tqdm(total=total_files, unit="file", desc="Starting Batch") as pbar:
        for audio_path, transcript_path, _ in pairs:
            audio_filename = os.path.basename(audio_path)
            pbar.set_description(f"Processing: {audio_filename[:30]}...")
            try:
                generator.select_transcript(transcript_path)
                generator.select_audio(audio_path)
                generator.generate()
                output_path = generator.export(output_dir)
                skipped = generator.state.skipped_lines
                logger.info(f"{audio_filename}: {len(generator.state.blocks)} blocks written to {output_path}"
                            + (f", {skipped} lines skipped" if skipped else ""))
                files_processed += 1
            except SubAlignError as e:
                logger.error(f"SubAlign failed for '{audio_filename}': {e}")
                files_failed += 1
            except KeyboardInterrupt:
                logger.warning("Batch process interrupted by user (Ctrl+C). Exiting.")
                sys.exit(1)
            except Exception as e:
                logger.error(f"An unexpected error occurred processing '{audio_filename}': {e}", exc_info=True)
                files_failed += 1
            finally:
                pbar.update(1)

    batch_end_time = time.time()
    logger.info("--- Batch Subtitle Generation Finished ---")
    logger.info(f"Total time: {batch_end_time - batch_start_time:.2f} seconds")
    logger.info(f"Successfully processed: {files_processed}/{total_files} files")
    logger.info(f"Failed: {files_failed}/{total_files} files")

    sys.exit(1 if files_failed > 0 else 0)


if __name__ == "__main__":
    if sys.version_info < (3, 9):
        sys.stderr.write("SubAlign requires Python 3.9 or later.\n")
        sys.exit(1)

    run_batch_processing()
