# -*- coding: utf-8 -*-
import os
import stat
import logging
from typing import Optional

from imgresize.config import ResizeConfig
from imgresize.models import Candidate, Outcome, OutcomeKind, ScanResult

logger = logging.getLogger(__name__)


def file_extension(filename: str) -> Optional[str]:
    """Text after the final dot of a file name, or None. Case is preserved."""
    ext = os.path.splitext(filename)[1]
    if not ext or ext == '.':
        return None
    return ext[1:]


def scan_candidates(config: ResizeConfig) -> ScanResult:
    """
    Walks config.input_dir and splits every file found into candidates and skips.

    Extension and size checks never open the file. An entry that cannot be
    stat'ed, or a directory that cannot be listed, is logged and recorded in
    ScanResult.errors; the walk itself always continues.
    """
    result = ScanResult()
    input_dir = config.input_dir

    if not os.path.isdir(input_dir):
        msg = f"Input directory '{input_dir}' does not exist or is not a directory."
        logger.error(msg)
        result.errors.append((input_dir, msg))
        return result

    def _on_walk_error(err: OSError):
        path = err.filename or input_dir
        logger.error(f"Error reading '{path}': {err.strerror or err}")
        result.errors.append((path, str(err)))

    for root, _, filenames in os.walk(input_dir, onerror=_on_walk_error, followlinks=config.follow_links):
        for filename in filenames:
            full_path = os.path.join(root, filename)

            ext = file_extension(filename)
            if ext is None or ext not in config.extensions:
                logger.info(f"- Skip {full_path} (extension)")
                result.skipped.append(Outcome(full_path, OutcomeKind.SKIPPED_EXTENSION))
                continue

            try:
                st = os.stat(full_path)
            except OSError as e:
                logger.error(f"Error reading metadata for '{full_path}': {e.strerror or e}")
                result.errors.append((full_path, str(e)))
                continue

            if not stat.S_ISREG(st.st_mode):
                logger.debug(f"Ignoring '{full_path}': not a regular file.")
                continue

            if st.st_size <= config.min_size:
                logger.info(f"- Skip {full_path} (file size)")
                result.skipped.append(Outcome(full_path, OutcomeKind.SKIPPED_SIZE, reason=f"{st.st_size} bytes"))
                continue

            result.candidates.append(Candidate(path=full_path, extension=ext, size=st.st_size))

    logger.debug(f"Scan finished: {len(result.candidates)} candidate(s), {len(result.skipped)} skipped, {len(result.errors)} error(s).")
    return result
