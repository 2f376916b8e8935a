# -*- coding: utf-8 -*-
import os
import stat
import signal
import shutil
import logging
import tempfile
from typing import Any, Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from imgresize.config import ResizeConfig
from imgresize.log import setup_logging
from imgresize.models import Candidate, Outcome, OutcomeKind, PermissionAdjustment
from imgresize.policy import fit_within, resample, should_resize

logger = logging.getLogger(__name__)

# Pillow's default limit (about 179 MP) rejects large panoramas.
Image.MAX_IMAGE_PIXELS = 1_000_000_000

_WRITE_BITS = stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH

# Set in each pool process by init_worker(); None when running inline.
_stop_event = None


def init_worker(stop_event: Any, log_level: int):
    """
    Pool initializer.

    Workers ignore Ctrl-C so that only the coordinator reacts to it; it then
    sets stop_event and queued tasks return CANCELLED instead of starting.
    """
    global _stop_event
    _stop_event = stop_event
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    setup_logging(log_level)


def static_process_image_worker(candidate_and_config: Tuple[Candidate, ResizeConfig]) -> Outcome:
    candidate, config = candidate_and_config
    if _stop_event is not None and _stop_event.is_set():
        return Outcome(candidate.path, OutcomeKind.CANCELLED, reason="shutdown requested")
    try:
        return process_candidate(candidate, config)
    except Exception as e:
        msg = f"An unexpected error occurred ({type(e).__name__}: {e})."
        logger.critical(f"Error with file: {candidate.path}: {msg}", exc_info=config.verbose)
        return Outcome(candidate.path, OutcomeKind.ERROR, reason=msg)


def is_readonly(mode: int) -> bool:
    return not (mode & _WRITE_BITS)


def clear_readonly(path: str) -> Tuple[PermissionAdjustment, Optional[str]]:
    """
    Makes path writable by its owner if no write bit is set at all.

    Failure is reported, never raised: the write that follows surfaces any
    real problem on its own.
    """
    try:
        mode = os.stat(path).st_mode
        if not is_readonly(mode):
            return PermissionAdjustment.NOT_NEEDED, None
        os.chmod(path, stat.S_IMODE(mode) | stat.S_IWUSR)
    except OSError as e:
        logger.warning(f"Error setting permissions {path}: {e}")
        return PermissionAdjustment.FAILED, str(e)
    logger.info(f"- Set readonly false {path}")
    return PermissionAdjustment.CLEARED, None


def save_options_for(image_format: Optional[str], config: ResizeConfig) -> Dict[str, Any]:
    if image_format == 'JPEG':
        return {'quality': config.jpeg_quality, 'optimize': True}
    if image_format == 'PNG':
        return {'optimize': True}
    return {}


def write_image_atomically(img: Image.Image, path: str, image_format: str, save_kwargs: Dict[str, Any]):
    """
    Encodes img next to the real file behind path and swaps it in.

    Symlinks are resolved first so the link target is the file rewritten and
    the link itself stays in place. A file with several hard links cannot be
    renamed over without splitting the links, so its new bytes are copied
    into the existing inode instead. The target keeps its permission bits.
    If encoding fails, the temporary file is removed and the original bytes
    are untouched.
    """
    target = os.path.realpath(path)
    directory, filename = os.path.split(target)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{filename}.", suffix=".tmp", dir=directory or None)
    os.close(fd)
    try:
        img.save(tmp_path, format=image_format, **save_kwargs)
        if os.stat(target).st_nlink > 1:
            shutil.copyfile(tmp_path, target)
        else:
            shutil.copymode(target, tmp_path)
            os.replace(tmp_path, target)
    finally:
        if os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError as rm_e:
                logger.error(f"Could not remove temporary file '{tmp_path}': {rm_e}")


def process_candidate(candidate: Candidate, config: ResizeConfig) -> Outcome:
    path = candidate.path

    try:
        img = Image.open(path)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        logger.error(f"Error with file: {path}: {e}")
        return Outcome(path, OutcomeKind.ERROR, reason=str(e))

    with img:
        try:
            img.load()
        except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
            logger.error(f"Error with file: {path}: {e}")
            return Outcome(path, OutcomeKind.ERROR, reason=str(e))

        image_format = img.format
        width, height = img.size
        if not should_resize(width, height, config.width, config.height):
            logger.info(f"- Skip {path} (image dimensions)")
            return Outcome(path, OutcomeKind.SKIPPED_DIMENSIONS, original_size=(width, height))

        permission, permission_error = clear_readonly(path)

        logger.info(f"- Resize: {path}")
        new_size = fit_within(width, height, config.width, config.height)
        try:
            resized = resample(img, new_size, config.algorithm)
            write_image_atomically(resized, path, image_format, save_options_for(image_format, config))
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Error writing file: {path}: {e}")
            return Outcome(
                path,
                OutcomeKind.ERROR,
                reason=str(e),
                permission=permission,
                permission_error=permission_error,
                original_size=(width, height),
            )

    return Outcome(
        path,
        OutcomeKind.RESIZED,
        permission=permission,
        permission_error=permission_error,
        original_size=(width, height),
        new_size=new_size,
    )
