# -*- coding: utf-8 -*-
import os
import multiprocessing
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, List, Optional

from imgresize.policy import Algorithm, algorithm_for

DEFAULT_MIN_SIZE = 307200
DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
DEFAULT_QUALITY = 3
DEFAULT_JPEG_QUALITY = 95


class ConfigError(ValueError):
    """Raised when the run parameters are invalid. Holds every failure found."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


@dataclass(frozen=True)
class ResizeConfig:
    """Read-only snapshot of the run parameters, shared by every worker."""
    input_dir: str
    extensions: FrozenSet[str]
    min_size: int = DEFAULT_MIN_SIZE
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    quality: int = DEFAULT_QUALITY
    verbose: bool = False
    jobs: int = field(default_factory=multiprocessing.cpu_count)
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    follow_links: bool = False
    show_progress: bool = True
    fail_on_error: bool = False
    algorithm: Algorithm = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "algorithm", algorithm_for(self.quality))


def _parse_int(name: str, value: Any, errors: List[str], minimum: int, maximum: Optional[int] = None) -> Optional[int]:
    if isinstance(value, bool):
        errors.append(f"{name} must be an integer, got {value!r}")
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        errors.append(f"{name} must be an integer, got {value!r}")
        return None
    if number < minimum or (maximum is not None and number > maximum):
        if maximum is None:
            errors.append(f"{name} must be >= {minimum}, got {number}")
        else:
            errors.append(f"{name} must be between {minimum}-{maximum}, got {number}")
        return None
    return number


def _normalize_extensions(extensions: Optional[Iterable[str]]) -> FrozenSet[str]:
    # Matching stays case-sensitive, only a leading dot typed by the user is dropped.
    if extensions is None or isinstance(extensions, str):
        extensions = [extensions] if extensions else []
    return frozenset(ext.lstrip('.') for ext in extensions if ext and ext.lstrip('.'))


def build_config(
    input_dir: str,
    extensions: Optional[Iterable[str]],
    min_size: Any = DEFAULT_MIN_SIZE,
    width: Any = DEFAULT_WIDTH,
    height: Any = DEFAULT_HEIGHT,
    quality: Any = DEFAULT_QUALITY,
    verbose: bool = False,
    jobs: Any = None,
    jpeg_quality: Any = DEFAULT_JPEG_QUALITY,
    follow_links: bool = False,
    show_progress: bool = True,
    fail_on_error: bool = False,
) -> ResizeConfig:
    """
    Validates raw option values in a single pass.

    Numeric values may be given as strings (straight from the command line).
    Every problem found is collected and raised together as a ConfigError,
    so nothing is scanned or written for an invalid run.
    """
    errors: List[str] = []

    if not input_dir:
        errors.append("input directory is required")
    elif not os.path.isdir(input_dir):
        errors.append(f"input directory '{input_dir}' does not exist or is not a directory")

    normalized_extensions = _normalize_extensions(extensions)
    if not normalized_extensions:
        errors.append("at least one file extension must be given")

    parsed_min_size = _parse_int("size", min_size, errors, minimum=0)
    parsed_width = _parse_int("width", width, errors, minimum=1)
    parsed_height = _parse_int("height", height, errors, minimum=1)
    parsed_quality = _parse_int("quality", quality, errors, minimum=1, maximum=5)
    parsed_jpeg_quality = _parse_int("jpeg quality", jpeg_quality, errors, minimum=1, maximum=100)
    if jobs is None:
        parsed_jobs = multiprocessing.cpu_count()
    else:
        parsed_jobs = _parse_int("jobs", jobs, errors, minimum=1)

    if errors:
        raise ConfigError(errors)

    return ResizeConfig(
        input_dir=os.path.abspath(input_dir),
        extensions=normalized_extensions,
        min_size=parsed_min_size,
        width=parsed_width,
        height=parsed_height,
        quality=parsed_quality,
        verbose=bool(verbose),
        jobs=parsed_jobs,
        jpeg_quality=parsed_jpeg_quality,
        follow_links=bool(follow_links),
        show_progress=bool(show_progress),
        fail_on_error=bool(fail_on_error),
    )
