# -*- coding: utf-8 -*-
import argparse
import sys
from typing import List, Optional

from imgresize import __version__
from imgresize.config import (
    ConfigError,
    build_config,
    DEFAULT_HEIGHT,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_MIN_SIZE,
    DEFAULT_QUALITY,
    DEFAULT_WIDTH,
)
from imgresize.pipeline import run_pipeline
from imgresize.policy import ALGORITHM_NAMES, QUALITY_ALGORITHMS

EXIT_OK = 0
EXIT_FILES_FAILED = 1
EXIT_INTERRUPTED = 130


def get_parser():
    parser = argparse.ArgumentParser(
        prog="imgresize",
        description="Resizes images in place. Every matching file under INPUT that is larger than the\n"
                    "size threshold and the target dimensions is shrunk to fit and overwritten.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("input", help="Sets the input directory")
    parser.add_argument("-f", "--filter", nargs='+', required=True, metavar='EXT', dest='filter',
                        help="Image extensions to resize, such as png or jpg (case-sensitive, no leading dot)")
    parser.add_argument("-s", "--size", default=str(DEFAULT_MIN_SIZE),
                        help=f"Any file larger than this many bytes will be resized (default: {DEFAULT_MIN_SIZE})")
    parser.add_argument("-w", "--width", default=str(DEFAULT_WIDTH),
                        help=f"Width in pixels to resize images to (default: {DEFAULT_WIDTH})")
    parser.add_argument("-H", "--height", default=str(DEFAULT_HEIGHT),
                        help=f"Height in pixels to resize images to (default: {DEFAULT_HEIGHT})")
    parser.add_argument("-v", "--verbose", action="store_true", default=False,
                        help="Show verbose information")
    parser.add_argument("-q", "--quality", default=str(DEFAULT_QUALITY),
                        help="Image quality sampling used for scaling down images (between 1-5).\n"
                             "Higher values are better quality scaling but take longer.\n" +
                             "\n".join([f"  {k} - {ALGORITHM_NAMES[v]}" for k, v in QUALITY_ALGORITHMS.items()]) +
                             f"\n(default: {DEFAULT_QUALITY})")
    parser.add_argument("-j", "--jobs", default=None,
                        help="Number of worker processes (default: number of CPUs)")
    parser.add_argument("--jpeg-quality", dest='jpeg_quality', default=str(DEFAULT_JPEG_QUALITY),
                        help=f"Encoder quality for JPEG output (1-100, default: {DEFAULT_JPEG_QUALITY})")
    parser.add_argument("--follow-links", action="store_true", default=False,
                        help="Follow symbolic links to directories while scanning")
    parser.add_argument("--no-progress", dest='show_progress', action="store_false", default=True,
                        help="Do not display the progress bar")
    parser.add_argument("--fail-on-error", action="store_true", default=False,
                        help="Exit with status 1 if any file could not be resized")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = get_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(
            input_dir=args.input,
            extensions=args.filter,
            min_size=args.size,
            width=args.width,
            height=args.height,
            quality=args.quality,
            verbose=args.verbose,
            jobs=args.jobs,
            jpeg_quality=args.jpeg_quality,
            follow_links=args.follow_links,
            show_progress=args.show_progress,
            fail_on_error=args.fail_on_error,
        )
    except ConfigError as e:
        parser.error("\n  ".join(["invalid arguments:"] + e.errors) + "\nRun with --help to see usage / information")

    try:
        summary = run_pipeline(config)
    except KeyboardInterrupt:
        print("\n(!) Interrupted by user.", file=sys.stderr)
        return EXIT_INTERRUPTED

    if config.fail_on_error and summary.error_count > 0:
        return EXIT_FILES_FAILED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
