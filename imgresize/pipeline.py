# -*- coding: utf-8 -*-
import logging
import multiprocessing
from typing import Iterable, Iterator, List, Optional

from tqdm import tqdm

from imgresize.config import ResizeConfig
from imgresize.log import level_for, setup_logging
from imgresize.models import Candidate, Outcome, PipelineStage, RunSummary
from imgresize.scanner import scan_candidates
from imgresize.worker import init_worker, static_process_image_worker

logger = logging.getLogger(__name__)

_STAGE_ORDER = list(PipelineStage)


def advance(current: Optional[PipelineStage], stage: PipelineStage) -> PipelineStage:
    """Moves the run one stage forward. Skipping or going back raises RuntimeError."""
    if current is None:
        expected = _STAGE_ORDER[0]
    else:
        position = _STAGE_ORDER.index(current) + 1
        expected = _STAGE_ORDER[position] if position < len(_STAGE_ORDER) else None
    if stage is not expected:
        raise RuntimeError(f"Cannot enter stage '{stage.value}' from '{current.value if current else None}'")
    logger.debug(f"Pipeline stage: {stage.value}")
    return stage


def _iter_inline(candidates: List[Candidate], config: ResizeConfig) -> Iterator[Outcome]:
    for candidate in candidates:
        yield static_process_image_worker((candidate, config))


def _collect(outcomes: Iterable[Outcome], summary: RunSummary, pbar: tqdm):
    for outcome in outcomes:
        summary.record(outcome)
        summary.processed += 1
        pbar.update(1)


def resize_candidates(candidates: List[Candidate], config: ResizeConfig, summary: RunSummary):
    """
    Fans candidates out over a process pool and records every outcome.

    The progress bar and summary.processed live only in this process and are
    advanced once per outcome received, whatever its kind. On Ctrl-C the
    remaining queued tasks are cancelled, files already being written are
    allowed to finish, and KeyboardInterrupt is re-raised.
    """
    total = len(candidates)
    num_processes = min(config.jobs, total)
    tasks_with_config = [(candidate, config) for candidate in candidates]

    with tqdm(total=total, desc="Resizing images", unit="file", ncols=100, leave=True,
              disable=not config.show_progress) as pbar:
        if num_processes <= 1:
            _collect(_iter_inline(candidates, config), summary, pbar)
            return

        logger.info(f"Starting batch processing of {total} images using up to {num_processes} processes...")
        stop_event = multiprocessing.Event()
        pool = multiprocessing.Pool(
            processes=num_processes,
            initializer=init_worker,
            initargs=(stop_event, level_for(config.verbose)),
        )
        results = pool.imap_unordered(static_process_image_worker, tasks_with_config)
        try:
            _collect(results, summary, pbar)
        except KeyboardInterrupt:
            logger.warning("Interrupted. Waiting for files being written to finish...")
            stop_event.set()
            _collect(results, summary, pbar)
            raise
        finally:
            pool.close()
            pool.join()


def run_pipeline(config: ResizeConfig) -> RunSummary:
    """Scans config.input_dir and resizes every candidate. Per-file errors never abort the run."""
    stage = advance(None, PipelineStage.VALIDATING)
    if not isinstance(config, ResizeConfig):
        raise TypeError(f"run_pipeline() needs a ResizeConfig built by build_config(), got {type(config).__name__}")
    setup_logging(level_for(config.verbose))

    stage = advance(stage, PipelineStage.SCANNING)
    print("Gathering files...")
    scan = scan_candidates(config)

    summary = RunSummary(candidates=len(scan.candidates), scan_errors=list(scan.errors), stage=stage)
    for outcome in scan.skipped:
        summary.record(outcome)

    summary.stage = advance(summary.stage, PipelineStage.RESIZING)
    print("Resizing images...")
    if scan.candidates:
        resize_candidates(scan.candidates, config, summary)
    else:
        logger.warning("No image files found to process after filtering.")

    summary.stage = advance(summary.stage, PipelineStage.DONE)
    print("Done!")
    print_summary(summary)
    return summary


def print_summary(summary: RunSummary):
    print(
        f"{summary.resized} resized, {summary.skipped} skipped "
        f"(extension: {summary.skipped_extension}, file size: {summary.skipped_size}, "
        f"image dimensions: {summary.skipped_dimensions}), {summary.error_count} error(s)."
    )
    if summary.cancelled:
        print(f"{summary.cancelled} file(s) not processed due to interruption.")
    if summary.errors:
        print("\nDetails for failed images:")
        for outcome in summary.errors:
            print(f"  - {outcome.path}: {outcome.reason or 'Unknown error'}")
