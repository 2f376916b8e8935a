# -*- coding: utf-8 -*-
import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


class OutcomeKind(str, enum.Enum):
    RESIZED = "resized"
    SKIPPED_EXTENSION = "extension"
    SKIPPED_SIZE = "file size"
    SKIPPED_DIMENSIONS = "image dimensions"
    ERROR = "error"
    CANCELLED = "cancelled"


class PipelineStage(str, enum.Enum):
    VALIDATING = "validating"
    SCANNING = "scanning"
    RESIZING = "resizing"
    DONE = "done"


class PermissionAdjustment(str, enum.Enum):
    NOT_NEEDED = "not needed"
    CLEARED = "readonly cleared"
    FAILED = "readonly clear failed"


@dataclass(frozen=True)
class Candidate:
    """A file that passed the extension and size filters."""
    path: str
    extension: str
    size: int


@dataclass(frozen=True)
class Outcome:
    """
    Result of considering a single file.

    `permission` records whether the read-only attribute had to be cleared
    before writing and whether that worked; `permission_error` holds the
    reason when it did not.
    """
    path: str
    kind: OutcomeKind
    reason: Optional[str] = None
    permission: PermissionAdjustment = PermissionAdjustment.NOT_NEEDED
    permission_error: Optional[str] = None
    original_size: Optional[Tuple[int, int]] = None
    new_size: Optional[Tuple[int, int]] = None

    @property
    def is_error(self) -> bool:
        return self.kind is OutcomeKind.ERROR


@dataclass
class ScanResult:
    candidates: List[Candidate] = field(default_factory=list)
    skipped: List[Outcome] = field(default_factory=list)
    errors: List[Tuple[str, str]] = field(default_factory=list)


@dataclass
class RunSummary:
    """Totals for one run. `processed` is the final value of the progress counter."""
    candidates: int = 0
    processed: int = 0
    resized: int = 0
    skipped_extension: int = 0
    skipped_size: int = 0
    skipped_dimensions: int = 0
    cancelled: int = 0
    errors: List[Outcome] = field(default_factory=list)
    scan_errors: List[Tuple[str, str]] = field(default_factory=list)
    stage: Optional[PipelineStage] = None

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def skipped(self) -> int:
        return self.skipped_extension + self.skipped_size + self.skipped_dimensions

    def record(self, outcome: Outcome):
        if outcome.kind is OutcomeKind.RESIZED:
            self.resized += 1
        elif outcome.kind is OutcomeKind.SKIPPED_EXTENSION:
            self.skipped_extension += 1
        elif outcome.kind is OutcomeKind.SKIPPED_SIZE:
            self.skipped_size += 1
        elif outcome.kind is OutcomeKind.SKIPPED_DIMENSIONS:
            self.skipped_dimensions += 1
        elif outcome.kind is OutcomeKind.CANCELLED:
            self.cancelled += 1
        else:
            self.errors.append(outcome)
