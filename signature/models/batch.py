# signature/models/batch.py
"""
Batch job model: one artifact + one position applied to many (document, page)
targets. Each target owns exactly one write-once outcome slot.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from ..exceptions.errors import PlacementError
from .placement import Placement, Revision
from .position import Position
from .signature_enums import OutcomeStatus


@dataclass(frozen=True)
class BatchTarget:
    document_id: str
    page_number: int = 1


@dataclass(frozen=True)
class Applied:
    revision: Revision
    placement: Placement

    status = OutcomeStatus.APPLIED


@dataclass(frozen=True)
class Failed:
    error: PlacementError

    status = OutcomeStatus.FAILED

    @property
    def reason(self) -> str:
        return self.error.message


ApplyOutcome = Union[Applied, Failed]


@dataclass(frozen=True)
class TargetOutcome:
    target: BatchTarget
    outcome: Optional[ApplyOutcome] = None   # None while pending

    @property
    def status(self) -> OutcomeStatus:
        return OutcomeStatus.PENDING if self.outcome is None else self.outcome.status


class SlotAlreadyWritten(RuntimeError):
    """An outcome slot was written twice."""


@dataclass
class BatchJob:
    artifact_id: str
    targets: Sequence[BatchTarget]
    position: Position
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        self.targets = tuple(self.targets)
        self._slots: List[Optional[ApplyOutcome]] = [None] * len(self.targets)

    def record(self, index: int, outcome: ApplyOutcome) -> None:
        """Write the outcome of target *index*; each slot is written once."""
        if self._slots[index] is not None:
            raise SlotAlreadyWritten(f"Outcome slot {index} of job {self.job_id} already set")
        self._slots[index] = outcome

    @property
    def is_terminal(self) -> bool:
        return all(slot is not None for slot in self._slots)

    def outcomes(self) -> List[TargetOutcome]:
        return [TargetOutcome(t, o) for t, o in zip(self.targets, self._slots)]


@dataclass(frozen=True)
class BatchResult:
    job_id: str
    outcomes: List[TargetOutcome]

    @property
    def applied_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == OutcomeStatus.APPLIED)

    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == OutcomeStatus.FAILED)

    @property
    def all_applied(self) -> bool:
        return bool(self.outcomes) and self.applied_count == len(self.outcomes)

    @property
    def failed_targets(self) -> List[BatchTarget]:
        """Targets to offer for a selective retry."""
        return [o.target for o in self.outcomes if o.status == OutcomeStatus.FAILED]

    @property
    def revisions(self) -> List[Revision]:
        return [o.outcome.revision for o in self.outcomes if isinstance(o.outcome, Applied)]
