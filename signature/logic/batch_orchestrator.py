# signature/logic/batch_orchestrator.py
"""
Applies one artifact at one shared position to an ordered list of
(document, page) targets.

A failing target never aborts the others. Each target owns one write-once
outcome slot in the BatchJob, so results come back in input order whether
targets ran one after another or were fanned out.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from core.contracts.audit import IAuditLogger
from ..exceptions.errors import TransientIO
from ..models.batch import ApplyOutcome, BatchJob, BatchResult, BatchTarget, Failed
from ..models.position import Position
from .placement_applier import PlacementApplier

logger = logging.getLogger(__name__)


class BatchOrchestrator:
    def __init__(
        self,
        applier: PlacementApplier,
        *,
        concurrency: int = 1,
        audit: Optional[IAuditLogger] = None,
    ) -> None:
        self._applier = applier
        self._concurrency = max(1, int(concurrency))
        self._audit = audit

    async def run(
        self,
        artifact_id: str,
        targets: Iterable[BatchTarget],
        position: Position,
        *,
        concurrency: Optional[int] = None,
    ) -> BatchResult:
        """
        Attempt every target exactly once; no fail-fast, no retry.

        *concurrency* > 1 fans the targets out under a semaphore; targets on
        the same document are still serialised by the applier's document lock.
        """
        job = BatchJob(artifact_id=artifact_id, targets=list(targets), position=position)
        limit = self._concurrency if concurrency is None else max(1, int(concurrency))
        logger.info("Batch %s: %d targets, concurrency %d", job.job_id, len(job.targets), limit)

        if limit == 1:
            for index, target in enumerate(job.targets):
                await self._run_target(job, index, target)
        else:
            semaphore = asyncio.Semaphore(limit)

            async def guarded(index: int, target: BatchTarget) -> None:
                async with semaphore:
                    await self._run_target(job, index, target)

            await asyncio.gather(*(guarded(i, t) for i, t in enumerate(job.targets)))

        result = BatchResult(job_id=job.job_id, outcomes=job.outcomes())
        self._log_finished(job, result)
        return result

    async def _run_target(self, job: BatchJob, index: int, target: BatchTarget) -> None:
        try:
            outcome: ApplyOutcome = await self._applier.apply_position(
                job.artifact_id, target.document_id, target.page_number, job.position
            )
        except Exception as exc:
            logger.exception("Batch %s: target %d (%s) raised", job.job_id, index, target.document_id)
            outcome = Failed(TransientIO(str(exc) or type(exc).__name__))
        job.record(index, outcome)

    def _log_finished(self, job: BatchJob, result: BatchResult) -> None:
        logger.info(
            "Batch %s finished: %d applied, %d failed",
            job.job_id, result.applied_count, result.failed_count,
        )
        if self._audit is None:
            return
        self._audit.log(
            "signature",
            "batch_finished",
            level="INFO" if result.all_applied else "WARNING",
            reference_id=job.job_id,
            message=f"{result.applied_count} applied, {result.failed_count} failed",
            data={
                "artifact_id": job.artifact_id,
                "targets": [
                    {"document_id": o.target.document_id, "page": o.target.page_number, "status": o.status.value}
                    for o in result.outcomes
                ],
            },
        )
