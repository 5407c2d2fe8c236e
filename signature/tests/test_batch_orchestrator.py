from __future__ import annotations

import asyncio

import pytest

from signature.exceptions.errors import ErrorKind, TransientIO
from signature.models.batch import Applied, BatchJob, BatchTarget, Failed, SlotAlreadyWritten
from signature.models.position import GridPosition
from signature.models.signature_enums import OutcomeStatus

TOP_LEFT = GridPosition.of("top-left")


def _setup(engine, *doc_ids: str):
    for doc_id in doc_ids:
        engine.add_document(doc_id)
    return engine.add_artifact()


@pytest.mark.parametrize("concurrency", [1, 3])
def test_partial_failure_keeps_order(engine, concurrency: int) -> None:
    artifact = _setup(engine, "A", "B", "C")
    engine.store.fail_for.add("B")
    targets = [BatchTarget("A"), BatchTarget("B"), BatchTarget("C")]

    result = asyncio.run(
        engine.orchestrator.run(artifact.artifact_id, targets, TOP_LEFT, concurrency=concurrency)
    )

    assert [o.target.document_id for o in result.outcomes] == ["A", "B", "C"]
    assert [o.status for o in result.outcomes] == [
        OutcomeStatus.APPLIED, OutcomeStatus.FAILED, OutcomeStatus.APPLIED,
    ]
    assert result.applied_count == 2
    assert result.failed_count == 1
    assert not result.all_applied
    assert result.failed_targets == [BatchTarget("B")]
    assert result.outcomes[1].outcome.error.kind is ErrorKind.TRANSIENT_IO
    assert [r.document_id for r in result.revisions] == ["A", "C"]


def test_all_applied_only_when_every_target_succeeds(engine) -> None:
    artifact = _setup(engine, "A", "B")
    result = asyncio.run(
        engine.orchestrator.run(artifact.artifact_id, [BatchTarget("A"), BatchTarget("B")], TOP_LEFT)
    )
    assert result.all_applied
    assert all(isinstance(o.outcome, Applied) for o in result.outcomes)


def test_unknown_document_and_page_become_failed_slots(engine) -> None:
    artifact = _setup(engine, "A")
    targets = [BatchTarget("A", 2), BatchTarget("missing"), BatchTarget("A", 1)]

    result = asyncio.run(engine.orchestrator.run(artifact.artifact_id, targets, TOP_LEFT))

    kinds = [o.outcome.error.kind if isinstance(o.outcome, Failed) else None for o in result.outcomes]
    assert kinds == [ErrorKind.NOT_FOUND, ErrorKind.NOT_FOUND, None]


def test_same_document_targets_serialise_revisions(engine) -> None:
    engine.add_document("A", pages=3)
    artifact = engine.add_artifact()
    targets = [BatchTarget("A", n) for n in (1, 2, 3)]

    result = asyncio.run(engine.orchestrator.run(artifact.artifact_id, targets, TOP_LEFT, concurrency=3))

    assert result.all_applied
    assert sorted(r.number for r in result.revisions) == [1, 2, 3]
    assert len(engine.placements.list_active("A")) == 3


def test_repeated_runs_are_not_deduplicated(engine) -> None:
    artifact = _setup(engine, "A")
    for _ in range(2):
        asyncio.run(engine.orchestrator.run(artifact.artifact_id, [BatchTarget("A")], TOP_LEFT))
    assert len(engine.placements.list_active("A")) == 2


def test_unexpected_exception_is_isolated_to_its_target(engine, monkeypatch) -> None:
    artifact = _setup(engine, "A", "B")
    original = engine.applier.apply_position

    async def flaky(artifact_id, document_id, page_number, position, **kw):
        if document_id == "A":
            raise RuntimeError("boom")
        return await original(artifact_id, document_id, page_number, position, **kw)

    monkeypatch.setattr(engine.applier, "apply_position", flaky)
    result = asyncio.run(
        engine.orchestrator.run(artifact.artifact_id, [BatchTarget("A"), BatchTarget("B")], TOP_LEFT)
    )

    assert result.outcomes[0].outcome.error.kind is ErrorKind.TRANSIENT_IO
    assert result.outcomes[1].status is OutcomeStatus.APPLIED


def test_outcome_slots_are_write_once() -> None:
    job = BatchJob(artifact_id="x", targets=[BatchTarget("A")], position=TOP_LEFT)
    assert not job.is_terminal
    assert job.outcomes()[0].status is OutcomeStatus.PENDING

    job.record(0, Failed(TransientIO("x")))
    assert job.is_terminal
    with pytest.raises(SlotAlreadyWritten):
        job.record(0, Failed(TransientIO("y")))
