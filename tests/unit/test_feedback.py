"""Unit tests for the feedback recorder."""

import pytest

from roomforge.knowledge import FeedbackRecorder, PendingStatus, should_persist
from roomforge.schemas.pipeline import ValidationResult, ValidationSeverity

QUESTION = "phòng ở Gò Vấp"
SQL = "SELECT r.id FROM rooms r LIMIT 20;"

VALID = ValidationResult(is_valid=True, severity=ValidationSeverity.NONE, reason="OK")
WARNED = ValidationResult(is_valid=True, severity=ValidationSeverity.WARN, reason="extra join")
INVALID = ValidationResult(is_valid=False, severity=ValidationSeverity.ERROR, reason="wrong entity")


class FailingKnowledge:
    async def save_qa_interaction(self, question, sql, metadata=None):
        raise RuntimeError("store unavailable")


class TestShouldPersist:
    def test_valid_and_warn_pass(self):
        assert should_persist(VALID, SQL)
        assert should_persist(WARNED, SQL)

    def test_invalid_rejected(self):
        assert not should_persist(INVALID, SQL)

    def test_error_severity_rejected_even_when_marked_valid(self):
        contradictory = ValidationResult(is_valid=True, severity=ValidationSeverity.ERROR)
        assert not should_persist(contradictory, SQL)

    def test_missing_inputs(self):
        assert not should_persist(None, SQL)
        assert not should_persist(VALID, None)
        assert not should_persist(VALID, "   ")


class TestRecord:
    @pytest.mark.asyncio
    async def test_direct_mode_saves(self, knowledge, pending):
        recorder = FeedbackRecorder(knowledge, pending, auto_persist=True)

        outcome = await recorder.record(QUESTION, SQL, VALID, session_id="s-1")

        assert outcome.persisted
        assert outcome.mode == "direct"
        assert len(await knowledge.list_canonical()) == 1

    @pytest.mark.asyncio
    async def test_review_mode_queues(self, knowledge, pending):
        recorder = FeedbackRecorder(knowledge, pending, auto_persist=False)

        outcome = await recorder.record(QUESTION, SQL, WARNED, session_id="s-1", user_id="u-7")

        assert outcome.mode == "pending"
        assert await knowledge.list_canonical() == []
        items, total = await pending.list_pending(PendingStatus.PENDING)
        assert total == 1
        assert items[0].user_id == "u-7"

    @pytest.mark.asyncio
    async def test_direct_mode_stores_canonical_question(self, knowledge, pending):
        recorder = FeedbackRecorder(knowledge, pending, auto_persist=True)

        await recorder.record("thêm wifi", SQL, VALID, canonical_question="phòng ở Gò Vấp có wifi")

        records = await knowledge.list_canonical()
        assert [r.question for r in records] == ["phòng ở Gò Vấp có wifi"]

    @pytest.mark.asyncio
    async def test_review_mode_keeps_typed_and_canonical_question(self, knowledge, pending):
        recorder = FeedbackRecorder(knowledge, pending, auto_persist=False)

        await recorder.record("thêm wifi", SQL, VALID, canonical_question="phòng ở Gò Vấp có wifi")

        items, _ = await pending.list_pending(PendingStatus.PENDING)
        assert items[0].question == "thêm wifi"
        assert items[0].canonical_question == "phòng ở Gò Vấp có wifi"

    @pytest.mark.asyncio
    async def test_invalid_result_is_skipped(self, knowledge, pending):
        recorder = FeedbackRecorder(knowledge, pending)

        outcome = await recorder.record(QUESTION, SQL, INVALID)

        assert not outcome.persisted
        assert outcome.message == "Not persisted: wrong entity"
        assert await knowledge.list_canonical() == []

    @pytest.mark.asyncio
    async def test_failure_is_reported_not_raised(self, pending):
        recorder = FeedbackRecorder(FailingKnowledge(), pending)

        outcome = await recorder.record(QUESTION, SQL, VALID)

        assert not outcome.persisted
        assert outcome.mode == "failed"
        assert "store unavailable" in outcome.message
