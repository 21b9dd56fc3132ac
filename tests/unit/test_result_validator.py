"""Unit tests for the result validator."""

import pytest

from roomforge.agents import ResultValidator, parse_validation
from roomforge.agents.result_validator import PREVIEW_ROWS, results_preview
from roomforge.inference import MockInferenceClient
from roomforge.schemas.pipeline import IntentAction, IntentDecision, RequestType, ValidationSeverity

SQL = "SELECT r.id FROM rooms r LIMIT 20;"


class TestParseValidation:
    def test_structured_valid(self):
        result = parse_validation(
            "IS_VALID: true\nSEVERITY: NONE\nVIOLATIONS: none\nREASON: OK\n"
            "EVALUATION: Lists rooms under the price.\nFilters correctly."
        )

        assert result.is_valid
        assert result.severity == ValidationSeverity.NONE
        assert result.violations == ()
        assert result.evaluation == "Lists rooms under the price.\nFilters correctly."

    def test_structured_invalid(self):
        result = parse_validation(
            "IS_VALID: false\nSEVERITY: ERROR\nVIOLATIONS: wrong entity; missing owner filter\nREASON: bills not rooms"
        )

        assert not result.is_valid
        assert result.severity == ValidationSeverity.ERROR
        assert result.violations == ("wrong entity", "missing owner filter")
        assert result.reason == "bills not rooms"

    def test_explicit_flag_wins_over_wording(self):
        result = parse_validation("IS_VALID: true\nSEVERITY: WARN\nREASON: invalid join order, harmless")

        assert result.is_valid
        assert result.severity == ValidationSeverity.WARN

    def test_error_severity_without_flag(self):
        result = parse_validation("SEVERITY: ERROR\nREASON: wrong table")

        assert not result.is_valid

    def test_invalid_wording_without_flag(self):
        result = parse_validation("Kết quả không hợp lệ vì truy vấn sai hoàn toàn.")

        assert not result.is_valid
        assert result.severity == ValidationSeverity.ERROR
        assert result.reason == "Result does not answer the question"

    def test_invalid_wording_with_warn_stays_valid(self):
        result = parse_validation("SEVERITY: WARN\nREASON: partly invalid ordering")

        assert result.is_valid
        assert result.severity == ValidationSeverity.WARN

    def test_unstructured_defaults_to_valid(self):
        result = parse_validation("Looks fine to me.")

        assert result.is_valid
        assert result.severity == ValidationSeverity.NONE
        assert result.reason == "OK"


class TestPreview:
    def test_limits_rows(self):
        rows = [{"id": i} for i in range(20)]

        assert results_preview(rows).count('"id"') == PREVIEW_ROWS
        assert results_preview([]) == "[]"


class TestResultValidator:
    @pytest.mark.asyncio
    async def test_prompt_carries_intent(self):
        llm = MockInferenceClient(["IS_VALID: true\nSEVERITY: NONE\nREASON: OK"])
        validator = ResultValidator(llm)
        intent = IntentDecision(request_type=RequestType.QUERY, intent_action=IntentAction.OWN)

        result = await validator.validate("hóa đơn của tôi", SQL, [{"id": 1}], intent)

        assert result.is_valid
        prompt = llm.calls[0][-1].content
        assert "EXPECTED REQUEST TYPE: QUERY" in prompt
        assert "INTENT ACTION: own" in prompt
        assert "RESULT: 1 rows" in prompt

    @pytest.mark.asyncio
    async def test_expanded_question_shows_follow_up(self):
        llm = MockInferenceClient(["IS_VALID: true"])

        await ResultValidator(llm).validate(
            "Tìm phòng dưới 6 triệu", SQL, [], RequestType.QUERY, original_query="tăng thêm 2 triệu"
        )

        prompt = llm.calls[0][-1].content
        assert 'QUESTION: "Tìm phòng dưới 6 triệu"' in prompt
        assert 'FOLLOW-UP AS TYPED: "tăng thêm 2 triệu"' in prompt

    @pytest.mark.asyncio
    async def test_same_question_has_no_follow_up_line(self):
        llm = MockInferenceClient(["IS_VALID: true"])

        await ResultValidator(llm).validate("phòng", SQL, [], RequestType.QUERY, original_query="phòng")

        assert "FOLLOW-UP" not in llm.calls[0][-1].content

    @pytest.mark.asyncio
    async def test_accepts_bare_request_type(self):
        llm = MockInferenceClient(["IS_VALID: true"])

        result = await ResultValidator(llm).validate("phòng", SQL, [], RequestType.QUERY)

        assert result.is_valid
        assert "INTENT ACTION" not in llm.calls[0][-1].content

    @pytest.mark.asyncio
    async def test_model_failure_is_invalid(self):
        llm = MockInferenceClient([RuntimeError("timeout")])

        result = await ResultValidator(llm).validate("phòng", SQL, [], RequestType.QUERY)

        assert not result.is_valid
        assert result.severity == ValidationSeverity.ERROR
        assert result.reason == "Validation failed due to error"
        assert result.violations == ("Validator exception occurred",)
