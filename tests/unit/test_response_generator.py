"""Unit tests for response assembly."""

import pytest

from roomforge.agents import ResponseGenerator, build_payload
from roomforge.agents.response_generator import EMPTY_RESULT_MESSAGE, fallback_message
from roomforge.inference import MockInferenceClient
from roomforge.schemas.envelope import PayloadMode
from roomforge.schemas.pipeline import GenerationResult, IntentDecision, PresentationMode, RequestType
from roomforge.session import ChatSession

ROOMS = [
    {"id": "1", "slug": "phong-go-vap", "title": "Phòng Gò Vấp", "base_price_monthly": "3500000"},
    {"id": "2", "slug": "phong-quan-1", "title": "Phòng Quận 1", "base_price_monthly": "3900000"},
]
STATS = [
    {"district_name": "Gò Vấp", "total": 12},
    {"district_name": "Quận 1", "total": 7},
]


@pytest.fixture
def session():
    return ChatSession(session_id="user_42", user_id="42")


def intent(mode=PresentationMode.TABLE, entity=None, message="") -> IntentDecision:
    return IntentDecision(
        request_type=RequestType.QUERY, mode_hint=mode, entity_hint=entity, message=message
    )


def result(rows) -> GenerationResult:
    return GenerationResult(sql="SELECT 1;", results=rows, count=len(rows))


class TestBuildPayload:
    def test_empty_rows(self):
        assert build_payload([], PresentationMode.LIST) is None

    def test_list_like_rows_become_list(self):
        payload = build_payload(ROOMS, PresentationMode.TABLE, "room")

        assert payload.mode == PayloadMode.LIST
        assert payload.items[0].path == "/rooms/phong-go-vap"
        assert payload.total == 2

    def test_aggregates_become_table(self):
        payload = build_payload(STATS, PresentationMode.TABLE)

        assert payload.mode == PayloadMode.TABLE
        assert len(payload.rows) == 2

    def test_chart_when_requested(self):
        payload = build_payload(STATS, PresentationMode.CHART, query="thống kê phòng theo quận")

        assert payload.mode == PayloadMode.CHART
        assert payload.url.startswith("https://quickchart.io/chart")

    def test_chart_falls_back_when_not_chartable(self):
        payload = build_payload(ROOMS, PresentationMode.CHART, "room")

        assert payload.mode == PayloadMode.LIST

    def test_fallback_message(self):
        assert fallback_message(0) == EMPTY_RESULT_MESSAGE
        assert fallback_message(3) == "Mình tìm thấy 3 kết quả cho bạn."


class TestResponseGenerator:
    @pytest.mark.asyncio
    async def test_message_and_planned_payload(self, session):
        llm = MockInferenceClient(["Có 2 phòng dưới 4 triệu cho bạn.\n---END"])

        response = await ResponseGenerator(llm).generate(
            "phòng dưới 4 triệu", session, intent(PresentationMode.LIST, "room"), result(ROOMS)
        )

        assert response.message == "Có 2 phòng dưới 4 triệu cho bạn."
        assert response.payload.mode == PayloadMode.LIST
        prompt = llm.calls[0][-1].content
        assert "Rows found: 2" in prompt
        assert "LIST with 2 items" in prompt

    @pytest.mark.asyncio
    async def test_model_preference_rebuilds_payload(self, session):
        llm = MockInferenceClient(["Gò Vấp dẫn đầu.\n---END\nCHART"])

        response = await ResponseGenerator(llm).generate(
            "số phòng theo quận", session, intent(PresentationMode.TABLE), result(STATS)
        )

        assert response.payload.mode == PayloadMode.CHART

    @pytest.mark.asyncio
    async def test_model_failure_uses_fallback(self, session):
        llm = MockInferenceClient([RuntimeError("LLM down")])

        response = await ResponseGenerator(llm).generate(
            "phòng dưới 4 triệu", session, intent(PresentationMode.LIST, "room"), result(ROOMS)
        )

        assert response.message == "Mình tìm thấy 2 kết quả cho bạn."
        assert response.payload.mode == PayloadMode.LIST

    @pytest.mark.asyncio
    async def test_empty_result(self, session):
        llm = MockInferenceClient([""])

        response = await ResponseGenerator(llm).generate(
            "phòng dưới 1 triệu", session, intent(PresentationMode.LIST), result([])
        )

        assert response.payload is None
        assert response.message == EMPTY_RESULT_MESSAGE

    @pytest.mark.asyncio
    async def test_insight_mode(self, session):
        llm = MockInferenceClient(["**Phòng Gò Vấp** rẻ hơn 400.000đ."])

        response = await ResponseGenerator(llm).generate(
            "so sánh hai phòng", session, intent(PresentationMode.INSIGHT), result(ROOMS)
        )

        assert response.payload.mode == PayloadMode.INSIGHT
        assert response.message == "**Phòng Gò Vấp** rẻ hơn 400.000đ."
        assert "Analyse the data" in llm.calls[0][-1].content
