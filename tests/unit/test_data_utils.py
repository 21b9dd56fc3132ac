"""Unit tests for row serialization and payload builders."""

from datetime import date, datetime
from decimal import Decimal
from urllib.parse import unquote

from roomforge.schemas.envelope import PayloadMode
from roomforge.utils.data_utils import (
    build_list_payload,
    build_table_payload,
    is_list_like,
    select_important_columns,
    infer_columns,
    try_build_chart,
)
from roomforge.utils.entity_route import build_entity_path, parse_entity_path
from roomforge.utils.serializer import MAX_SAFE_INTEGER, serialize_rows, serialize_value
from roomforge.utils.text import ensure_terminator, normalize_question, sql_literal, strip_code_fences


class TestSerializer:
    def test_decimal_becomes_string(self):
        assert serialize_value(Decimal("3500000.00")) == "3500000.00"

    def test_big_int_becomes_string(self):
        assert serialize_value(MAX_SAFE_INTEGER + 1) == str(MAX_SAFE_INTEGER + 1)
        assert serialize_value(42) == 42

    def test_nested_values(self):
        rows = [{"price": Decimal("1.5"), "tags": [Decimal("2")], "meta": {"day": date(2024, 1, 2)}}]

        assert serialize_rows(rows) == [{"price": "1.5", "tags": ["2"], "meta": {"day": "2024-01-02"}}]

    def test_datetime_iso(self):
        assert serialize_value(datetime(2024, 5, 1, 8, 30)) == "2024-05-01T08:30:00"


class TestText:
    def test_normalize_question(self):
        assert normalize_question("  Phòng   dưới 4 TRIỆU ?? ") == "phòng dưới 4 triệu"

    def test_strip_code_fences(self):
        assert strip_code_fences("```sql\nSELECT 1\n```") == "SELECT 1"
        assert strip_code_fences("SELECT 2") == "SELECT 2"

    def test_ensure_terminator(self):
        assert ensure_terminator("SELECT 1") == "SELECT 1;"
        assert ensure_terminator("SELECT 1;") == "SELECT 1;"

    def test_sql_literal_escapes_quotes(self):
        assert sql_literal("o'neil") == "'o''neil'"


class TestEntityRoutes:
    def test_build_and_parse(self):
        assert build_entity_path("room", "abc-slug") == "/rooms/abc-slug"
        assert parse_entity_path("/rooms/abc-slug?ref=home") == ("room", "abc-slug")
        assert parse_entity_path("/room-seeking-posts/42") == ("room_seeking_post", "42")

    def test_unknown_paths(self):
        assert build_entity_path("bill", "1") is None
        assert parse_entity_path("/about") is None


class TestPayloads:
    rooms = [
        {"id": 1, "slug": "phong-go-vap", "title": "Phòng Gò Vấp", "base_price_monthly": "3500000"},
        {"id": 2, "slug": "phong-quan-1", "title": "Phòng Quận 1", "base_price_monthly": "3900000"},
    ]

    def test_list_like_rows(self):
        assert is_list_like(self.rooms)
        assert not is_list_like([{"district_name": "Gò Vấp", "count": 4}])

    def test_list_payload_paths(self):
        payload = build_list_payload(self.rooms, entity_hint="room")

        assert payload.mode == PayloadMode.LIST
        assert payload.total == 2
        assert payload.items[0].path == "/rooms/phong-go-vap"
        assert payload.items[0].title == "Phòng Gò Vấp"

    def test_table_payload_adds_path(self):
        payload = build_table_payload(self.rooms, entity_hint="room")

        assert payload.preview_limit == 50
        assert payload.rows[1]["path"] == "/rooms/phong-quan-1"
        assert [c.key for c in payload.columns][:2] == ["id", "title"]

    def test_table_payload_declares_path_column(self):
        payload = build_table_payload(self.rooms, entity_hint="room")

        path_column = payload.columns[-1]
        assert path_column.key == "path"
        assert path_column.type == "url"
        assert all("path" in row for row in payload.rows)

    def test_table_payload_without_entity_has_no_path(self):
        payload = build_table_payload(self.rooms)

        assert "path" not in [c.key for c in payload.columns]
        assert "path" not in payload.rows[0]

    def test_at_most_eight_columns(self):
        row = {f"col_{i}": i for i in range(12)}

        columns = select_important_columns(infer_columns([row]), [row])

        assert len(columns) == 8

    def test_chart_from_label_value_rows(self):
        rows = [
            {"district_name": "Gò Vấp", "count": 4},
            {"district_name": "Quận 1", "count": 9},
        ]

        chart = try_build_chart(rows, "số phòng theo quận")

        assert chart is not None
        assert chart.width == 800 and chart.height == 400
        assert chart.chart_type == "bar"
        assert "Quận 1" in unquote(chart.url)

    def test_no_chart_without_numbers(self):
        assert try_build_chart([{"title": "a", "slug": "b"}]) is None
