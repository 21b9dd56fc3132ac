"""Unit tests for the model-output parsers."""

from roomforge.agents.parsing import (
    extract_block,
    extract_field,
    parse_bool,
    parse_enum,
    parse_list,
    parse_missing_params,
    parse_response_text,
)
from roomforge.schemas.pipeline import PresentationMode, RequestType


class TestFields:
    def test_plain_and_decorated_fields(self):
        text = "REQUEST_TYPE: QUERY\n- **MODE_HINT**: LIST\n  tables_hint = rooms"

        assert extract_field(text, "REQUEST_TYPE") == "QUERY"
        assert extract_field(text, "MODE_HINT") == "LIST"
        assert extract_field(text, "TABLES_HINT") == "rooms"

    def test_missing_or_empty(self):
        assert extract_field("REQUEST_TYPE:", "REQUEST_TYPE") is None
        assert extract_field("nothing here", "REQUEST_TYPE") is None
        assert extract_field("", "REQUEST_TYPE") is None

    def test_block_runs_to_end(self):
        text = "IS_VALID: true\nEVALUATION: Query is fine.\nIt filters by price."

        assert extract_block(text, "EVALUATION") == "Query is fine.\nIt filters by price."


class TestValues:
    def test_bool(self):
        assert parse_bool("true") is True
        assert parse_bool("False.") is False
        assert parse_bool("maybe") is None
        assert parse_bool(None) is None

    def test_enum(self):
        assert parse_enum("query", RequestType, RequestType.GENERAL_CHAT) == RequestType.QUERY
        assert parse_enum("QUERY|GREETING", RequestType, RequestType.GENERAL_CHAT) == RequestType.QUERY
        assert parse_enum("weird", RequestType, RequestType.GENERAL_CHAT) == RequestType.GENERAL_CHAT
        assert parse_enum("none", RequestType, RequestType.GREETING) == RequestType.GREETING

    def test_list(self):
        assert parse_list("rooms, Room_Pricing, rooms") == ("rooms", "room_pricing")
        assert parse_list("none") == ()
        assert parse_list("`bills`; payments") == ("bills", "payments")

    def test_missing_params(self):
        params = parse_missing_params("district:which area:Gò Vấp,Quận 1|budget:price range")

        assert [p.name for p in params] == ["district", "budget"]
        assert params[0].examples == ["Gò Vấp", "Quận 1"]
        assert params[1].reason == "price range"
        assert params[1].examples == []
        assert parse_missing_params("none") == ()


class TestResponseText:
    def test_message_and_mode(self):
        message, mode = parse_response_text("Có 3 phòng phù hợp.\n---END\nLIST")

        assert message == "Có 3 phòng phù hợp."
        assert mode == PresentationMode.LIST

    def test_no_marker(self):
        assert parse_response_text("Chỉ có lời nhắn.") == ("Chỉ có lời nhắn.", None)

    def test_unknown_mode_ignored(self):
        assert parse_response_text("Xong\n---END\n\nmaybe a table") == ("Xong", None)

    def test_empty(self):
        assert parse_response_text("") == ("", None)
