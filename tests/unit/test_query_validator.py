"""Unit tests for the SQL safety gate."""

import pytest

from roomforge.core.exceptions import UnsafeQueryError
from roomforge.utils.query_validator import RENTAL_TABLES, QueryValidator, ensure_read_only


@pytest.fixture
def validator():
    return QueryValidator(max_limit=100, allowed_tables=RENTAL_TABLES)


class TestReadOnlyRules:
    def test_plain_select_gets_limit(self, validator):
        result = validator.validate("SELECT id, name FROM rooms")

        assert result.is_valid
        assert result.sanitized_query == "SELECT id, name FROM rooms LIMIT 100;"
        assert result.warnings == ["Added LIMIT 100"]

    def test_rejects_non_select(self, validator):
        result = validator.validate("DELETE FROM rooms WHERE id = 1")

        assert not result.is_valid
        assert "must start with SELECT" in result.error

    def test_rejects_multiple_statements(self, validator):
        result = validator.validate("SELECT id FROM rooms; DROP TABLE rooms;")

        assert not result.is_valid
        assert result.violations == ["Multiple statements are not allowed"]

    def test_rejects_write_keyword_inside_select(self, validator):
        result = validator.validate("SELECT id INTO backup_rooms FROM rooms")

        assert not result.is_valid
        assert "INTO" in result.error

    def test_keywords_inside_string_literals_are_ignored(self, validator):
        result = validator.validate("SELECT id FROM rooms WHERE description = 'DROP TABLE rooms'")

        assert result.is_valid

    def test_rejects_dangerous_function(self, validator):
        result = validator.validate("SELECT pg_sleep(10)")

        assert not result.is_valid
        assert "pg_sleep" in result.error

    def test_empty_query(self, validator):
        result = validator.validate("  ;  ")

        assert not result.is_valid
        assert result.violations == ["Empty query"]


class TestLimitEnforcement:
    def test_small_limit_kept(self, validator):
        result = validator.validate("SELECT id FROM rooms LIMIT 10")

        assert result.sanitized_query == "SELECT id FROM rooms LIMIT 10;"
        assert result.warnings == []

    def test_large_limit_clamped(self, validator):
        result = validator.validate("SELECT id FROM rooms LIMIT 500;")

        assert result.sanitized_query == "SELECT id FROM rooms LIMIT 100;"
        assert result.warnings == ["Clamped LIMIT 500 to 100"]

    def test_clamp_keeps_offset(self, validator):
        result = validator.validate("SELECT id FROM rooms LIMIT 500 OFFSET 20")

        assert result.sanitized_query == "SELECT id FROM rooms LIMIT 100 OFFSET 20;"

    def test_limit_all_clamped(self, validator):
        result = validator.validate("SELECT id FROM rooms LIMIT ALL")

        assert result.sanitized_query == "SELECT id FROM rooms LIMIT 100;"


def collapse(sql: str) -> str:
    return " ".join(sql.split())


class TestComments:
    def test_trailing_line_comment_gets_limit(self, validator):
        result = validator.validate("SELECT id FROM rooms -- all rooms")

        assert result.is_valid
        assert collapse(result.sanitized_query) == "SELECT id FROM rooms LIMIT 100;"

    def test_trailing_line_comment_after_large_limit(self, validator):
        result = validator.validate("SELECT id FROM rooms LIMIT 5000 -- top rooms")

        assert collapse(result.sanitized_query) == "SELECT id FROM rooms LIMIT 100;"
        assert result.warnings == ["Clamped LIMIT 5000 to 100"]

    def test_trailing_block_comment_gets_limit(self, validator):
        result = validator.validate("SELECT id FROM rooms /* every room */")

        assert collapse(result.sanitized_query) == "SELECT id FROM rooms LIMIT 100;"

    def test_block_comment_after_large_limit(self, validator):
        result = validator.validate("SELECT id FROM rooms LIMIT 5000 /* top */;")

        assert collapse(result.sanitized_query) == "SELECT id FROM rooms LIMIT 100;"

    def test_comment_only_query_is_empty(self, validator):
        result = validator.validate("-- nothing here")

        assert result.violations == ["Empty query"]

    def test_boundary_strips_comments(self):
        assert ensure_read_only("SELECT 1 -- one") == "SELECT 1"


class TestTableAllowlist:
    def test_rejects_unknown_table(self, validator):
        result = validator.validate("SELECT usename FROM pg_user")

        assert not result.is_valid
        assert "pg_user" in result.error

    def test_cte_names_are_allowed(self, validator):
        sql = (
            "WITH cheap AS (SELECT room_id FROM room_pricing WHERE base_price_monthly < 4000000) "
            "SELECT r.name FROM rooms r JOIN cheap c ON c.room_id = r.id"
        )

        result = validator.validate(sql)

        assert result.is_valid
        assert result.sanitized_query.endswith("LIMIT 100;")

    def test_extract_from_is_not_a_table(self, validator):
        result = validator.validate("SELECT EXTRACT(YEAR FROM created_at) AS year FROM bills")

        assert result.is_valid

    def test_no_allowlist_allows_any_table(self):
        result = QueryValidator(max_limit=5).validate("SELECT * FROM anything")

        assert result.is_valid
        assert result.sanitized_query == "SELECT * FROM anything LIMIT 5;"


class TestEnsureReadOnly:
    def test_returns_single_statement(self):
        assert ensure_read_only("SELECT 1;") == "SELECT 1"

    def test_rejects_update(self):
        with pytest.raises(UnsafeQueryError):
            ensure_read_only("UPDATE rooms SET name = 'x'")

    def test_rejects_two_statements(self):
        with pytest.raises(UnsafeQueryError):
            ensure_read_only("SELECT 1; SELECT 2;")
