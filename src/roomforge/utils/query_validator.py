"""
Read-only safety gate for LLM-generated SQL.

Comments are stripped first; every layer runs on the stripped text.

Layers, applied in order:
1. Read-only statement keyword (SELECT or a WITH ... SELECT)
2. Single statement
3. Write/DDL keyword blocklist (string literals are ignored)
4. Dangerous function blocklist
5. Table allowlist (optional)
6. Row limit injection or clamping

Every rejection carries a human-readable violation that the generation loop
feeds back into the next prompt.

Usage:
    validator = QueryValidator(max_limit=100)
    result = validator.validate("SELECT id, name FROM rooms")

    if result.is_valid:
        safe_query = result.sanitized_query
    else:
        print(f"Blocked: {result.error}")
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

import sqlparse

from roomforge.core.exceptions import UnsafeQueryError
from roomforge.utils.text import truncate

logger = logging.getLogger(__name__)

RENTAL_TABLES: Set[str] = {
    # Users
    "users", "user_addresses",
    # Buildings & rooms
    "buildings", "rooms", "room_instances", "room_images", "room_pricing",
    "room_amenities", "room_costs", "room_rules", "room_instance_meter_readings",
    # Templates
    "room_rule_templates", "amenities", "cost_type_templates",
    # Bookings & rentals
    "room_bookings", "room_invitations", "rentals",
    # Billing
    "bills", "bill_items", "payments",
    # Reviews & posts
    "ratings", "room_requests", "roommate_seeking_posts", "roommate_applications",
    "tenant_room_preferences", "tenant_roommate_preferences",
    # Contracts
    "contracts", "contract_signatures",
    # Notifications
    "notifications",
    # Locations
    "provinces", "districts", "wards",
}

_READ_ONLY_START = re.compile(r"^\s*(SELECT|WITH)\b", re.IGNORECASE)
_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
_QUOTED_IDENT = re.compile(r'"[^"]*"')
_TABLE_REF = re.compile(r"\b(?:FROM|JOIN)\s+([A-Za-z_][\w.]*)\b(?!\s*\()", re.IGNORECASE)
_FROM_INSIDE_CALL = re.compile(
    r"\b(?:EXTRACT|SUBSTRING|TRIM|OVERLAY|POSITION)\s*\([^()]*\)", re.IGNORECASE
)
_CTE_NAME = re.compile(r"(?:\bWITH|,)\s*(?:RECURSIVE\s+)?([A-Za-z_]\w*)\s+AS\s*\(", re.IGNORECASE)
_TRAILING_LIMIT = re.compile(
    r"\bLIMIT\s+(\d+|ALL)\b(?P<offset>\s+OFFSET\s+\d+)?\s*$", re.IGNORECASE
)


def strip_comments(sql: str) -> str:
    """Remove ``--`` and ``/* */`` comments."""
    return sqlparse.format(sql, strip_comments=True).strip()


@dataclass
class QueryValidationResult:
    """Result of query validation."""
    is_valid: bool
    violations: List[str] = field(default_factory=list)
    sanitized_query: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def error(self) -> Optional[str]:
        if not self.violations:
            return None
        return "; ".join(self.violations)


class QueryValidator:
    """
    Safety gate run on every generated statement before execution.

    Example:
        validator = QueryValidator(max_limit=100)

        result = validator.validate("SELECT id FROM rooms LIMIT 500")
        result.sanitized_query  # "SELECT id FROM rooms LIMIT 100;"
    """

    DANGEROUS_KEYWORDS: Set[str] = {
        # DDL
        "DROP", "CREATE", "ALTER", "TRUNCATE", "RENAME",
        # DML (write)
        "DELETE", "INSERT", "UPDATE", "MERGE", "UPSERT", "INTO",
        # Execution
        "EXEC", "EXECUTE", "CALL", "DO",
        # Permissions
        "GRANT", "REVOKE",
        # PostgreSQL maintenance
        "COPY", "VACUUM", "CLUSTER", "REINDEX", "LOCK", "LISTEN", "NOTIFY",
        # Transaction and session control
        "BEGIN", "COMMIT", "ROLLBACK", "SAVEPOINT", "SET", "RESET",
    }

    DANGEROUS_FUNCTIONS: List[tuple] = [
        (r"\bpg_sleep\s*\(", "Time-based function pg_sleep"),
        (r"\bpg_read_file\s*\(|\bpg_read_binary_file\s*\(", "File access function"),
        (r"\blo_import\s*\(|\blo_export\s*\(", "Large object function"),
        (r"\bdblink\w*\s*\(", "Cross-database function"),
        (r"\bset_config\s*\(", "Configuration function"),
    ]

    def __init__(
        self,
        max_limit: int = 100,
        allowed_tables: Optional[Iterable[str]] = None,
        additional_blocked_keywords: Optional[List[str]] = None,
    ):
        """
        Args:
            max_limit: Row-limit ceiling; injected when absent, clamped when larger
            allowed_tables: Allowlist of table names (None = allow all)
            additional_blocked_keywords: Extra keywords to block
        """
        self.max_limit = max_limit
        self.allowed_tables = {t.lower() for t in allowed_tables} if allowed_tables else None
        self.blocked_keywords = set(self.DANGEROUS_KEYWORDS)
        if additional_blocked_keywords:
            self.blocked_keywords.update(k.upper() for k in additional_blocked_keywords)

    def validate(self, query: str) -> QueryValidationResult:
        query = strip_comments(query or "")
        if not query.rstrip(";").strip():
            return QueryValidationResult(is_valid=False, violations=["Empty query"])

        if not self._is_read_only_start(query):
            return self._blocked(query, "Query must start with SELECT (or WITH ... SELECT)")

        if self._has_multiple_statements(query):
            return self._blocked(query, "Multiple statements are not allowed")

        stripped = self._strip_literals(query)

        keyword = self._check_blocked_keywords(stripped)
        if keyword:
            return self._blocked(query, f"Query contains disallowed keyword: {keyword}")

        function = self._check_dangerous_functions(stripped)
        if function:
            return self._blocked(query, f"Query uses a disallowed function: {function}")

        if not self._is_select_statement(query):
            return self._blocked(query, "Only SELECT statements are allowed")

        if self.allowed_tables is not None:
            disallowed = self._disallowed_tables(stripped)
            if disallowed:
                return self._blocked(
                    query, f"Query contains disallowed tables: {', '.join(disallowed)}"
                )

        sanitized, warning = self._enforce_limit(query)
        return QueryValidationResult(
            is_valid=True,
            sanitized_query=sanitized,
            warnings=[warning] if warning else [],
        )

    def _is_read_only_start(self, query: str) -> bool:
        return bool(_READ_ONLY_START.match(query))

    def _has_multiple_statements(self, query: str) -> bool:
        statements = [s for s in sqlparse.split(query) if s.strip().rstrip(";").strip()]
        return len(statements) > 1

    def _is_select_statement(self, query: str) -> bool:
        parsed = sqlparse.parse(query)
        if not parsed:
            return False
        return parsed[0].get_type() == "SELECT"

    def _strip_literals(self, query: str) -> str:
        without_strings = _STRING_LITERAL.sub("''", query)
        return _QUOTED_IDENT.sub('""', without_strings)

    def _check_blocked_keywords(self, query: str) -> Optional[str]:
        query_upper = query.upper()
        for keyword in sorted(self.blocked_keywords):
            if re.search(rf"\b{re.escape(keyword)}\b", query_upper):
                return keyword
        return None

    def _check_dangerous_functions(self, query: str) -> Optional[str]:
        for pattern, description in self.DANGEROUS_FUNCTIONS:
            if re.search(pattern, query, re.IGNORECASE):
                return description
        return None

    def _disallowed_tables(self, query: str) -> List[str]:
        ctes = {name.lower() for name in _CTE_NAME.findall(query)}
        searchable = _FROM_INSIDE_CALL.sub("", query)
        disallowed = []
        for ref in _TABLE_REF.findall(searchable):
            name = ref.lower().rsplit(".", 1)[-1]
            if name in ctes or name in self.allowed_tables:
                continue
            if name not in disallowed:
                disallowed.append(name)
        return disallowed

    def _enforce_limit(self, query: str) -> tuple[str, Optional[str]]:
        body = query.rstrip().rstrip(";").rstrip()
        match = _TRAILING_LIMIT.search(body)

        if match is None:
            return f"{body} LIMIT {self.max_limit};", f"Added LIMIT {self.max_limit}"

        value = match.group(1)
        if value.upper() != "ALL" and int(value) <= self.max_limit:
            return f"{body};", None

        offset = match.group("offset") or ""
        clamped = f"{body[:match.start()]}LIMIT {self.max_limit}{offset}"
        return f"{clamped};", f"Clamped LIMIT {value} to {self.max_limit}"

    def _blocked(self, query: str, reason: str) -> QueryValidationResult:
        logger.warning(f"Query blocked: {reason} | Query: {truncate(query)}")
        return QueryValidationResult(is_valid=False, violations=[reason])


def ensure_read_only(sql: str) -> str:
    """Boundary check for the executor: one statement, starting with SELECT/WITH.

    Raises:
        UnsafeQueryError: If the statement is not a single read-only query
    """
    text = strip_comments(sql or "")
    statements = [s for s in sqlparse.split(text) if s.strip().rstrip(";").strip()]
    if len(statements) != 1:
        raise UnsafeQueryError("Exactly one SQL statement is required", sql=sql)
    statement = statements[0].strip().rstrip(";").strip()
    if not _READ_ONLY_START.match(statement):
        raise UnsafeQueryError("Only SELECT statements can be executed", sql=sql)
    return statement
