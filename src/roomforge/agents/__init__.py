"""Pipeline agents: orchestrator, question expansion, SQL generation, result validation, response assembly."""

from roomforge.agents.orchestrator import Orchestrator, resolve_request_type
from roomforge.agents.question_expansion import QuestionExpander, clean_expansion
from roomforge.agents.response_generator import AssembledResponse, ResponseGenerator, build_payload
from roomforge.agents.result_validator import ResultValidator, parse_validation
from roomforge.agents.roles import MockRoleLookup, RoleLookupProtocol, SqlRoleLookup
from roomforge.agents.sql_generation import SqlGenerationAgent

__all__ = [
    "AssembledResponse",
    "MockRoleLookup",
    "Orchestrator",
    "QuestionExpander",
    "ResponseGenerator",
    "ResultValidator",
    "RoleLookupProtocol",
    "SqlGenerationAgent",
    "SqlRoleLookup",
    "build_payload",
    "clean_expansion",
    "parse_validation",
    "resolve_request_type",
]
