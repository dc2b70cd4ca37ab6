"""
Global Payroll Portal - Natural Language Query Service

Turns a free-text question into a single read-only SELECT against the
reporting view, runs it and returns the rows.

Flow:
1. Build the prompt from the schema context and the question
2. Try each configured model in order; the first completion wins
3. Strip markdown fences from the completion
4. Reject anything that is not a single SELECT (403)
5. Execute read-only with a row cap; database errors become 400
"""

import logging
import re
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.services.access_gate import AccessGate, AdminIdentity
from app.utils.error_handling import (
    AIServiceException,
    ForbiddenQueryException,
    InvalidGeneratedQueryException,
    ValidationException,
)

logger = logging.getLogger(__name__)


SCHEMA_CONTEXT = """You are a PostgreSQL expert for a multi-country payroll portal.
Write ONE SQL SELECT query that answers the user's question.

Query only this view:

employee_universal (
    employee_id TEXT,
    full_name TEXT,
    date_of_birth DATE,
    start_date DATE,
    is_active BOOLEAN,
    country_id INTEGER,          -- 1 = India, 2 = France, 3 = USA
    country_name TEXT,           -- 'India', 'France', 'USA'
    currency_code TEXT,          -- 'INR', 'EUR', 'USD'
    payroll_id INTEGER,          -- NULL when the employee has no payroll entries
    period_start DATE,
    period_end DATE,
    payroll_type TEXT,           -- 'Regular', 'Bonus', 'Commission', 'Overtime'
    basic_salary NUMERIC,
    bonus NUMERIC,
    overtime_hours NUMERIC,
    overtime_rate NUMERIC,
    net_pay NUMERIC,
    payroll_created_at TIMESTAMP
)

Rules:
- Return only the SQL, no explanation, no markdown.
- Only SELECT statements. Never modify data.
- Use ILIKE for name searches.
- Amounts in different currencies must not be summed together unless grouped by currency_code.
"""

FORBIDDEN_KEYWORDS = (
    "insert", "update", "delete", "drop", "alter", "truncate", "create",
    "grant", "revoke", "copy", "merge", "call", "execute", "vacuum",
    "attach", "detach", "pragma", "set", "lock", "comment",
)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")
_COMMENT_RE = re.compile(r"--[^\n]*|/\*.*?\*/", re.DOTALL)
_STRING_RE = re.compile(r"'(?:[^']|'')*'")


def clean_sql(raw: str) -> str:
    """Strip markdown fences, whitespace and trailing semicolons."""
    sql = (raw or "").strip()
    sql = _FENCE_RE.sub("", sql).strip()
    while sql.endswith(";"):
        sql = sql[:-1].rstrip()
    return sql


def validate_select_only(sql: str) -> str:
    """
    Accept a single SELECT (or WITH ... SELECT) statement.

    Raises:
        ForbiddenQueryException: anything else
    """
    if not sql:
        raise ForbiddenQueryException("The model did not return a query")

    # Literals and comments cannot smuggle keywords past the checks
    stripped = _STRING_RE.sub("''", _COMMENT_RE.sub(" ", sql))
    lowered = stripped.strip().lower()

    if not (lowered.startswith("select") or lowered.startswith("with")):
        raise ForbiddenQueryException("Only SELECT queries are allowed")
    if ";" in lowered:
        raise ForbiddenQueryException("Only a single SELECT statement is allowed")

    words = set(re.findall(r"[a-z_]+", lowered))
    blocked = sorted(words.intersection(FORBIDDEN_KEYWORDS))
    if blocked:
        raise ForbiddenQueryException(f"Query contains forbidden keyword: {blocked[0].upper()}")
    if lowered.startswith("with") and "select" not in words:
        raise ForbiddenQueryException("Only SELECT queries are allowed")

    return sql


class AIQueryService:
    """Natural language to SQL over the reporting view."""

    def __init__(
        self,
        db: AsyncSession,
        identity: AdminIdentity,
        client: Optional[AsyncOpenAI] = None,
        models: Optional[List[str]] = None,
    ):
        self.db = db
        self.identity = identity
        self.gate = AccessGate(identity)
        self._client = client
        self.models = models or settings.ai_query_model_list

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not settings.openai_api_key:
                raise AIServiceException("OpenAI API key is not configured")
            self._client = AsyncOpenAI(api_key=settings.openai_api_key)
        return self._client

    def build_messages(self, question: str) -> List[Dict[str, str]]:
        context = SCHEMA_CONTEXT
        country = self.identity.allowed_country
        if country is not None:
            context += f"\n- Only return rows WHERE country_name = '{country.value}'.\n"
        return [
            {"role": "system", "content": context},
            {"role": "user", "content": question},
        ]

    async def generate_sql(self, question: str) -> str:
        """Ask each model in turn; return the first non-empty completion."""
        messages = self.build_messages(question)
        last_error: Optional[Exception] = None

        for model in self.models:
            try:
                response = await self.client.chat.completions.create(
                    model=model,
                    messages=messages,
                    temperature=settings.ai_query_temperature,
                )
                content = response.choices[0].message.content
                if content and content.strip():
                    logger.info(f"SQL generated with model {model}")
                    return content
                logger.warning(f"Model {model} returned an empty completion")
            except AIServiceException:
                raise
            except Exception as e:
                last_error = e
                logger.warning(f"Model {model} failed, trying next: {e}")

        raise AIServiceException(
            "All configured models failed to generate a query",
            original_error=last_error,
            attempted_models=list(self.models),
        )

    async def execute_read_only(self, sql: str) -> List[Dict[str, Any]]:
        """Run a validated SELECT read-only, returning at most ai_query_max_rows rows."""
        try:
            if not settings.is_sqlite:
                await self.db.execute(text("SET TRANSACTION READ ONLY"))
            result = await self.db.execute(text(sql))
            rows = result.mappings().fetchmany(settings.ai_query_max_rows)
            return [dict(row) for row in rows]
        except (DBAPIError, SQLAlchemyError) as e:
            logger.warning(f"Generated query failed: {e}")
            raise InvalidGeneratedQueryException(
                f"Generated query could not be executed: {getattr(e, 'orig', e)}",
                original_error=e,
            )
        finally:
            await self.db.rollback()

    async def run_query(self, question: str) -> Dict[str, Any]:
        """Question in, rows out."""
        self.gate.authorize_query()

        question = (question or "").strip()
        if not question:
            raise ValidationException(message="Query text is required", field="query")

        raw = await self.generate_sql(question)
        sql = validate_select_only(clean_sql(raw))
        logger.info(f"AI query by {self.identity.email}: {sql}")

        data = await self.execute_read_only(sql)
        return {
            "query": sql,
            "data": data,
            "rowCount": len(data),
            "success": True,
        }
