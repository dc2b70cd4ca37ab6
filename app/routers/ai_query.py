"""
Global Payroll Portal - AI Query Router

Natural-language questions answered by generated read-only SQL.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_identity
from app.schemas.ai_query import AIQueryRequest, AIQueryResponse
from app.services.access_gate import AdminIdentity
from app.services.ai_query_service import AIQueryService


router = APIRouter()


@router.post(
    "",
    response_model=AIQueryResponse,
    summary="Ask a question about employees and payroll",
    description="The question is translated to a single SELECT against the employee_universal view.",
)
async def ai_query(
    request: AIQueryRequest,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    result = await AIQueryService(db, identity).run_query(request.query)
    return AIQueryResponse(**result)
