"""
Global Payroll Portal - AI Query Schemas
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class AIQueryRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=1000, description="Question in plain language")


class AIQueryResponse(BaseModel):
    query: str
    data: List[Dict[str, Any]]
    rowCount: int
    success: bool = True
