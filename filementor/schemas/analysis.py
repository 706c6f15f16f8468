"""File analysis schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from filementor.schemas.common import CamelModel


class AnalysisOptions(CamelModel):
    length: Literal["short", "medium", "long"] = "medium"
    count: int = Field(default=8, ge=1, le=20)


class AnalysisRequest(CamelModel):
    """Analysis request. The type is validated by the service."""

    file_id: UUID
    analysis_type: str
    options: AnalysisOptions = AnalysisOptions()


class AnalysisResponse(CamelModel):
    analysis: dict
    cached: bool
    generated_at: datetime
