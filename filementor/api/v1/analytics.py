"""File analysis endpoint."""

from fastapi import APIRouter

from filementor.deps import Analytics, CurrentUser
from filementor.schemas.analysis import AnalysisRequest, AnalysisResponse

router = APIRouter()


@router.post("", response_model=AnalysisResponse)
async def analyze_file(
    request: AnalysisRequest,
    user: CurrentUser,
    service: Analytics,
) -> AnalysisResponse:
    """Summary, insights, questions or action items for one file.

    Pro and Legend only; free users get 403 with ``upgradeRequired``.
    Results are cached per file and type.
    """
    result = await service.generate(
        user.id,
        request.file_id,
        request.analysis_type,
        request.options.model_dump(),
    )
    return AnalysisResponse(
        analysis=result.analysis,
        cached=result.cached,
        generated_at=result.generated_at,
    )
