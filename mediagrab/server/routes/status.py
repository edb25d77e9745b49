"""Job status polling endpoint."""

from fastapi import APIRouter, Depends

from mediagrab.core.pipeline import DownloadPipeline
from mediagrab.server.dependencies import get_pipeline
from mediagrab.server.models import JobStatusResponse

router = APIRouter()

NOT_FOUND_STATUS = "not_found"
NOT_FOUND_MESSAGE = "Não existe"


@router.get(
    "/api/status/{job_id}",
    response_model=JobStatusResponse,
    response_model_exclude_none=True,
)
async def get_job_status(
    job_id: str, pipeline: DownloadPipeline = Depends(get_pipeline)
) -> JobStatusResponse:
    """Current snapshot of a job.

    Unknown IDs are not an HTTP error: they report ``not_found``.
    """
    state = pipeline.store.get(job_id)
    if state is None:
        return JobStatusResponse(status=NOT_FOUND_STATUS, message=NOT_FOUND_MESSAGE)
    return JobStatusResponse(**state.to_dict())
