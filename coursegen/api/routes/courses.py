from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from coursegen.ai.client import GenerationClient
from coursegen.api.deps import get_generation_client, get_pipeline_policy, get_text_extractor
from coursegen.api.models import AnalyzeDocumentsRequest, AnalyzeDocumentsResponse, ErrorResponse, GenerateCourseRequest, GenerateCourseResponse
from coursegen.core.exceptions import pipeline_failure_response
from coursegen.pipeline.extraction import TextExtractor
from coursegen.pipeline.orchestrator import CourseOrchestrator
from coursegen.pipeline.policy import PipelinePolicy

router = APIRouter()

_FAILURE_RESPONSES = {status_code: {"model": ErrorResponse} for status_code in (400, 408, 429, 499, 500)}


@router.post("/generate", response_model=GenerateCourseResponse, responses=_FAILURE_RESPONSES)
async def generate_course(  # noqa: B008
  payload: GenerateCourseRequest,
  request: Request,
  client: GenerationClient = Depends(get_generation_client),  # noqa: B008
  extractor: TextExtractor = Depends(get_text_extractor),  # noqa: B008
  policy: PipelinePolicy = Depends(get_pipeline_policy),  # noqa: B008
) -> GenerateCourseResponse | JSONResponse:
  """Turn uploaded documents into a structured markdown course."""
  # A client disconnect cancels the run between generation calls.
  orchestrator = CourseOrchestrator(client=client, extractor=extractor, policy=policy, is_cancelled=request.is_disconnected)
  result = await orchestrator.run(payload.source_files(), payload.course_metadata)
  if not result.completed:
    return pipeline_failure_response(request, result)
  return GenerateCourseResponse(content=result.content or "", diagnostics=result.diagnostics)


@router.post("/analyze", response_model=AnalyzeDocumentsResponse, responses=_FAILURE_RESPONSES)
async def analyze_documents(  # noqa: B008
  payload: AnalyzeDocumentsRequest,
  request: Request,
  client: GenerationClient = Depends(get_generation_client),  # noqa: B008
  extractor: TextExtractor = Depends(get_text_extractor),  # noqa: B008
  policy: PipelinePolicy = Depends(get_pipeline_policy),  # noqa: B008
) -> AnalyzeDocumentsResponse:
  """Suggest course metadata from uploaded documents."""
  orchestrator = CourseOrchestrator(client=client, extractor=extractor, policy=policy, is_cancelled=request.is_disconnected)
  # Pipeline errors are rendered by the registered exception handler.
  metadata = await orchestrator.suggest_metadata(payload.source_files())
  return AnalyzeDocumentsResponse(metadata=metadata)
