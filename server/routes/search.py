"""Search endpoints: the verified web search and the high-risk strict path."""

from fastapi import APIRouter, Depends, Request

from orchestrator.core import SearchOrchestrator
from server.dependencies import get_api_key, get_orchestrator
from server.schemas.requests import SearchRequest, StrictSearchRequest
from server.schemas.responses import SearchResponseDTO, StrictSearchResponseDTO
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["Search"])


@router.post("/search", response_model=SearchResponseDTO)
async def search(
    request: Request,
    body: SearchRequest,
    api_key: str = Depends(get_api_key),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """
    Search the web for ``query`` and return one trust-annotated fact block.

    High-risk questions (health, finance, legal, government) are answered by
    the grounded strict pipeline; everything else goes through the tiered
    provider engine.
    """
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(
        "Search request received",
        extra={"extra_fields": {"request_id": request_id, "query_chars": len(body.query)}},
    )

    result = await orchestrator.search(body.query, body.options)
    return SearchResponseDTO.from_search_result(result, request_id)


@router.post("/search/strict", response_model=StrictSearchResponseDTO)
async def strict_search(
    request: Request,
    body: StrictSearchRequest,
    api_key: str = Depends(get_api_key),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Force the grounded high-risk pipeline for ``query``."""
    request_id = getattr(request.state, "request_id", "unknown")
    result = await orchestrator.strict_search(body.query, body.category)
    return StrictSearchResponseDTO.from_strict_result(result, request_id)
