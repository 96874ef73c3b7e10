# controller/search_controller.py
from fastapi import APIRouter, Depends, status
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from controller.controller_dependencies import get_search_service, get_session_id
from model.api import SearchRequest, SearchResponse
from service.search_service import SearchService
from util.constants import InternalURIs

search_router = APIRouter(
    dependencies=[
        Depends(
            RateLimiter(
                times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
            )
        )
    ]
)


@search_router.post(
    InternalURIs.SEARCH,
    response_model=SearchResponse,
    status_code=status.HTTP_200_OK,
)
async def search(
    payload: SearchRequest,
    session_id: str = Depends(get_session_id),
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    return await service.search(session_id, payload.query)
