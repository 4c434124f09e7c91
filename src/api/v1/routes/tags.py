"""Tag API routes."""

from fastapi import APIRouter, Depends, Path, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_tag_service
from api.v1.schemas.tag import TagStatResponse, TagStatsResponse
from core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from domain.services.tag_service import TagService

router = APIRouter(prefix="/tags", tags=["tags"])

TagNamePath = Path(..., min_length=1, max_length=255, description="Tag name")


@router.get(
    "/stats",
    response_model=TagStatsResponse,
    summary="Tag usage statistics",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_tag_stats(
    request: Request,
    user: CurrentUser,
    service: TagService = Depends(get_tag_service),
) -> TagStatsResponse:
    """
    Get every tag used on the caller's entries with its usage count.

    Sorted alphabetically. `is_legacy` reflects only the caller's own markers.
    """
    stats = await service.get_stats(user.id)
    return TagStatsResponse(data=[TagStatResponse.model_validate(stat) for stat in stats])


@router.put(
    "/legacy/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark a tag as legacy",
    responses={
        204: {"description": "Tag is marked as legacy (also when it already was)"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def mark_tag_legacy(
    request: Request,
    user: CurrentUser,
    name: str = TagNamePath,
    service: TagService = Depends(get_tag_service),
) -> None:
    """Mark a tag as legacy for the caller. Idempotent."""
    await service.mark_legacy(user.id, name)
    return None


@router.delete(
    "/legacy/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unmark a legacy tag",
    responses={
        204: {"description": "Tag is no longer legacy (also when it never was)"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def unmark_tag_legacy(
    request: Request,
    user: CurrentUser,
    name: str = TagNamePath,
    service: TagService = Depends(get_tag_service),
) -> None:
    """Remove the caller's legacy marker from a tag. Idempotent."""
    await service.unmark_legacy(user.id, name)
    return None
