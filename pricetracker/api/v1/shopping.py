"""Google Shopping search and save endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from pricetracker.core.results import OutcomeStatus
from pricetracker.dependencies import get_client_key, get_tracking_service
from pricetracker.schemas import (
    ApiResponse,
    ErrorDetail,
    ErrorResponse,
    ShoppingResultItem,
    ShoppingSearchResponse,
    TrackedProductResponse,
)
from pricetracker.services.tracking_service import TrackingService

router = APIRouter()


@router.get("/search", response_model=ApiResponse)
async def search_shopping(
    q: str = Query(..., min_length=1, description="Product search query"),
    client_key: str = Depends(get_client_key),
    tracking: TrackingService = Depends(get_tracking_service),
):
    """Search Google Shopping.

    Returns 429 once the caller has used up the current rate-limit window.
    An empty search is a success with no results.
    """
    outcome = await tracking.google_shopping_result(q, client_key)

    if outcome.status is OutcomeStatus.RATE_LIMITED:
        error = ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many searches, please wait before trying again",
            )
        )
        return JSONResponse(status_code=429, content=error.model_dump())

    if outcome.status is OutcomeStatus.ERROR:
        raise outcome.error

    return ApiResponse(
        status="success",
        data=ShoppingSearchResponse(query=q, results=outcome.value or []),
    )


@router.post("/save", response_model=ApiResponse, status_code=201)
async def save_shopping_result(
    item: ShoppingResultItem,
    client_key: str = Depends(get_client_key),
    tracking: TrackingService = Depends(get_tracking_service),
):
    """Save a shopping result as a tracked product.

    Returns the redirect id of the stored product.
    """
    if not (item.product_link or item.link):
        raise HTTPException(status_code=422, detail="Shopping result has no product_link or link")

    redirect_id = await tracking.google_product_save(item, client_key)
    return ApiResponse(
        status="success",
        data=TrackedProductResponse(redirect_id=redirect_id, product_url=f"/products/{redirect_id}"),
    )
