"""Standalone scrape endpoint."""

from fastapi import APIRouter, Depends

from pricetracker.dependencies import get_client_key, get_tracking_service
from pricetracker.schemas import ApiResponse, ProductCandidateResponse, TrackRequest
from pricetracker.services.tracking_service import TrackingService

router = APIRouter()


@router.post("/amazon", response_model=ApiResponse)
async def scrape_amazon(
    body: TrackRequest,
    client_key: str = Depends(get_client_key),
    tracking: TrackingService = Depends(get_tracking_service),
):
    """Scrape an Amazon product page and return it without saving.

    Blocked pages, proxy failures and missing API keys come back as error
    responses with the matching status code.
    """
    candidate = await tracking.scrape_amazon_product(body.url, client_key)
    return ApiResponse(
        status="success",
        data=ProductCandidateResponse.model_validate(candidate),
    )
