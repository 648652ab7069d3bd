"""
Text suggestion endpoints.

Return 503 when no suggestion service is configured or it fails; the
editor then simply offers no suggestions.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from billforge.api.dependencies import get_billing_service
from billforge.api.schemas import (
    LineItemSuggestionRequest,
    LineItemSuggestionResponse,
    TermsSuggestionResponse,
)
from billforge.services.billing import BillingService

router = APIRouter(prefix="/suggestions", tags=["suggestions"])

Service = Annotated[BillingService, Depends(get_billing_service)]


@router.post(
    "/line-items",
    response_model=list[LineItemSuggestionResponse],
    responses={503: {"description": "Suggestions unavailable"}},
)
async def suggest_line_items(request: LineItemSuggestionRequest, service: Service) -> list[LineItemSuggestionResponse]:
    suggestions = await service.suggest_line_items(request.count)
    return [
        LineItemSuggestionResponse(description=s.description, unit_price=s.unit_price)
        for s in suggestions
    ]


@router.post(
    "/terms",
    response_model=TermsSuggestionResponse,
    responses={503: {"description": "Suggestions unavailable"}},
)
async def suggest_terms(service: Service) -> TermsSuggestionResponse:
    return TermsSuggestionResponse(text=await service.suggest_terms())
