"""
Live totals for drafts that are not saved yet.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from billforge.api.dependencies import get_billing_service
from billforge.api.schemas import TotalsRequest, TotalsResponse
from billforge.domain.totals import compute_totals
from billforge.services.billing import BillingService

router = APIRouter(prefix="/totals", tags=["documents"])


@router.post("", response_model=TotalsResponse)
async def calculate_totals(
    request: TotalsRequest,
    service: Annotated[BillingService, Depends(get_billing_service)],
) -> TotalsResponse:
    """
    Compute subtotal, tax and total for the given rows.

    Uses the business tax rate unless the request supplies one. Malformed
    numbers count as zero; this endpoint never rejects a draft.
    """
    profile = await service.get_profile()
    rate = profile.tax_percentage if request.tax_percentage is None else request.tax_percentage
    totals = compute_totals([item.to_model() for item in request.items], rate)
    return TotalsResponse.from_model(totals, profile.currency_code)
