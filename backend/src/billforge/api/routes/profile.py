"""
Business profile endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from billforge.api.dependencies import get_billing_service
from billforge.api.schemas import ProfilePayload
from billforge.services.billing import BillingService

router = APIRouter(prefix="/profile", tags=["profile"])

Service = Annotated[BillingService, Depends(get_billing_service)]


@router.get("", response_model=ProfilePayload, responses={404: {"description": "Profile not set up"}})
async def get_profile(service: Service) -> ProfilePayload:
    return ProfilePayload.from_model(await service.get_profile())


@router.put("", response_model=ProfilePayload, responses={422: {"description": "Validation error"}})
async def update_profile(payload: ProfilePayload, service: Service) -> ProfilePayload:
    """
    Create or replace the business profile.

    Takes effect for every later totals, numbering and layout call,
    including documents created earlier.
    """
    return ProfilePayload.from_model(await service.update_profile(payload.to_model()))
