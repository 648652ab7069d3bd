"""
Cash ledger endpoints.

Sales posted by paid invoices appear here alongside manually recorded
sales and expenses.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from billforge.api.dependencies import get_billing_service
from billforge.api.schemas import LedgerSummaryResponse, TransactionCreateRequest, TransactionResponse
from billforge.domain.models import TransactionKind
from billforge.services.billing import BillingService

router = APIRouter(prefix="/ledger", tags=["ledger"])

Service = Annotated[BillingService, Depends(get_billing_service)]


@router.get("", response_model=list[TransactionResponse])
async def list_transactions(
    service: Service,
    kind: Annotated[TransactionKind | None, Query()] = None,
) -> list[TransactionResponse]:
    return [TransactionResponse.from_model(tx) for tx in await service.list_transactions(kind)]


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def record_transaction(request: TransactionCreateRequest, service: Service) -> TransactionResponse:
    transaction = await service.record_transaction(
        request.kind,
        category=request.category,
        amount=request.amount,
        description=request.description,
        on=request.date,
        reference=request.reference,
    )
    return TransactionResponse.from_model(transaction)


@router.get("/summary", response_model=LedgerSummaryResponse)
async def ledger_summary(service: Service) -> LedgerSummaryResponse:
    """Total sales, expenses, profit and whole-percent profit margin."""
    return LedgerSummaryResponse.from_model(await service.ledger_summary())


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(transaction_id: str, service: Service) -> Response:
    await service.delete_transaction(transaction_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
