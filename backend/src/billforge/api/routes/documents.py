"""
Quotation and invoice endpoints.

Handles the document lifecycle: create, edit, status transitions,
totals, layout and PDF output.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from billforge.api.dependencies import get_billing_service
from billforge.api.schemas import (
    DocumentCreateRequest,
    DocumentResponse,
    DocumentUpdateRequest,
    ExportResponse,
    LayoutResponse,
    StatusChangeRequest,
    StatusChangeResponse,
    TotalsResponse,
)
from billforge.domain.models import DocumentKind
from billforge.layout import layout_fingerprint
from billforge.services.billing import BillingService
from billforge.services.export import PdfFileSink

router = APIRouter(prefix="/documents", tags=["documents"])

Service = Annotated[BillingService, Depends(get_billing_service)]


@router.get("", response_model=list[DocumentResponse])
async def list_documents(
    service: Service,
    kind: Annotated[DocumentKind | None, Query(description="Only quotations or only invoices")] = None,
) -> list[DocumentResponse]:
    """List documents, newest first."""
    return [DocumentResponse.from_model(d) for d in await service.list_documents(kind)]


@router.post(
    "",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Business profile not set up"},
        422: {"description": "Validation error"},
    },
)
async def create_document(request: DocumentCreateRequest, service: Service) -> DocumentResponse:
    """
    Create a Draft quotation or invoice.

    The number is drawn from the business prefix for the kind and never
    changes afterwards.
    """
    document = await service.create_document(
        request.kind,
        client_name=request.client_name,
        client_email=request.client_email,
        issue_date=request.issue_date,
        due_date=request.due_date,
        items=[item.to_model() for item in request.items],
        notes=request.notes,
    )
    return DocumentResponse.from_model(document)


@router.get("/{document_id}", response_model=DocumentResponse, responses={404: {"description": "Not found"}})
async def get_document(document_id: str, service: Service) -> DocumentResponse:
    return DocumentResponse.from_model(await service.get_document(document_id))


@router.put(
    "/{document_id}",
    response_model=DocumentResponse,
    responses={
        404: {"description": "Not found"},
        422: {"description": "Validation error or document locked"},
    },
)
async def update_document(
    document_id: str,
    request: DocumentUpdateRequest,
    service: Service,
) -> DocumentResponse:
    """Edit a Draft or Sent document. Paid and Expired documents are locked."""
    document = await service.update_document(document_id, **request.to_changes())
    return DocumentResponse.from_model(document)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(document_id: str, service: Service) -> Response:
    await service.delete_document(document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{document_id}/status",
    response_model=StatusChangeResponse,
    responses={
        404: {"description": "Not found"},
        422: {"description": "Unknown status"},
    },
)
async def change_status(
    document_id: str,
    request: StatusChangeRequest,
    service: Service,
) -> StatusChangeResponse:
    """
    Move a document to a new lifecycle state.

    Marking an invoice Paid records exactly one sale in the ledger; a
    repeated Paid request records nothing further.
    """
    change = await service.set_status(document_id, request.status)
    return StatusChangeResponse.from_model(change)


@router.post("/{document_id}/items/{catalog_id}", response_model=DocumentResponse)
async def add_catalog_item(document_id: str, catalog_id: str, service: Service) -> DocumentResponse:
    """Append a catalog entry as a quantity-1 line item."""
    return DocumentResponse.from_model(await service.add_catalog_item(document_id, catalog_id))


@router.post("/{document_id}/client/{client_id}", response_model=DocumentResponse)
async def assign_client(document_id: str, client_id: str, service: Service) -> DocumentResponse:
    """Fill the Bill To name and email from a saved client."""
    return DocumentResponse.from_model(await service.assign_client(document_id, client_id))


@router.get("/{document_id}/totals", response_model=TotalsResponse)
async def get_totals(document_id: str, service: Service) -> TotalsResponse:
    """Totals at the current business tax rate (or the frozen rate, if any)."""
    totals = await service.totals(document_id)
    profile = await service.get_profile()
    return TotalsResponse.from_model(totals, profile.currency_code)


@router.get("/{document_id}/layout", response_model=LayoutResponse)
async def get_layout(document_id: str, service: Service) -> LayoutResponse:
    """Paginated draw instructions; identical input yields an identical fingerprint."""
    pages = await service.render(document_id)
    return LayoutResponse(
        page_count=len(pages),
        fingerprint=layout_fingerprint(pages),
        pages=[page.to_dict() for page in pages],
    )


@router.get(
    "/{document_id}/pdf",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}},
        502: {"description": "PDF rendering failed"},
    },
)
async def download_pdf(document_id: str, service: Service) -> Response:
    """Render the document and return it as a PDF download."""
    result = await service.export(document_id)
    return Response(
        content=result.content,
        media_type=result.content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{result.filename}"',
            "X-Content-Hash": result.content_hash,
        },
    )


@router.post(
    "/{document_id}/export",
    response_model=ExportResponse,
    responses={502: {"description": "Export failed"}},
)
async def export_pdf(document_id: str, service: Service) -> ExportResponse:
    """Write the PDF to the configured export directory."""
    result = await service.export(document_id, PdfFileSink())
    return ExportResponse(
        filename=result.filename,
        size_bytes=result.size_bytes,
        content_hash=result.content_hash,
        path=str(result.path) if result.path else None,
    )
