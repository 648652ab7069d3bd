"""
Saved clients and the product/service catalog.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from billforge.api.dependencies import get_billing_service
from billforge.api.schemas import (
    CatalogItemCreateRequest,
    CatalogItemResponse,
    ClientCreateRequest,
    ClientResponse,
)
from billforge.services.billing import BillingService

router = APIRouter(tags=["directory"])

Service = Annotated[BillingService, Depends(get_billing_service)]


@router.get("/clients", response_model=list[ClientResponse])
async def list_clients(service: Service) -> list[ClientResponse]:
    return [ClientResponse.from_model(c) for c in await service.list_clients()]


@router.post(
    "/clients",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"description": "Missing name or duplicate client"}},
)
async def add_client(request: ClientCreateRequest, service: Service) -> ClientResponse:
    """Save a client. A client with the same name or email is rejected."""
    client = await service.add_client(
        request.name, email=request.email, phone=request.phone, address=request.address
    )
    return ClientResponse.from_model(client)


@router.delete("/clients/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(client_id: str, service: Service) -> Response:
    await service.delete_client(client_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/catalog", response_model=list[CatalogItemResponse])
async def list_catalog(service: Service) -> list[CatalogItemResponse]:
    return [CatalogItemResponse.from_model(item) for item in await service.list_catalog()]


@router.post("/catalog", response_model=CatalogItemResponse, status_code=status.HTTP_201_CREATED)
async def add_catalog_entry(request: CatalogItemCreateRequest, service: Service) -> CatalogItemResponse:
    item = await service.add_catalog_entry(request.description, request.unit_price)
    return CatalogItemResponse.from_model(item)


@router.delete("/catalog/{catalog_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_catalog_entry(catalog_id: str, service: Service) -> Response:
    await service.delete_catalog_entry(catalog_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
