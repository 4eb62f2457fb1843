"""Product catalog routes."""

from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from hrm_console.api.dependencies import get_active_profile, get_product_catalog
from hrm_console.schemas import ProductCreate, ProductRecord, ProductUpdate, ProfileRecord
from hrm_console.services.product_catalog import ProductCatalogManager, filter_products, record_stamp

router = APIRouter(prefix="/products", tags=["products"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ProductResponse(BaseModel):
    id: str
    product_code: str
    description: str
    unit: str
    status: str
    created_at: str | None = None
    updated_at: str | None = None
    created_by: str | None = None
    activated_by: str | None = None
    activated_at: str | None = None
    record_stamp: str  # ACTIVATED or CREATED
    record_stamp_at: str | None = None

    class Config:
        from_attributes = True


def _iso(value):
    return value.isoformat() if value else None


def _product_response(product: ProductRecord) -> ProductResponse:
    label, stamped_at = record_stamp(product)
    return ProductResponse(
        id=product.id,
        product_code=product.product_code,
        description=product.description,
        unit=product.unit,
        status=product.status.value,
        created_at=_iso(product.created_at),
        updated_at=_iso(product.updated_at),
        created_by=product.created_by,
        activated_by=product.activated_by,
        activated_at=_iso(product.activated_at),
        record_stamp=label,
        record_stamp_at=_iso(stamped_at),
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.get("", response_model=List[ProductResponse])
def list_products(
    search: str | None = Query(None, description="Match on product code or description"),
    profile: ProfileRecord = Depends(get_active_profile),
    catalog: ProductCatalogManager = Depends(get_product_catalog),
):
    products = filter_products(catalog.list(), search)
    return [_product_response(p) for p in products]


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreate,
    profile: ProfileRecord = Depends(get_active_profile),
    catalog: ProductCatalogManager = Depends(get_product_catalog),
):
    return _product_response(catalog.create(profile, body))


@router.patch("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: str,
    body: ProductUpdate,
    profile: ProfileRecord = Depends(get_active_profile),
    catalog: ProductCatalogManager = Depends(get_product_catalog),
):
    return _product_response(catalog.update(profile, product_id, body))


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: str,
    profile: ProfileRecord = Depends(get_active_profile),
    catalog: ProductCatalogManager = Depends(get_product_catalog),
):
    catalog.delete(profile, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
