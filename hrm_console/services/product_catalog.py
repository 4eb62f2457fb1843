"""Product catalog: listing, search and role-gated mutations.

Activation stamps (``activated_by`` / ``activated_at``) record the first time
a product became active. They are written on an active create or on the first
inactive -> active update, and never cleared or overwritten afterwards.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Tuple

from hrm_console.core.errors import RecordNotFound
from hrm_console.database.base import utcnow
from hrm_console.models.enums import ProductStatus
from hrm_console.schemas import ProductCreate, ProductRecord, ProductUpdate, ProfileRecord
from hrm_console.services.authorization import require_catalog_editor
from hrm_console.services.data_service import PRODUCTS, DataService

logger = logging.getLogger(__name__)


def filter_products(products: Iterable[ProductRecord], term: str | None) -> List[ProductRecord]:
    """Case-insensitive substring match on product code or description."""
    products = list(products)
    if not term:
        return products
    needle = term.lower()
    return [
        p for p in products
        if needle in p.product_code.lower() or needle in p.description.lower()
    ]


def record_stamp(product: ProductRecord) -> Tuple[str, datetime | None]:
    if product.activated_at is not None:
        return "ACTIVATED", product.activated_at
    return "CREATED", product.created_at


class ProductCatalogManager:
    def __init__(self, data: DataService, clock: Callable[[], datetime] = utcnow):
        self.data = data
        self.clock = clock

    def list(self) -> List[ProductRecord]:
        rows = self.data.select(PRODUCTS, order_by="created_at", descending=True)
        return [ProductRecord.model_validate(row) for row in rows]

    def get(self, product_id: str) -> ProductRecord:
        row = self.data.get(PRODUCTS, product_id)
        if row is None:
            raise RecordNotFound("Product not found")
        return ProductRecord.model_validate(row)

    def create(self, actor: ProfileRecord, fields: ProductCreate) -> ProductRecord:
        require_catalog_editor(actor)

        now = self.clock()
        record = {
            "product_code": fields.product_code,
            "description": fields.description,
            "unit": fields.unit,
            "status": fields.status,
            "created_by": actor.id,
            "created_at": now,
            "updated_at": now,
            "activated_by": None,
            "activated_at": None,
        }
        if fields.status == ProductStatus.active:
            record["activated_by"] = actor.id
            record["activated_at"] = now

        product = ProductRecord.model_validate(self.data.insert(PRODUCTS, record))
        logger.info(
            "Product created",
            extra={"product_id": product.id, "product_code": product.product_code, "actor_id": actor.id},
        )
        return product

    def update(self, actor: ProfileRecord, product_id: str, fields: ProductUpdate) -> ProductRecord:
        require_catalog_editor(actor)
        current = self.get(product_id)

        changes = fields.model_dump(exclude_unset=True, exclude_none=True)
        attempted_code = changes.pop("product_code", None)
        if attempted_code is not None and attempted_code != current.product_code:
            logger.info(
                "Ignoring product_code change on update",
                extra={"product_id": product_id, "product_code": current.product_code},
            )

        now = self.clock()
        changes["updated_at"] = now

        becomes_active = (
            current.status == ProductStatus.inactive
            and changes.get("status") == ProductStatus.active
        )
        if becomes_active and current.activated_at is None:
            changes["activated_by"] = actor.id
            changes["activated_at"] = now

        row = self.data.update(PRODUCTS, changes, product_id)
        if row is None:
            raise RecordNotFound("Product not found")
        logger.info("Product updated", extra={"product_id": product_id, "actor_id": actor.id})
        return ProductRecord.model_validate(row)

    def delete(self, actor: ProfileRecord, product_id: str) -> None:
        require_catalog_editor(actor)
        self.data.delete(PRODUCTS, product_id)
        logger.info("Product deleted", extra={"product_id": product_id, "actor_id": actor.id})
