"""
Legacy stock to batch migration

Products that hold stock (legacy ``quantity`` or structured godown/store)
but have no batch get one ``MIGRATION-...`` batch carrying their current
stock, expiring one year out.

Products are processed in fixed-size chunks. Each chunk runs in its own
session and transaction, so a failed chunk does not block the ones after
it. Inside a chunk each product runs in a savepoint: a failing product is
rolled back alone and recorded in the error list.
"""
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.logging_config import get_logger
from app.models.product import Product
from app.models.product_batch import ProductBatch
from app.services.event_service import record_activity

logger = get_logger(__name__)

MIGRATION_EXPIRY = timedelta(days=365)
DEFAULT_CHUNK_SIZE = 50
DEFAULT_DELAY_SECONDS = 1.0


@dataclass
class MigrationPlan:
    product_id: int
    name: str
    godown: int
    store: int
    original_total: int

    @property
    def total(self) -> int:
        return self.godown + self.store


@dataclass
class MigrationReport:
    products_found: int = 0
    migrated: int = 0
    skipped: int = 0
    total_quantity: int = 0
    chunks: int = 0
    failed_chunks: List[int] = field(default_factory=list)
    errors: List[Tuple[int, str]] = field(default_factory=list)  # (product_id, message)
    plans: List[MigrationPlan] = field(default_factory=list)


def plan_for(product: Product) -> MigrationPlan:
    """
    Godown/store split for a product's migration batch.

    Products that only carry the legacy quantity put all of it in the godown.
    """
    godown = product.stock_godown or 0
    store = product.stock_store or 0
    total = product.stock_total or product.quantity or 0
    if godown + store == 0 and total > 0:
        godown = total
    return MigrationPlan(
        product_id=product.id,
        name=product.name,
        godown=godown,
        store=store,
        original_total=total,
    )


def find_products_to_migrate(db: Session) -> List[int]:
    """IDs of products with stock and no batch, in id order."""
    rows = (
        db.query(Product.id)
        .filter(
            or_(Product.quantity > 0, Product.stock_godown > 0, Product.stock_store > 0),
            ~Product.batches.any(),
        )
        .order_by(Product.id)
        .all()
    )
    return [row.id for row in rows]


def migrate_product(db: Session, product: Product, now: datetime) -> Optional[ProductBatch]:
    """Create the migration batch and sync the product's stock. Returns None when there is nothing to move."""
    plan = plan_for(product)
    if plan.total == 0:
        return None

    batch = ProductBatch(
        product_id=product.id,
        shop_id=product.shop_id,
        batch_number=f"MIGRATION-{now:%Y%m%d%H%M%S}-{product.id:06d}",
        purchase_price=product.price or 0,
        selling_price=product.price or 0,
        godown_qty=plan.godown,
        store_qty=plan.store,
        original_qty=plan.total,
        expiry_date=now + MIGRATION_EXPIRY,
        manufacturing_date=now,
        supplier_name="Stock Migration",
        invoice_number=f"MIG-{now:%Y%m%d%H%M%S}",
        notes="Automatically created during migration from legacy stock system",
        created_by=product.created_by,
        created_at=now,
        updated_at=now,
    )
    batch.recalculate(now)
    db.add(batch)

    product.stock_godown = plan.godown
    product.stock_store = plan.store
    product.sync_stock()
    db.flush()

    record_activity(
        db,
        action="STOCK_MIGRATION",
        message=f"Migrated {plan.total} units of {product.name} into batch {batch.batch_number}",
        user=product.created_by,
        shop_id=product.shop_id,
        product_id=product.id,
        details={
            "batch_id": batch.id,
            "original_quantity": plan.original_total,
            "migrated_godown": plan.godown,
            "migrated_store": plan.store,
        },
    )
    return batch


def migrate_chunk(db: Session, product_ids: List[int], report: MigrationReport, now: datetime) -> None:
    """Migrate one chunk in a single transaction; per-product failures use savepoints."""
    products = db.query(Product).filter(Product.id.in_(product_ids)).order_by(Product.id).all()
    migrated: List[MigrationPlan] = []

    for product in products:
        plan = plan_for(product)
        try:
            with db.begin_nested():
                batch = migrate_product(db, product, now)
        except Exception as e:
            logger.error(f"Failed to migrate product {product.id} ({product.name}): {e}")
            report.errors.append((product.id, str(e)))
            continue
        if batch is None:
            report.skipped += 1
            continue
        migrated.append(plan)

    db.commit()

    for plan in migrated:
        report.migrated += 1
        report.total_quantity += plan.total
        report.plans.append(plan)


def run_migration(
    session_factory: Callable[[], Session],
    *,
    execute: bool = False,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    delay: float = DEFAULT_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> MigrationReport:
    """
    Preview (default) or execute the migration.

    Args:
        session_factory: Callable returning a new Session (e.g. SessionLocal)
        execute: Write batches; otherwise only plans are computed
        chunk_size: Products per transaction
        delay: Seconds to wait between chunks
        sleep: Injected for tests
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")

    report = MigrationReport()
    db = session_factory()
    try:
        product_ids = find_products_to_migrate(db)
        report.products_found = len(product_ids)
        if not execute:
            products = db.query(Product).filter(Product.id.in_(product_ids)).order_by(Product.id).all()
            report.plans = [plan_for(p) for p in products]
            return report
    finally:
        db.close()

    chunks = [product_ids[i:i + chunk_size] for i in range(0, len(product_ids), chunk_size)]
    for index, chunk in enumerate(chunks):
        if index > 0 and delay > 0:
            sleep(delay)

        report.chunks += 1
        now = datetime.utcnow()
        db = session_factory()
        try:
            migrate_chunk(db, chunk, report, now)
            logger.info(f"Migrated chunk {index + 1}/{len(chunks)} ({len(chunk)} products)")
        except Exception as e:
            db.rollback()
            report.failed_chunks.append(index)
            logger.error(f"Chunk {index + 1}/{len(chunks)} aborted: {e}")
        finally:
            db.close()

    logger.info(
        f"Stock migration finished: {report.migrated} migrated, {report.skipped} skipped, "
        f"{len(report.errors)} errors, {len(report.failed_chunks)} failed chunks"
    )
    return report
