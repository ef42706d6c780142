"""
Tests for the expiry check and batch status derivation
"""
import pytest
from datetime import datetime, timedelta

from app.models import ProductBatch, StockMovement
from app.services.expiry_service import run_expiry_check

from tests.factories import create_test_batch, create_test_product, days_from_now


class TestBatchStatus:

    @pytest.mark.unit
    def test_active(self, db_session):
        product = create_test_product(db_session)
        batch = create_test_batch(db_session, product, godown_qty=4, store_qty=1, expiry_date=days_from_now(90))

        assert batch.total_qty == 5
        assert batch.status == "active"

    @pytest.mark.unit
    def test_near_expiry(self, db_session):
        product = create_test_product(db_session)
        batch = create_test_batch(db_session, product, store_qty=3, expiry_date=days_from_now(10))

        assert batch.status == "near_expiry"
        assert batch.days_until_expiry() == 10

    @pytest.mark.unit
    def test_expired(self, db_session):
        product = create_test_product(db_session)
        batch = create_test_batch(db_session, product, store_qty=3, expiry_date=days_from_now(-1))

        assert batch.status == "expired"

    @pytest.mark.unit
    def test_sold_out(self, db_session):
        product = create_test_product(db_session)
        batch = create_test_batch(db_session, product, expiry_date=days_from_now(90))

        assert batch.status == "sold_out"

    @pytest.mark.unit
    def test_no_expiry_date(self, db_session):
        product = create_test_product(db_session)
        batch = create_test_batch(db_session, product, godown_qty=2)

        assert batch.status == "active"
        assert batch.days_until_expiry() is None

    @pytest.mark.unit
    def test_recalculated_on_update(self, db_session):
        product = create_test_product(db_session)
        batch = create_test_batch(db_session, product, godown_qty=2, expiry_date=days_from_now(90))

        batch.godown_qty = 0
        db_session.flush()

        assert batch.total_qty == 0
        assert batch.status == "sold_out"


class TestRunExpiryCheck:

    @pytest.mark.unit
    def test_writes_off_store_first_then_godown(self, db_session):
        product = create_test_product(db_session, quantity=12, godown=10, store=2)
        batch = create_test_batch(
            db_session, product, godown_qty=3, store_qty=4, expiry_date=days_from_now(-2), batch_number="LOT-7"
        )
        db_session.commit()

        assert run_expiry_check(db_session) == 1

        db_session.refresh(product)
        db_session.refresh(batch)
        assert (product.stock_godown, product.stock_store, product.stock_total) == (5, 0, 5)
        assert product.quantity == 5
        assert (batch.godown_qty, batch.store_qty, batch.total_qty) == (0, 0, 0)
        assert batch.status == "expired"

        movement = db_session.query(StockMovement).one()
        assert movement.movement_type == "expired"
        assert (movement.from_location, movement.to_location) == ("store", "external")
        assert movement.quantity == 7
        assert movement.batch_id == batch.id
        assert (movement.previous_godown, movement.previous_store, movement.previous_total) == (10, 2, 12)
        assert (movement.new_godown, movement.new_store, movement.new_total) == (5, 0, 5)

    @pytest.mark.unit
    def test_never_goes_negative(self, db_session):
        product = create_test_product(db_session, quantity=2, godown=1, store=1)
        create_test_batch(db_session, product, store_qty=9, expiry_date=days_from_now(-1))
        db_session.commit()

        run_expiry_check(db_session)

        db_session.refresh(product)
        assert (product.stock_godown, product.stock_store, product.quantity) == (0, 0, 0)

    @pytest.mark.unit
    def test_written_off_once(self, db_session):
        product = create_test_product(db_session, quantity=5, store=5)
        create_test_batch(db_session, product, store_qty=5, expiry_date=days_from_now(-1))
        db_session.commit()

        assert run_expiry_check(db_session) == 1
        assert run_expiry_check(db_session) == 0
        assert db_session.query(StockMovement).count() == 1

    @pytest.mark.unit
    def test_ignores_fresh_and_empty_batches(self, db_session):
        product = create_test_product(db_session, quantity=8, store=8)
        fresh = create_test_batch(db_session, product, store_qty=5, expiry_date=days_from_now(30))
        create_test_batch(db_session, product, expiry_date=days_from_now(-5))
        create_test_batch(db_session, product, store_qty=3)
        db_session.commit()

        assert run_expiry_check(db_session) == 0

        db_session.refresh(fresh)
        assert fresh.total_qty == 5
        db_session.refresh(product)
        assert product.quantity == 8

    @pytest.mark.unit
    def test_respects_explicit_now(self, db_session):
        product = create_test_product(db_session, quantity=5, store=5)
        create_test_batch(db_session, product, store_qty=5, expiry_date=days_from_now(-1))
        db_session.commit()

        assert run_expiry_check(db_session, now=datetime.utcnow() - timedelta(days=3)) == 0
        assert db_session.query(ProductBatch).one().total_qty == 5

    @pytest.mark.unit
    def test_lot_expiring_before_explicit_now_is_labelled_expired(self, db_session):
        product = create_test_product(db_session, quantity=4, store=4)
        batch = create_test_batch(db_session, product, store_qty=4, expiry_date=days_from_now(5))
        db_session.commit()
        assert batch.status == "near_expiry"

        assert run_expiry_check(db_session, now=datetime.utcnow() + timedelta(days=10)) == 1

        db_session.refresh(batch)
        assert batch.total_qty == 0
        assert batch.status == "expired"

        # Later edits to the lot keep it expired
        batch.notes = "checked"
        db_session.commit()
        db_session.refresh(batch)
        assert batch.status == "expired"
