"""
Tests for the migrate_stock_to_batches command line entry point
"""
import pytest

from app.models import ProductBatch
from scripts import migrate_stock_to_batches as script

from tests.factories import create_test_product


@pytest.fixture
def use_test_db(monkeypatch, session_factory):
    monkeypatch.setattr(script, "SessionLocal", session_factory)


@pytest.mark.unit
def test_dry_run_by_default(db_session, use_test_db, capsys):
    create_test_product(db_session, name="Rice", quantity=12)
    db_session.commit()

    assert script.main([]) == 0

    out = capsys.readouterr().out
    assert "(dry run)" in out
    assert "Products to migrate: 1" in out
    assert "Rice" in out
    assert db_session.query(ProductBatch).count() == 0


@pytest.mark.unit
def test_execute(db_session, use_test_db, capsys):
    create_test_product(db_session, quantity=12)
    create_test_product(db_session, quantity=3)
    db_session.commit()

    assert script.main(["--execute", "--chunk-size", "1", "--delay", "0"]) == 0

    out = capsys.readouterr().out
    assert "Processed 2 chunks" in out
    assert "Migrated: 2 products, 15 units" in out
    assert db_session.query(ProductBatch).count() == 2


@pytest.mark.unit
@pytest.mark.parametrize("args", [["--chunk-size", "0"], ["--delay", "-1"]])
def test_rejects_bad_arguments(args, use_test_db):
    with pytest.raises(SystemExit) as exc:
        script.main(args)
    assert exc.value.code == 2
