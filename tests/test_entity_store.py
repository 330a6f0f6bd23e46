"""
Tests for the entity store and schema creation
"""

import logging

from sqlalchemy import func, inspect, select

from database import build_engine, create_tables
from models import Base, ClaimEscrow, Sale, SaleStatus
from utils.entity_store import EntityStore

from conftest import CLAIM_ESCROW_ADDRESS, SALE_ADDRESS


class TestEntityStore:

    def test_load_missing_returns_none(self, session):
        assert EntityStore(session).load(Sale, SALE_ADDRESS) is None

    def test_get_or_create_reports_creation(self, session):
        store = EntityStore(session)

        sale, created = store.get_or_create(Sale, SALE_ADDRESS)
        assert created is True
        assert sale.status == SaleStatus.PENDING.value

        again, created = store.get_or_create(Sale, SALE_ADDRESS, status=SaleStatus.FAIL.value)
        assert created is False
        assert again is sale
        assert again.status == SaleStatus.PENDING.value

    def test_create_keeps_stored_record(self, session, caplog):
        store = EntityStore(session)
        first = store.create(ClaimEscrow, CLAIM_ESCROW_ADDRESS, address=CLAIM_ESCROW_ADDRESS)

        with caplog.at_level(logging.INFO, logger="utils.entity_store"):
            second = store.create(ClaimEscrow, CLAIM_ESCROW_ADDRESS, address="0x" + "ff" * 20)

        assert second is first
        assert second.address == CLAIM_ESCROW_ADDRESS
        assert "already recorded" in caplog.text

    def test_save_makes_entity_queryable(self, session):
        store = EntityStore(session)
        sale = store.save(Sale(id=SALE_ADDRESS, status=SaleStatus.ACTIVE.value))

        assert session.scalar(select(func.count()).select_from(Sale).where(Sale.status == "ACTIVE")) == 1
        assert store.load(Sale, SALE_ADDRESS) is sale


class TestCreateTables:

    def test_creates_every_entity_table(self):
        engine = build_engine("sqlite://")

        assert create_tables(engine) is True
        assert set(inspect(engine).get_table_names()) == set(Base.metadata.tables)

    def test_is_idempotent(self):
        engine = build_engine("sqlite://")
        create_tables(engine)

        assert create_tables(engine) is True
