"""Tests for SQLite price, price history and supplier price stores."""

from datetime import date
from decimal import Decimal

import aiosqlite
import pytest

from src.core.entities import PriceSourceType, SupplierItemPrice


class TestCurrentPrice:
    """Tests for the single current price row."""

    async def test_no_price_yet(self, price_store, widget):
        assert await price_store.get_current_price(widget.id) is None

    async def test_set_price_inserts(self, price_store, widget):
        price = await price_store.set_price(widget.id, Decimal("10"), date(2024, 3, 1))

        assert price.price_usd == Decimal("10")
        assert price.effective_date == date(2024, 3, 1)

    async def test_set_price_upserts_single_row(self, price_store, conn, widget):
        await price_store.set_price(widget.id, Decimal("10"), date(2024, 3, 1), last_purchase_id=None)
        await price_store.set_price(widget.id, Decimal("11"), date(2024, 3, 2))

        cursor = await conn.execute("SELECT COUNT(*) FROM item_prices WHERE item_id = ?", (widget.id,))
        assert (await cursor.fetchone())[0] == 1
        assert (await price_store.get_current_price(widget.id)).price_usd == Decimal("11")

    async def test_set_price_quantizes(self, price_store, widget):
        price = await price_store.set_price(widget.id, Decimal("11.666666"), date(2024, 3, 1))
        assert price.price_usd == Decimal("11.6667")


class TestPriceHistory:
    """Tests for the append-only price history."""

    async def test_first_entry_has_no_old_price(self, price_store, widget):
        entry = await price_store.append_history(
            widget.id, None, Decimal("10"), PriceSourceType.INITIAL, effective_date=date(2024, 3, 1)
        )

        assert entry.id is not None
        assert entry.old_price is None
        assert entry.change == Decimal("10")

    async def test_equal_prices_are_skipped(self, price_store, widget):
        entry = await price_store.append_history(
            widget.id, Decimal("10"), Decimal("10.00001"), PriceSourceType.PURCHASE, source_id=1
        )

        assert entry is None
        assert await price_store.list_history(widget.id) == []

    async def test_list_history_oldest_first(self, price_store, widget):
        await price_store.append_history(widget.id, None, Decimal("10"), PriceSourceType.INITIAL)
        await price_store.append_history(
            widget.id, Decimal("10"), Decimal("11"), PriceSourceType.PURCHASE, source_id=7
        )
        await price_store.append_history(
            widget.id, Decimal("11"), Decimal("10.5"), PriceSourceType.PURCHASE_RETURN, source_id=8
        )

        history = await price_store.list_history(widget.id)

        assert [e.new_price for e in history] == [Decimal("10"), Decimal("11"), Decimal("10.5")]
        assert history[1].source_id == 7
        assert history[2].change == Decimal("-0.5")

    async def test_count_history_excluding_sources(self, price_store, widget):
        await price_store.append_history(widget.id, None, Decimal("10"), PriceSourceType.INITIAL)
        await price_store.append_history(
            widget.id, Decimal("10"), Decimal("12"), PriceSourceType.PURCHASE, source_id=1
        )

        assert await price_store.count_history(widget.id) == 2
        assert (
            await price_store.count_history(
                widget.id, exclude_source_types=[PriceSourceType.INITIAL]
            )
            == 1
        )

    async def test_history_rows_cannot_change(self, price_store, conn, widget):
        entry = await price_store.append_history(
            widget.id, None, Decimal("10"), PriceSourceType.INITIAL
        )

        with pytest.raises(aiosqlite.IntegrityError):
            await conn.execute(
                "UPDATE item_price_history SET new_price = '1' WHERE id = ?", (entry.id,)
            )
        with pytest.raises(aiosqlite.IntegrityError):
            await conn.execute("DELETE FROM item_price_history WHERE id = ?", (entry.id,))


class TestSupplierPrices:
    """Tests for SQLiteSupplierPriceStore."""

    async def test_record_and_get_current(self, supplier_price_store, widget):
        await supplier_price_store.record(
            SupplierItemPrice(
                supplier_id=5,
                item_id=widget.id,
                price_usd=Decimal("9.5"),
                last_purchase_id=1,
                last_purchase_date=date(2024, 3, 1),
            )
        )

        current = await supplier_price_store.get_current(5, widget.id)

        assert current.price_usd == Decimal("9.5")
        assert current.last_purchase_date == date(2024, 3, 1)
        assert current.is_current is True

    async def test_record_retires_previous(self, supplier_price_store, widget):
        await supplier_price_store.record(
            SupplierItemPrice(supplier_id=5, item_id=widget.id, price_usd=Decimal("9.5"))
        )
        await supplier_price_store.record(
            SupplierItemPrice(supplier_id=5, item_id=widget.id, price_usd=Decimal("11"))
        )

        current = await supplier_price_store.list_for_item(widget.id)
        everything = await supplier_price_store.list_for_item(widget.id, current_only=False)

        assert [p.price_usd for p in current] == [Decimal("11")]
        assert [p.is_current for p in everything] == [False, True]

    async def test_suppliers_are_independent(self, supplier_price_store, widget):
        await supplier_price_store.record(
            SupplierItemPrice(supplier_id=5, item_id=widget.id, price_usd=Decimal("9.5"))
        )
        await supplier_price_store.record(
            SupplierItemPrice(supplier_id=6, item_id=widget.id, price_usd=Decimal("8"))
        )

        current = await supplier_price_store.list_for_item(widget.id)
        assert [(p.supplier_id, p.price_usd) for p in current] == [
            (5, Decimal("9.5")),
            (6, Decimal("8")),
        ]

    async def test_touch_updates_last_purchase(self, supplier_price_store, widget):
        price = await supplier_price_store.record(
            SupplierItemPrice(supplier_id=5, item_id=widget.id, price_usd=Decimal("9.5"))
        )

        await supplier_price_store.touch(price.id, 42, date(2024, 4, 1))

        current = await supplier_price_store.get_current(5, widget.id)
        assert current.last_purchase_id == 42
        assert current.last_purchase_date == date(2024, 4, 1)
        assert current.price_usd == Decimal("9.5")
