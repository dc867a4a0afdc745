"""
Unit tests for TestDataManager.

Tests fixture loading and caching, record validation and fake data
generation invariants.
"""

import json
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from qa_framework.core.exceptions import FixtureNotFoundError, FixtureParseError
from qa_framework.data.manager import TAX_RATE, TestDataManager
from qa_framework.data.models import OrderRecord, ProductRecord, UserRecord


@pytest.fixture
def manager(fixtures_dir):
    return TestDataManager(fixtures_dir, seed=1234)


class TestFixtureLoading:

    def test_load_json_appends_suffix(self, manager, fixtures_dir):
        (fixtures_dir / "users.json").write_text(json.dumps([{"name": "Ada"}]), encoding="utf-8")

        assert manager.load_fixture("users") == [{"name": "Ada"}]

    def test_load_csv(self, manager, fixtures_dir):
        (fixtures_dir / "cards.csv").write_text("number,brand\n4111,visa\n5500,mc\n", encoding="utf-8")

        rows = manager.load_fixture("cards.csv")

        assert rows == [{"number": "4111", "brand": "visa"}, {"number": "5500", "brand": "mc"}]

    def test_second_load_is_served_from_cache(self, manager, fixtures_dir):
        (fixtures_dir / "users.json").write_text('{"a": 1}', encoding="utf-8")

        first = manager.load_fixture("users.json")
        with patch("pathlib.Path.read_text") as read_text:
            second = manager.load_fixture("users.json")

        assert first == second
        read_text.assert_not_called()

    def test_missing_fixture(self, manager):
        with pytest.raises(FixtureNotFoundError) as exc_info:
            manager.load_fixture("nope.json")

        assert exc_info.value.fixture_name == "nope.json"

    def test_malformed_json(self, manager, fixtures_dir):
        (fixtures_dir / "broken.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(FixtureParseError):
            manager.load_fixture("broken")

    def test_csv_row_with_extra_fields(self, manager, fixtures_dir):
        (fixtures_dir / "bad.csv").write_text("a,b\n1,2,3\n", encoding="utf-8")

        with pytest.raises(FixtureParseError):
            manager.load_fixture("bad.csv")

    def test_clear_cache_forces_reload(self, manager, fixtures_dir):
        path = fixtures_dir / "flags.json"
        path.write_text('{"v": 1}', encoding="utf-8")
        manager.load_fixture("flags")
        path.write_text('{"v": 2}', encoding="utf-8")

        assert manager.load_fixture("flags") == {"v": 1}
        manager.clear_cache()
        assert manager.load_fixture("flags") == {"v": 2}

    def test_load_records_validates(self, manager, fixtures_dir):
        user = manager.generate("user")
        manager.save([user], "users.json")

        records = manager.load_records("users.json", "user")

        assert records == [user]

    def test_load_records_rejects_invalid_entries(self, manager, fixtures_dir):
        (fixtures_dir / "products.json").write_text('[{"id": "1"}]', encoding="utf-8")

        with pytest.raises(FixtureParseError):
            manager.load_records("products.json", "product")


class TestGeneration:

    @pytest.mark.parametrize(
        "kind,record_type",
        [("user", UserRecord), ("product", ProductRecord), ("order", OrderRecord)],
    )
    def test_single_record_for_count_one(self, manager, kind, record_type):
        assert isinstance(manager.generate(kind, 1), record_type)

    @pytest.mark.parametrize("kind", ["user", "product", "order"])
    def test_list_for_larger_counts(self, manager, kind):
        records = manager.generate(kind, 5)

        assert isinstance(records, list)
        assert len(records) == 5

    def test_unknown_kind(self, manager):
        with pytest.raises(ValueError, match="Unknown record kind"):
            manager.generate("invoice")

    def test_count_below_one(self, manager):
        with pytest.raises(ValueError):
            manager.generate("user", 0)

    def test_order_totals(self, manager):
        for order in manager.generate_orders(20):
            subtotal = round(sum(item.total for item in order.items), 2)
            assert order.subtotal == pytest.approx(subtotal, abs=0.01)
            assert order.tax == pytest.approx(subtotal * TAX_RATE, abs=0.01)
            assert 0 <= order.shipping <= 25
            assert order.total == pytest.approx(subtotal * 1.08 + order.shipping, abs=0.02)

    def test_order_total_adds_up_stored_amounts(self, manager):
        for order in manager.generate_orders(50):
            assert order.total == pytest.approx(
                round(order.subtotal + order.tax + order.shipping, 2), abs=1e-9
            )

    def test_order_items_are_consistent(self, manager):
        order = manager.generate("order")

        assert 1 <= len(order.items) <= 5
        for item in order.items:
            assert item.total == pytest.approx(item.price * item.quantity, abs=0.01)

    def test_product_ranges(self, manager):
        for product in manager.generate_products(20):
            assert product.price >= 0
            assert 1 <= product.rating <= 5
            assert product.stock_quantity >= 0
            assert 1 <= len(product.tags) <= 3

    def test_seed_makes_output_reproducible(self, fixtures_dir):
        first = TestDataManager(fixtures_dir, seed=7).generate("user")
        second = TestDataManager(fixtures_dir, seed=7).generate("user")

        assert first.email == second.email

    def test_records_are_immutable(self, manager):
        user = manager.generate_users()

        with pytest.raises(ValidationError):
            user.email = "changed@example.com"


class TestPersistence:

    def test_save_json_uses_fixture_field_names(self, manager, fixtures_dir):
        path = manager.save(manager.generate("user", 2), "users-out.json")

        data = json.loads(path.read_text(encoding="utf-8"))
        assert len(data) == 2
        assert "firstName" in data[0]
        assert "zipCode" in data[0]["address"]

    def test_save_csv(self, manager, fixtures_dir):
        path = manager.save(manager.generate("product", 3), "products.csv", format="csv")

        lines = path.read_text(encoding="utf-8").strip().splitlines()
        assert len(lines) == 4
        assert "stockQuantity" in lines[0]

    def test_save_unknown_format(self, manager):
        with pytest.raises(ValueError):
            manager.save({"a": 1}, "a.xml", format="xml")

    def test_generation_writes_nothing(self, manager, fixtures_dir):
        manager.generate("order", 3)

        assert list(fixtures_dir.iterdir()) == []

    def test_default_credentials(self, manager, fixtures_dir):
        path = manager.create_default_credentials()

        credentials = json.loads(path.read_text(encoding="utf-8"))
        assert set(credentials) == {"validUser", "adminUser", "invalidUser"}

    def test_get_and_set_data(self, manager):
        manager.set_data("token", "abc")

        assert manager.get_data("token") == "abc"
        assert manager.get_data("missing") is None

    def test_random_helpers(self, manager):
        items = ["a", "b", "c", "d"]

        assert manager.random_element(items) in items
        picks = manager.random_elements(items, 2)
        assert len(picks) == 2
        assert len(set(picks)) == 2
