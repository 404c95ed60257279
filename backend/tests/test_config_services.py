"""
Store, item and employee configuration services.
"""

import pytest

from app.extensions import db
from app.models import ROLE_ADMIN, Item
from app.services import employee_service, item_service, store_service
from app.services.employee_service import EmployeeError
from app.services.item_service import ItemError
from app.services.store_service import StoreError
from app.validation import ConflictError, ValidationError


class TestStores:
    def test_create_and_list(self, db_session):
        store_service.create_store("north", "North Side", timezone="Europe/London")
        store_service.create_store("west")

        stores = store_service.list_stores()
        assert [s.id for s in stores] == ["north", "west"]
        assert stores[0].timezone == "Europe/London"
        # name defaults to the id
        assert stores[1].name == "west"
        assert stores[1].temperature_equipment == []

    def test_duplicate_is_conflict(self, store):
        with pytest.raises(ConflictError):
            store_service.create_store("main", "Again")

    @pytest.mark.parametrize("store_id", ["", "ab", "has space", "x" * 41])
    def test_invalid_id(self, db_session, store_id):
        with pytest.raises(StoreError):
            store_service.create_store(store_id)

    def test_update_and_disable(self, store):
        store_service.update_store("main", name="  Main Street  ", is_active=False)
        updated = store_service.get_store("main")
        assert updated.name == "Main Street"
        assert updated.is_active is False

        with pytest.raises(StoreError, match="disabled"):
            store_service.require_active_store("main")
        assert store_service.list_stores(include_inactive=False) == []

    def test_blank_name_rejected(self, store):
        with pytest.raises(StoreError):
            store_service.update_store("main", name="   ")

    @pytest.mark.parametrize("tz", ["../etc", "Mars/Base", 5])
    def test_invalid_timezone_rejected(self, db_session, tz):
        with pytest.raises(StoreError):
            store_service.create_store("north", timezone=tz)
        assert store_service.get_store("north") is None

    def test_update_timezone(self, store):
        with pytest.raises(StoreError, match="Unknown timezone"):
            store_service.update_store("main", timezone="../etc")
        assert store_service.get_store("main").timezone is None

        store_service.update_store("main", timezone=" Asia/Kathmandu ")
        assert store_service.get_store("main").timezone == "Asia/Kathmandu"

        # blank clears it
        store_service.update_store("main", timezone="")
        assert store_service.get_store("main").timezone is None

    def test_list_restricted_to_ids(self, store, other_store):
        assert [s.id for s in store_service.list_stores(store_ids=["annex"])] == ["annex"]


class TestEquipmentConfig:
    def test_replace_list_keeps_order(self, store):
        store_service.set_temperature_equipment("main", [
            {"id": "display", "label": "Display", "min": 1, "max": 4},
            {"id": "freezer1", "label": "Walk-in Freezer"},
        ])
        equipment = store_service.get_store("main").temperature_equipment
        assert [eq["id"] for eq in equipment] == ["display", "freezer1"]
        assert "min" not in equipment[1]

    @pytest.mark.parametrize("equipment, message", [
        ("fridge", "must be a list"),
        ([{"label": "No id"}], "id is required"),
        ([{"id": "a", "label": "A"}, {"id": "a", "label": "B"}], "Duplicate"),
        ([{"id": "a"}], "needs a label"),
        ([{"id": "a", "label": "A", "min": "cold"}], "must be a number"),
        ([{"id": "a", "label": "A", "min": 5, "max": 1}], "cannot exceed"),
    ])
    def test_invalid_equipment(self, store, equipment, message):
        with pytest.raises(StoreError, match=message):
            store_service.set_temperature_equipment("main", equipment)

    def test_unknown_store(self, db_session):
        with pytest.raises(StoreError, match="Store not found"):
            store_service.set_temperature_equipment("nope", [])


class TestItems:
    def test_create_defaults(self, items):
        item = item_service.create_item("main", {"name": "Eggs", "category": "  Dairy  "})
        assert item.category == "Dairy"
        assert item.default_unit == "piece"
        assert item.is_active is True
        # appended after the three existing items
        assert item.sort_order == 40

    def test_create_with_explicit_id(self, store):
        item = item_service.create_item("main", {"name": "Oil", "default_unit": "bottle"}, item_id="oil")
        assert item.id == "oil"
        with pytest.raises(ItemError, match="already exists"):
            item_service.create_item("main", {"name": "Oil again"}, item_id="oil")

    def test_blank_category_falls_back(self, store):
        item = item_service.create_item("main", {"name": "Foil", "category": " "})
        assert item.category == "Uncategorized"

    @pytest.mark.parametrize("payload", [
        {},
        {"name": "X", "low_stock_threshold": -1},
        {"name": "X", "low_stock_threshold": "many"},
        {"name": "X", "store_id": "annex"},
        {"name": "X", "is_active": "yes"},
    ])
    def test_invalid_payload(self, store, payload):
        with pytest.raises(ValidationError):
            item_service.create_item("main", payload)

    def test_unknown_store(self, db_session):
        with pytest.raises(ItemError, match="Store not found"):
            item_service.create_item("nope", {"name": "X"})

    def test_update(self, items):
        item = item_service.update_item("main", "milk", {"low_stock_threshold": "7,5", "name": "Whole Milk"})
        assert item.low_stock_threshold == 7.5
        assert item.name == "Whole Milk"

    def test_update_blank_category_falls_back(self, items):
        item = item_service.update_item("main", "milk", {"category": "   "})
        assert item.category == "Uncategorized"

    def test_update_missing(self, items):
        with pytest.raises(ItemError, match="Item not found"):
            item_service.update_item("main", "nothing", {"name": "X"})

    def test_disable_hides_from_active_list(self, items):
        item_service.set_item_active("main", "rice", False)
        assert [i.id for i in item_service.list_active_items("main")] == ["milk", "napkins"]
        assert len(item_service.list_items("main", include_inactive=True)) == 3

        item_service.set_item_active("main", "rice", True)
        assert len(item_service.list_active_items("main")) == 3

    def test_delete(self, items):
        item_service.delete_item("main", "napkins")
        assert db.session.get(Item, "napkins") is None
        with pytest.raises(ItemError):
            item_service.delete_item("main", "napkins")

    def test_items_are_store_scoped(self, items, other_store):
        assert item_service.get_item("annex", "milk") is None
        with pytest.raises(ItemError):
            item_service.update_item("annex", "milk", {"name": "Stolen"})

    def test_list_order_sort_then_name(self, items):
        item_service.create_item("main", {"name": "apples", "sort_order": 10})
        item_service.create_item("main", {"name": "Zest"})
        names = [i.name for i in item_service.list_items("main")]
        assert names == ["apples", "Milk", "Rice", "Napkins", "Zest"]

    def test_group_by_category(self, items):
        item_service.create_item("main", {"name": "Cream", "category": "Dairy", "sort_order": 5})
        groups = item_service.group_items_by_category(item_service.list_items("main"))
        assert [g["category"] for g in groups] == ["Dairy", "Dry", "Supplies"]
        assert [i["name"] for i in groups[0]["items"]] == ["Cream", "Milk"]


class TestEmployees:
    def test_create_hashes_pin(self, store):
        user = employee_service.create_employee(store_id="main", employee_id="emp99", pin="1234", name="Kim")
        assert user.pin_hash != "1234"
        assert user.pin_hash.startswith("$2")
        assert employee_service.verify_pin("1234", user.pin_hash) is True
        assert employee_service.verify_pin("4321", user.pin_hash) is False
        assert user.store_ids == ["main"]
        assert user.default_store_id == "main"
        assert "pin_hash" not in user.to_dict()
        assert user.to_dict()["has_pin"] is True

    def test_verify_pin_without_hash(self):
        assert employee_service.verify_pin("1234", None) is False
        assert employee_service.verify_pin("", "not-a-hash") is False
        assert employee_service.verify_pin("1234", "not-a-hash") is False

    @pytest.mark.parametrize("pin", ["123", "12345", "abcd", "12 4"])
    def test_invalid_pin(self, store, pin):
        with pytest.raises(EmployeeError, match="PIN"):
            employee_service.create_employee(store_id="main", employee_id="emp99", pin=pin)

    @pytest.mark.parametrize("employee_id", ["ab", "has space", "x" * 21, "bad!"])
    def test_invalid_employee_id(self, store, employee_id):
        with pytest.raises(EmployeeError):
            employee_service.create_employee(store_id="main", employee_id=employee_id, pin="1234")

    def test_duplicate_employee_id(self, employee):
        with pytest.raises(ConflictError):
            employee_service.create_employee(store_id="main", employee_id="emp01", pin="1234")

    def test_unknown_store(self, db_session):
        with pytest.raises(EmployeeError, match="Store not found"):
            employee_service.create_employee(store_id="nope", employee_id="emp99", pin="1234")

    def test_name_defaults_to_employee_id(self, store):
        user = employee_service.create_employee(store_id="main", employee_id="emp99", pin="1234")
        assert user.display_name == "emp99"

    def test_reset_pin(self, employee):
        employee_service.reset_pin(employee.id, "5678")
        user = employee_service.get_user(employee.id)
        assert employee_service.verify_pin("5678", user.pin_hash)

    def test_disable(self, employee):
        employee_service.set_active(employee.id, False)
        assert employee_service.get_by_employee_id("emp01").is_active is False
        assert employee_service.list_employees(include_inactive=False) == []

    def test_grant_and_revoke(self, employee, other_store):
        employee_service.grant_store(employee.id, "annex")
        user = employee_service.get_user(employee.id)
        assert user.store_ids == ["main", "annex"]
        assert user.can_access_store("annex")

        employee_service.revoke_store(employee.id, "main")
        user = employee_service.get_user(employee.id)
        assert user.store_ids == ["annex"]
        assert user.default_store_id == "annex"
        assert not user.can_access_store("main")

    def test_first_grant_becomes_default(self, store):
        admin = employee_service.create_admin(employee_id="boss2", name="Pat")
        assert admin.default_store_id is None
        employee_service.grant_store(admin.id, "main")
        assert employee_service.get_user(admin.id).default_store_id == "main"

    def test_admin_store_list(self, admin, other_store):
        assert admin.can_access_store("annex")

        employee_service.set_admin_stores(admin.id, ["main", "main"])
        user = employee_service.get_user(admin.id)
        assert user.role == ROLE_ADMIN
        assert user.store_ids == ["main"]
        assert not user.can_access_store("annex")

    def test_admin_store_list_rejects_employees(self, employee):
        with pytest.raises(EmployeeError, match="not an admin"):
            employee_service.set_admin_stores(employee.id, [])

    def test_list_by_store(self, employee, second_employee, admin, other_store):
        employee_service.grant_store(second_employee.id, "annex")
        assert [u.employee_id for u in employee_service.list_employees("annex")] == ["emp02"]
        assert [u.employee_id for u in employee_service.list_employees("main")] == ["emp01", "emp02"]
        assert len(employee_service.list_employees()) == 3

    def test_unknown_user(self, db_session):
        with pytest.raises(EmployeeError, match="User not found"):
            employee_service.reset_pin(12345, "1234")
