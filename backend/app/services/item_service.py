from __future__ import annotations

import uuid

from app.extensions import db
from app.models import Item, Store
from app.services.concurrency import lock_for_update, run_with_retry
from app.validation import ModelValidationPolicy, ValidationError, validate_payload


DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_UNIT = "piece"
UNIT_OPTIONS = ("kg", "packet", "bottle", "piece", "cup", "portion", "litre")

# Missing sort/category orders sink to the end
MISSING_SORT_ORDER = 9999
MISSING_CATEGORY_ORDER = 999

ITEM_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "category",
        "category_order",
        "default_unit",
        "low_stock_threshold",
        "is_active",
        "sort_order",
    },
    required_on_create={"name"},
)


class ItemError(Exception):
    """Raised when item operations fail."""
    pass


def _normalize_category(value) -> str:
    category = " ".join(str(value or "").split())
    return category or DEFAULT_CATEGORY


def _normalize_category_field(payload):
    """Blank categories fall back to the default before column validation."""
    if isinstance(payload, dict) and "category" in payload:
        payload = dict(payload)
        payload["category"] = _normalize_category(payload["category"])
    return payload


def _check_threshold(patch: dict) -> None:
    threshold = patch.get("low_stock_threshold")
    if threshold is not None and threshold < 0:
        raise ValidationError("Threshold must be a number (0 or more)")


def item_sort_key(item: Item) -> tuple:
    order = item.sort_order if item.sort_order is not None else MISSING_SORT_ORDER
    return (order, item.name.lower())


def create_item(store_id: str, payload: dict, *, item_id: str | None = None) -> Item:
    payload = _normalize_category_field(payload)
    patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=False)
    _check_threshold(patch)

    def _op():
        store = db.session.query(Store).filter_by(id=store_id).first()
        if not store:
            raise ItemError("Store not found")

        new_id = item_id or uuid.uuid4().hex[:20]
        if db.session.query(Item).filter_by(id=new_id).first():
            raise ItemError(f"Item {new_id} already exists")

        existing_count = db.session.query(Item).filter_by(store_id=store_id).count()

        item = Item(
            id=new_id,
            store_id=store_id,
            name=patch["name"],
            category=_normalize_category(patch.get("category")),
            category_order=patch.get("category_order"),
            default_unit=patch.get("default_unit") or DEFAULT_UNIT,
            low_stock_threshold=patch.get("low_stock_threshold"),
            is_active=patch.get("is_active", True),
            sort_order=patch.get("sort_order", (existing_count + 1) * 10),
        )
        db.session.add(item)
        db.session.commit()
        return item

    return run_with_retry(_op)


def update_item(store_id: str, item_id: str, payload: dict) -> Item:
    payload = _normalize_category_field(payload)
    patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=True)
    _check_threshold(patch)

    def _op():
        item = lock_for_update(
            db.session.query(Item).filter_by(id=item_id, store_id=store_id)
        ).first()
        if not item:
            raise ItemError("Item not found")

        for key, value in patch.items():
            setattr(item, key, value)

        db.session.commit()
        return item

    return run_with_retry(_op)


def set_item_active(store_id: str, item_id: str, is_active: bool) -> Item:
    """Soft-disable / re-enable. Disabled items drop out of stock counts."""
    return update_item(store_id, item_id, {"is_active": bool(is_active)})


def delete_item(store_id: str, item_id: str) -> None:
    """
    Permanent delete. Past submissions keep their copies of the item's
    quantity/status; reports fall back to the item id for its name.
    """
    def _op():
        item = db.session.query(Item).filter_by(id=item_id, store_id=store_id).first()
        if not item:
            raise ItemError("Item not found")
        db.session.delete(item)
        db.session.commit()

    run_with_retry(_op)


def get_item(store_id: str, item_id: str) -> Item | None:
    return db.session.query(Item).filter_by(id=item_id, store_id=store_id).first()


def list_items(store_id: str, *, include_inactive: bool = False) -> list[Item]:
    query = db.session.query(Item).filter_by(store_id=store_id)
    if not include_inactive:
        query = query.filter(Item.is_active.is_(True))
    return sorted(query.all(), key=item_sort_key)


def list_active_items(store_id: str) -> list[Item]:
    return list_items(store_id, include_inactive=False)


def items_by_id(store_id: str) -> dict[str, Item]:
    """All items, active or not, for name lookups on historical documents."""
    return {item.id: item for item in db.session.query(Item).filter_by(store_id=store_id).all()}


def group_items_by_category(items: list[Item]) -> list[dict]:
    """Categories A-Z; items inside by sort order, then name."""
    groups: dict[str, list[Item]] = {}
    for item in items:
        groups.setdefault(_normalize_category(item.category), []).append(item)

    return [
        {"category": category, "items": [i.to_dict() for i in sorted(groups[category], key=item_sort_key)]}
        for category in sorted(groups, key=str.lower)
    ]
