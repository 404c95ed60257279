from datetime import datetime

import pytest

from app.extensions import db
from app.models import Item, StockSubmission, TemperatureLog
from app.services import daily_document_service, signal_service
from app.services.signal_service import SignalError, todays_alert_rows
from conftest import EQUIPMENT, full_counts


T0 = datetime(2024, 1, 17, 18, 0)


def _submit(actor, day_key, now=T0, **quantities):
    return daily_document_service.submit_stock(
        "main", actor, full_counts(**quantities), day_key=day_key, now=now
    )


def _temp(actor, day_key, slot="log1", freezer=-20, fridge=3, now=T0):
    return daily_document_service.save_temperature_check(
        "main", slot, actor, {"freezer1": {"temp": freezer}, "fridge1": {"temp": fridge}},
        day_key=day_key, now=now,
    )


class TestCounters:
    def test_counts_follow_lifecycle(self, items, employee):
        _submit(employee, "2024-01-16")
        _submit(employee, "2024-01-17")
        _submit(employee, "2024-01-17", now=datetime(2024, 1, 17, 19, 0))
        _temp(employee, "2024-01-17")

        counts = signal_service.inbox_counts("main")
        assert counts["stock"] == {"unread": 2, "needs_review": 1}
        assert counts["temperature"] == {"unread": 1, "needs_review": 1}
        assert counts["unread_total"] == 3
        assert counts["needs_review_total"] == 2

        daily_document_service.confirm_stock_submission("main", "2024-01-17")
        daily_document_service.mark_temperature_day_read("main", "2024-01-17")
        counts = signal_service.inbox_counts("main")
        assert counts["stock"] == {"unread": 1, "needs_review": 0}
        assert counts["temperature"] == {"unread": 0, "needs_review": 1}

    def test_counts_are_per_store(self, items, employee, other_store):
        _submit(employee, "2024-01-17")
        assert signal_service.inbox_counts("annex")["unread_total"] == 0
        assert signal_service.unread_count(StockSubmission, "main") == 1
        assert signal_service.needs_review_count(TemperatureLog, "main") == 0

    def test_watch_pushes_fresh_counts(self, items, employee):
        seen = []
        unsubscribe = signal_service.watch_admin_signals("main", seen.append)

        _submit(employee, "2024-01-17")
        _temp(employee, "2024-01-17")
        assert [c["unread_total"] for c in seen] == [1, 2]

        unsubscribe()
        _submit(employee, "2024-01-18")
        assert len(seen) == 2


class TestInbox:
    def test_rows_newest_day_first(self, items, employee, second_employee):
        _submit(employee, "2024-01-15", milk=0)
        _submit(employee, "2024-01-17", rice=1)
        _submit(second_employee, "2024-01-17", now=datetime(2024, 1, 17, 19, 0), rice=1)
        _temp(employee, "2024-01-16", freezer=-5)

        rows = signal_service.admin_inbox("main")
        assert [(r["type"], r["day_key"]) for r in rows] == [
            ("stock", "2024-01-17"),
            ("temp", "2024-01-16"),
            ("stock", "2024-01-15"),
        ]
        assert rows[0]["by"] == "Alex"
        assert rows[0]["badge"] == "OUT:0 LOW:1"
        assert rows[0]["needs_admin_review"] is True
        assert rows[1]["badge"] == "ALERT"
        assert rows[2]["badge"] == "OUT:1 LOW:0"
        assert "sort_at" not in rows[0]

    def test_tab_filter_and_read_rows_drop_out(self, items, employee):
        _submit(employee, "2024-01-17")
        _temp(employee, "2024-01-17")

        assert [r["type"] for r in signal_service.admin_inbox("main", "stock")] == ["stock"]
        temp_rows = signal_service.admin_inbox("main", "temp")
        assert [r["type"] for r in temp_rows] == ["temp"]
        assert temp_rows[0]["badge"] == "PENDING (1/2)"

        daily_document_service.mark_stock_submission_read("main", "2024-01-17")
        assert signal_service.admin_inbox("main", "stock") == []

    def test_invalid_tab(self, db_session, store):
        with pytest.raises(SignalError):
            signal_service.admin_inbox("main", "everything")


class TestTodaysAlertRows:
    def test_no_document(self):
        assert todays_alert_rows(None) == {"has_log": False, "ok": True, "rows": []}

    def test_canonical_rows_all_in_range(self):
        doc = {
            "has_out_of_range": False,
            "equipment": {
                "freezer1": {"label": "Freezer", "temp": -20, "min": -25, "max": -15, "out_of_range": False},
                "fridge1": {"label": "Fridge", "temp": 3, "min": 0, "max": 5, "out_of_range": False},
            },
        }
        result = todays_alert_rows(doc)
        assert result["has_log"] is True
        assert result["ok"] is True
        assert [r["id"] for r in result["rows"]] == ["freezer1", "fridge1"]
        assert all(r["tag"] == "OK" for r in result["rows"])

    def test_only_bad_rows_when_any_exist(self):
        doc = {
            "equipment": {
                "freezer1": {"label": "Freezer", "temp": -10, "min": -25, "max": -15},
                "fridge1": {"label": "Fridge", "temp": 3, "min": 0, "max": 5},
            },
        }
        result = todays_alert_rows(doc)
        assert result["ok"] is False
        assert len(result["rows"]) == 1
        assert result["rows"][0]["id"] == "freezer1"
        assert result["rows"][0]["tag"] == "HIGH"
        assert result["rows"][0]["in_range"] is False

    def test_legacy_list_with_aliases(self):
        doc = {
            "anyOutOfRange": False,
            "readings": [
                {"equipmentId": "cool", "name": "Drinks Cooler", "tempC": -1, "minC": 0, "maxC": 5},
                {"equipmentId": "disp", "title": "Display", "value": 4, "low": 0, "high": 8},
            ],
        }
        result = todays_alert_rows(doc)
        assert result["ok"] is False
        assert result["rows"] == [{
            "id": "cool",
            "label": "Drinks Cooler",
            "temp": -1,
            "min": 0,
            "max": 5,
            "in_range": False,
            "tag": "LOW",
        }]

    def test_legacy_map_falls_back_to_config_range(self):
        doc = {"equipmentReadings": {"freezer1": {"temperature": -20}}}
        config = [{"id": "freezer1", "label": "Walk-in Freezer", "min": -22, "max": -18}]
        row = todays_alert_rows(doc, config)["rows"][0]
        assert row["label"] == "Walk-in Freezer"
        assert (row["min"], row["max"]) == (-22, -18)
        assert row["in_range"] is True

    def test_missing_range_inferred_from_label(self):
        doc = {"entries": [{"id": "f", "label": "Chest Freezer", "celsius": -20}]}
        row = todays_alert_rows(doc)["rows"][0]
        assert (row["min"], row["max"]) == (-25, -15)

    def test_stored_flag_overrides_reading(self):
        doc = {"equipment": {"fridge1": {"label": "Fridge", "temp": 3, "min": 0, "max": 5, "outOfRange": True}}}
        result = todays_alert_rows(doc)
        assert result["ok"] is False
        assert result["rows"][0]["in_range"] is False

    def test_document_flag_alone_marks_not_ok(self):
        doc = {"hasOutOfRange": True, "temps": [{"id": "a", "label": "Fridge", "temp": 3}]}
        result = todays_alert_rows(doc)
        assert result["ok"] is False
        assert result["rows"][0]["in_range"] is True

    def test_stored_in_range_flag_wins_over_computed(self):
        doc = {"readings": [
            {"id": "a", "label": "Fridge", "temp": 9, "min": 0, "max": 5, "inRange": True},
            {"id": "b", "label": "Cooler", "temp": 3, "min": 0, "max": 5, "inRange": False},
        ]}
        result = todays_alert_rows(doc)
        assert [(r["id"], r["in_range"]) for r in result["rows"]] == [("b", False)]

    def test_out_of_range_flag_beats_in_range_flag(self):
        doc = {"temps": [{"id": "a", "label": "Fridge", "temp": 3, "inRange": True, "outOfRange": True}]}
        assert todays_alert_rows(doc)["rows"][0]["in_range"] is False

    def test_document_out_of_range_alias(self):
        doc = {"outOfRange": True, "temps": [{"id": "a", "label": "Fridge", "temp": 3}]}
        assert todays_alert_rows(doc)["ok"] is False

    def test_temp_c_read_before_temp(self):
        doc = {"temps": [{"id": "a", "label": "Fridge", "tempC": 2, "temp": 36, "min": 0, "max": 5}]}
        row = todays_alert_rows(doc)["rows"][0]
        assert row["temp"] == 2
        assert row["in_range"] is True

    def test_alerts_for_stored_checks(self, store, employee):
        _temp(employee, "2024-01-17", freezer=-5)
        alerts = signal_service.todays_temperature_alerts("main", "2024-01-17", EQUIPMENT)
        assert alerts["status"] == "PENDING (1/2)"
        assert alerts["slots"]["log1"]["ok"] is False
        assert [r["id"] for r in alerts["slots"]["log1"]["rows"]] == ["freezer1"]
        assert alerts["slots"]["log2"] == {"has_log": False, "ok": True, "rows": []}


class TestLowOutDashboard:
    def test_grouped_and_ordered(self, items, employee):
        db.session.add(Item(id="cups", store_id="main", name="Cups", category="Supplies",
                            default_unit="packet", low_stock_threshold=10, sort_order=40))
        db.session.commit()
        _submit(employee, "2024-01-17", milk=0, rice=1, napkins=0, cups=3)

        groups = signal_service.low_out_dashboard("main")
        assert [g["category"] for g in groups] == ["Dairy", "Dry", "Supplies"]
        assert [r["item_id"] for r in groups[2]["items"]] == ["napkins", "cups"]
        assert [r["badge"] for r in groups[2]["items"]] == ["OUT", "LOW"]
        assert groups[0]["items"][0]["unit"] == "litre"

    def test_ok_and_inactive_items_excluded(self, items, employee):
        _submit(employee, "2024-01-17", milk=0, rice=1)
        items["milk"].is_active = False
        db.session.commit()

        groups = signal_service.low_out_dashboard("main")
        assert [g["category"] for g in groups] == ["Dry"]
        assert [r["item_id"] for r in groups[0]["items"]] == ["rice"]
