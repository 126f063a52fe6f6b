"""plans module tests."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from fakes import FakeStore, directory_tables

from dirsearch.plans import plan_priority, resolve_plan_names, resolve_plan_priorities

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


def _resolve(tables, vendor_ids, broken_tables=()):
    fake = FakeStore(tables, broken_tables=broken_tables)
    with patch("dirsearch.db._table", fake.table):
        return resolve_plan_names(vendor_ids, now=NOW), fake


class TestPlanPriority:
    """Tests for plan_priority."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Diamond", 600),
            ("DIMOND Annual", 600),
            ("Gold Plan", 500),
            ("silver", 400),
            ("Certified Seller", 300),
            ("Booster Pack", 200),
            ("Startup", 100),
            ("Trial", 0),
            ("Enterprise", 10),
            ("", 0),
            (None, 0),
            ("  ", 0),
        ],
    )
    def test_tiers(self, name, expected):
        assert plan_priority(name) == expected

    def test_first_match_wins(self):
        assert plan_priority("Gold Trial") == 500


class TestResolvePlanNames:
    """Tests for resolve_plan_names."""

    def test_primary_table(self):
        names, _ = _resolve(directory_tables(), ["v1", "v2", "v3", None, "v1"])
        assert names == {"v1": "Gold Plan", "v2": "Trial"}

    def test_priorities(self):
        fake = FakeStore(directory_tables())
        with patch("dirsearch.db._table", fake.table):
            assert resolve_plan_priorities(["v1", "v2"], now=NOW) == {"v1": 500, "v2": 0}

    def test_legacy_table_fallback(self):
        tables = directory_tables()
        tables["vendor_plan_subcriptions"] = tables.pop("vendor_plan_subscriptions")
        names, fake = _resolve(tables, ["v1"])

        assert names == {"v1": "Gold Plan"}
        assert [q.name for q in fake.calls][:2] == ["vendor_plan_subscriptions", "vendor_plan_subcriptions"]

    def test_both_tables_missing(self):
        tables = directory_tables()
        del tables["vendor_plan_subscriptions"]
        names, _ = _resolve(tables, ["v1"])
        assert names == {}

    def test_plans_table_failure(self):
        names, _ = _resolve(directory_tables(), ["v1"], broken_tables={"vendor_plans"})
        assert names == {}

    def test_inactive_and_expired_subscriptions_ignored(self):
        tables = directory_tables()
        tables["vendor_plan_subscriptions"] = [
            {"vendor_id": "v1", "plan_id": "p-gold", "status": "EXPIRED", "end_date": None},
            {"vendor_id": "v2", "plan_id": "p-gold", "status": "ACTIVE", "end_date": "2026-01-01T00:00:00Z"},
            {"vendor_id": "v3", "plan_id": "p-gold", "status": "ACTIVE", "end_date": "2027-01-01"},
        ]
        names, _ = _resolve(tables, ["v1", "v2", "v3"])
        assert names == {"v3": "Gold Plan"}

    def test_trimmed_fraction_end_date(self):
        tables = directory_tables()
        tables["vendor_plan_subscriptions"] = [
            {"vendor_id": "v1", "plan_id": "p-gold", "status": "ACTIVE",
             "end_date": "2026-01-10T08:00:00.12345+00:00"},
            {"vendor_id": "v2", "plan_id": "p-gold", "status": "ACTIVE",
             "end_date": "2026-12-31T23:59:59.9+00:00"},
        ]
        names, _ = _resolve(tables, ["v1", "v2"])
        assert names == {"v2": "Gold Plan"}

    def test_highest_tier_kept(self):
        tables = directory_tables()
        tables["vendor_plan_subscriptions"] = [
            {"vendor_id": "v1", "plan_id": "p-gold"},
            {"vendor_id": "v1", "plan_id": "p-trial"},
        ]
        names, _ = _resolve(tables, ["v1"])
        assert names == {"v1": "Gold Plan"}

    def test_no_vendors(self):
        names, fake = _resolve(directory_tables(), [])
        assert names == {}
        assert fake.calls == []
