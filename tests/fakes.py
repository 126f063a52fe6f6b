"""In-memory stand-in for the Supabase query builder used by dirsearch.db.

Supports the subset the engine uses: select / eq / in_ / or_ / order /
limit / execute, embedded ``vendors`` rows, and PostgREST-style errors for
unknown columns (42703) and unknown tables (42P01).
"""

from types import SimpleNamespace

from postgrest.exceptions import APIError


def api_error(code: str, message: str = "error") -> APIError:
    return APIError({"code": code, "message": message, "details": None, "hint": None})


class FakeStore:
    def __init__(self, tables: dict, columns: dict | None = None, broken_tables=()):
        self.tables = tables
        self.columns = columns or {}
        self.broken_tables = set(broken_tables)
        self.calls: list["FakeQuery"] = []

    def table(self, name: str) -> "FakeQuery":
        return FakeQuery(self, name)

    def columns_of(self, name: str) -> set:
        if name in self.columns:
            return set(self.columns[name])
        cols = set()
        for row in self.tables.get(name, []):
            cols |= set(row)
        return cols

    def vendor_for(self, row: dict) -> dict | None:
        for vendor in self.tables.get("vendors", []):
            if str(vendor.get("id")) == str(row.get("vendor_id")):
                return dict(vendor)
        return None

    def calls_to(self, name: str) -> list["FakeQuery"]:
        return [q for q in self.calls if q.name == name]


class FakeQuery:
    def __init__(self, store: FakeStore, name: str):
        self.store = store
        self.name = name
        self.columns = "*"
        self.filters: list[tuple] = []
        self.or_groups: list[list[tuple]] = []
        self.order_by = None
        self.limit_n = None

    def select(self, columns="*"):
        self.columns = columns
        return self

    def eq(self, column, value):
        self.filters.append((column, "eq", value))
        return self

    def in_(self, column, values):
        self.filters.append((column, "in", [str(v) for v in values]))
        return self

    def or_(self, filters: str):
        group = []
        for part in filters.split(","):
            column, op, value = part.split(".", 2)
            group.append((column, op, value))
        self.or_groups.append(group)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    # --- evaluation ---

    def _referenced_columns(self):
        for column, _, _ in self.filters:
            yield column
        for group in self.or_groups:
            for column, _, _ in group:
                yield column

    def _check(self):
        if self.name in self.store.broken_tables or self.name not in self.store.tables:
            raise api_error("42P01", f'relation "{self.name}" does not exist')
        known = self.store.columns_of(self.name)
        if not known:
            return
        for column in self._referenced_columns():
            if "." not in column and column not in known:
                raise api_error("42703", f"column {self.name}.{column} does not exist")

    @staticmethod
    def _value(row, column):
        if "." in column:
            embedded, field = column.split(".", 1)
            obj = row.get(embedded)
            return obj.get(field) if isinstance(obj, dict) else None
        return row.get(column)

    def _test(self, row, column, op, expected) -> bool:
        if "." in column and not isinstance(row.get(column.split(".", 1)[0]), dict):
            return False
        value = self._value(row, column)
        if op == "eq":
            return value == expected or (value is not None and str(value) == str(expected))
        if op == "in":
            return str(value) in expected
        if op == "ilike":
            return value is not None and expected.strip("%").lower() in str(value).lower()
        raise ValueError(f"unsupported operator {op}")

    def execute(self):
        self.store.calls.append(self)
        self._check()

        rows = []
        for source in self.store.tables[self.name]:
            row = dict(source)
            if "vendors" in self.columns:
                row["vendors"] = self.store.vendor_for(row)
            if not all(self._test(row, c, op, v) for c, op, v in self.filters):
                continue
            if not all(any(self._test(row, c, op, v) for c, op, v in g) for g in self.or_groups):
                continue
            rows.append(row)

        if self.order_by:
            column, desc = self.order_by
            rows.sort(key=lambda r: str(r.get(column) or ""), reverse=desc)
        if self.limit_n is not None:
            rows = rows[: self.limit_n]
        return SimpleNamespace(data=rows)


def _product(id, name, vendor_id, created_at, target_locations=None, status="ACTIVE",
             micro=None, sub=None, head=None, category=None, category_slug=None, price=None):
    return {
        "id": id,
        "name": name,
        "status": status,
        "category": category,
        "category_slug": category_slug,
        "micro_category_id": micro,
        "sub_category_id": sub,
        "head_category_id": head,
        "price": price,
        "target_locations": target_locations,
        "vendor_id": vendor_id,
        "created_at": created_at,
    }


def directory_tables() -> dict:
    """A small directory: Delhi and Maharashtra sellers of lighting and wire."""
    return {
        "states": [
            {"id": 1, "slug": "delhi", "name": "Delhi"},
            {"id": 2, "slug": "maharashtra", "name": "Maharashtra"},
            {"id": 3, "slug": "uttar-pradesh", "name": "Uttar Pradesh"},
        ],
        "cities": [
            {"id": 11, "slug": "new-delhi", "name": "New Delhi", "state_id": 1, "is_active": True},
            {"id": 27, "slug": "mumbai", "name": "Mumbai", "state_id": 2, "is_active": True},
            {"id": 28, "slug": "pune", "name": "Pune", "state_id": 2, "is_active": True},
            {"id": 31, "slug": "noida", "name": "Noida", "state_id": 3, "is_active": False},
        ],
        "head_categories": [
            {"id": 100, "slug": "electrical", "name": "Electrical"},
        ],
        "sub_categories": [
            {"id": 200, "slug": "lighting", "name": "Lighting", "head_category_id": 100},
        ],
        "micro_categories": [
            {"id": 300, "slug": "led-bulbs", "name": "LED Bulbs", "sub_category_id": 200},
            {"id": 301, "slug": "led-panels", "name": "LED Panels", "sub_category_id": 200},
        ],
        "vendors": [
            {"id": "v1", "company_name": "Bright Lights", "city": "New Delhi", "state": "Delhi",
             "state_id": 1, "city_id": 11, "is_active": True, "seller_rating": 4.2,
             "kyc_status": "VERIFIED"},
            {"id": "v2", "company_name": "Lumen India", "city": "Mumbai", "state": "Maharashtra",
             "state_id": 2, "city_id": 27, "is_active": True, "seller_rating": 4.8},
            {"id": "v3", "company_name": "Mumbai Cables", "city": "Mumbai", "state": "Maharashtra",
             "state_id": 2, "city_id": 27, "is_active": True, "seller_rating": 3.9},
            {"id": "v4", "company_name": "Pune Wires", "city": "Pune", "state": "Maharashtra",
             "state_id": 2, "city_id": 28, "is_active": True, "seller_rating": 4.0},
            {"id": "v5", "company_name": "Closed Shop", "state_id": 1, "city_id": 11,
             "is_active": False, "seller_rating": 5.0},
        ],
        "vendor_plans": [
            {"id": "p-gold", "name": "Gold Plan"},
            {"id": "p-trial", "name": "Trial"},
        ],
        "vendor_plan_subscriptions": [
            {"vendor_id": "v1", "plan_id": "p-gold", "status": "ACTIVE", "end_date": None},
            {"vendor_id": "v2", "plan_id": "p-trial", "status": "ACTIVE", "end_date": None},
        ],
        "products": [
            _product("pr1", "LED Bulb 9W", "v1", "2026-01-10T08:00:00+00:00",
                     {"pan_india": False, "states": [], "cities": [{"id": 11}]},
                     micro=300, category="LED Bulbs", category_slug="led-bulbs", price="₹120"),
            _product("pr2", "LED Bulbs", "v2", "2026-02-01T08:00:00+00:00",
                     {"pan_india": True, "states": [], "cities": []},
                     micro=300, category="LED Bulbs", category_slug="led-bulbs", price=95),
            _product("pr3", "LED Bulb Closeout", "v5", "2026-02-05T08:00:00+00:00",
                     {"pan_india": True}, micro=300, category="LED Bulbs", category_slug="led-bulbs"),
            _product("pr4", "Copper Wire", "v4", "2026-01-20T08:00:00+00:00",
                     "only mumbai, 100% genuine", category="Copper Wire", category_slug="copper-wire"),
            _product("pr5", "Copper Wire Roll", "v3", "2026-01-15T08:00:00+00:00",
                     "only mumbai, 100% genuine", category="Copper Wire", category_slug="copper-wire"),
            _product("pr6", "LED Panel 2x2", "v4", "2026-01-05T08:00:00+00:00",
                     {"pan_india": False, "cities": [{"id": 27}]},
                     micro=301, category="LED Panels", category_slug="led-panels"),
            _product("pr7", "LED Bulb Old Stock", "v1", "2025-12-01T08:00:00+00:00",
                     {"pan_india": True}, status="INACTIVE", micro=300,
                     category="LED Bulbs", category_slug="led-bulbs"),
        ],
    }
