"""
In-memory stand-in for the Supabase client: just enough of the PostgREST
query builder, auth and storage APIs for the services under test.
"""

import re
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace


class SimulatedFailure(Exception):
    pass


TABLE_DEFAULTS = {
    "team_members": lambda ts: {"joined_at": ts},
    "benefit_assignments": lambda ts: {"is_redeemed": False, "redeemed_at": None},
}


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.payload = None
        self.on_conflict = "id"
        self.filters = []
        self.orders = []
        self._limit = None
        self._offset = 0

    # Operations

    def select(self, columns="*", count=None):
        self.op = "select"
        self.columns = columns
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.op = "update"
        self.payload = payload
        return self

    def upsert(self, payload, on_conflict="id"):
        self.op = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    # Filters

    def _filter(self, description, predicate):
        self.filters.append((description, predicate))
        return self

    def eq(self, column, value):
        return self._filter(("eq", column, value), lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._filter(("neq", column, value), lambda row: row.get(column) != value)

    def in_(self, column, values):
        values = list(values)
        return self._filter(("in", column, tuple(values)), lambda row: row.get(column) in values)

    def is_(self, column, value):
        expected = None if value in (None, "null") else value
        return self._filter(("is", column, value), lambda row: row.get(column) is expected)

    def _compare(self, name, column, value, check):
        def predicate(row):
            current = row.get(column)
            return current is not None and check(current, value)
        return self._filter((name, column, value), predicate)

    def gt(self, column, value):
        return self._compare("gt", column, value, lambda a, b: a > b)

    def gte(self, column, value):
        return self._compare("gte", column, value, lambda a, b: a >= b)

    def lt(self, column, value):
        return self._compare("lt", column, value, lambda a, b: a < b)

    def lte(self, column, value):
        return self._compare("lte", column, value, lambda a, b: a <= b)

    def ilike(self, column, pattern):
        regex = re.compile(
            "^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$",
            re.IGNORECASE,
        )
        return self._filter(
            ("ilike", column, pattern),
            lambda row: row.get(column) is not None and bool(regex.match(str(row.get(column))))
        )

    # Modifiers

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, count):
        self._limit = count
        return self

    def offset(self, count):
        self._offset = count
        return self

    def range(self, start, end):
        self._offset = start
        self._limit = end - start + 1
        return self

    def execute(self):
        self.db.calls.append(SimpleNamespace(
            table=self.table,
            op=self.op,
            payload=self.payload,
            filters=[f[0] for f in self.filters],
        ))
        for hook in list(self.db.hooks):
            hook(self)
        if (self.table, self.op) in self.db.fail_on:
            raise SimulatedFailure(f"simulated {self.op} failure on {self.table}")
        return SimpleNamespace(data=getattr(self, f"_execute_{self.op}")(), count=None)

    def _matching(self):
        rows = self.db.tables.setdefault(self.table, [])
        return [row for row in rows if all(pred(row) for _, pred in self.filters)]

    def _project(self, row):
        if self.columns.strip() == "*":
            return dict(row)
        names = [c.strip() for c in self.columns.split(",") if c.strip()]
        return {name: row.get(name) for name in names}

    def _execute_select(self):
        rows = self._matching()
        for column, desc in reversed(self.orders):
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            present.sort(key=lambda r: r[column], reverse=desc)
            # Postgres puts nulls last ascending and first descending
            rows = missing + present if desc else present + missing
        rows = rows[self._offset:]
        if self._limit is not None:
            rows = rows[:self._limit]
        rows = rows[:self.db.max_rows]
        return [self._project(row) for row in rows]

    def _execute_insert(self):
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        return [dict(self.db.add_row(self.table, row)) for row in payload]

    def _execute_update(self):
        updated = []
        for row in self._matching():
            row.update(self.payload)
            updated.append(dict(row))
        return updated

    def _execute_delete(self):
        doomed = self._matching()
        self.db.tables[self.table] = [
            row for row in self.db.tables.get(self.table, []) if row not in doomed
        ]
        return [dict(row) for row in doomed]

    def _execute_upsert(self):
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        result = []
        for item in payload:
            key = item.get(self.on_conflict)
            existing = [
                row for row in self.db.tables.setdefault(self.table, [])
                if key is not None and row.get(self.on_conflict) == key
            ]
            if existing:
                existing[0].update(item)
                result.append(dict(existing[0]))
            else:
                result.append(dict(self.db.add_row(self.table, item)))
        return result


class FakeBucket:
    def __init__(self, storage, name):
        self.storage = storage
        self.name = name

    def upload(self, path, content, file_options=None):
        if self.storage.fail_uploads:
            raise SimulatedFailure("simulated upload failure")
        self.storage.objects[(self.name, path)] = content
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://storage.test/{self.name}/{path}"


class FakeStorage:
    def __init__(self):
        self.objects = {}
        self.fail_uploads = False

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeAuthAdmin:
    def __init__(self, auth):
        self.auth = auth
        self.deleted = []

    def create_user(self, attributes):
        if attributes["email"] in self.auth.passwords:
            raise Exception("A user with this email address has already been registered")
        user = self.auth.create_user(
            attributes["email"], attributes["password"], attributes.get("user_metadata")
        )
        return SimpleNamespace(user=user)

    def delete_user(self, user_id):
        user = self.auth.users.pop(user_id)
        self.auth.passwords.pop(user.email, None)
        self.deleted.append(user_id)


class FakeAuth:
    """Access tokens are simply the user id."""

    def __init__(self):
        self.users = {}
        self.passwords = {}
        self.admin = FakeAuthAdmin(self)
        self.sign_up_calls = 0

    def create_user(self, email, password="secret123", metadata=None, user_id=None):
        user = SimpleNamespace(
            id=user_id or str(uuid.uuid4()),
            email=email,
            user_metadata=metadata or {},
            app_metadata={},
            created_at=datetime.now(timezone.utc).isoformat(),
            updated_at=None,
        )
        self.users[user.id] = user
        self.passwords[email] = (password, user.id)
        return user

    def sign_up(self, credentials):
        self.sign_up_calls += 1
        if credentials["email"] in self.passwords:
            raise Exception("User already registered")
        user = self.create_user(
            credentials["email"],
            credentials["password"],
            credentials.get("options", {}).get("data"),
        )
        return SimpleNamespace(user=user, session=None)

    def sign_in_with_password(self, credentials):
        stored = self.passwords.get(credentials["email"])
        if not stored or stored[0] != credentials["password"]:
            raise Exception("Invalid login credentials")
        user = self.users[stored[1]]
        return SimpleNamespace(user=user, session=SimpleNamespace(access_token=user.id))

    def get_user(self, jwt=None):
        user = self.users.get(jwt)
        if not user:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=user)

    def sign_out(self):
        return None


class FakeSupabase:
    def __init__(self):
        # PostgREST db-max-rows; a select never returns more than this
        self.max_rows = 1000
        self.tables = {}
        self.calls = []
        self.hooks = []
        self.fail_on = set()
        self.auth = FakeAuth()
        self.storage = FakeStorage()
        self._clock = datetime.now(timezone.utc) - timedelta(hours=1)

    def table(self, name):
        return FakeQuery(self, name)

    def _tick(self):
        self._clock += timedelta(milliseconds=1)
        return self._clock.isoformat()

    def add_row(self, table, values):
        """Insert with database-side defaults; rows get strictly increasing created_at."""
        ts = self._tick()
        row = {"id": str(uuid.uuid4()), "created_at": ts, "updated_at": ts}
        row.update(TABLE_DEFAULTS.get(table, lambda _: {})(ts))
        row.update(values)
        self.tables.setdefault(table, []).append(row)
        return row

    def rows(self, table, **filters):
        return [
            row for row in self.tables.get(table, [])
            if all(row.get(k) == v for k, v in filters.items())
        ]

    def writes(self, table=None):
        return [
            call for call in self.calls
            if call.op != "select" and (table is None or call.table == table)
        ]
