# tests/conftest.py
import copy
from types import SimpleNamespace

import pytest

from resumepro import create_app


# ---------- in-memory Supabase ----------
class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self._order = None
        self._limit = None

    # --- verbs ---
    def select(self, *_cols):
        self.op = "select"
        return self

    def insert(self, row):
        self.op, self.payload = "insert", row
        return self

    def upsert(self, row, on_conflict="id"):
        self.op, self.payload, self.on_conflict = "upsert", row, on_conflict
        return self

    def update(self, fields):
        self.op, self.payload = "update", fields
        return self

    def delete(self):
        self.op = "delete"
        return self

    # --- filters / modifiers ---
    def eq(self, col, val):
        self.filters.append(lambda r: r.get(col) == val)
        return self

    def lte(self, col, val):
        self.filters.append(lambda r: r.get(col) is not None and r.get(col) <= val)
        return self

    def in_(self, col, vals):
        vals = list(vals)
        self.filters.append(lambda r: r.get(col) in vals)
        return self

    def order(self, col, desc=False):
        self._order = (col, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        if self.table in self.db.failing:
            raise RuntimeError(f"{self.table} unavailable")
        self.db.calls.append((self.table, self.op))
        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "insert":
            new = self.payload if isinstance(self.payload, list) else [self.payload]
            rows.extend(copy.deepcopy(new))
            return FakeResponse(copy.deepcopy(new))

        if self.op == "upsert":
            key = self.on_conflict
            existing = next((r for r in rows if r.get(key) == self.payload.get(key)), None)
            if existing is not None:
                existing.update(copy.deepcopy(self.payload))
            else:
                rows.append(copy.deepcopy(self.payload))
            return FakeResponse([copy.deepcopy(self.payload)])

        matched = [r for r in rows if self._matches(r)]

        if self.op == "update":
            for r in matched:
                r.update(copy.deepcopy(self.payload))
            return FakeResponse(copy.deepcopy(matched))

        if self.op == "delete":
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return FakeResponse(copy.deepcopy(matched))

        if self._order:
            col, desc = self._order
            matched = sorted(matched, key=lambda r: r.get(col) or "", reverse=desc)
        if self._limit is not None:
            matched = matched[: self._limit]
        return FakeResponse(copy.deepcopy(matched))


class FakeAuth:
    def __init__(self):
        self.tokens = {
            "good-token": SimpleNamespace(id="user-1", email="one@example.com"),
            "other-token": SimpleNamespace(id="user-2", email="two@example.com"),
        }
        self.resent = []

    def get_user(self, token):
        user = self.tokens.get(token)
        if user is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=user)

    def sign_up(self, creds):
        user = SimpleNamespace(id="new-user", email=creds["email"], email_confirmed_at=None)
        return SimpleNamespace(user=user, session=None)

    def sign_in_with_password(self, creds):
        if creds["password"] != "correct-horse":
            raise RuntimeError("Invalid login credentials")
        user = SimpleNamespace(id="user-1", email=creds["email"], email_confirmed_at="2024-01-01T00:00:00Z")
        session = SimpleNamespace(access_token="good-token", refresh_token="r", expires_at=123)
        return SimpleNamespace(user=user, session=session)

    def resend(self, params):
        self.resent.append(params)


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.calls = []
        self.failing = set()
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.get(name, [])


# ---------- OpenAI ----------
class FakeCompletions:
    def __init__(self):
        self.replies = []
        self.calls = []
        self.error = None

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        content = self.replies.pop(0) if self.replies else ""
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeOpenAI:
    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)

    def reply_with(self, *contents):
        self.completions.replies.extend(contents)


# ---------- fixtures ----------
@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def openai_fake():
    return FakeOpenAI()


@pytest.fixture
def app(db, openai_fake):
    app = create_app("test")
    app.config["SUPABASE_ADMIN"] = db
    app.config["OPENAI_CLIENT"] = openai_fake
    return app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer good-token"}


@pytest.fixture
def other_headers():
    return {"Authorization": "Bearer other-token"}


@pytest.fixture
def active_subscription(db):
    def _make(user_id="user-1", tier="career_pro", **extra):
        row = {
            "user_id": user_id,
            "tier": tier,
            "status": "active",
            "is_active": True,
            "subscription_end_date": "2999-01-01T00:00:00+00:00",
            **extra,
        }
        db.tables.setdefault("subscriptions", []).append(row)
        return row
    return _make
