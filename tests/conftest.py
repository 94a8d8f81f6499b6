"""
Pytest configuration and fixtures

FakeSupabase keeps tables, RPC functions and storage buckets in memory and
supports the subset of the supabase-py query builder the services use.
"""
import copy
import os
import uuid
from datetime import datetime, timezone

import pytest

os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("SEED_DEFAULT_VOCABULARY", "false")

from fastapi import FastAPI
from fastapi.testclient import TestClient

from reftagger.config.default_vocabulary import DEFAULT_CONFIG_NAME, get_default_structure, get_default_tag_rows
from reftagger.core import dependencies
from reftagger.core.app_factory import add_health_endpoints, register_routers, wire_services

TABLE_DEFAULTS = {
    "reference_images": {"status": "pending", "tags": {}, "notes": None, "ai_suggested_tags": None},
    "tag_vocabulary": {
        "description": None,
        "sort_order": 0,
        "is_active": True,
        "times_used": 0,
        "last_used_at": None,
        "added_by": None,
    },
    "tag_corrections": {"tags_added": [], "tags_removed": []},
    "vocabulary_config": {"is_active": True, "description": None},
    "user_settings": {},
}

REFERENCE_IMAGE_COLUMNS = {
    "id", "storage_path", "thumbnail_path", "original_filename", "file_hash", "perceptual_hash",
    "file_size", "status", "industries", "project_types", "tags", "notes", "ai_suggested_tags",
    "ai_confidence_score", "ai_reasoning", "ai_model_version", "prompt_version", "tagged_at",
    "created_at", "updated_at",
}


def _now():
    return datetime.now(timezone.utc).isoformat()


class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table_name = table
        self.operation = "select"
        self.columns = "*"
        self.count_mode = None
        self.payload = None
        self.filters = []
        self.orders = []
        self.limit_value = None
        self._negate = False

    # builder
    def select(self, columns="*", count=None):
        self.operation = "select"
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, payload):
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    @property
    def not_(self):
        self._negate = True
        return self

    def _filter(self, predicate):
        negate, self._negate = self._negate, False
        self.filters.append((lambda row: not predicate(row)) if negate else predicate)
        return self

    def eq(self, column, value):
        return self._filter(lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._filter(lambda row: row.get(column) != value)

    def in_(self, column, values):
        values = list(values)
        return self._filter(lambda row: row.get(column) in values)

    def is_(self, column, value):
        if value == "null":
            return self._filter(lambda row: row.get(column) is None)
        return self._filter(lambda row: row.get(column) is value)

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, size):
        self.limit_value = size
        return self

    # execution
    def _rows(self):
        return self.client.tables.setdefault(self.table_name, [])

    def _matches(self, row):
        return all(predicate(row) for predicate in self.filters)

    def _project(self, row):
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        names = [name.strip() for name in self.columns.split(",")]
        return {name: copy.deepcopy(row.get(name)) for name in names}

    def execute(self):
        self.client.check_failure(self.table_name, self.operation)
        rows = self._rows()

        if self.operation == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in payload:
                row = {**TABLE_DEFAULTS.get(self.table_name, {}), **copy.deepcopy(item)}
                row.setdefault("id", str(uuid.uuid4()))
                row.setdefault("created_at", _now())
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResponse(inserted)

        matched = [row for row in rows if self._matches(row)]

        if self.operation == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse([copy.deepcopy(row) for row in matched])

        if self.operation == "delete":
            self.client.tables[self.table_name] = [row for row in rows if not self._matches(row)]
            return FakeResponse([copy.deepcopy(row) for row in matched])

        for column, desc in reversed(self.orders):
            present = [row for row in matched if row.get(column) is not None]
            missing = [row for row in matched if row.get(column) is None]
            present.sort(key=lambda row: row[column], reverse=desc)
            matched = missing + present if desc else present + missing

        count = len(matched) if self.count_mode else None
        if self.limit_value is not None:
            matched = matched[: self.limit_value]
        return FakeResponse([self._project(row) for row in matched], count)


class FakeRpc:
    def __init__(self, client, name, params):
        self.client = client
        self.name = name
        self.params = params

    def execute(self):
        self.client.check_failure(f"rpc:{self.name}", "call")
        self.client.rpc_calls.append((self.name, copy.deepcopy(self.params)))
        handler = getattr(self.client, f"_rpc_{self.name}")
        return FakeResponse(handler(**self.params))


class FakeBucket:
    def __init__(self, client, name):
        self.client = client
        self.name = name

    def upload(self, path, data, file_options=None):
        self.client.check_failure("storage", "upload")
        self.client.files[path] = {"data": data, "options": file_options, "bucket": self.name}
        return {"path": path}

    def get_public_url(self, path):
        return f"https://example.supabase.co/storage/v1/object/public/{self.name}/{path}"

    def remove(self, paths):
        self.client.check_failure("storage", "remove")
        removed = []
        for path in paths:
            if self.client.files.pop(path, None) is not None:
                removed.append({"name": path})
        return removed


class FakeStorage:
    def __init__(self, client):
        self.client = client

    def from_(self, bucket):
        return FakeBucket(self.client, bucket)


class FakeSupabase:
    """In-memory stand-in for the supabase-py client"""

    def __init__(self):
        self.tables = {name: [] for name in TABLE_DEFAULTS}
        self.columns = {"reference_images": set(REFERENCE_IMAGE_COLUMNS)}
        self.files = {}
        self.rpc_calls = []
        self.failures = {}
        self.storage = FakeStorage(self)

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeRpc(self, name, params or {})

    def schema(self, name):
        raise RuntimeError(f"schema {name} is not exposed")

    def fail(self, target, operation="*", error="simulated failure"):
        self.failures[(target, operation)] = error

    def check_failure(self, target, operation):
        for key in ((target, operation), (target, "*")):
            if key in self.failures:
                raise RuntimeError(self.failures[key])

    def seed(self, table, rows):
        return [FakeQuery(self, table).insert(row).execute().data[0] for row in rows]

    def rows(self, table):
        return self.tables.setdefault(table, [])

    # rpc functions
    def _rpc_increment_tag_usage(self, p_category, p_tag_value, p_last_used_at):
        for row in self.rows("tag_vocabulary"):
            if row["category"] == p_category and row["tag_value"] == p_tag_value:
                row["times_used"] = (row.get("times_used") or 0) + 1
                row["last_used_at"] = p_last_used_at
        return None

    def _rpc_decrement_tag_usage(self, p_category, p_tag_value):
        for row in self.rows("tag_vocabulary"):
            if row["category"] == p_category and row["tag_value"] == p_tag_value:
                row["times_used"] = max((row.get("times_used") or 0) - 1, 0)
        return None

    def _rpc_get_table_columns(self, table_name):
        return [{"column_name": name} for name in sorted(self.columns.get(table_name, set()))]

    def _rpc_sync_reference_images_schema(self, column_name, column_type):
        columns = self.columns.setdefault("reference_images", set())
        if column_name in columns:
            return {"success": True, "message": "Column already exists", "action": "skipped"}
        columns.add(column_name)
        return {"success": True, "message": "Column added successfully", "action": "created"}

    def _rpc_get_setting(self, p_key):
        for row in self.rows("user_settings"):
            if row["setting_key"] == p_key:
                return row["setting_value"]
        return None

    def _rpc_update_setting(self, p_key, p_value):
        for row in self.rows("user_settings"):
            if row["setting_key"] == p_key:
                row["setting_value"] = p_value
                return None
        self.rows("user_settings").append({"id": str(uuid.uuid4()), "setting_key": p_key, "setting_value": p_value})
        return None


class FakeTextBlock:
    type = "text"

    def __init__(self, text):
        self.text = text


class FakeMessage:
    def __init__(self, text):
        self.content = [FakeTextBlock(text)]


class FakeMessages:
    def __init__(self, client):
        self.client = client

    async def create(self, **kwargs):
        self.client.calls.append(kwargs)
        if self.client.error is not None:
            raise self.client.error
        return FakeMessage(self.client.reply)


class FakeAnthropic:
    """Records messages.create calls and answers with a canned reply"""

    def __init__(self, reply="{}", error=None):
        self.reply = reply
        self.error = error
        self.calls = []
        self.messages = FakeMessages(self)


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def default_config(supabase):
    """Active default vocabulary with its starter tags"""
    config = supabase.seed("vocabulary_config", [{
        "config_name": DEFAULT_CONFIG_NAME,
        "structure": get_default_structure(),
        "is_active": True,
    }])[0]
    supabase.seed("tag_vocabulary", get_default_tag_rows())
    return config


@pytest.fixture
def anthropic_client():
    return FakeAnthropic()


@pytest.fixture
def services(supabase, anthropic_client):
    return wire_services(supabase, anthropic_client)


@pytest.fixture
def client(services):
    app = FastAPI()
    add_health_endpoints(app)
    register_routers(app)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def reset_registered_services():
    yield
    for name in dir(dependencies):
        if name.startswith("set_") and name.endswith("_service"):
            getattr(dependencies, name)(None)


def make_png(width=32, height=32, color=(200, 30, 30), split_color=None):
    """PNG bytes of a solid image, or two vertical halves when split_color is set"""
    import io

    from PIL import Image

    img = Image.new("RGB", (width, height), color)
    if split_color is not None:
        img.paste(Image.new("RGB", (width // 2, height), split_color), (0, 0))
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return make_png()
