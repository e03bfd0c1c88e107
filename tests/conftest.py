# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fixtures for all tests. Everything runs against a fresh
# MemoryStore; the MySQL / MongoDB suites are skipped unless
# DYNAFORM_LIVE_MYSQL / DYNAFORM_LIVE_MONGO are set.
#
# FIXTURES:
# ---------
# - store            → empty MemoryStore
# - registry         → FieldRegistry wired to the composer's guard
# - composer         → FormComposer over the same store
# - adapter          → RecordAdapter over the same store
# - sample_fields    → Amount (number), Status (selector A,B),
#                      Note (text), Paid (boolean), Due (date)
# - sample_form      → "Invoice" form using all sample fields
# - workspace        → loaded FormWorkspace over the same store
# ==============================================

import pytest

from dynaform.config import reset_config
from dynaform.schema import FieldRegistry, FormComposer
from dynaform.normalization import RecordAdapter
from dynaform.storage import MemoryStore
from dynaform.workspace import FormWorkspace


@pytest.fixture(autouse=True)
def _fresh_config():
    """Never leak a cached AppConfig between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def store():
    """Create an empty in-memory store."""
    return MemoryStore()


@pytest.fixture
def composer(store):
    return FormComposer(store, FieldRegistry(store))


@pytest.fixture
def registry(store, composer):
    return FieldRegistry(store, reference_guard=composer.forms_using_field)


@pytest.fixture
def adapter(store):
    return RecordAdapter(store)


@pytest.fixture
def sample_fields(registry):
    """Five fields covering the aggregated data types."""
    return {
        "amount": registry.create("Amount", "number"),
        "status": registry.create("Status", "selector", "A, B"),
        "note": registry.create("Note", "text"),
        "paid": registry.create("Paid", "boolean"),
        "due": registry.create("Due", "date"),
    }


@pytest.fixture
def sample_form(composer, sample_fields):
    """Invoice form listing every sample field in a fixed order."""
    return composer.create(
        "Invoice",
        "Customer invoices",
        [
            sample_fields["status"].id,
            sample_fields["amount"].id,
            sample_fields["note"].id,
            sample_fields["paid"].id,
            sample_fields["due"].id,
        ],
    )


@pytest.fixture
def workspace(store):
    """Workspace over the shared store, already loaded."""
    ws = FormWorkspace(store=store)
    ws.load()
    yield ws
    ws.close()
