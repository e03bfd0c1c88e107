# ==============================================
# Live backend tests (MySQL / MongoDB)
# ==============================================
#
# Skipped unless DYNAFORM_LIVE_MYSQL / DYNAFORM_LIVE_MONGO is set.
# Connection settings come from the usual MYSQL_* / MONGO_* variables;
# point MYSQL_DATABASE / MONGO_DATABASE at a throwaway database.
# ==============================================

import os

import pytest

from dynaform.config import get_config
from dynaform.errors import NotFoundError, StoreError
from dynaform.storage import MongoStore, MySQLStore
from dynaform.workspace import FormWorkspace


def _mysql_store():
    cfg = get_config().mysql
    return MySQLStore(cfg.host, cfg.port, cfg.user, cfg.password, cfg.database)


def _mongo_store():
    cfg = get_config().mongo
    return MongoStore(cfg.host, cfg.port, cfg.database, cfg.user, cfg.password)


@pytest.fixture(params=[
    pytest.param(_mysql_store, id="mysql", marks=pytest.mark.skipif(
        not os.getenv("DYNAFORM_LIVE_MYSQL"), reason="DYNAFORM_LIVE_MYSQL not set")),
    pytest.param(_mongo_store, id="mongo", marks=pytest.mark.skipif(
        not os.getenv("DYNAFORM_LIVE_MONGO"), reason="DYNAFORM_LIVE_MONGO not set")),
])
def live_workspace(request):
    with FormWorkspace(store=request.param()) as ws:
        yield ws


class TestLiveRoundTrip:
    """The same workflow the in-memory suite covers, against a real server."""

    def test_form_and_record_workflow(self, live_workspace):
        ws = live_workspace
        amount = ws.create_field("Live Amount", "number")
        status = ws.create_field("Live Status", "selector", "A,B")
        form = ws.create_form_type("Live Form", None, [status.id, amount.id])
        record = ws.create_record(form.id, {amount.key: "12.5", status.key: "A"})
        try:
            fetched = ws.form_composer.get(form.id)
            assert fetched.field_ids == [status.id, amount.id]
            assert ws.records.get(record.id).data == {amount.key: "12.5", status.key: "A"}

            ws.reload()
            summary = ws.dashboard(form.id).numeric_summaries[0]
            assert summary.total == 12.5
        finally:
            ws.delete_record(record.id)
            ws.delete_form_type(form.id)
            ws.delete_field(amount.id)
            ws.delete_field(status.id)

        with pytest.raises(NotFoundError):
            ws.records.get(record.id)

    def test_referenced_field_cannot_be_deleted_by_store(self, live_workspace):
        ws = live_workspace
        field = ws.create_field("Live Ref", "text")
        form = ws.create_form_type("Live Ref Form", None, [field.id])
        try:
            with pytest.raises(StoreError):
                ws.store.delete_field(field.id)
        finally:
            ws.delete_form_type(form.id)
            ws.delete_field(field.id)
