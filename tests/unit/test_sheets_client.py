"""
Unit tests for the Apps Script backend client.
"""

import pytest
import requests

from exceptions import SheetsBackendError, SheetsNotConfiguredError
from integrations.sheets_client import SheetsClient
from tests.conftest import MockSheetsResponse, orders_body
from tests.factories import SheetRowFactory as Row


class TestCall:
    """Transport and retry."""

    def test_success_first_try(self, make_sheets_client, no_sleep):
        client, session = make_sheets_client([MockSheetsResponse(orders_body([]))])

        body = client.call("getOrders")

        assert body["status"] == "success"
        assert session.calls[0]["params"] == {"action": "getOrders"}
        no_sleep.assert_not_called()

    def test_retries_with_exponential_backoff(self, make_sheets_client, no_sleep):
        client, session = make_sheets_client(
            [
                requests.exceptions.ConnectionError("down"),
                MockSheetsResponse(status_code=500),
                MockSheetsResponse(orders_body([])),
            ],
            max_retries=3,
        )

        client.call("getOrders")

        assert len(session.calls) == 3
        assert [c.args[0] for c in no_sleep.call_args_list] == [0.1, 0.2]

    def test_backend_error_status_is_retried(self, make_sheets_client):
        client, session = make_sheets_client([
            MockSheetsResponse({"status": "error", "message": "quota"}),
            MockSheetsResponse(orders_body([])),
        ])

        client.call("getOrders")

        assert len(session.calls) == 2

    def test_gives_up_after_max_retries(self, make_sheets_client):
        client, session = make_sheets_client(
            [MockSheetsResponse({"status": "error", "message": "quota"})],
            max_retries=2,
        )

        with pytest.raises(SheetsBackendError) as exc_info:
            client.call("getOrders")

        assert len(session.calls) == 3
        assert exc_info.value.status_code == 503
        assert exc_info.value.code == "SHEETS_ERROR"
        assert "quota" in exc_info.value.message

    def test_invalid_json_is_retried(self, make_sheets_client):
        client, session = make_sheets_client([
            MockSheetsResponse(ValueError("no json")),
            MockSheetsResponse(orders_body([])),
        ])

        client.call("getOrders")

        assert len(session.calls) == 2

    def test_not_configured(self):
        client = SheetsClient(script_url=None)
        client.script_url = None

        with pytest.raises(SheetsNotConfiguredError):
            client.call("getOrders")


class TestOperations:
    """Typed operations."""

    def test_fetch_customer_order_records(self, make_sheets_client):
        rows = [
            Row.create(document_id="1", customer="א", phone="1"),
            Row.create(document_id="2", customer="ב", phone="2"),
            Row.create(document_id="3", customer="א", phone="1", action="העלאה"),
        ]
        client, _ = make_sheets_client([MockSheetsResponse(orders_body(rows))])

        records = client.fetch_customer_order_records("א_1")

        assert [r.document_id for r in records] == ["1", "3"]

    def test_fetch_order_records_reports_bad_rows(self, make_sheets_client):
        rows = [Row.create(document_id="1"), Row.create(document_id="2", date="31/02/2024x")]
        client, _ = make_sheets_client([MockSheetsResponse(orders_body(rows))])

        result = client.fetch_order_records()

        assert len(result.records) == 1
        assert result.warnings[0].document_id == "2"

    def test_set_alert_handled(self, make_sheets_client):
        client, session = make_sheets_client([MockSheetsResponse({"status": "success"})])

        assert client.set_alert_handled("alert-5", "called customer") is True
        assert session.calls[0]["params"] == {
            "action": "setAlertHandled",
            "alertId": "alert-5",
            "note": "called customer",
        }


class TestOrderMutations:
    """Order write actions."""

    def test_add_order_sends_fields_by_header(self, make_sheets_client):
        client, session = make_sheets_client([MockSheetsResponse({"status": "success"})])

        assert client.add_order({"לקוח": "Dana", "סטטוס": "פתוח"}) is True

        assert session.calls[0]["params"] == {"action": "addOrder", "לקוח": "Dana", "סטטוס": "פתוח"}

    def test_edit_order_addresses_sheet_row(self, make_sheets_client):
        client, session = make_sheets_client([MockSheetsResponse({"status": "success"})])

        client.edit_order(7, {"הערות": ""})

        assert session.calls[0]["params"] == {"action": "editOrder", "sheetRow": 7, "הערות": ""}

    @pytest.mark.parametrize("method,args,expected", [
        ("close_order", (4, "done"), {"action": "closeOrder", "sheetRow": 4, "closeNotes": "done"}),
        ("delete_order", (4,), {"action": "deleteOrder", "sheetRow": 4}),
        ("update_order_status", (4, "טופל"), {"action": "updateOrderStatus", "sheetRow": 4, "status": "טופל"}),
        ("update_order_notes", (4, "call first"), {"action": "updateOrderNotes", "sheetRow": 4, "notes": "call first"}),
    ])
    def test_row_actions(self, make_sheets_client, method, args, expected):
        client, session = make_sheets_client([MockSheetsResponse({"status": "success"})])

        assert getattr(client, method)(*args) is True

        assert session.calls[0]["params"] == expected

    def test_write_retries_then_raises(self, make_sheets_client, no_sleep):
        client, session = make_sheets_client(
            [MockSheetsResponse({"status": "error", "message": "locked"})],
            max_retries=1,
        )

        with pytest.raises(SheetsBackendError):
            client.delete_order(4)

        assert len(session.calls) == 2
