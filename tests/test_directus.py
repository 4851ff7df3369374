from datetime import datetime
from unittest.mock import MagicMock

import pytest
import requests

from backend import load_catalog
from directus import DirectusClient
from errors import ApiError, CatalogError, NotificationError
from models import Extra, Order, Pack
from pricing import OrderLine


def make_response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.content = b"{}" if body is not None else b""
    response.json.return_value = body
    return response


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session):
    return DirectusClient("https://cms.example.com/", "secret-token", timeout=5, session=session)


@pytest.fixture
def order():
    return Order(
        guardian_name="Maria Silva",
        email="maria@example.com",
        student_name="João Silva",
        school="EB Lisboa",
        class_name="5ºA",
        packs=(OrderLine("Pack A", "Pack A", 1, 10000),),
        extras=(),
        observation="",
        total_cents=10000,
    )


class TestCatalog:

    def test_list_packs(self, client, session):
        session.request.return_value = make_response(body={"data": [
            {"id": "Pack A", "name": "Pack A", "description": "Individual", "price": 100},
        ]})

        packs = client.list_packs()

        assert packs == [Pack("Pack A", "Pack A", "Individual", 10000)]
        session.request.assert_called_once_with(
            method="GET",
            url="https://cms.example.com/items/Products",
            headers={"Content-Type": "application/json", "Authorization": "Bearer secret-token"},
            json=None,
            timeout=5,
        )

    def test_list_extras(self, client, session):
        session.request.return_value = make_response(body={"data": [
            {"extra": "Caneca", "description": "Caneca com foto", "price": "7.50"},
        ]})

        assert client.list_extras() == [Extra("Caneca", "Caneca com foto", 750)]
        assert session.request.call_args.kwargs["url"].endswith("/items/Extras")

    def test_missing_data_is_empty(self, client, session):
        session.request.return_value = make_response(body={"data": None})

        assert client.list_extras() == []

    @pytest.mark.parametrize("body", [
        {"data": ["not-a-row"]},
        {"data": {"id": "Pack A"}},
        ["not", "a", "dict"],
    ])
    def test_malformed_catalog_is_a_retryable_catalog_error(self, client, session, body):
        session.request.return_value = make_response(body=body)

        with pytest.raises(CatalogError):
            client.list_packs()
        with pytest.raises(CatalogError):
            load_catalog(client)


class TestErrors:

    def test_cms_error_message_and_status(self, client, session):
        session.request.return_value = make_response(403, {
            "errors": [{"message": "You don't have permission to access this."}],
        })

        with pytest.raises(ApiError) as exc:
            client.list_packs()

        assert exc.value.status_code == 403
        assert exc.value.message == "You don't have permission to access this."
        assert exc.value.details == [{"message": "You don't have permission to access this."}]

    def test_error_without_body(self, client, session):
        response = make_response(500)
        response.json.side_effect = ValueError("no json")
        session.request.return_value = response

        with pytest.raises(ApiError) as exc:
            client.list_packs()

        assert exc.value.status_code == 500
        assert exc.value.message == "API request failed"

    def test_error_list_of_strings(self, client, session, order):
        session.request.return_value = make_response(400, {"errors": ["Invalid payload"]})

        with pytest.raises(ApiError) as exc:
            client.submit_order(order)

        assert exc.value.status_code == 400
        assert exc.value.message == "API request failed"
        assert exc.value.details == ["Invalid payload"]

    def test_network_failure(self, client, session):
        session.request.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(ApiError) as exc:
            client.list_packs()

        assert exc.value.status_code is None

    def test_no_auth_header_without_token(self, session):
        session.request.return_value = make_response(body={"data": []})

        DirectusClient("https://cms.example.com", None, session=session).list_packs()

        assert "Authorization" not in session.request.call_args.kwargs["headers"]


class TestOrders:

    def test_submit_order_posts_payload(self, client, session, order):
        session.request.return_value = make_response(body={"data": {"id": 41}})

        assert client.submit_order(order) == {"id": 41}

        kwargs = session.request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == "https://cms.example.com/items/encomendas"
        assert kwargs["json"] == order.to_cms_payload()

    def test_submit_order_rejected(self, client, session, order):
        session.request.return_value = make_response(400, {"errors": [{"message": "Invalid payload"}]})

        with pytest.raises(ApiError):
            client.submit_order(order)


class TestNotify:

    def test_sends_templated_email(self, client, session, order):
        session.request.return_value = make_response(204)

        client.notify(order, now=datetime(2026, 10, 19, 9, 5, 3))

        kwargs = session.request.call_args.kwargs
        assert kwargs["url"] == "https://cms.example.com/email/send"
        assert kwargs["json"] == {
            "to": "maria@example.com",
            "subject": "Confirmação de Encomenda",
            "template": "order-confirmation",
            "data": {
                "orderData": order.to_cms_payload(),
                "date": "19/10/2026",
                "time": "09:05:03",
            },
        }

    def test_failure_raises_notification_error(self, client, session, order):
        session.request.return_value = make_response(503, {"errors": [{"message": "mail down"}]})

        with pytest.raises(NotificationError):
            client.notify(order)
