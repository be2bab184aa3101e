"""Tests for order notification formatting and delivery."""

from datetime import datetime
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from notifications import (
    HttpOrderNotifier,
    LocalOrderNotifier,
    NotificationError,
    OrderDetails,
    compose_message,
    format_amount,
    whatsapp_url,
)


@pytest.fixture
def details():
    return OrderDetails(
        customer_name="Asha Verma",
        customer_phone="9876543210",
        customer_email="",
        customer_address="12 MG Road, Bengaluru - 560001",
        products=[
            {"name": "Temple Necklace", "price": 1500.0, "quantity": 1},
            {"name": "Jhumka Earrings", "price": 249.5, "quantity": 2},
        ],
        total_amount=2099.0,
    )


class TestFormatting:
    @pytest.mark.parametrize("value,expected", [(1500.0, "1500"), (249.5, "249.5"), (99.99, "99.99"), (0, "0")])
    def test_format_amount(self, value, expected):
        assert format_amount(value) == expected

    def test_message_lists_customer_and_items(self, details):
        message = compose_message(details, when=datetime(2026, 10, 19, 15, 4, 5))

        assert "*NEW ORDER FROM JD JEWELLERS*" in message
        assert "Name: Asha Verma" in message
        assert "Phone: 9876543210" in message
        assert "Email: Not provided" in message
        assert "Address: 12 MG Road, Bengaluru - 560001" in message
        assert "Temple Necklace (Qty: 1) - ₹1500\nJhumka Earrings (Qty: 2) - ₹249.5" in message
        assert "*Total Amount:* ₹2099" in message
        assert "19/10/2026, 3:04:05 pm" in message

    @pytest.mark.parametrize(
        "when,expected",
        [
            (datetime(2026, 1, 5, 0, 7, 0), "05/01/2026, 12:07:00 am"),
            (datetime(2026, 1, 5, 12, 30, 9), "05/01/2026, 12:30:09 pm"),
            (datetime(2026, 1, 5, 9, 53, 0), "05/01/2026, 9:53:00 am"),
        ],
    )
    def test_order_time_hour_is_not_padded(self, details, when, expected):
        assert compose_message(details, when=when).endswith(f"*Order Time:* {expected}")

    def test_message_includes_email_when_given(self, details):
        details.customer_email = "asha@example.com"

        assert "Email: asha@example.com" in compose_message(details)

    def test_deep_link_encodes_message_and_number(self):
        url = whatsapp_url("Hello *world*\nLine 2 & more")

        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://api.whatsapp.com/send"
        assert query["phone"] == ["919079998370"]
        assert query["text"] == ["Hello *world*\nLine 2 & more"]
        assert "%0A" in url
        assert "%26" in url


class TestLocalNotifier:
    def test_returns_deep_link(self, details):
        url = LocalOrderNotifier().send(details)

        assert url.startswith("https://api.whatsapp.com/send?phone=919079998370&text=")


class TestHttpNotifier:
    def _response(self, status, payload):
        resp = MagicMock()
        resp.status_code = status
        resp.json.return_value = payload
        return resp

    def test_posts_order_details_in_camel_case(self, details):
        notifier = HttpOrderNotifier("https://notify.example.com/send-whatsapp-order", timeout=5)

        with patch("notifications.requests.post") as post:
            post.return_value = self._response(200, {"success": True, "whatsappUrl": "https://wa.example/x"})
            url = notifier.send(details)

        assert url == "https://wa.example/x"
        body = post.call_args.kwargs["json"]
        assert body["orderDetails"]["customerName"] == "Asha Verma"
        assert body["orderDetails"]["totalAmount"] == 2099.0
        assert body["orderDetails"]["products"][1] == {"name": "Jhumka Earrings", "price": 249.5, "quantity": 2}
        assert post.call_args.kwargs["timeout"] == 5

    def test_error_payload_raises(self, details):
        notifier = HttpOrderNotifier("https://notify.example.com")

        with patch("notifications.requests.post") as post:
            post.return_value = self._response(500, {"success": False, "error": "boom"})
            with pytest.raises(NotificationError, match="boom"):
                notifier.send(details)

    def test_non_object_json_raises_notification_error(self, details):
        notifier = HttpOrderNotifier("https://notify.example.com")

        with patch("notifications.requests.post") as post:
            post.return_value = self._response(200, ["unexpected"])
            with pytest.raises(NotificationError, match="returned 200"):
                notifier.send(details)

    def test_network_failure_raises(self, details):
        notifier = HttpOrderNotifier("https://notify.example.com")

        with patch("notifications.requests.post", side_effect=requests.ConnectionError("down")):
            with pytest.raises(NotificationError):
                notifier.send(details)


class TestNotificationEndpoint:
    def test_returns_whatsapp_url(self, client):
        resp = client.post(
            "/api/functions/send-whatsapp-order",
            json={
                "orderDetails": {
                    "customerName": "Asha Verma",
                    "customerPhone": "9876543210",
                    "customerEmail": "asha@example.com",
                    "customerAddress": "12 MG Road, Bengaluru",
                    "products": [{"name": "Temple Necklace", "price": 1500, "quantity": 1}],
                    "totalAmount": 1600,
                }
            },
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["whatsappUrl"].startswith("https://api.whatsapp.com/send?phone=")

    def test_persists_nothing(self, client, mongo_db):
        client.post(
            "/api/functions/send-whatsapp-order",
            json={
                "orderDetails": {
                    "customerName": "Asha",
                    "customerPhone": "9876543210",
                    "customerAddress": "12 MG Road, Bengaluru",
                    "products": [],
                    "totalAmount": 0,
                }
            },
        )

        assert mongo_db["orders"].count_documents({}) == 0
