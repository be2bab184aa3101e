"""Order notification: format a WhatsApp message and build a deep link to it.

The composer persists nothing. ``LocalOrderNotifier`` calls it in-process;
``HttpOrderNotifier`` posts the same payload to an external endpoint that
speaks the ``send-whatsapp-order`` contract.
"""
import logging
from datetime import datetime
from functools import lru_cache
from typing import List, Optional
from urllib.parse import quote
from zoneinfo import ZoneInfo

import requests
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from config import settings

logger = logging.getLogger(__name__)

WHATSAPP_SEND_URL = "https://api.whatsapp.com/send"


class NotificationError(Exception):
    """The order notification could not be prepared or delivered."""


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NotifiedProduct(_Camel):
    name: str
    price: float
    quantity: int = Field(..., ge=1)


class OrderDetails(_Camel):
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    customer_address: str
    products: List[NotifiedProduct]
    total_amount: float


class NotifyRequest(_Camel):
    order_details: OrderDetails


def format_amount(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".")


def compose_message(details: OrderDetails, when: Optional[datetime] = None) -> str:
    when = when or datetime.now(ZoneInfo(settings.NOTIFY_TIMEZONE))
    products_list = "\n".join(
        f"{item.name} (Qty: {item.quantity}) - ₹{format_amount(item.price)}"
        for item in details.products
    )
    return (
        f"🛍️ *NEW ORDER FROM {settings.STORE_NAME}*\n"
        "\n"
        "👤 *Customer Details:*\n"
        f"Name: {details.customer_name}\n"
        f"Phone: {details.customer_phone}\n"
        f"Email: {details.customer_email or 'Not provided'}\n"
        f"Address: {details.customer_address}\n"
        "\n"
        "💎 *Order Items:*\n"
        f"{products_list}\n"
        "\n"
        f"💰 *Total Amount:* ₹{format_amount(details.total_amount)}\n"
        "\n"
        f"📅 *Order Time:* {when:%d/%m/%Y}, {when.hour % 12 or 12}:{when:%M:%S} {when.strftime('%p').lower()}"
    )


def whatsapp_url(message: str, phone: Optional[str] = None) -> str:
    # same unreserved set as JavaScript's encodeURIComponent
    encoded = quote(message, safe="-_.!~*'()")
    return f"{WHATSAPP_SEND_URL}?phone={phone or settings.WHATSAPP_NUMBER}&text={encoded}"


def prepare_notification(details: OrderDetails) -> str:
    logger.info("Received order details for %s", details.customer_name)
    url = whatsapp_url(compose_message(details))
    logger.info("Order notification prepared successfully")
    return url


class LocalOrderNotifier:
    def send(self, details: OrderDetails) -> str:
        try:
            return prepare_notification(details)
        except Exception as e:
            raise NotificationError(str(e)) from e


class HttpOrderNotifier:
    def __init__(self, url: str, timeout: float = 10):
        self.url = url
        self.timeout = timeout

    def send(self, details: OrderDetails) -> str:
        body = NotifyRequest(order_details=details).model_dump(by_alias=True)
        try:
            resp = requests.post(self.url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotificationError(f"Notification endpoint unreachable: {e}") from e
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        if resp.status_code >= 300 or not data.get("success"):
            raise NotificationError(data.get("error") or f"Notification endpoint returned {resp.status_code}")
        return data.get("whatsappUrl", "")


@lru_cache
def get_notifier():
    if settings.ORDER_NOTIFY_URL:
        return HttpOrderNotifier(settings.ORDER_NOTIFY_URL, timeout=settings.ORDER_NOTIFY_TIMEOUT)
    return LocalOrderNotifier()
