"""Per-session shopping cart.

Lines are product snapshots taken when the item is added, so later price or
name edits to the product never change what is already in a cart.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, List, NamedTuple, Optional

from pydantic import BaseModel, Field, TypeAdapter

from config import settings
from session import MemoryStore, MongoStore, VersionedStore

logger = logging.getLogger(__name__)


class CartLine(BaseModel):
    product_id: str
    name: str
    price: float = Field(..., ge=0)
    image_url: Optional[str] = None
    category: Optional[str] = None
    quantity: int = Field(1, ge=1)


_lines_adapter = TypeAdapter(List[CartLine])

CartListener = Callable[[str, List[CartLine], Optional[int]], None]


class CartConflictError(Exception):
    """Concurrent writers kept invalidating our read of the cart."""


class Totals(NamedTuple):
    subtotal: float
    shipping: float
    total: float


def cart_key(session_id: str) -> str:
    return f"cart_{session_id}"


def total(lines: List[CartLine]) -> float:
    return round(sum(line.price * line.quantity for line in lines), 2)


def item_count(lines: List[CartLine]) -> int:
    return sum(line.quantity for line in lines)


def shipping_for(subtotal: float) -> float:
    return 0 if subtotal >= settings.FREE_SHIPPING_THRESHOLD else settings.SHIPPING_FEE


def order_totals(lines: List[CartLine]) -> Totals:
    subtotal = total(lines)
    shipping = shipping_for(subtotal)
    return Totals(subtotal, shipping, round(subtotal + shipping, 2))


def snapshot(product: dict, quantity: int = 1) -> CartLine:
    return CartLine(
        product_id=product["id"],
        name=product["name"],
        price=float(product.get("price", 0)),
        image_url=product.get("image_url"),
        category=product.get("category"),
        quantity=quantity,
    )


class CartStore:
    def __init__(self, storage: VersionedStore, max_retries: int = 5):
        self.storage = storage
        self.max_retries = max_retries
        self._listeners: list[CartListener] = []

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register for cart-changed events; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, session_id, lines, version):
        for listener in list(self._listeners):
            try:
                listener(session_id, lines, version)
            except Exception:
                logger.exception("Cart listener failed for %s", session_id)

    def _read(self, session_id):
        raw, version = self.storage.load(cart_key(session_id))
        if not raw:
            return [], version
        return _lines_adapter.validate_json(raw), version

    def lines(self, session_id: str) -> List[CartLine]:
        return self._read(session_id)[0]

    def version(self, session_id: str) -> Optional[int]:
        return self.storage.load(cart_key(session_id))[1]

    def total(self, session_id: str) -> float:
        return total(self.lines(session_id))

    def item_count(self, session_id: str) -> int:
        return item_count(self.lines(session_id))

    def _mutate(self, session_id, change):
        """Apply ``change`` with compare-and-swap; ``change`` returns None for a no-op."""
        for attempt in range(self.max_retries):
            current, version = self._read(session_id)
            updated = change([line.model_copy() for line in current])
            if updated is None:
                return current
            if updated:
                raw = _lines_adapter.dump_json(updated).decode()
                written = self.storage.save(cart_key(session_id), raw, version)
                new_version = (version or 0) + 1
            else:
                written = self.storage.delete(cart_key(session_id), version)
                new_version = None
            if written:
                self._emit(session_id, updated, new_version)
                return updated
            logger.debug("Cart write conflict for %s (attempt %d)", session_id, attempt + 1)
        raise CartConflictError(f"Cart for {session_id} is being modified concurrently")

    def add(self, session_id: str, product: dict, qty: int = 1) -> List[CartLine]:
        if qty < 1:
            raise ValueError("Quantity must be at least 1")

        def change(lines):
            for line in lines:
                if line.product_id == product["id"]:
                    line.quantity += qty
                    return lines
            lines.append(snapshot(product, qty))
            return lines

        return self._mutate(session_id, change)

    def set_quantity(self, session_id: str, product_id: str, qty: int) -> List[CartLine]:
        if qty < 1:
            return self.lines(session_id)

        def change(lines):
            for line in lines:
                if line.product_id == product_id:
                    line.quantity = qty
                    return lines
            return None

        return self._mutate(session_id, change)

    def remove(self, session_id: str, product_id: str) -> List[CartLine]:
        def change(lines):
            kept = [line for line in lines if line.product_id != product_id]
            return kept if len(kept) != len(lines) else None

        return self._mutate(session_id, change)

    def clear(self, session_id: str) -> None:
        self._mutate(session_id, lambda lines: [] if lines else None)

    def remove_ordered(self, session_id: str, ordered: List[CartLine]) -> List[CartLine]:
        """Take the ordered quantities out of the cart.

        Anything added after the order's lines were read stays in the cart.
        """
        taken: dict[str, int] = {}
        for line in ordered:
            taken[line.product_id] = taken.get(line.product_id, 0) + line.quantity

        def change(lines):
            if not any(line.product_id in taken for line in lines):
                return None
            kept = []
            for line in lines:
                line.quantity -= taken.get(line.product_id, 0)
                if line.quantity >= 1:
                    kept.append(line)
            return kept

        return self._mutate(session_id, change)


@lru_cache
def get_cart_store() -> CartStore:
    storage = MemoryStore() if settings.CART_BACKEND == "memory" else MongoStore()
    return CartStore(storage, max_retries=settings.CART_WRITE_RETRIES)
