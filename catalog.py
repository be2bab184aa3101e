"""Read-only queries against the products and banners collections."""
import re
from typing import Optional

import database
from database import get_documents, parse_object_id, to_str_id


class ProductNotFound(Exception):
    pass


def list_products(category: Optional[str] = None, q: Optional[str] = None) -> list[dict]:
    filter_dict = {}
    if category:
        filter_dict["category"] = category
    if q:
        filter_dict["name"] = {"$regex": re.escape(q), "$options": "i"}
    return get_documents("products", filter_dict, sort=[("created_at", -1)])


def get_product(product_id: str) -> dict:
    try:
        oid = parse_object_id(product_id)
    except ValueError:
        raise ProductNotFound(product_id)
    doc = database.get_db()["products"].find_one({"_id": oid})
    if not doc:
        raise ProductNotFound(product_id)
    return to_str_id(doc)


def list_banners(active_only: bool = True) -> list[dict]:
    filter_dict = {"is_active": True} if active_only else {}
    return get_documents("banners", filter_dict, sort=[("display_order", 1), ("created_at", 1)])
