import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from catalog import list_banners, list_products
from database import create_document, get_db, get_documents, now, parse_object_id, to_str_id
from identity import grant_role, require_admin
from schemas import Banner, BannerOut, Product, ProductOut, UserRole
from uploads import PRODUCT_IMAGES_BUCKET, LocalFileStorage, UploadRejected, get_file_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", dependencies=[Depends(require_admin)])


# ------------- Helpers -------------

def _oid(value: str):
    try:
        return parse_object_id(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid id")


def _require_confirmation(confirm: bool, what: str):
    if not confirm:
        raise HTTPException(status_code=400, detail=f"Confirm deletion of this {what} with ?confirm=true")


def _update(collection: str, item_id: str, data: dict, label: str) -> dict:
    oid = _oid(item_id)
    data["updated_at"] = now()
    res = get_db()[collection].update_one({"_id": oid}, {"$set": data})
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return to_str_id(get_db()[collection].find_one({"_id": oid}))


def _delete(collection: str, item_id: str, label: str) -> dict:
    res = get_db()[collection].delete_one({"_id": _oid(item_id)})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    logger.info("Deleted %s %s", label.lower(), item_id)
    return {"deleted": True}


# ------------- Products -------------

@router.get("/products", response_model=List[ProductOut])
def admin_list_products():
    return list_products()


@router.post("/products", response_model=ProductOut)
def create_product(payload: Product):
    new_id = create_document("products", payload.model_dump())
    logger.info("Product %s created", new_id)
    return to_str_id(get_db()["products"].find_one({"_id": _oid(new_id)}))


@router.put("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: str, payload: Product):
    return _update("products", product_id, payload.model_dump(), "Product")


@router.delete("/products/{product_id}")
def delete_product(product_id: str, confirm: bool = False):
    _require_confirmation(confirm, "product")
    return _delete("products", product_id, "Product")


@router.post("/products/{product_id}/image", response_model=ProductOut)
async def upload_product_image(
    product_id: str,
    file: UploadFile = File(...),
    storage: LocalFileStorage = Depends(get_file_storage),
):
    oid = _oid(product_id)
    if not get_db()["products"].find_one({"_id": oid}, {"_id": 1}):
        raise HTTPException(status_code=404, detail="Product not found")
    data = await file.read()
    try:
        url = storage.upload(PRODUCT_IMAGES_BUCKET, file.filename or "", data, file.content_type or "")
    except UploadRejected as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _update("products", product_id, {"image_url": url}, "Product")


# ------------- Banners -------------

@router.get("/banners", response_model=List[BannerOut])
def admin_list_banners():
    return list_banners(active_only=False)


@router.post("/banners", response_model=BannerOut)
def create_banner(payload: Banner):
    new_id = create_document("banners", payload.model_dump())
    return to_str_id(get_db()["banners"].find_one({"_id": _oid(new_id)}))


@router.put("/banners/{banner_id}", response_model=BannerOut)
def update_banner(banner_id: str, payload: Banner):
    return _update("banners", banner_id, payload.model_dump(), "Banner")


@router.delete("/banners/{banner_id}")
def delete_banner(banner_id: str, confirm: bool = False):
    _require_confirmation(confirm, "banner")
    return _delete("banners", banner_id, "Banner")


# ------------- Suggestions -------------

@router.get("/suggestions")
def list_suggestions():
    return get_documents("suggestions", sort=[("created_at", -1)])


@router.delete("/suggestions/{suggestion_id}")
def delete_suggestion(suggestion_id: str, confirm: bool = False):
    _require_confirmation(confirm, "suggestion")
    return _delete("suggestions", suggestion_id, "Suggestion")


# ------------- Orders (read-only) -------------

@router.get("/orders")
def list_orders(limit: int = 50):
    return get_documents("orders", sort=[("created_at", -1)], limit=limit)


# ------------- Roles -------------

class RoleGrant(BaseModel):
    email: str
    role: str = "admin"


@router.post("/roles", response_model=UserRole)
def add_role(payload: RoleGrant):
    user = get_db()["users"].find_one({"email": payload.email.strip().lower()})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    try:
        return grant_role(str(user["_id"]), payload.role)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid role")
