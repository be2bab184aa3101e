import logging
import os
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field
from pymongo.errors import PyMongoError

import admin
from cart import CartConflictError, CartLine, CartStore, get_cart_store, item_count, order_totals, snapshot
from catalog import ProductNotFound, get_product, list_banners, list_products
from config import configure_logging, settings
from database import create_document, get_db
from forms import CHECKOUT_FORMS, ContactForm, SignupForm, validate_form
from identity import (
    IdentityError,
    InvalidCredentials,
    bearer_token,
    current_user,
    has_role,
    require_user,
    sign_in,
    sign_out,
    sign_up,
)
from notifications import NotificationError, NotifyRequest, get_notifier, prepare_notification
from orders import EmptyOrderError, OrderPersistError, submit_order
from schemas import BannerOut, Category, ProductOut
from session import CookieStore, SessionIdentity

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="JD Jewellers API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/media", StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False), name="media")
app.include_router(admin.router)


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable. Please try again."})


def _log_cart_change(session_id, lines, version):
    logger.debug("Cart %s changed: %d items (version %s)", session_id, item_count(lines), version)


get_cart_store().subscribe(_log_cart_change)


# ------------- Dependencies -------------

def session_id(request: Request, response: Response) -> str:
    return SessionIdentity(CookieStore(request, response)).get_or_create()


def form_errors(errors: dict) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": "Please fix the errors in the form", "errors": errors})


# ------------- Schemas -------------

class CartAdd(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class CartQuantity(BaseModel):
    quantity: int


class CartOut(BaseModel):
    items: List[CartLine]
    item_count: int
    subtotal: float
    shipping: float
    total: float
    version: Optional[int] = None


class CheckoutIn(BaseModel):
    customer: dict = Field(default_factory=dict)
    product_id: Optional[str] = Field(None, description="Buy-now product; omit to check out the cart")


class CredentialsIn(BaseModel):
    email: str
    password: str


def cart_view(lines: List[CartLine], version: Optional[int] = None) -> CartOut:
    totals = order_totals(lines)
    return CartOut(
        items=lines,
        item_count=item_count(lines),
        subtotal=totals.subtotal,
        shipping=totals.shipping if lines else 0,
        total=totals.total if lines else 0,
        version=version,
    )


def checkout_lines(product_id: Optional[str], store: CartStore, sid: str) -> List[CartLine]:
    if product_id:
        try:
            product = get_product(product_id)
        except ProductNotFound:
            raise HTTPException(status_code=404, detail="Product not found")
        return [snapshot(product)]
    return store.lines(sid)


# ------------- Routes -------------

@app.get("/")
def read_root():
    return {"message": "JD Jewellers API running"}


# Catalog
@app.get("/api/products", response_model=List[ProductOut])
def api_list_products(category: Optional[Category] = None, q: Optional[str] = None):
    return list_products(category, q)


@app.get("/api/products/{product_id}", response_model=ProductOut)
def api_get_product(product_id: str):
    try:
        return get_product(product_id)
    except ProductNotFound:
        raise HTTPException(status_code=404, detail="Product not found")


@app.get("/api/banners", response_model=List[BannerOut])
def api_list_banners():
    return list_banners()


# Cart
@app.get("/api/cart", response_model=CartOut)
def get_cart(sid: str = Depends(session_id), store: CartStore = Depends(get_cart_store)):
    return cart_view(store.lines(sid), store.version(sid))


@app.get("/api/cart/count")
def get_cart_count(sid: str = Depends(session_id), store: CartStore = Depends(get_cart_store)):
    return {"count": store.item_count(sid), "version": store.version(sid)}


@app.post("/api/cart", response_model=CartOut)
def add_to_cart(item: CartAdd, sid: str = Depends(session_id), store: CartStore = Depends(get_cart_store)):
    try:
        product = get_product(item.product_id)
    except ProductNotFound:
        raise HTTPException(status_code=404, detail="Product not found")
    try:
        lines = store.add(sid, product, item.quantity)
    except CartConflictError:
        raise HTTPException(status_code=409, detail="Cart was updated elsewhere. Please try again.")
    return cart_view(lines, store.version(sid))


@app.put("/api/cart/{product_id}", response_model=CartOut)
def update_cart(
    product_id: str,
    body: CartQuantity,
    sid: str = Depends(session_id),
    store: CartStore = Depends(get_cart_store),
):
    try:
        lines = store.set_quantity(sid, product_id, body.quantity)
    except CartConflictError:
        raise HTTPException(status_code=409, detail="Cart was updated elsewhere. Please try again.")
    return cart_view(lines, store.version(sid))


@app.delete("/api/cart/{product_id}", response_model=CartOut)
def remove_from_cart(product_id: str, sid: str = Depends(session_id), store: CartStore = Depends(get_cart_store)):
    try:
        lines = store.remove(sid, product_id)
    except CartConflictError:
        raise HTTPException(status_code=409, detail="Cart was updated elsewhere. Please try again.")
    return cart_view(lines, store.version(sid))


@app.delete("/api/cart", response_model=CartOut)
def clear_cart(sid: str = Depends(session_id), store: CartStore = Depends(get_cart_store)):
    try:
        store.clear(sid)
    except CartConflictError:
        raise HTTPException(status_code=409, detail="Cart was updated elsewhere. Please try again.")
    return cart_view([])


# Checkout
@app.get("/api/checkout", response_model=CartOut)
def checkout_summary(
    product: Optional[str] = None,
    sid: str = Depends(session_id),
    store: CartStore = Depends(get_cart_store),
):
    return cart_view(checkout_lines(product, store, sid))


@app.post("/api/checkout")
def checkout(
    body: CheckoutIn,
    sid: str = Depends(session_id),
    store: CartStore = Depends(get_cart_store),
    notifier=Depends(get_notifier),
):
    form, errors = validate_form(CHECKOUT_FORMS[settings.CHECKOUT_ADDRESS_VARIANT], body.customer)
    if errors:
        return form_errors(errors)

    lines = checkout_lines(body.product_id, store, sid)
    from_cart = not body.product_id
    try:
        result = submit_order(
            form,
            lines,
            notifier,
            cart_store=store if from_cart else None,
            session_id=sid if from_cart else None,
        )
    except EmptyOrderError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OrderPersistError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except NotificationError:
        raise HTTPException(status_code=502, detail="Failed to place order. Please try again.")

    return {
        "success": True,
        "message": "Order placed successfully!",
        "order_id": result.order_id,
        "total_amount": result.total_amount,
        "whatsapp_url": result.whatsapp_url,
    }


# Order notification function
@app.post("/api/functions/send-whatsapp-order")
def send_whatsapp_order(body: NotifyRequest):
    try:
        url = prepare_notification(body.order_details)
    except Exception as e:
        logger.exception("Error processing order notification")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e) or "Unknown error"})
    return {"success": True, "message": "Order received successfully", "whatsappUrl": url}


# Contact
@app.post("/api/suggestions")
def create_suggestion(payload: dict):
    form, errors = validate_form(ContactForm, payload)
    if errors:
        return form_errors(errors)
    new_id = create_document("suggestions", form.model_dump())
    return {"id": new_id, "message": "Thank you! Your message has been sent successfully."}


# Auth
@app.post("/api/auth/signup")
def signup(payload: dict):
    form, errors = validate_form(SignupForm, payload)
    if errors:
        return form_errors(errors)
    try:
        user = sign_up(form)
    except IdentityError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"user": user, "token": sign_in(form.email, form.password)}


@app.post("/api/auth/login")
def login(payload: CredentialsIn):
    try:
        token = sign_in(payload.email, payload.password)
    except InvalidCredentials as e:
        raise HTTPException(status_code=401, detail=str(e))
    return {"token": token}


@app.post("/api/auth/logout")
def logout(token: str = Depends(bearer_token), user: dict = Depends(require_user)):
    sign_out(token)
    return {"ok": True}


@app.get("/api/auth/me")
def me(user: Optional[dict] = Depends(current_user)):
    if not user:
        return {"user": None, "is_admin": False}
    return {"user": user, "is_admin": has_role(user["id"], "admin")}


# Health & DB test
@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": settings.DATABASE_NAME,
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        collections = get_db().list_collection_names()
        response["collections"] = collections[:10]
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:50]}"
    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
