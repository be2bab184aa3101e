"""
Identity: accounts, bearer tokens and role records.

Credentials live in ``users``; display data in ``profiles``; roles in
``user_roles``. A signed-in session is an opaque token in ``auth_tokens``.
"""
import hashlib
import hmac
import logging
import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException

from config import settings
from database import create_document, get_db, parse_object_id
from forms import SignupForm
from schemas import Profile, UserRole

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 260000


class IdentityError(Exception):
    pass


class InvalidCredentials(IdentityError):
    pass


def hash_password(password: str, salt: Optional[str] = None) -> tuple[str, str]:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return digest.hex(), salt


def sign_up(form: SignupForm) -> dict:
    db = get_db()
    if db["users"].find_one({"email": form.email}):
        raise IdentityError("This email is already registered. Please login instead.")
    password_hash, salt = hash_password(form.password)
    user_id = create_document("users", {"email": form.email, "password_hash": password_hash, "salt": salt})
    create_document("profiles", Profile(user_id=user_id, full_name=form.name, email=form.email).model_dump())
    if form.email in [e.lower() for e in settings.ADMIN_EMAILS]:
        grant_role(user_id, "admin")
    logger.info("Account created for %s", form.email)
    return {"id": user_id, "email": form.email, "full_name": form.name}


def sign_in(email: str, password: str) -> str:
    user = get_db()["users"].find_one({"email": (email or "").strip().lower()})
    if not user:
        raise InvalidCredentials("Invalid login credentials")
    candidate, _ = hash_password(password or "", user["salt"])
    if not hmac.compare_digest(candidate, user["password_hash"]):
        raise InvalidCredentials("Invalid login credentials")
    token = secrets.token_urlsafe(32)
    create_document("auth_tokens", {"token": token, "user_id": str(user["_id"])})
    return token


def sign_out(token: str) -> None:
    get_db()["auth_tokens"].delete_one({"token": token})


def get_user_for_token(token: str) -> Optional[dict]:
    if not token:
        return None
    db = get_db()
    entry = db["auth_tokens"].find_one({"token": token})
    if not entry:
        return None
    user = db["users"].find_one({"_id": parse_object_id(entry["user_id"])})
    if not user:
        return None
    profile = db["profiles"].find_one({"user_id": entry["user_id"]}) or {}
    return {"id": str(user["_id"]), "email": user["email"], "full_name": profile.get("full_name")}


def has_role(user_id: str, role: str) -> bool:
    return get_db()["user_roles"].find_one({"user_id": user_id, "role": role}) is not None


def grant_role(user_id: str, role: str) -> dict:
    record = UserRole(user_id=user_id, role=role).model_dump()
    if not get_db()["user_roles"].find_one(record):
        create_document("user_roles", record)
    return record


# ------------- FastAPI dependencies -------------

def bearer_token(authorization: str = Header(default="")) -> str:
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def current_user(token: str = Depends(bearer_token)) -> Optional[dict]:
    return get_user_for_token(token)


def require_user(user: Optional[dict] = Depends(current_user)) -> dict:
    if not user:
        raise HTTPException(status_code=401, detail="Please sign in")
    return user


def require_admin(user: dict = Depends(require_user)) -> dict:
    if not has_role(user["id"], "admin"):
        raise HTTPException(status_code=403, detail="Unauthorized access")
    return user
