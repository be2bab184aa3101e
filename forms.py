"""
Customer-facing form validation.

Each form trims its input and checks rules in order; the first violated rule
for a field produces that field's message. ``validate_form`` turns a pydantic
``ValidationError`` into a ``{field: message}`` mapping.
"""
import re
from abc import abstractmethod
from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

PHONE_RE = re.compile(r"^[0-9]{10}$")
PIN_RE = re.compile(r"^[0-9]{6}$")

F = TypeVar("F", bound=BaseModel)


def _fail(message: str):
    raise PydanticCustomError("form", message)


def _length(value: str, low: int, high: int, short_msg: str, long_msg: str) -> str:
    if len(value) < low:
        _fail(short_msg)
    if len(value) > high:
        _fail(long_msg)
    return value


def _email(value: str, required: bool) -> str:
    if not value:
        if required:
            _fail("Please enter a valid email")
        return value
    try:
        validate_email(value)
    except (PydanticCustomError, ValueError):
        _fail("Please enter a valid email")
    if len(value) > 255:
        _fail("Email is too long")
    return value


class Form(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


def validate_form(form_cls: Type[F], data: dict) -> tuple[Optional[F], dict[str, str]]:
    try:
        return form_cls.model_validate(data or {}), {}
    except ValidationError as exc:
        errors: dict[str, str] = {}
        for err in exc.errors():
            field = str(err["loc"][0]) if err["loc"] else "__all__"
            errors.setdefault(field, err["msg"])
        return None, errors


# -----------------------------
# Checkout
# -----------------------------

class CheckoutForm(Form):
    name: str = ""
    phone: str = ""
    email: str = ""

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return _length(v, 1, 100, "Name is required", "Name is too long")

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if not PHONE_RE.match(v):
            _fail("Please enter a valid 10-digit phone number")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return _email(v, required=False)

    @abstractmethod
    def flat_address(self) -> str:
        """The address as one line, as stored on the order."""


class FlatCheckoutForm(CheckoutForm):
    address: str = ""

    @field_validator("address")
    @classmethod
    def check_address(cls, v):
        return _length(v, 10, 500, "Please enter a complete address", "Address is too long")

    def flat_address(self):
        return self.address


class SplitCheckoutForm(CheckoutForm):
    street: str = ""
    city: str = ""
    district: str = ""
    state: str = ""
    pin: str = ""

    @field_validator("street")
    @classmethod
    def check_street(cls, v):
        return _length(v, 5, 200, "Please enter your street address", "Street address is too long")

    @field_validator("city", "district", "state")
    @classmethod
    def check_region(cls, v, info):
        label = info.field_name.capitalize()
        return _length(v, 2, 50, f"{label} is required", f"{label} is too long")

    @field_validator("pin")
    @classmethod
    def check_pin(cls, v):
        if not PIN_RE.match(v):
            _fail("Please enter a valid 6-digit PIN code")
        return v

    def flat_address(self):
        return f"{self.street}, {self.city}, {self.district}, {self.state} - {self.pin}"


CHECKOUT_FORMS = {
    "flat": FlatCheckoutForm,
    "split": SplitCheckoutForm,
}


# -----------------------------
# Contact & signup
# -----------------------------

class ContactForm(Form):
    name: str = ""
    email: str = ""
    message: str = ""

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return _length(v, 1, 100, "Name is required", "Name is too long")

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return _email(v, required=True)

    @field_validator("message")
    @classmethod
    def check_message(cls, v):
        return _length(v, 10, 1000, "Message must be at least 10 characters", "Message is too long")


class SignupForm(Form):
    name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    accepted_terms: bool = False

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return _length(v, 1, 100, "Name is required", "Name is too long")

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return _email(v, required=True).lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        if len(v) < 6:
            _fail("Password must be at least 6 characters")
        return v

    @field_validator("confirm_password")
    @classmethod
    def check_confirm(cls, v, info):
        if "password" in info.data and v != info.data["password"]:
            _fail("Passwords don't match")
        return v

    @field_validator("accepted_terms")
    @classmethod
    def check_terms(cls, v):
        if not v:
            _fail("Please accept the terms and conditions")
        return v
