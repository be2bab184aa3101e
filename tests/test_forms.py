"""Tests for checkout, contact and signup form validation."""

import pytest

from forms import (
    CheckoutForm,
    ContactForm,
    FlatCheckoutForm,
    SignupForm,
    SplitCheckoutForm,
    validate_form,
)


@pytest.fixture
def flat_customer():
    return {
        "name": "Asha Verma",
        "phone": "9876543210",
        "email": "",
        "address": "12 MG Road, Indiranagar, Bengaluru 560001",
    }


class TestCheckoutCommonFields:
    def test_accepts_ten_digit_phone(self, valid_customer):
        form, errors = validate_form(SplitCheckoutForm, valid_customer)

        assert errors == {}
        assert form.phone == "9876543210"

    @pytest.mark.parametrize("phone", ["12345", "98765432101", "98765abcde", ""])
    def test_rejects_bad_phone(self, valid_customer, phone):
        valid_customer["phone"] = phone

        form, errors = validate_form(SplitCheckoutForm, valid_customer)

        assert form is None
        assert errors == {"phone": "Please enter a valid 10-digit phone number"}

    def test_name_required(self, valid_customer):
        valid_customer["name"] = "   "

        _, errors = validate_form(SplitCheckoutForm, valid_customer)

        assert errors["name"] == "Name is required"

    def test_name_too_long(self, valid_customer):
        valid_customer["name"] = "A" * 101

        _, errors = validate_form(SplitCheckoutForm, valid_customer)

        assert errors["name"] == "Name is too long"

    def test_email_is_optional(self, valid_customer):
        valid_customer["email"] = ""

        form, errors = validate_form(SplitCheckoutForm, valid_customer)

        assert errors == {}
        assert form.email == ""

    def test_invalid_email_rejected(self, valid_customer):
        valid_customer["email"] = "not-an-email"

        _, errors = validate_form(SplitCheckoutForm, valid_customer)

        assert errors == {"email": "Please enter a valid email"}

    def test_overlong_email_rejected(self, valid_customer):
        valid_customer["email"] = "a" * 250 + "@example.com"

        _, errors = validate_form(SplitCheckoutForm, valid_customer)

        assert "email" in errors

    def test_input_is_trimmed(self, valid_customer):
        valid_customer["phone"] = " 9876543210 "

        form, errors = validate_form(SplitCheckoutForm, valid_customer)

        assert errors == {}
        assert form.phone == "9876543210"

    def test_reports_every_failing_field(self):
        _, errors = validate_form(SplitCheckoutForm, {})

        assert set(errors) == {"name", "phone", "street", "city", "district", "state", "pin"}


class TestSplitAddress:
    def test_accepts_six_digit_pin(self, valid_customer):
        form, errors = validate_form(SplitCheckoutForm, valid_customer)

        assert errors == {}
        assert form.pin == "560001"

    @pytest.mark.parametrize("pin", ["12345", "1234567", "56000a"])
    def test_rejects_bad_pin(self, valid_customer, pin):
        valid_customer["pin"] = pin

        _, errors = validate_form(SplitCheckoutForm, valid_customer)

        assert errors == {"pin": "Please enter a valid 6-digit PIN code"}

    def test_street_length(self, valid_customer):
        valid_customer["street"] = "12 A"

        _, errors = validate_form(SplitCheckoutForm, valid_customer)

        assert errors == {"street": "Please enter your street address"}

    @pytest.mark.parametrize("field", ["city", "district", "state"])
    def test_region_fields_need_two_characters(self, valid_customer, field):
        valid_customer[field] = "X"

        _, errors = validate_form(SplitCheckoutForm, valid_customer)

        assert errors == {field: f"{field.capitalize()} is required"}

    def test_region_fields_max_length(self, valid_customer):
        valid_customer["city"] = "B" * 51

        _, errors = validate_form(SplitCheckoutForm, valid_customer)

        assert errors == {"city": "City is too long"}

    def test_flat_address(self, valid_customer):
        form, _ = validate_form(SplitCheckoutForm, valid_customer)

        assert form.flat_address() == (
            "12 MG Road, Indiranagar, Bengaluru, Bengaluru Urban, Karnataka - 560001"
        )

    def test_base_form_has_no_address_shape(self):
        with pytest.raises(TypeError):
            CheckoutForm(name="Asha Verma", phone="9876543210")


class TestFlatAddress:
    def test_accepts_complete_address(self, flat_customer):
        form, errors = validate_form(FlatCheckoutForm, flat_customer)

        assert errors == {}
        assert form.flat_address() == flat_customer["address"]

    def test_short_address(self, flat_customer):
        flat_customer["address"] = "Bengaluru"

        _, errors = validate_form(FlatCheckoutForm, flat_customer)

        assert errors == {"address": "Please enter a complete address"}

    def test_long_address(self, flat_customer):
        flat_customer["address"] = "x" * 501

        _, errors = validate_form(FlatCheckoutForm, flat_customer)

        assert errors == {"address": "Address is too long"}


class TestContactForm:
    def test_valid_message(self):
        form, errors = validate_form(
            ContactForm,
            {"name": "Ravi", "email": "ravi@example.com", "message": "Do you ship to Pune?"},
        )

        assert errors == {}
        assert form.name == "Ravi"

    def test_email_required(self):
        _, errors = validate_form(ContactForm, {"name": "Ravi", "message": "Do you ship to Pune?"})

        assert errors == {"email": "Please enter a valid email"}

    def test_short_message(self):
        _, errors = validate_form(ContactForm, {"name": "Ravi", "email": "ravi@example.com", "message": "Hi"})

        assert errors == {"message": "Message must be at least 10 characters"}


class TestSignupForm:
    def _data(self, **overrides):
        data = {
            "name": "Meera",
            "email": "Meera@Example.com",
            "password": "secret123",
            "confirm_password": "secret123",
            "accepted_terms": True,
        }
        data.update(overrides)
        return data

    def test_valid_signup_lowercases_email(self):
        form, errors = validate_form(SignupForm, self._data())

        assert errors == {}
        assert form.email == "meera@example.com"

    def test_short_password(self):
        _, errors = validate_form(SignupForm, self._data(password="abc", confirm_password="abc"))

        assert errors == {"password": "Password must be at least 6 characters"}

    def test_passwords_must_match(self):
        _, errors = validate_form(SignupForm, self._data(confirm_password="different"))

        assert errors == {"confirm_password": "Passwords don't match"}

    def test_terms_must_be_accepted(self):
        _, errors = validate_form(SignupForm, self._data(accepted_terms=False))

        assert errors == {"accepted_terms": "Please accept the terms and conditions"}
