from datetime import date

import pytest
from pydantic import ValidationError

from app.schemas.auth import GoogleStartIn, SignupIn
from app.schemas.base import ErrorEnvelope


def test_camel_case_aliases():
    body = SignupIn.model_validate({"email": "a@x.com", "name": " Ann ", "dateOfBirth": "1990-01-02"})
    assert body.date_of_birth == date(1990, 1, 2)
    assert body.name == "Ann"
    assert "dateOfBirth" in body.model_dump(by_alias=True)


def test_snake_case_names_also_accepted():
    body = SignupIn.model_validate({"email": "a@x.com", "name": "Ann", "date_of_birth": ""})
    assert body.date_of_birth is None


def test_google_start_defaults_to_popup():
    assert GoogleStartIn().mode == "popup"
    assert GoogleStartIn.model_validate({"mode": "redirect"}).mode == "redirect"
    with pytest.raises(ValidationError):
        GoogleStartIn.model_validate({"mode": "iframe"})


def test_error_envelope_shape():
    assert ErrorEnvelope.of("USER_EXISTS", "User already exists") == {
        "error": {"code": "USER_EXISTS", "message": "User already exists"}
    }
