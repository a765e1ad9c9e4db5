"""Unit tests for auth/store.py -- UserStore persistence and fault translation.

Covers:
- create_user() assigns a hex id and round-trips through get_by_id()
- the unique index on email raises DuplicateKeyFault
- password is only loaded with include_password=True
- malformed ids raise InvalidIdentifierFault, unknown ids return None
- missing/invalid fields raise SchemaValidationFault
"""

from __future__ import annotations

import re

import pytest

from auth.models import User
from core.errors import DuplicateKeyFault, InvalidIdentifierFault, SchemaValidationFault

DIGEST = "$2b$04$abcdefghijklmnopqrstuuJ0123456789abcdefghijklmnopqrstu"


def _user(**overrides) -> User:
    fields = {"name": "Ann", "email": "ann@x.com", "password": DIGEST}
    fields.update(overrides)
    return User(**fields)


def test_store_pings(store):
    store.ping()


def test_create_assigns_id(store):
    created = store.create_user(_user())
    assert re.fullmatch(r"[0-9a-f]{24}", created.id)
    assert created.is_admin is False
    assert created.created_at


def test_create_then_get_by_id(store):
    created = store.create_user(_user(name="  Ann  "))
    fetched = store.get_by_id(created.id)
    assert fetched is not None
    assert fetched.id == created.id
    assert fetched.name == "Ann"
    assert fetched.email == "ann@x.com"


def test_get_by_id_omits_password(store):
    created = store.create_user(_user())
    assert store.get_by_id(created.id).password is None


def test_get_by_email_projection(store):
    store.create_user(_user())
    assert store.get_by_email("ann@x.com").password is None
    assert store.get_by_email("ann@x.com", include_password=True).password == DIGEST


def test_get_by_email_missing(store):
    assert store.get_by_email("nobody@x.com") is None


def test_duplicate_email_raises(store):
    store.create_user(_user())
    with pytest.raises(DuplicateKeyFault) as exc_info:
        store.create_user(_user(name="Other Ann"))
    assert exc_info.value.field == "email"
    assert exc_info.value.value == "ann@x.com"


def test_is_admin_persisted(store):
    created = store.create_user(_user(is_admin=True))
    assert store.get_by_id(created.id).is_admin is True


@pytest.mark.parametrize("bad_id", ["abc", "0123456789ABCDEF01234567", "", "0123456789abcdef0123456z"])
def test_malformed_id_raises(store, bad_id):
    with pytest.raises(InvalidIdentifierFault) as exc_info:
        store.get_by_id(bad_id)
    assert exc_info.value.field == "_id"
    assert exc_info.value.value == bad_id


def test_unknown_id_returns_none(store):
    assert store.get_by_id("ffffffffffffffffffffffff") is None


def test_schema_validation_collects_every_field(store):
    with pytest.raises(SchemaValidationFault) as exc_info:
        store.create_user(User(name=" ", email="not-an-email", password=""))
    assert exc_info.value.errors == {
        "name": "Name is required",
        "email": "Please provide a valid email",
        "password": "Password is required",
    }


def test_schema_validation_missing_email(store):
    with pytest.raises(SchemaValidationFault) as exc_info:
        store.create_user(_user(email=""))
    assert exc_info.value.errors == {"email": "Email is required"}
