"""Unit tests for auth/passwords.py -- bcrypt hash/verify contract."""

from __future__ import annotations

import pytest


@pytest.mark.parametrize("plain", ["secret1", "correct horse battery staple", "pässwörd-ünïcode", " "])
def test_hash_then_verify_round_trip(hasher, plain):
    digest = hasher.hash(plain)
    assert hasher.verify(plain, digest) is True


def test_verify_rejects_other_password(hasher):
    digest = hasher.hash("secret1")
    assert hasher.verify("secret2", digest) is False
    assert hasher.verify("Secret1", digest) is False
    assert hasher.verify("", digest) is False


def test_hash_is_salted(hasher):
    """Same plaintext twice yields two different digests, both valid."""
    first = hasher.hash("secret1")
    second = hasher.hash("secret1")
    assert first != second
    assert hasher.verify("secret1", first)
    assert hasher.verify("secret1", second)


def test_digest_is_not_plaintext(hasher):
    digest = hasher.hash("secret1")
    assert "secret1" not in digest
    assert digest.startswith("$2")


def test_cost_factor_is_applied(hasher):
    assert hasher.hash("secret1").startswith("$2b$04$")


def test_malformed_digest_verifies_false(hasher):
    assert hasher.verify("secret1", "not-a-bcrypt-hash") is False


def test_shared_72_byte_prefix_does_not_verify(hasher):
    """bcrypt ignores bytes past 72, so longer passwords must never match."""
    digest = hasher.hash("x" * 72)
    assert hasher.verify("x" * 72 + "two", digest) is False
    assert hasher.verify("x" * 72, digest) is True


def test_password_over_72_bytes_is_refused(hasher):
    with pytest.raises(ValueError):
        hasher.hash("x" * 72 + "one")
    assert hasher.accepts("x" * 72) is True
    assert hasher.accepts("x" * 73) is False


def test_limit_counts_utf8_bytes(hasher):
    assert hasher.accepts("\u00e9" * 36) is True
    assert hasher.accepts("\u00e9" * 37) is False


def test_verify_dummy_is_always_false(hasher):
    assert hasher.verify_dummy("studytube_timing_dummy") is False
    assert hasher.verify_dummy("anything") is False
