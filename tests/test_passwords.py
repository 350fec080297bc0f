"""Unit tests for auth/passwords.py."""

from auth.passwords import PasswordHasher


def test_verify_accepts_original_password(hasher: PasswordHasher) -> None:
    digest = hasher.hash("Aa1!aaaa")
    assert hasher.verify("Aa1!aaaa", digest)


def test_verify_rejects_wrong_password(hasher: PasswordHasher) -> None:
    digest = hasher.hash("Aa1!aaaa")
    assert not hasher.verify("Aa1!aaab", digest)
    assert not hasher.verify("", digest)


def test_hash_is_salted(hasher: PasswordHasher) -> None:
    assert hasher.hash("Aa1!aaaa") != hasher.hash("Aa1!aaaa")


def test_hash_never_contains_plaintext(hasher: PasswordHasher) -> None:
    assert "Aa1!aaaa" not in hasher.hash("Aa1!aaaa")


def test_work_factor_is_encoded_in_digest() -> None:
    digest = PasswordHasher(rounds=5).hash("Aa1!aaaa")
    assert digest.startswith("$2b$05$")


def test_malformed_digest_is_a_mismatch(hasher: PasswordHasher) -> None:
    assert hasher.verify("Aa1!aaaa", "not-a-bcrypt-hash") is False


def test_verify_dummy_returns_nothing(hasher: PasswordHasher) -> None:
    assert hasher.verify_dummy("whatever") is None
