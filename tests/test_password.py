"""Tests for server-side password hashing."""

from mindtoss.gateway import hash_password as client_digest
from mindtoss_api.auth.password import hash_password, verify_password


def test_verify_matching_digest():
    digest = client_digest("hunter2")
    hashed = hash_password(digest)
    assert hashed != digest
    assert verify_password(digest, hashed)


def test_verify_wrong_digest():
    hashed = hash_password(client_digest("hunter2"))
    assert not verify_password(client_digest("hunter3"), hashed)


def test_hashes_are_salted():
    digest = client_digest("hunter2")
    assert hash_password(digest) != hash_password(digest)


def test_account_without_password():
    assert not verify_password(client_digest("hunter2"), None)


def test_client_digest_is_sha256_hex():
    assert client_digest("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
