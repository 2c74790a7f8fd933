"""Pytest configuration and shared fixtures."""

import logging
import os
from pathlib import Path

import pytest
import structlog

from platform_setup.config import SetupSettings
from platform_setup.credentials import CredentialStore, ValueResolver
from tests.fakes import FakePrompter


@pytest.fixture(autouse=True)
def fast_kdf(monkeypatch):
    """Lower PBKDF2 iterations so encrypted caches are quick to test."""
    monkeypatch.setattr("platform_setup.credentials.cipher.KDF_ITERATIONS", 1_000)


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging configuration done by CLI invocations."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's PLATFORM_SETUP_* variables out of tests."""
    for var in list(os.environ):
        if var.startswith("PLATFORM_SETUP_"):
            monkeypatch.delenv(var)


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    """Cache file location inside a temporary workspace."""
    return tmp_path / "platform-workspace" / ".credentials.cache"


@pytest.fixture
def store(cache_path: Path) -> CredentialStore:
    """Empty plaintext cache."""
    return CredentialStore.open(cache_path, prompter=FakePrompter(confirms=[False]))


@pytest.fixture
def settings(tmp_path: Path) -> SetupSettings:
    """Settings pointing at a temporary workspace."""
    return SetupSettings(workspace_root=tmp_path / "platform-workspace")


@pytest.fixture
def resolver(store: CredentialStore) -> ValueResolver:
    """Resolver that fails on any unexpected prompt."""
    return ValueResolver(store, FakePrompter())


@pytest.fixture
def legacy_blob():
    """Build cache content the way ``openssl enc -aes-256-cbc -salt -pbkdf2`` does."""
    from cryptography.hazmat.primitives import hashes, padding
    from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
    from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

    def build(passphrase: str, plaintext: str, salt: bytes = b"12345678") -> bytes:
        kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=48, salt=salt, iterations=10_000)
        material = kdf.derive(passphrase.encode())

        padder = padding.PKCS7(128).padder()
        padded = padder.update(plaintext.encode()) + padder.finalize()

        encryptor = Cipher(algorithms.AES(material[:32]), modes.CBC(material[32:])).encryptor()
        return b"Salted__" + salt + encryptor.update(padded) + encryptor.finalize()

    return build
