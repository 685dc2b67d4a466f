"""
Shared pytest fixtures for autosign tests.

This module provides common fixtures including:
- Shared secret, journal and config file locations under tmp_path
- External policy executable factory for multiplexer tests
- CSR factory producing PEM requests with a challengePassword
"""

import logging
import os
import stat
from typing import Any, Callable, Dict, Optional

import pytest
import yaml
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import AttributeOID, NameOID

from autosign.config.provider import FileConfigProvider

TEST_SECRET = "test-secret-" + "x" * 64


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep AUTOSIGN_* variables from the host out of the tests."""
    for name in list(os.environ):
        if name.startswith("AUTOSIGN_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo logging configuration applied by the CLI during a test."""
    root = logging.getLogger()
    package = logging.getLogger("autosign")
    saved = (
        list(root.handlers), root.level,
        list(package.handlers), package.level, package.propagate,
    )
    yield
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    package.handlers[:] = saved[2]
    package.setLevel(saved[3])
    package.propagate = saved[4]


@pytest.fixture
def secret():
    """Shared HS512 secret."""
    return TEST_SECRET


@pytest.fixture
def journal_path(tmp_path):
    """Location of a fresh journal file."""
    return str(tmp_path / "journal" / "autosign.journal")


@pytest.fixture
def write_config(tmp_path) -> Callable[[Dict[str, Any]], str]:
    """Factory writing a YAML config file and returning its path."""

    def _write(settings: Dict[str, Any], name: str = "autosign.conf") -> str:
        path = tmp_path / name
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(settings, f)
        return str(path)

    return _write


@pytest.fixture
def config_file(write_config, secret, journal_path):
    """Config file enabling only the jwt_token validator."""
    return write_config(
        {
            "general": {"loglevel": "DEBUG", "validation_order": ["jwt_token"]},
            "jwt_token": {"secret": secret, "journalfile": journal_path, "validity": 3600},
        }
    )


@pytest.fixture
def provider(config_file):
    """Config provider reading config_file."""
    return FileConfigProvider(config_file)


@pytest.fixture
def empty_provider(tmp_path):
    """Config provider with defaults only."""
    return FileConfigProvider(str(tmp_path / "missing.conf"))


@pytest.fixture
def make_executable(tmp_path) -> Callable[..., str]:
    """Factory creating shell scripts usable as external policy executables."""

    def _make(name: str, body: str, executable: bool = True) -> str:
        path = tmp_path / "bin" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n" + body + "\n")
        mode = stat.S_IRUSR | stat.S_IWUSR
        if executable:
            mode |= stat.S_IXUSR
        os.chmod(path, mode)
        return str(path)

    return _make


@pytest.fixture
def make_csr() -> Callable[..., bytes]:
    """Factory producing PEM encoded signing requests."""

    def _make(
        common_name: str = "foo.example.com",
        challenge_password: Optional[str] = None,
        encoding: serialization.Encoding = serialization.Encoding.PEM,
    ) -> bytes:
        key = ec.generate_private_key(ec.SECP256R1())
        builder = x509.CertificateSigningRequestBuilder().subject_name(
            x509.Name(
                [
                    x509.NameAttribute(NameOID.COMMON_NAME, common_name),
                    x509.NameAttribute(NameOID.ORGANIZATION_NAME, "ACME Corp."),
                    x509.NameAttribute(NameOID.COUNTRY_NAME, "US"),
                ]
            )
        )
        if challenge_password is not None:
            builder = builder.add_attribute(
                AttributeOID.CHALLENGE_PASSWORD, challenge_password.encode("utf-8")
            )
        request = builder.sign(key, hashes.SHA256())
        return request.public_bytes(encoding)

    return _make
