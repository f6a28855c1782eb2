"""Test fixtures for server_pki tests."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from server_pki.lib.ca_manager import CAManager
from server_pki.lib.config import PKIConfig, RemoteTarget
from server_pki.lib.pki_backend import CryptographyBackend

PASSPHRASE = b"correct horse battery staple"


@pytest.fixture
def pki_config(tmp_path: Path) -> PKIConfig:
    """Return test CA configuration rooted in a temporary directory."""
    return PKIConfig(
        store_root=tmp_path / "ca",
        ca_file_name="test-root",
        ca_common_name="Test Root CA",
        server_fqdn="example.org",
        organization="Test Org",
        country="GB",
        state="London",
        locality="London",
        leaf_validity_days=30,
        root_validity_days=3650,
        key_size=2048,
        work_dir=tmp_path / "work",
        installed_certs_dir=tmp_path / "etc" / "ssl" / "certs",
        installed_keys_dir=tmp_path / "etc" / "ssl" / "private",
        privileged_owner=None,
    )


@pytest.fixture
def passphrase() -> bytes:
    """Return the root key passphrase used throughout the tests."""
    return PASSPHRASE


@pytest.fixture
def backend() -> CryptographyBackend:
    return CryptographyBackend()


@pytest.fixture
def ca_manager(pki_config: PKIConfig, backend: CryptographyBackend) -> CAManager:
    """Return a manager over an empty store."""
    return CAManager(pki_config, backend=backend)


@pytest.fixture
def ready_manager(ca_manager: CAManager, passphrase: bytes) -> CAManager:
    """Return a manager whose store holds a root certificate."""
    ca_manager.bootstrap(lambda _question: True, lambda: passphrase)
    return ca_manager


@pytest.fixture
def remote_target() -> RemoteTarget:
    return RemoteTarget(host="example.org", principal="admin")


@pytest.fixture
def mock_transport() -> MagicMock:
    """Return a transport whose pushes succeed."""
    return MagicMock()
