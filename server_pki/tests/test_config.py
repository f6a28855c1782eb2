"""Tests for configuration and settings-file loading."""

from pathlib import Path

import pytest
from cryptography.x509 import oid

from server_pki.lib.config import (
    CONFIG_TEMPLATE,
    DistinguishedName,
    PKIConfig,
    RemoteTarget,
    build_dn_from_config,
    load_settings,
)
from server_pki.lib.exceptions import EXIT_CONFIG, ConfigError

FILLED = """\
CA_DIR=/media/ops/CA/ca
CA_FILE_NAME=my-own-root-certificate
DOMAIN=example
TLD=org
SUBDOMAINS=mail, ldap
ADMIN_USER=admin
CERT_ORG=Example Ltd
CERT_COUNTRY=GB
CERT_STATE=London
CERT_CITY="London"   # quoted
CERT_DAYS=365
"""


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    path = tmp_path / "server-pki.conf"
    path.write_text(FILLED)
    return path


class TestDistinguishedName:
    """Tests for DistinguishedName.to_x509_name."""

    def test_common_name_first_then_fixed_order(self) -> None:
        name = DistinguishedName(
            common_name="mail.example.org",
            email="ca@example.org",
            organization="Example Ltd",
            country="GB",
        ).to_x509_name()

        oids = [attr.oid for attr in name]
        assert oids == [
            oid.NameOID.COMMON_NAME,
            oid.NameOID.COUNTRY_NAME,
            oid.NameOID.ORGANIZATION_NAME,
            oid.NameOID.EMAIL_ADDRESS,
        ]

    def test_only_common_name(self) -> None:
        name = DistinguishedName(common_name="example.org").to_x509_name()
        assert len(name) == 1

    def test_build_from_config(self) -> None:
        config = PKIConfig(server_fqdn="example.org", organization="Example Ltd")
        dn = build_dn_from_config(config, "*.example.org")

        assert dn.common_name == "*.example.org"
        assert dn.organization == "Example Ltd"
        assert dn.email == "ca@example.org"


def test_remote_target_destination() -> None:
    assert RemoteTarget(host="example.org", principal="admin").destination == "admin@example.org"


class TestLoadSettings:
    """Tests for load_settings."""

    def test_missing_file_writes_template(self, tmp_path: Path) -> None:
        path = tmp_path / "conf" / "server-pki.conf"

        with pytest.raises(ConfigError, match="template") as exc_info:
            load_settings(path)

        assert exc_info.value.exit_code == EXIT_CONFIG
        assert path.read_text() == CONFIG_TEMPLATE

    def test_template_is_rejected_until_filled(self, tmp_path: Path) -> None:
        path = tmp_path / "server-pki.conf"
        path.write_text(CONFIG_TEMPLATE)

        with pytest.raises(ConfigError) as exc_info:
            load_settings(path)

        message = str(exc_info.value)
        for key in ("CA_DIR", "DOMAIN", "TLD", "ADMIN_USER", "CERT_ORG"):
            assert key in message
        assert "CERT_DAYS" not in message

    def test_loads_config(self, settings_path: Path) -> None:
        settings = load_settings(settings_path)
        config = settings.config

        assert config.store_root == Path("/media/ops/CA/ca")
        assert config.ca_common_name == "Example Ltd Root CA"
        assert config.server_fqdn == "example.org"
        assert config.locality == "London"
        assert config.leaf_validity_days == 365
        assert settings.target == RemoteTarget(host="example.org", principal="admin")

    def test_default_batch_order(self, settings_path: Path) -> None:
        settings = load_settings(settings_path)

        assert settings.common_names == (
            "*.example.org",
            "example.org",
            "mail.example.org",
            "ldap.example.org",
        )

    def test_overrides_take_precedence(self, settings_path: Path, tmp_path: Path) -> None:
        settings = load_settings(settings_path, work_dir=tmp_path, privileged_owner=None)

        assert settings.config.work_dir == tmp_path
        assert settings.config.privileged_owner is None

    def test_invalid_days(self, settings_path: Path) -> None:
        settings_path.write_text(FILLED.replace("CERT_DAYS=365", "CERT_DAYS=ten years"))

        with pytest.raises(ConfigError, match="CERT_DAYS"):
            load_settings(settings_path)

    def test_quoted_value_keeps_hash(self, settings_path: Path) -> None:
        settings_path.write_text(FILLED.replace("CERT_ORG=Example Ltd", 'CERT_ORG="ACME #1 Ltd"'))

        config = load_settings(settings_path).config

        assert config.organization == "ACME #1 Ltd"
        assert config.ca_common_name == "ACME #1 Ltd Root CA"

    def test_unquoted_inline_comment_is_dropped(self, settings_path: Path) -> None:
        settings_path.write_text(FILLED.replace("CERT_DAYS=365", "CERT_DAYS=365  # one year"))

        assert load_settings(settings_path).config.leaf_validity_days == 365

    def test_missing_file_without_template(self, tmp_path: Path) -> None:
        path = tmp_path / "server-pki.conf"

        with pytest.raises(ConfigError, match="no settings file"):
            load_settings(path, write_template=False)

        assert not path.exists()
