"""Tests for per-certificate signing policies."""

from dataclasses import replace

import pytest
from cryptography import x509

from server_pki.lib.config import PKIConfig
from server_pki.lib.signing_policy import artifact_name, build_signing_policy


class TestArtifactName:
    """Tests for artifact_name."""

    @pytest.mark.parametrize(
        ("common_name", "expected"),
        [
            ("*.example.com", "wildcard.example.com"),
            ("mail.example.org", "mail.example.org"),
            ("example.org", "example.org"),
        ],
    )
    def test_artifact_name(self, common_name: str, expected: str) -> None:
        assert artifact_name(common_name) == expected

    def test_only_leading_wildcard_is_rewritten(self) -> None:
        assert artifact_name("a.*.example.org") == "a.*.example.org"


class TestBuildSigningPolicy:
    """Tests for build_signing_policy."""

    def test_request_defaults_come_from_config(self, pki_config: PKIConfig) -> None:
        policy = build_signing_policy("mail.example.org", pki_config)

        assert policy.common_name == "mail.example.org"
        assert policy.request.organization == "Test Org"
        assert policy.request.country == "GB"
        assert policy.request.state == "London"
        assert policy.request.city == "London"
        assert policy.request.contact_email == "ca@example.org"
        assert policy.default_days == pki_config.leaf_validity_days

    def test_validity_override(self, pki_config: PKIConfig) -> None:
        policy = build_signing_policy("Root", pki_config, validity_days=3650)
        assert policy.default_days == 3650

    def test_subject_keeps_wildcard(self, pki_config: PKIConfig) -> None:
        name = build_signing_policy("*.example.org", pki_config).subject().to_x509_name()
        cn = name.get_attributes_for_oid(x509.NameOID.COMMON_NAME)[0].value
        assert cn == "*.example.org"

    def test_new_document_per_common_name(self, pki_config: PKIConfig) -> None:
        first = build_signing_policy("a.example.org", pki_config).render()
        second = build_signing_policy("b.example.org", pki_config).render()

        assert "commonName             = a.example.org" in first
        assert "commonName             = b.example.org" in second
        assert "a.example.org" not in second


class TestRender:
    """Tests for SigningPolicy.render."""

    def test_contains_all_sections(self, pki_config: PKIConfig) -> None:
        document = build_signing_policy("mail.example.org", pki_config).render()

        for section in (
            "[ ca ]",
            "[ CA_default ]",
            "[ my_policy ]",
            "[ req ]",
            "[ req_distinguished_name ]",
            "[ usr_cert ]",
            "[ v3_req ]",
            "[ v3_ca ]",
            "[ crl_ext ]",
        ):
            assert section in document

    def test_store_paths_and_validity(self, pki_config: PKIConfig) -> None:
        document = build_signing_policy("mail.example.org", pki_config).render()

        assert f"dir                    = {pki_config.store_root}" in document
        assert "database               = $dir/index.txt" in document
        assert "certificate            = $certs/test-root.pem" in document
        assert "private_key            = $dir/private/test-root.key" in document
        assert "default_days           = 30" in document

    def test_only_common_name_is_required(self, pki_config: PKIConfig) -> None:
        document = build_signing_policy("mail.example.org", pki_config).render()
        policy_section = document.split("[ my_policy ]")[1].split("[ req ]")[0]

        assert "commonName             = supplied" in policy_section
        assert policy_section.count("optional") == 6

    def test_empty_defaults_are_left_out(self, pki_config: PKIConfig) -> None:
        config = replace(pki_config, country="", state="")
        document = build_signing_policy("mail.example.org", config).render()
        dn_section = document.split("[ req_distinguished_name ]")[1].split("[ usr_cert ]")[0]

        assert "countryName" not in dn_section
        assert "stateOrProvinceName" not in dn_section
        assert "localityName           = London" in dn_section
        assert "emailAddress           = ca@example.org" in dn_section
