"""Tests for certificate builder module."""

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from server_pki.lib.cert_utils import generate_private_key
from server_pki.lib.certificate_builder import CertificateBuilder
from server_pki.lib.config import DistinguishedName


@pytest.fixture(scope="module")
def root_key() -> RSAPrivateKey:
    return generate_private_key()


@pytest.fixture(scope="module")
def root_cert(root_key: RSAPrivateKey) -> x509.Certificate:
    return CertificateBuilder.build_root_ca(
        subject_dn=DistinguishedName(common_name="Test Root CA", country="GB"),
        private_key=root_key,
        validity_days=3650,
        serial_number=42,
    )


def _csr(common_name: str) -> x509.CertificateSigningRequest:
    key = generate_private_key()
    return (
        x509.CertificateSigningRequestBuilder()
        .subject_name(
            DistinguishedName(
                common_name=common_name, country="GB", email="ca@example.org"
            ).to_x509_name()
        )
        .sign(key, hashes.SHA256())
    )


class TestBuildRootCA:
    """Tests for CertificateBuilder.build_root_ca."""

    def test_root_is_self_issued(self, root_cert: x509.Certificate) -> None:
        assert root_cert.issuer == root_cert.subject
        root_cert.verify_directly_issued_by(root_cert)

    def test_root_basic_constraints_critical(self, root_cert: x509.Certificate) -> None:
        ext = root_cert.extensions.get_extension_for_class(x509.BasicConstraints)
        assert ext.critical is True
        assert ext.value.ca is True

    def test_root_uses_given_serial(self, root_cert: x509.Certificate) -> None:
        assert root_cert.serial_number == 42


class TestBuildLeafCertificate:
    """Tests for CertificateBuilder.build_leaf_certificate."""

    def test_leaf_chains_to_root(
        self, root_cert: x509.Certificate, root_key: RSAPrivateKey
    ) -> None:
        leaf = CertificateBuilder.build_leaf_certificate(
            csr=_csr("mail.example.org"),
            issuer_cert=root_cert,
            issuer_key=root_key,
            validity_days=30,
            serial_number=1,
        )

        leaf.verify_directly_issued_by(root_cert)
        assert leaf.issuer == root_cert.subject
        assert leaf.serial_number == 1

    def test_leaf_keeps_wildcard_subject(
        self, root_cert: x509.Certificate, root_key: RSAPrivateKey
    ) -> None:
        csr = _csr("*.example.org")
        leaf = CertificateBuilder.build_leaf_certificate(
            csr=csr,
            issuer_cert=root_cert,
            issuer_key=root_key,
            validity_days=30,
            serial_number=2,
        )

        assert leaf.subject == csr.subject

    def test_leaf_extensions(self, root_cert: x509.Certificate, root_key: RSAPrivateKey) -> None:
        leaf = CertificateBuilder.build_leaf_certificate(
            csr=_csr("mail.example.org"),
            issuer_cert=root_cert,
            issuer_key=root_key,
            validity_days=30,
            serial_number=3,
        )

        assert leaf.extensions.get_extension_for_class(x509.BasicConstraints).value.ca is False
        eku = leaf.extensions.get_extension_for_class(x509.ExtendedKeyUsage).value
        assert list(eku) == [x509.ExtendedKeyUsageOID.SERVER_AUTH]
        aki = leaf.extensions.get_extension_for_class(x509.AuthorityKeyIdentifier).value
        ski = root_cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier).value
        assert aki.key_identifier == ski.digest

    def test_validity_period(self, root_cert: x509.Certificate, root_key: RSAPrivateKey) -> None:
        leaf = CertificateBuilder.build_leaf_certificate(
            csr=_csr("mail.example.org"),
            issuer_cert=root_cert,
            issuer_key=root_key,
            validity_days=30,
            serial_number=4,
        )

        assert (leaf.not_valid_after_utc - leaf.not_valid_before_utc).days == 30
