"""PKI toolchain capability interface and the cryptography-based backend."""

from pathlib import Path
from typing import Protocol

from cryptography import x509
from cryptography.hazmat.primitives import hashes

from .ca_store import CAStore
from .cert_utils import (
    certificate_fingerprint,
    deserialize_certificate,
    deserialize_csr,
    deserialize_private_key,
    generate_private_key,
    generate_serial_number,
    get_common_name,
    serialize_certificate,
    serialize_csr,
    serialize_private_key,
)
from .certificate_builder import CertificateBuilder
from .exceptions import BackendError
from .file_modes import write_private_bytes
from .signing_policy import SigningPolicy


class PKIBackend(Protocol):
    """Primitives the engine needs from a PKI toolchain.

    Every method raises BackendError when the primitive fails.
    """

    def generate_key(self, key_path: Path, key_size: int, passphrase: bytes | None = None) -> None:
        """Write a new RSA key, encrypted when a passphrase is given."""
        ...

    def generate_self_signed_cert(
        self, key_path: Path, cert_path: Path, policy: SigningPolicy, passphrase: bytes
    ) -> None:
        """Self-sign a CA certificate for the policy's subject."""
        ...

    def generate_csr(self, key_path: Path, csr_path: Path, policy: SigningPolicy) -> None:
        """Write a CSR for the policy's subject, bound to an unencrypted key."""
        ...

    def sign_csr(
        self,
        store: CAStore,
        policy: SigningPolicy,
        csr_path: Path,
        cert_path: Path,
        passphrase: bytes,
    ) -> str:
        """Sign a CSR with the root key, consuming the store's next serial.

        Returns:
            Serial of the issued certificate
        """
        ...

    def fingerprint(self, cert_path: Path) -> str:
        """SHA-1 fingerprint of a PEM certificate as AA:BB:... hex."""
        ...


class CryptographyBackend:
    """PKI backend built on the ``cryptography`` package.

    Keeps the CA store in the same format OpenSSL's ``ca`` command uses, so a
    store can be moved between backends.
    """

    def generate_key(self, key_path: Path, key_size: int, passphrase: bytes | None = None) -> None:
        key = generate_private_key(key_size)
        try:
            write_private_bytes(key_path, serialize_private_key(key, passphrase))
        except OSError as e:
            raise BackendError(f"cannot write key {key_path}: {e}") from e

    def generate_self_signed_cert(
        self, key_path: Path, cert_path: Path, policy: SigningPolicy, passphrase: bytes
    ) -> None:
        try:
            key = deserialize_private_key(key_path.read_bytes(), passphrase)
            cert = CertificateBuilder.build_root_ca(
                subject_dn=policy.subject(),
                private_key=key,
                validity_days=policy.default_days,
                serial_number=generate_serial_number(),
            )
            cert_path.write_bytes(serialize_certificate(cert))
        except (OSError, TypeError, ValueError) as e:
            raise BackendError(f"cannot self-sign root certificate: {e}") from e

    def generate_csr(self, key_path: Path, csr_path: Path, policy: SigningPolicy) -> None:
        try:
            key = deserialize_private_key(key_path.read_bytes())
            csr = (
                x509.CertificateSigningRequestBuilder()
                .subject_name(policy.subject().to_x509_name())
                .sign(key, hashes.SHA256())
            )
            csr_path.write_bytes(serialize_csr(csr))
        except (OSError, TypeError, ValueError) as e:
            raise BackendError(f"cannot create CSR for {policy.common_name}: {e}") from e

    def sign_csr(
        self,
        store: CAStore,
        policy: SigningPolicy,
        csr_path: Path,
        cert_path: Path,
        passphrase: bytes,
    ) -> str:
        try:
            csr = deserialize_csr(csr_path.read_bytes())
            if not get_common_name(csr.subject):
                raise ValueError("request policy requires a commonName")
            root_key = deserialize_private_key(store.root_key_path.read_bytes(), passphrase)
            root_cert = deserialize_certificate(store.root_cert_path.read_bytes())

            serial = store.read_serial()
            cert = CertificateBuilder.build_leaf_certificate(
                csr=csr,
                issuer_cert=root_cert,
                issuer_key=root_key,
                validity_days=policy.default_days,
                serial_number=int(serial, 16),
            )
            cert_path.write_bytes(serialize_certificate(cert))
        except (OSError, TypeError, ValueError) as e:
            raise BackendError(f"CA refused to sign {csr_path.name}: {e}") from e

        try:
            store.record_issuance(serial, cert)
        except OSError as e:
            raise BackendError(f"cannot record serial {serial} in the ledger: {e}") from e
        return serial

    def fingerprint(self, cert_path: Path) -> str:
        try:
            return certificate_fingerprint(deserialize_certificate(cert_path.read_bytes()))
        except (OSError, ValueError) as e:
            raise BackendError(f"cannot read certificate {cert_path}: {e}") from e
