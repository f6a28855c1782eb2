"""Fingerprint audit of certificates installed on the server."""

from collections.abc import Iterable, Mapping
from pathlib import Path

from .exceptions import BackendError
from .logging_config import LOGGER
from .pki_backend import PKIBackend
from .signing_policy import artifact_name


class FingerprintReporter:
    """Reads installed certificates and reports their SHA-1 fingerprints.

    Diagnostic only: a missing or unreadable certificate yields "".
    """

    def __init__(self, backend: PKIBackend, certs_dir: Path) -> None:
        self.backend = backend
        self.certs_dir = certs_dir

    def certificate_path(self, common_name: str) -> Path:
        base = artifact_name(common_name).removesuffix(".pem")
        return self.certs_dir / f"{base}.pem"

    def fingerprint(self, common_name: str) -> str:
        cert_path = self.certificate_path(common_name)
        if not cert_path.is_file():
            return ""
        try:
            return self.backend.fingerprint(cert_path)
        except BackendError as e:
            LOGGER.warning("Cannot fingerprint %s: %s", cert_path, e)
            return ""

    def report(self, common_names: Iterable[str]) -> dict[str, str]:
        return {cn: self.fingerprint(cn) for cn in common_names}


def format_report(fingerprints: Mapping[str, str]) -> str:
    """One ``%-20s %s`` line per certificate."""
    return "\n".join(f"{name:<20} {value}".rstrip() for name, value in fingerprints.items())
