"""PKI backend that shells out to the ``openssl`` command-line tool."""

import subprocess
from pathlib import Path

from .ca_store import CAStore
from .exceptions import BackendError
from .signing_policy import SigningPolicy


class OpenSSLBackend:
    """Drives ``openssl genrsa``, ``req``, ``ca`` and ``x509``.

    ``openssl ca`` maintains the ledger and serial counter of the store
    itself. Passphrases are fed on stdin and never appear in argv.
    """

    def __init__(self, executable: str = "openssl") -> None:
        self.executable = executable

    def _run(self, args: list[str], passphrase: bytes | None = None) -> subprocess.CompletedProcess:
        cmd = [self.executable, *args]
        try:
            result = subprocess.run(
                cmd,
                input=passphrase + b"\n" if passphrase else None,
                capture_output=True,
                check=False,
            )
        except OSError as e:
            raise BackendError(f"cannot run {self.executable}: {e}") from e
        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace").strip()
            raise BackendError(
                f"openssl {args[0]} failed with exit status {result.returncode}: {stderr}"
            )
        return result

    @staticmethod
    def _write_policy(policy: SigningPolicy) -> Path:
        policy_path = policy.store_root / "signing-policy.cnf"
        policy_path.write_text(policy.render())
        return policy_path

    def generate_key(self, key_path: Path, key_size: int, passphrase: bytes | None = None) -> None:
        args = ["genrsa", "-out", str(key_path)]
        if passphrase:
            args[1:1] = ["-aes256", "-passout", "stdin"]
        args.append(str(key_size))
        self._run(args, passphrase)

    def generate_self_signed_cert(
        self, key_path: Path, cert_path: Path, policy: SigningPolicy, passphrase: bytes
    ) -> None:
        policy_path = self._write_policy(policy)
        self._run(
            [
                "req",
                "-config", str(policy_path),
                "-new",
                "-x509",
                "-days", str(policy.default_days),
                "-key", str(key_path),
                "-passin", "stdin",
                "-out", str(cert_path),
            ],
            passphrase,
        )

    def generate_csr(self, key_path: Path, csr_path: Path, policy: SigningPolicy) -> None:
        policy_path = self._write_policy(policy)
        self._run(
            [
                "req",
                "-config", str(policy_path),
                "-new",
                "-key", str(key_path),
                "-out", str(csr_path),
            ]
        )

    def sign_csr(
        self,
        store: CAStore,
        policy: SigningPolicy,
        csr_path: Path,
        cert_path: Path,
        passphrase: bytes,
    ) -> str:
        serial = store.read_serial()
        policy_path = self._write_policy(policy)
        self._run(
            [
                "ca",
                "-config", str(policy_path),
                "-batch",
                "-passin", "stdin",
                "-in", str(csr_path),
                "-out", str(cert_path),
            ],
            passphrase,
        )
        return serial

    def fingerprint(self, cert_path: Path) -> str:
        result = self._run(["x509", "-fingerprint", "-sha1", "-noout", "-in", str(cert_path)])
        # "SHA1 Fingerprint=AA:BB:..."
        return result.stdout.decode().strip().partition("=")[2]
