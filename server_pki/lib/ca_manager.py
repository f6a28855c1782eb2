"""CA manager: root bootstrap and leaf certificate issuance."""

from collections.abc import Callable

from .ca_store import CAStore
from .config import PKIConfig
from .exceptions import (
    EXIT_CSR_FAILED,
    EXIT_ROOT_DECLINED,
    EXIT_ROOT_GENERATION_FAILED,
    EXIT_SIGNING_FAILED,
    BackendError,
    FatalBootstrapError,
    FatalPKIError,
    FatalSigningError,
    KeyPermissionError,
)
from .file_modes import (
    change_owner,
    make_world_readable,
    purge_local,
    restrict_to_owner,
)
from .logging_config import LOGGER, certificate_context
from .models import BootstrapResult, CertificateStatus, IssuedCertificate, StoreStatus
from .pki_backend import CryptographyBackend, PKIBackend
from .signing_policy import artifact_name, build_signing_policy

ConfirmCallback = Callable[[str], bool]
PassphraseProvider = Callable[[], bytes]


class CAManager:
    """Certificate Authority manager for bootstrap and issuance.

    Issuance is strictly sequential: every signature consumes the store's
    single serial counter.
    """

    def __init__(
        self,
        config: PKIConfig,
        backend: PKIBackend | None = None,
        store: CAStore | None = None,
    ) -> None:
        """Initialize CA manager.

        Args:
            config: Immutable CA configuration
            backend: PKI toolchain, defaults to the cryptography backend
            store: CA store, defaults to one rooted at ``config.store_root``
        """
        self.config = config
        self.backend = backend or CryptographyBackend()
        self.store = store or CAStore(
            config.store_root, config.ca_file_name, first_serial=config.first_serial
        )

    def ensure_initialized(self) -> StoreStatus:
        """Create the store's ledger, serial counter and directories if absent."""
        if self.store.ensure_initialized():
            LOGGER.info("CA store initialized at %s", self.store.root)
        return self.store.status()

    def ensure_root_certificate(
        self, confirm: ConfirmCallback, passphrase_provider: PassphraseProvider
    ) -> BootstrapResult:
        """Make sure a self-signed root certificate exists.

        Args:
            confirm: Decides whether a missing root may be generated
            passphrase_provider: Supplies the root key passphrase when generating

        Returns:
            BootstrapResult with root paths and whether the root was generated

        Raises:
            FatalBootstrapError: If generation is declined or fails
            KeyPermissionError: If the root key cannot be locked down
        """
        store = self.store
        status = store.status()
        if status is StoreStatus.UNINITIALIZED:
            status = self.ensure_initialized()

        if status is StoreStatus.ROOT_READY:
            LOGGER.info("Using root certificate from %s", store.root_cert_path)
            return BootstrapResult(
                status=status,
                root_cert_path=store.root_cert_path,
                root_key_path=store.root_key_path,
            )

        LOGGER.info("No root certificate found in %s", store.root_cert_path)
        if not confirm("Generate a root certificate now?"):
            raise FatalBootstrapError(
                "no root certificate and generation declined; cannot issue certificates",
                EXIT_ROOT_DECLINED,
            )

        passphrase = passphrase_provider()
        if not passphrase:
            raise FatalBootstrapError(
                "root key requires a non-empty passphrase", EXIT_ROOT_GENERATION_FAILED
            )

        if store.root_key_path.exists():
            if not store.root_key_is_encrypted():
                raise FatalBootstrapError(
                    f"existing root key {store.root_key_path} is not encrypted",
                    EXIT_ROOT_GENERATION_FAILED,
                )
            LOGGER.info("Reusing encrypted root key %s", store.root_key_path)
        else:
            LOGGER.info("Generating encrypted root key...")
            try:
                self.backend.generate_key(
                    store.root_key_path, self.config.key_size, passphrase=passphrase
                )
            except (BackendError, OSError) as e:
                raise FatalBootstrapError(
                    f"root key generation failed: {e}", EXIT_ROOT_GENERATION_FAILED
                ) from e
            LOGGER.info("Adjusting ownership and permissions for root key file...")
            restrict_to_owner(store.root_key_path)
            change_owner(store.root_key_path, self.config.privileged_owner)

        root_policy = build_signing_policy(
            self.config.ca_common_name,
            self.config,
            validity_days=self.config.root_validity_days,
        )
        try:
            self.backend.generate_self_signed_cert(
                store.root_key_path, store.root_cert_path, root_policy, passphrase
            )
        except (BackendError, OSError) as e:
            raise FatalBootstrapError(
                f"root certificate generation failed: {e}", EXIT_ROOT_GENERATION_FAILED
            ) from e
        make_world_readable(store.root_cert_path)
        LOGGER.info("Generated root certificate %s", store.root_cert_path)

        return BootstrapResult(
            status=store.status(),
            root_cert_path=store.root_cert_path,
            root_key_path=store.root_key_path,
            root_generated=True,
        )

    def bootstrap(
        self, confirm: ConfirmCallback, passphrase_provider: PassphraseProvider
    ) -> BootstrapResult:
        """Initialize the store and ensure the root certificate, in that order."""
        self.ensure_initialized()
        return self.ensure_root_certificate(confirm, passphrase_provider)

    def issue(self, common_name: str, passphrase: bytes) -> IssuedCertificate:
        """Generate key and CSR for a common name and have the root CA sign it.

        Artifacts land in the configured working directory under a
        filesystem-safe name; the certificate subject keeps the CN verbatim.

        Args:
            common_name: Subject CN, e.g. ``mail.example.org`` or ``*.example.org``
            passphrase: Root key passphrase, held in memory only

        Returns:
            IssuedCertificate in SIGNED state

        Raises:
            FatalBootstrapError: If the store has no root certificate
            FatalSigningError: If the CSR cannot be produced or signing fails
            KeyPermissionError: If file-mode invariants cannot be enforced
        """
        if self.store.status() is not StoreStatus.ROOT_READY:
            raise FatalBootstrapError(
                f"CA store {self.store.root} has no root certificate", EXIT_ROOT_DECLINED
            )

        name = artifact_name(common_name)
        work_dir = self.config.work_dir
        key_path = work_dir / f"{name}.key"
        csr_path = work_dir / f"{name}.csr"
        cert_path = work_dir / f"{name}.pem"
        issued = IssuedCertificate(common_name=common_name, cert_path=cert_path, key_path=key_path)

        LOGGER.info(
            "Generating and signing SSL certificate for %s ...",
            common_name,
            extra=certificate_context(common_name),
        )
        policy = build_signing_policy(common_name, self.config)

        try:
            purge_local(key_path, csr_path, cert_path)
            work_dir.mkdir(parents=True, exist_ok=True)

            try:
                self.backend.generate_key(key_path, self.config.key_size)
            except (BackendError, OSError) as e:
                raise FatalSigningError(
                    f"key generation for {common_name} failed: {e}", EXIT_CSR_FAILED
                ) from e
            restrict_to_owner(key_path)

            try:
                self.backend.generate_csr(key_path, csr_path, policy)
            except (BackendError, OSError) as e:
                raise FatalSigningError(
                    f"Failed to generate certificate signing request for {common_name}: {e}",
                    EXIT_CSR_FAILED,
                ) from e
            if not csr_path.exists():
                raise FatalSigningError(
                    f"Failed to generate certificate signing request for {common_name}",
                    EXIT_CSR_FAILED,
                )

            try:
                issued.serial = self.backend.sign_csr(
                    self.store, policy, csr_path, cert_path, passphrase
                )
            except (BackendError, OSError) as e:
                raise FatalSigningError(
                    f"CA failed to sign certificate for {common_name}: {e}", EXIT_SIGNING_FAILED
                ) from e

            purge_local(csr_path)
            make_world_readable(cert_path)
            restrict_to_owner(key_path)
        except FatalPKIError:
            issued.status = CertificateStatus.ABORTED
            self._discard(key_path, csr_path, cert_path)
            raise

        issued.status = CertificateStatus.SIGNED
        try:
            issued.fingerprint = self.backend.fingerprint(cert_path)
        except BackendError as e:
            LOGGER.warning("Cannot fingerprint %s: %s", cert_path, e)
        LOGGER.info(
            "Signed %s with serial %s",
            common_name,
            issued.serial,
            extra=certificate_context(common_name, issued.serial),
        )
        return issued

    @staticmethod
    def _discard(*paths) -> None:
        try:
            purge_local(*paths)
        except KeyPermissionError as e:
            LOGGER.error("Could not remove artifacts of aborted issuance: %s", e)
