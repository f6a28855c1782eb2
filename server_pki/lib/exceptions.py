"""Exception hierarchy for CA bootstrap, issuance and delivery."""

EXIT_CONFIG = 1
EXIT_SIGNING_FAILED = 10
EXIT_CSR_FAILED = 90
EXIT_KEY_PERMISSIONS = 95
EXIT_ROOT_GENERATION_FAILED = 96
EXIT_ROOT_DECLINED = 97
EXIT_ROOT_PUBLISH_FAILED = 98


class PKIError(Exception):
    """Base class for all engine errors."""


class ConfigError(PKIError):
    """Settings file missing or incomplete."""

    exit_code = EXIT_CONFIG


class BackendError(PKIError):
    """A PKI toolchain primitive failed."""


class TransferError(PKIError):
    """Secure delivery of artifacts to the remote target failed.

    Recoverable: the affected common name is skipped and the run continues.
    """


class FatalPKIError(PKIError):
    """Error that halts the whole run.

    Args:
        message: Operator-facing description
        exit_code: Process exit status for the command-line scripts
    """

    def __init__(self, message: str, exit_code: int) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class FatalBootstrapError(FatalPKIError):
    """Root CA missing and generation declined, or root generation failed."""


class FatalSigningError(FatalPKIError):
    """CSR could not be produced or the CA refused to sign."""


class KeyPermissionError(FatalPKIError, PermissionError):
    """File-mode or ownership invariant on key material could not be enforced."""

    def __init__(self, message: str, exit_code: int = EXIT_KEY_PERMISSIONS) -> None:
        super().__init__(message, exit_code)
