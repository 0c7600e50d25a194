"""
krbwarden Exception Types

Error taxonomy for the credential lifecycle.

Native failures surface as Krb5CallError from the backend. The stores
catch them at the point of failure, report them through the shared
AuthContext and hand a Failure/False to the caller; the category
classes below name what went wrong and are used as the ``category``
log field.
"""

from typing import Optional


class KrbWardenError(Exception):
    """Base exception for all krbwarden errors."""

    category = "error"

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class Krb5CallError(KrbWardenError):
    """
    A native Kerberos library call failed.

    Attributes:
        call: Name of the native call (e.g. "krb5_cc_initialize")
        code: Native krb5_error_code
        message: Library-provided human-readable message
    """

    category = "native_call"

    def __init__(self, call: str, code: int, message: str = "") -> None:
        if not message:
            message = f"Kerberos error {code}"
        super().__init__(message, code)
        self.call = call

    def __str__(self) -> str:
        return f"{self.call}: {self.message} ({self.code})"


class ContextInitFailure(KrbWardenError):
    """
    The library context could not be created.

    Fatal to the whole service: neither store can be opened.
    """

    category = "context_init"


class StoreOpenFailure(KrbWardenError):
    """
    A key table or credential cache could not be resolved.

    Fatal to that store only; it returns empty results afterwards.
    """

    category = "store_open"


class IdentityCopyFailure(KrbWardenError):
    """A principal could not be copied out of a native structure."""

    category = "identity_copy"


class CredentialFetchFailure(KrbWardenError):
    """No credential could be obtained from the key table."""

    category = "credential_fetch"


class CredentialStoreFailure(KrbWardenError):
    """The cache could not be initialized or written."""

    category = "credential_store"


class RenewalFailure(KrbWardenError):
    """
    Ticket renewal was refused.

    Recoverable: the service falls back to a full reissue.
    """

    category = "renewal"


class LookupFailure(KrbWardenError):
    """Principal or credential not found in the cache."""

    category = "lookup"
