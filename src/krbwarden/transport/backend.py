"""
krbwarden Kerberos Backend Protocol

The narrow slice of the Kerberos library that the credential lifecycle
needs. Handles returned by a backend are opaque: callers only pass them
back into the same backend.

Every method raises Krb5CallError when the underlying call fails.
"""

from __future__ import annotations

from typing import Any, Protocol

from krbwarden.core.types import TicketTimes


# Service component of the ticket-granting service principal
TGS_NAME = "krbtgt"


def tgs_principal_name(realm: str) -> str:
    """Name of the ticket-granting service for ``realm``."""
    return f"{TGS_NAME}/{realm}@{realm}"


class Krb5Backend(Protocol):
    """Kerberos library operations used by the stores."""

    # -- context -------------------------------------------------------------

    def init_context(self) -> Any:
        """Create a library context."""
        ...

    def timeofday(self, context: Any) -> int:
        """Current time in the library's time base."""
        ...

    # -- principals ----------------------------------------------------------

    def copy_principal(self, context: Any, principal: Any) -> Any:
        """Deep-copy a principal."""
        ...

    def parse_name(self, context: Any, name: str) -> Any:
        """Parse ``name@REALM`` into a principal."""
        ...

    def unparse_name(self, context: Any, principal: Any) -> str:
        """Render a principal as ``name@REALM``."""
        ...

    # -- key table -----------------------------------------------------------

    def kt_default_name(self, context: Any) -> str:
        ...

    def kt_resolve(self, context: Any, name: str) -> Any:
        ...

    def kt_start_seq_get(self, context: Any, keytab: Any) -> Any:
        """Open a sequential cursor over key table entries."""
        ...

    def kt_next_principal(self, context: Any, keytab: Any, cursor: Any) -> Any:
        """Principal of the next key table entry."""
        ...

    def kt_end_seq_get(self, context: Any, keytab: Any, cursor: Any) -> None:
        ...

    def kt_close(self, context: Any, keytab: Any) -> None:
        ...

    def get_init_creds_keytab(self, context: Any, client: Any, keytab: Any) -> Any:
        """Exchange the long-term key of ``client`` for a fresh ticket."""
        ...

    # -- credential cache ----------------------------------------------------

    def cc_default_name(self, context: Any) -> str:
        ...

    def cc_resolve(self, context: Any, name: str) -> Any:
        ...

    def cc_initialize(self, context: Any, ccache: Any, principal: Any) -> None:
        """Empty the cache and set its default principal."""
        ...

    def cc_store_cred(self, context: Any, ccache: Any, creds: Any) -> None:
        ...

    def cc_get_principal(self, context: Any, ccache: Any) -> Any:
        ...

    def cc_retrieve_cred(
        self, context: Any, ccache: Any, client: Any, server: Any
    ) -> Any:
        """Find the cached ticket issued to ``client`` for ``server``."""
        ...

    def get_renewed_creds(self, context: Any, client: Any, ccache: Any) -> Any:
        """Renew the ticket-granting ticket held in ``ccache``."""
        ...

    def cc_close(self, context: Any, ccache: Any) -> None:
        ...

    def cc_destroy(self, context: Any, ccache: Any) -> None:
        ...

    # -- credentials ---------------------------------------------------------

    def creds_times(self, creds: Any) -> TicketTimes:
        """Validity window of a native credential."""
        ...
