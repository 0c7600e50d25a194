"""
krbwarden Native Kerberos Backend

Krb5Backend implementation over the ``krb5`` package (pykrb5), a thin
binding of MIT Kerberos / Heimdal libkrb5.

Requirements:
- krb5 Python package (pip install krbwarden[native])
- MIT Kerberos or Heimdal libraries installed
- Valid krb5.conf configuration
"""

from __future__ import annotations

import time
from typing import Any, Callable, TypeVar

import structlog

from krbwarden.core.exceptions import Krb5CallError
from krbwarden.core.types import TicketTimes

logger = structlog.get_logger()

T = TypeVar("T")

# Check if pykrb5 is available
try:
    import krb5
    _krb5_available = True
    _krb5_error = None
except ImportError as e:
    krb5 = None  # type: ignore
    _krb5_available = False
    _krb5_error = str(e)
    logger.warning("krb5_not_available", message="Install krb5 package for native Kerberos support")
except OSError as e:
    # Package installed but libkrb5 could not be loaded
    krb5 = None  # type: ignore
    _krb5_available = False
    _krb5_error = str(e)
    logger.warning("krb5_library_error", message=str(e))


def krb5_available() -> bool:
    """Check if the native Kerberos binding is available."""
    return _krb5_available


def _encode(value: str) -> bytes:
    return value.encode("utf-8")


def _decode(value: bytes) -> str:
    return value.decode("utf-8")


class NativeKrb5Backend:
    """
    Kerberos backend calling libkrb5 through pykrb5.

    Each method maps onto one libkrb5 call; krb5.Krb5Error is translated
    into Krb5CallError carrying the call name, the native error code and
    the library's own message.

    Example:
        backend = NativeKrb5Backend()
        ctx = backend.init_context()
        keytab = backend.kt_resolve(ctx, backend.kt_default_name(ctx))
    """

    def __init__(self) -> None:
        if not _krb5_available:
            raise ImportError(
                f"krb5 library not available ({_krb5_error}). "
                "Install with: pip install krbwarden[native]"
            )

    @staticmethod
    def _call(name: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except krb5.Krb5Error as e:
            raise Krb5CallError(name, e.errno, e.message) from e

    # -- context -------------------------------------------------------------

    def init_context(self) -> Any:
        return self._call("krb5_init_context", krb5.init_context)

    def timeofday(self, context: Any) -> int:
        # pykrb5 does not bind krb5_timeofday; without a KDC time offset
        # configured the library clock is the system clock.
        return int(time.time())

    # -- principals ----------------------------------------------------------

    def copy_principal(self, context: Any, principal: Any) -> Any:
        return self._call("krb5_copy_principal", krb5.copy_principal, context, principal)

    def parse_name(self, context: Any, name: str) -> Any:
        return self._call("krb5_parse_name", krb5.parse_name_flags, context, _encode(name))

    def unparse_name(self, context: Any, principal: Any) -> str:
        return _decode(
            self._call("krb5_unparse_name", krb5.unparse_name_flags, context, principal)
        )

    # -- key table -----------------------------------------------------------

    def kt_default_name(self, context: Any) -> str:
        return _decode(self._call("krb5_kt_default_name", krb5.kt_default_name, context))

    def kt_resolve(self, context: Any, name: str) -> Any:
        return self._call("krb5_kt_resolve", krb5.kt_resolve, context, _encode(name))

    def kt_start_seq_get(self, context: Any, keytab: Any) -> Any:
        return self._call("krb5_kt_start_seq_get", krb5.kt_start_seq_get, context, keytab)

    def kt_next_principal(self, context: Any, keytab: Any, cursor: Any) -> Any:
        entry = self._call("krb5_kt_next_entry", krb5.kt_next_entry, context, keytab, cursor)
        return entry.principal

    def kt_end_seq_get(self, context: Any, keytab: Any, cursor: Any) -> None:
        self._call("krb5_kt_end_seq_get", krb5.kt_end_seq_get, context, keytab, cursor)

    def kt_close(self, context: Any, keytab: Any) -> None:
        # pykrb5 closes the key table when the KeyTab object is released
        logger.debug("krb5_kt_close", keytab=repr(keytab))

    def get_init_creds_keytab(self, context: Any, client: Any, keytab: Any) -> Any:
        opt = self._call("krb5_get_init_creds_opt_alloc", krb5.get_init_creds_opt_alloc, context)
        return self._call(
            "krb5_get_init_creds_keytab",
            krb5.get_init_creds_keytab,
            context,
            client,
            opt,
            keytab=keytab,
        )

    # -- credential cache ----------------------------------------------------

    def cc_default_name(self, context: Any) -> str:
        return _decode(self._call("krb5_cc_default_name", krb5.cc_default_name, context))

    def cc_resolve(self, context: Any, name: str) -> Any:
        return self._call("krb5_cc_resolve", krb5.cc_resolve, context, _encode(name))

    def cc_initialize(self, context: Any, ccache: Any, principal: Any) -> None:
        self._call("krb5_cc_initialize", krb5.cc_initialize, context, ccache, principal)

    def cc_store_cred(self, context: Any, ccache: Any, creds: Any) -> None:
        self._call("krb5_cc_store_cred", krb5.cc_store_cred, context, ccache, creds)

    def cc_get_principal(self, context: Any, ccache: Any) -> Any:
        return self._call("krb5_cc_get_principal", krb5.cc_get_principal, context, ccache)

    def cc_retrieve_cred(
        self, context: Any, ccache: Any, client: Any, server: Any
    ) -> Any:
        match = krb5.Creds(context)
        match.client = client
        match.server = server
        return self._call(
            "krb5_cc_retrieve_cred",
            krb5.cc_retrieve_cred,
            context,
            ccache,
            0,
            match,
        )

    def get_renewed_creds(self, context: Any, client: Any, ccache: Any) -> Any:
        return self._call(
            "krb5_get_renewed_creds", krb5.get_renewed_creds, context, client, ccache
        )

    def cc_close(self, context: Any, ccache: Any) -> None:
        # pykrb5 closes the cache when the CCache object is released
        logger.debug("krb5_cc_close", ccache=repr(ccache))

    def cc_destroy(self, context: Any, ccache: Any) -> None:
        self._call("krb5_cc_destroy", krb5.cc_destroy, context, ccache)

    # -- credentials ---------------------------------------------------------

    def creds_times(self, creds: Any) -> TicketTimes:
        times = creds.times
        return TicketTimes(
            start_time=int(times.starttime or times.authtime),
            end_time=int(times.endtime),
            renew_till=int(times.renew_till),
        )
