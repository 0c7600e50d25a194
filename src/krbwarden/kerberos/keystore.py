"""
krbwarden Key Store

Long-term keys read from a key table, exchanged for fresh tickets.
"""

from __future__ import annotations

from typing import Any, Optional

import attrs
from returns.result import Failure, Result, Success

from krbwarden.core.exceptions import (
    CredentialFetchFailure,
    Krb5CallError,
    KrbWardenError,
    LookupFailure,
    StoreOpenFailure,
)
from krbwarden.kerberos.credential import Credential
from krbwarden.kerberos.file_store import FileBackedStore
from krbwarden.kerberos.identity import Identity


@attrs.define
class KeyStore(FileBackedStore):
    """
    Key table opened at construction.

    If the key table cannot be resolved the failure is reported once and
    every later operation returns Failure without calling the library.

    Example:
        keystore = KeyStore(context, config)
        result = keystore.get_credential()
        if isinstance(result, Success):
            credential = result.unwrap()
    """

    _keytab: Any = attrs.field(default=None, init=False, repr=False)

    def __attrs_post_init__(self) -> None:
        if not self._init_path():
            return

        try:
            self._keytab = self.context.backend.kt_resolve(
                self.context.native, self.resolved_path
            )
        except Krb5CallError as e:
            self.context.report_error(e, f"opening key table {self.resolved_path}")
            self._keytab = None

    def _default_name(self) -> str:
        return self.context.backend.kt_default_name(self.context.native)

    def _config_name(self) -> str:
        return self.config.keytab_path

    @property
    def is_open(self) -> bool:
        return self._keytab is not None

    def _not_open(self) -> Failure:
        return Failure(StoreOpenFailure(f"key table {self.resolved_path!r} is not open"))

    def get_identity(self) -> Result[Identity, KrbWardenError]:
        """
        Principal of the first key table entry.

        Returns:
            Success(Identity), or Failure if the key table is empty or
            unreadable (the native error has been reported)
        """
        if self._keytab is None:
            return self._not_open()

        ctx = self.context
        backend = ctx.backend

        try:
            cursor = backend.kt_start_seq_get(ctx.native, self._keytab)
        except Krb5CallError as e:
            ctx.report_error(e, f"reading key table {self.resolved_path}")
            return Failure(LookupFailure(str(e), e.code))

        principal: Optional[Any] = None
        failure: Optional[KrbWardenError] = None
        try:
            principal = backend.kt_next_principal(ctx.native, self._keytab, cursor)
        except Krb5CallError as e:
            ctx.report_error(e, f"reading first entry of {self.resolved_path}")
            failure = LookupFailure(str(e), e.code)
        finally:
            try:
                backend.kt_end_seq_get(ctx.native, self._keytab, cursor)
            except Krb5CallError as e:
                ctx.report_error(e, "closing key table cursor")

        if failure is not None:
            return Failure(failure)

        return Identity.copy_from(ctx, principal)

    def get_credential(
        self, identity: Optional[Identity] = None
    ) -> Result[Credential, KrbWardenError]:
        """
        Exchange the long-term key for a fresh ticket.

        Args:
            identity: Principal from an earlier get_identity() call
                (default: read the key table again)

        Returns:
            Success(Credential) or Failure (reported)
        """
        if self._keytab is None:
            return self._not_open()

        if identity is None:
            identity_result = self.get_identity()
            if isinstance(identity_result, Failure):
                return identity_result
            identity = identity_result.unwrap()

        ctx = self.context

        try:
            creds = ctx.backend.get_init_creds_keytab(
                ctx.native, identity.native, self._keytab
            )
        except Krb5CallError as e:
            ctx.report_error(e, f"obtaining ticket for {identity}")
            return Failure(CredentialFetchFailure(str(e), e.code))

        self._logger.debug("keytab_ticket_obtained", principal=identity.name)
        return Success(Credential.from_native(ctx, creds))

    def close(self) -> None:
        """Release the key table handle (idempotent)."""
        if self._keytab is None:
            return

        keytab, self._keytab = self._keytab, None
        try:
            self.context.backend.kt_close(self.context.native, keytab)
        except Krb5CallError as e:
            self.context.report_error(e, "closing key table")
