"""
krbwarden Credential Cache

Persistent home of the active ticket, read by every Kerberos client in
the process through KRB5CCNAME.
"""

from __future__ import annotations

import os
from typing import Any, Optional, Tuple

import attrs
from returns.result import Failure, Result, Success

from krbwarden.core.exceptions import (
    CredentialStoreFailure,
    Krb5CallError,
    KrbWardenError,
    LookupFailure,
    RenewalFailure,
    StoreOpenFailure,
)
from krbwarden.core.types import ProgramMode
from krbwarden.kerberos.credential import Credential
from krbwarden.kerberos.file_store import FileBackedStore
from krbwarden.kerberos.identity import Identity
from krbwarden.transport.backend import tgs_principal_name

# Environment variable read by the Kerberos library to locate the cache
CCACHE_ENV_VAR = "KRB5CCNAME"


@attrs.define
class CredentialCache(FileBackedStore):
    """
    Credential cache opened at construction.

    Teardown policy:
    - MANAGED processes destroy the cache so no stale ticket is left
      behind.
    - INTERACTIVE processes only close it; the ticket stays available to
      later runs like a normal login session cache.
    """

    _ccache: Any = attrs.field(default=None, init=False, repr=False)

    def __attrs_post_init__(self) -> None:
        if not self._init_path():
            return

        os.environ[CCACHE_ENV_VAR] = self.resolved_path

        try:
            self._ccache = self.context.backend.cc_resolve(
                self.context.native, self.resolved_path
            )
        except Krb5CallError as e:
            self.context.report_error(e, f"opening credential cache {self.resolved_path}")
            self._ccache = None

    def _default_name(self) -> str:
        return self.context.backend.cc_default_name(self.context.native)

    def _config_name(self) -> str:
        return self.config.ccache_path

    @property
    def is_open(self) -> bool:
        return self._ccache is not None

    def _not_open(self) -> Failure:
        return Failure(
            StoreOpenFailure(f"credential cache {self.resolved_path!r} is not open")
        )

    # =========================================================================
    # WRITE
    # =========================================================================

    def create(
        self, identity: Optional[Identity], credential: Optional[Credential]
    ) -> bool:
        """
        Reinitialize the cache for ``identity`` and store ``credential``.

        Returns:
            True only if both the initialization and the store succeed
        """
        return isinstance(self.write(identity, credential), Success)

    def write(
        self, identity: Optional[Identity], credential: Optional[Credential]
    ) -> Result[Identity, KrbWardenError]:
        """
        Result-returning form of create().

        Missing arguments fail before any native call is made.
        """
        if identity is None or credential is None:
            return Failure(CredentialStoreFailure("identity and credential are required"))
        if self._ccache is None:
            return self._not_open()

        ctx = self.context
        try:
            ctx.backend.cc_initialize(ctx.native, self._ccache, identity.native)
        except Krb5CallError as e:
            ctx.report_error(e, f"initializing credential cache for {identity}")
            return Failure(CredentialStoreFailure(str(e), e.code))

        try:
            ctx.backend.cc_store_cred(ctx.native, self._ccache, credential.native)
        except Krb5CallError as e:
            ctx.report_error(e, f"storing ticket for {identity}")
            return Failure(CredentialStoreFailure(str(e), e.code))

        self._logger.debug(
            "ccache_written",
            principal=identity.name,
            path=self.resolved_path,
        )
        return Success(identity)

    def refresh(self) -> bool:
        """
        Renew the cached ticket and write the renewed one back.

        Returns:
            False if the cache holds no ticket or the KDC refused the
            renewal (reported); the caller decides whether to reissue
        """
        result = self.renew()
        if isinstance(result, Failure):
            return False

        identity, credential = result.unwrap()
        return self.create(identity, credential)

    def renew(self) -> Result[Tuple[Identity, Credential], KrbWardenError]:
        """
        Request a renewed ticket for the cached principal.

        Returns:
            Success((Identity, Credential)) or Failure
        """
        identity_result = self.get_identity()
        credential_result = self.get_credential()
        if isinstance(identity_result, Failure):
            return identity_result
        if isinstance(credential_result, Failure):
            return credential_result

        identity = identity_result.unwrap()
        ctx = self.context

        try:
            creds = ctx.backend.get_renewed_creds(ctx.native, identity.native, self._ccache)
        except Krb5CallError as e:
            ctx.report_error(e, f"renewing ticket for {identity}")
            return Failure(RenewalFailure(str(e), e.code))

        return Success((identity, Credential.from_native(ctx, creds)))

    # =========================================================================
    # READ
    # =========================================================================

    def get_identity(self) -> Result[Identity, KrbWardenError]:
        """Default principal stored in the cache."""
        if self._ccache is None:
            return self._not_open()

        ctx = self.context
        try:
            principal = ctx.backend.cc_get_principal(ctx.native, self._ccache)
        except Krb5CallError as e:
            ctx.report_error(e, f"reading principal of {self.resolved_path}")
            return Failure(LookupFailure(str(e), e.code))

        return Identity.copy_from(ctx, principal)

    def server_identity(self, realm: str) -> Result[Identity, KrbWardenError]:
        """Ticket-granting service principal of ``realm``."""
        ctx = self.context
        try:
            principal = ctx.backend.parse_name(ctx.native, tgs_principal_name(realm))
        except Krb5CallError as e:
            ctx.report_error(e, f"building service principal for {realm}")
            return Failure(LookupFailure(str(e), e.code))

        return Identity.copy_from(ctx, principal)

    def get_credential(self) -> Result[Credential, KrbWardenError]:
        """
        Ticket-granting ticket of the cached principal.

        Returns:
            Success(Credential) or Failure (reported)
        """
        client_result = self.get_identity()
        if isinstance(client_result, Failure):
            return client_result

        client = client_result.unwrap()
        server_result = self.server_identity(client.realm)
        if isinstance(server_result, Failure):
            return server_result

        server = server_result.unwrap()
        ctx = self.context
        try:
            creds = ctx.backend.cc_retrieve_cred(
                ctx.native, self._ccache, client.native, server.native
            )
        except Krb5CallError as e:
            ctx.report_error(e, f"looking up {server} for {client}")
            return Failure(LookupFailure(str(e), e.code))

        return Success(Credential.from_native(ctx, creds))

    # =========================================================================
    # TEARDOWN
    # =========================================================================

    def close(self) -> None:
        """Destroy (MANAGED) or close (INTERACTIVE) the cache, once."""
        if self._ccache is None:
            return

        ccache, self._ccache = self._ccache, None
        ctx = self.context
        try:
            if self.program_mode is not ProgramMode.INTERACTIVE:
                ctx.backend.cc_destroy(ctx.native, ccache)
                self._logger.info("ccache_destroyed", path=self.resolved_path)
            else:
                ctx.backend.cc_close(ctx.native, ccache)
        except Krb5CallError as e:
            ctx.report_error(e, "closing or destroying credential cache")
