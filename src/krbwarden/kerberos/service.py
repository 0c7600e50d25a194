"""
krbwarden Credential Service

Keeps the credential cache of a long-running process supplied with a
usable ticket-granting ticket.

Renewal state machine (per refresh_credential call):

    cache file missing ──────────────────────────────► reissue
    cached ticket VALID ─────────────────────────────► nothing to do
    cached ticket NEEDS_RENEW ──► renew ──ok────────► done
                                     └──failed──────► reissue
    cached ticket NEEDS_REINIT ──────────────────────► reissue

Reissue means a fresh ticket from the key table written to the cache.
There is no internal timer: an external scheduler is expected to call
refresh_credential() periodically.
"""

from __future__ import annotations

import atexit
import threading
from typing import Any, Optional

import attrs
import structlog
from returns.result import Failure, Result, Success

from krbwarden.core.config import WardenConfig
from krbwarden.core.exceptions import ContextInitFailure, KrbWardenError
from krbwarden.core.types import CredentialState
from krbwarden.kerberos.ccache import CredentialCache
from krbwarden.kerberos.context import AuthContext
from krbwarden.kerberos.keystore import KeyStore
from krbwarden.transport.backend import Krb5Backend

logger = structlog.get_logger()


@attrs.define
class CredentialService:
    """
    Key table + credential cache behind a single lock.

    Thread-safe: create_credential and refresh_credential serialize all
    callers. The reissue fallback runs _create_credential_locked on the
    caller's stack, so the lock never has to be re-entered.

    Example:
        result = CredentialService.open(WardenConfig.from_env())
        if isinstance(result, Success):
            with result.unwrap() as service:
                service.refresh_credential()
    """

    context: AuthContext
    keystore: KeyStore
    ccache: CredentialCache
    _lock: threading.Lock = attrs.Factory(threading.Lock)
    _logger: Any = attrs.field(factory=lambda: structlog.get_logger(), alias="_logger")

    @classmethod
    def open(
        cls,
        config: Optional[WardenConfig] = None,
        backend: Optional[Krb5Backend] = None,
    ) -> Result[CredentialService, KrbWardenError]:
        """
        Create the library context and open both stores.

        Args:
            config: Paths and program mode (default: from environment)
            backend: Kerberos backend (default: native libkrb5)

        Returns:
            Success(CredentialService) or Failure(ContextInitFailure)
        """
        if config is None:
            config = WardenConfig.from_env()

        if backend is None:
            try:
                from krbwarden.transport.krb5_native import NativeKrb5Backend

                backend = NativeKrb5Backend()
            except ImportError as e:
                logger.error("krb5_backend_unavailable", error=str(e))
                return Failure(ContextInitFailure(str(e)))

        context_result = AuthContext.initialize(backend)
        if isinstance(context_result, Failure):
            return context_result

        context = context_result.unwrap()
        service = cls(
            context=context,
            keystore=KeyStore(context, config, path=config.keytab_override_path),
            ccache=CredentialCache(context, config, path=config.ccache_override_path),
        )

        logger.info(
            "credential_service_opened",
            keytab=service.keystore.resolved_path,
            ccache=service.ccache.resolved_path,
            mode=config.program_mode.name,
        )
        return Success(service)

    # =========================================================================
    # PUBLIC OPERATIONS
    # =========================================================================

    def create_credential(self) -> bool:
        """
        Obtain a fresh ticket from the key table and write it to the cache.

        Returns:
            True if the cache now holds the new ticket
        """
        with self._lock:
            return self._create_credential_locked()

    def refresh_credential(self) -> bool:
        """
        Bring the cached ticket up to date.

        Returns:
            True if the cache holds a valid ticket afterwards
        """
        with self._lock:
            if not self.ccache.exists():
                self._logger.info("ccache_missing", path=self.ccache.resolved_path)
                return self._create_credential_locked()

            credential_result = self.ccache.get_credential()
            if isinstance(credential_result, Failure):
                self._logger.error(
                    "ccache_unreadable",
                    path=self.ccache.resolved_path,
                    category=credential_result.failure().category,
                )
                return False

            state = credential_result.unwrap().state()

            if state is CredentialState.VALID:
                return True

            if state is CredentialState.NEEDS_RENEW:
                self._logger.info("ccache_renew", path=self.ccache.resolved_path)
                if self.ccache.refresh():
                    self._log_validity("ticket_renewed")
                    return True

                self._logger.info("ccache_renew_failed", fallback="reinit")
                return self._create_credential_locked()

            self._logger.info("ticket_renew_period_over", path=self.ccache.resolved_path)
            return self._create_credential_locked()

    def close(self) -> None:
        """Tear down both stores."""
        with self._lock:
            self.keystore.close()
            self.ccache.close()

    def __enter__(self) -> CredentialService:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # =========================================================================
    # INTERNALS (lock held)
    # =========================================================================

    def _create_credential_locked(self) -> bool:
        """Reissue path; caller must hold the lock."""
        self._logger.info("ccache_create", path=self.ccache.resolved_path)

        identity = self.keystore.get_identity().value_or(None)
        credential = None
        if identity is not None:
            credential = self.keystore.get_credential(identity).value_or(None)

        created = self.ccache.create(identity, credential)
        if created:
            self._log_validity("ticket_created")
        else:
            self._logger.error("ccache_create_failed", path=self.ccache.resolved_path)

        return created

    def _log_validity(self, event: str) -> None:
        """Log the validity window of the ticket now in the cache."""
        credential_result = self.ccache.get_credential()
        if isinstance(credential_result, Success):
            credential = credential_result.unwrap()
            self._logger.info(
                event,
                end_time=credential.end_time,
                renew_till=credential.renew_till,
                times=credential.times_summary(),
            )


# =============================================================================
# PROCESS-WIDE INSTANCE
# =============================================================================

_service: Optional[Result[CredentialService, KrbWardenError]] = None
_service_config: Optional[WardenConfig] = None
_service_backend: Optional[Krb5Backend] = None
_service_lock = threading.Lock()


def configure_service(
    config: Optional[WardenConfig] = None,
    backend: Optional[Krb5Backend] = None,
) -> None:
    """
    Set what the process-wide service will be built from.

    Must be called before the first get_service() call.

    Raises:
        RuntimeError: If the service has already been created
    """
    global _service_config, _service_backend

    with _service_lock:
        if _service is not None:
            raise RuntimeError("credential service already initialized")
        _service_config = config
        _service_backend = backend


def get_service() -> Result[CredentialService, KrbWardenError]:
    """
    Get or create the process-wide credential service.

    The outcome of the first attempt is kept: a failed context
    initialization is not retried.
    """
    global _service

    with _service_lock:
        if _service is None:
            _service = CredentialService.open(_service_config, _service_backend)
            if isinstance(_service, Failure):
                logger.error(
                    "credential_service_unavailable",
                    category=_service.failure().category,
                    error=str(_service.failure()),
                )
        return _service


def shutdown_service() -> None:
    """Tear down the process-wide service (registered with atexit)."""
    global _service, _service_config, _service_backend

    with _service_lock:
        service, _service = _service, None
        _service_config = None
        _service_backend = None

    if isinstance(service, Success):
        service.unwrap().close()


atexit.register(shutdown_service)


def create_credential() -> bool:
    """Process-wide CredentialService.create_credential()."""
    result = get_service()
    if isinstance(result, Failure):
        return False
    return result.unwrap().create_credential()


def refresh_credential() -> bool:
    """Process-wide CredentialService.refresh_credential()."""
    result = get_service()
    if isinstance(result, Failure):
        return False
    return result.unwrap().refresh_credential()
