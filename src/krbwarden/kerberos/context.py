"""
krbwarden Authentication Context

Shared handle to the Kerberos library runtime state.
"""

from __future__ import annotations

from typing import Any

import attrs
import structlog
from returns.result import Failure, Result, Success

from krbwarden.core.exceptions import ContextInitFailure, Krb5CallError
from krbwarden.transport.backend import Krb5Backend

logger = structlog.get_logger()


@attrs.define(frozen=True)
class AuthContext:
    """
    Library context shared by every store, identity and credential.

    Components keep a reference for as long as they need the library;
    the native context is released once the last reference is dropped.
    """

    backend: Krb5Backend
    _native: Any = attrs.field(alias="_native", repr=False)
    _logger: Any = attrs.field(factory=lambda: structlog.get_logger(), alias="_logger")

    @classmethod
    def initialize(cls, backend: Krb5Backend) -> Result[AuthContext, ContextInitFailure]:
        """
        Create a library context.

        Returns:
            Success(AuthContext) or Failure(ContextInitFailure)
        """
        try:
            native = backend.init_context()
        except Krb5CallError as e:
            logger.error(
                "krb5_context_init_failed",
                call=e.call,
                code=e.code,
                error=e.message,
            )
            return Failure(ContextInitFailure(str(e), e.code))

        return Success(cls(backend=backend, _native=native))

    @property
    def native(self) -> Any:
        """Borrowed native context handle."""
        return self._native

    def now(self) -> int:
        """Current time from the library's time source."""
        return self.backend.timeofday(self._native)

    def report_error(self, error: Krb5CallError, message: str = "") -> None:
        """
        Log a native failure in human-readable form.

        Never raises.
        """
        self._logger.error(
            "krb5_error",
            call=error.call,
            code=error.code,
            error=error.message,
            context=message or error.call,
        )
