"""
krbwarden Identity

Client or server principal copied out of a native structure.
"""

from __future__ import annotations

from typing import Any

import attrs
from returns.result import Failure, Result, Success

from krbwarden.core.exceptions import IdentityCopyFailure, Krb5CallError
from krbwarden.kerberos.context import AuthContext


@attrs.define(frozen=True, slots=True)
class Identity:
    """
    Owned copy of a principal.

    Format: name@REALM (e.g., HTTP/host.example.com@EXAMPLE.COM)

    INVARIANT: the native handle is always a successful copy
    """

    context: AuthContext = attrs.field(repr=False, eq=False)
    name: str
    _native: Any = attrs.field(alias="_native", repr=False, eq=False)

    @classmethod
    def copy_from(
        cls, context: AuthContext, principal: Any
    ) -> Result[Identity, IdentityCopyFailure]:
        """
        Deep-copy a borrowed native principal.

        The caller keeps ownership of ``principal``.

        Returns:
            Success(Identity) or Failure(IdentityCopyFailure) after the
            native error has been reported
        """
        backend = context.backend
        try:
            native = backend.copy_principal(context.native, principal)
            name = backend.unparse_name(context.native, native)
        except Krb5CallError as e:
            context.report_error(e, "copying principal")
            return Failure(IdentityCopyFailure(str(e), e.code))

        return Success(cls(context=context, name=name, _native=native))

    @property
    def realm(self) -> str:
        """Realm part of the principal name."""
        return self.name[self.name.rfind("@") + 1 :]

    @property
    def native(self) -> Any:
        """Non-owning handle for passing to native calls."""
        return self._native

    def __str__(self) -> str:
        return self.name
