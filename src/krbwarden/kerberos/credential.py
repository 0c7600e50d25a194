"""
krbwarden Credential

Immutable snapshot of a native ticket and its validity window.
"""

from __future__ import annotations

from typing import Any, Optional

import attrs

from krbwarden.core.types import CredentialState, TicketTimes, format_timestamp
from krbwarden.kerberos.context import AuthContext


@attrs.define(frozen=True, slots=True)
class Credential:
    """
    Ticket owned by the caller that built it.

    The state is derived from the library clock rather than the system
    clock so that it shares the time base of ticket issuance:

    - VALID        now < end_time
    - NEEDS_RENEW  end_time <= now < renew_till
    - NEEDS_REINIT otherwise
    """

    context: AuthContext = attrs.field(repr=False, eq=False)
    times: TicketTimes
    _native: Any = attrs.field(alias="_native", repr=False, eq=False)

    @classmethod
    def from_native(cls, context: AuthContext, creds: Any) -> Credential:
        """Take ownership of a native credential."""
        return cls(
            context=context,
            times=context.backend.creds_times(creds),
            _native=creds,
        )

    @property
    def native(self) -> Any:
        """Non-owning handle for passing to native calls."""
        return self._native

    @property
    def start_time(self) -> int:
        return self.times.start_time

    @property
    def end_time(self) -> int:
        return self.times.end_time

    @property
    def renew_till(self) -> int:
        return self.times.renew_till

    def state(self, now: Optional[int] = None) -> CredentialState:
        """Lifecycle state at ``now`` (default: library time)."""
        if now is None:
            now = self.context.now()
        return self.times.state_at(now)

    def times_summary(self) -> str:
        """Validity window and current time, one per line."""
        now = self.context.now()
        return "\n".join(
            [
                f"now: {format_timestamp(now)}",
                f"start time: {format_timestamp(self.start_time)}",
                f"end time: {format_timestamp(self.end_time)}",
                f"renew possible until: {format_timestamp(self.renew_till)}",
            ]
        )
