"""
krbwarden Core Types

Value types shared by the stores and the service.

Design Principles:
- Immutable: All types use frozen attrs for safety
- Native time base: timestamps are integer seconds (krb5_timestamp)
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum, auto

import attrs
from attrs import field, validators


# Configuration value of ``system/type`` that selects INTERACTIVE
INTERACTIVE_MODE_VALUE = "manual"


# =============================================================================
# ENUMS
# =============================================================================


class ProgramMode(Enum):
    """
    How the host process is run.

    INTERACTIVE processes behave like a normal login session: default
    library locations are used and the cache survives the process.
    MANAGED processes (started by a service manager) use configured
    locations and leave no cache behind.
    """

    INTERACTIVE = auto()
    MANAGED = auto()

    @classmethod
    def from_value(cls, value: str) -> ProgramMode:
        """Map the ``system/type`` configuration value to a mode."""
        if value == INTERACTIVE_MODE_VALUE:
            return cls.INTERACTIVE
        return cls.MANAGED


class CredentialState(Enum):
    """Lifecycle state of a cached ticket."""

    VALID = auto()
    NEEDS_RENEW = auto()
    NEEDS_REINIT = auto()


# =============================================================================
# TICKET TIMES
# =============================================================================


@attrs.define(frozen=True, slots=True)
class TicketTimes:
    """
    Validity window of a ticket, in seconds since the epoch.

    renew_till is 0 for tickets that are not renewable.
    """

    start_time: int = field(validator=validators.instance_of(int))
    end_time: int = field(validator=validators.instance_of(int))
    renew_till: int = field(default=0, validator=validators.instance_of(int))

    def state_at(self, now: int) -> CredentialState:
        """
        Classify the window at ``now``.

        A ticket is valid until end_time. Past end_time it can be renewed
        while now is before renew_till, after that it must be reissued.
        """
        if now < self.end_time:
            return CredentialState.VALID
        if now < self.renew_till:
            return CredentialState.NEEDS_RENEW
        return CredentialState.NEEDS_REINIT


def format_timestamp(timestamp: int) -> str:
    """Render a krb5 timestamp as local time for diagnostics."""
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")
