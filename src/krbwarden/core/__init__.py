"""
krbwarden Core Module

Foundational types used across the package.

Components:
- types: Program mode, ticket times and lifecycle state
- config: Path and mode configuration
- exceptions: Error taxonomy
- logging: structlog setup for host processes
"""

from krbwarden.core.types import (
    CredentialState,
    ProgramMode,
    TicketTimes,
    format_timestamp,
)
from krbwarden.core.config import WardenConfig
from krbwarden.core.exceptions import (
    KrbWardenError,
    Krb5CallError,
    ContextInitFailure,
    StoreOpenFailure,
    IdentityCopyFailure,
    CredentialFetchFailure,
    CredentialStoreFailure,
    RenewalFailure,
    LookupFailure,
)
from krbwarden.core.logging import configure_logging

__all__ = [
    # Types
    "CredentialState",
    "ProgramMode",
    "TicketTimes",
    "format_timestamp",
    # Config
    "WardenConfig",
    "configure_logging",
    # Exceptions
    "KrbWardenError",
    "Krb5CallError",
    "ContextInitFailure",
    "StoreOpenFailure",
    "IdentityCopyFailure",
    "CredentialFetchFailure",
    "CredentialStoreFailure",
    "RenewalFailure",
    "LookupFailure",
]
