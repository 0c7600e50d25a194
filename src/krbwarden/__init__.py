"""
krbwarden - Kerberos ticket lifecycle for long-running services

Loads a long-term key from a key table, exchanges it for a ticket,
keeps the ticket in a credential cache and decides on each refresh
whether the cached ticket is still valid, should be renewed or must be
reissued.

Example Usage:
    import krbwarden

    krbwarden.configure_service(
        krbwarden.WardenConfig.from_mapping({
            "system/type": "service",
            "system/progpath": "/opt/app",
            "system/progname": "app",
        })
    )

    # From an external scheduler, every few minutes:
    if not krbwarden.refresh_credential():
        alert("no usable Kerberos ticket")
"""

from krbwarden.core.config import WardenConfig
from krbwarden.core.types import CredentialState, ProgramMode
from krbwarden.kerberos.service import (
    CredentialService,
    configure_service,
    create_credential,
    refresh_credential,
)

__version__ = "0.1.0"

__all__ = [
    # Main API
    "create_credential",
    "refresh_credential",
    "configure_service",
    "CredentialService",
    # Types
    "WardenConfig",
    "ProgramMode",
    "CredentialState",
    # Metadata
    "__version__",
]
