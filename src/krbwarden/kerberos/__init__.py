"""
krbwarden Kerberos Module

Ticket lifecycle management on top of a native Kerberos library.

Components:
- context: Shared library context and error reporting
- identity: Principals copied out of native structures
- credential: Ticket snapshot and lifecycle state
- file_store: Path resolution shared by both stores
- keystore: Key table (long-term key -> fresh ticket)
- ccache: Credential cache (store, renew, look up)
- service: Renewal state machine and process-wide instance
"""

from krbwarden.kerberos.context import AuthContext
from krbwarden.kerberos.identity import Identity
from krbwarden.kerberos.credential import Credential
from krbwarden.kerberos.file_store import FileBackedStore, FILE_PREFIX, strip_file_prefix
from krbwarden.kerberos.keystore import KeyStore
from krbwarden.kerberos.ccache import CredentialCache, CCACHE_ENV_VAR
from krbwarden.kerberos.service import (
    CredentialService,
    configure_service,
    create_credential,
    get_service,
    refresh_credential,
    shutdown_service,
)

__all__ = [
    # Building blocks
    "AuthContext",
    "Identity",
    "Credential",
    # Stores
    "FileBackedStore",
    "FILE_PREFIX",
    "strip_file_prefix",
    "KeyStore",
    "CredentialCache",
    "CCACHE_ENV_VAR",
    # Service
    "CredentialService",
    "configure_service",
    "create_credential",
    "get_service",
    "refresh_credential",
    "shutdown_service",
]
