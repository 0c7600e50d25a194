"""
krbwarden Transport Layer

Native Kerberos library integration.

Components:
- backend: Krb5Backend protocol consumed by the stores
- krb5_native: libkrb5 implementation via pykrb5
"""

from krbwarden.transport.backend import Krb5Backend, TGS_NAME, tgs_principal_name
from krbwarden.transport.krb5_native import NativeKrb5Backend, krb5_available

__all__ = [
    # Protocol
    "Krb5Backend",
    "TGS_NAME",
    "tgs_principal_name",
    # Native
    "NativeKrb5Backend",
    "krb5_available",
]
