#!/usr/bin/env python3
"""
Scheduled Ticket Refresh Example

Demonstrates how a long-running service keeps its credential cache
supplied with a ticket-granting ticket using krbwarden.

Features:
1. Configuration from KRBWARDEN_* environment variables
2. Structured logging setup
3. Initial ticket creation at startup
4. Periodic refresh driven by the caller (krbwarden has no timer)

Requirements:
- krb5 package installed: pip install krbwarden[native]
- MIT Kerberos or Heimdal libraries and a valid krb5.conf
- A key table readable by this process, for example:
    KRBWARDEN_MODE=service
    KRBWARDEN_PROGPATH=/opt/app
    KRBWARDEN_PROGNAME=app
  which reads /opt/app/keytab and writes /opt/app/krb5cc_app
"""

import sys
import time

from returns.result import Failure

from krbwarden import WardenConfig
from krbwarden.core.logging import configure_logging
from krbwarden.kerberos import CredentialService
from krbwarden.transport import krb5_available

# Seconds between refresh checks; well below a typical ticket lifetime
REFRESH_INTERVAL = 300


def main():
    """Create a ticket, then keep it fresh until interrupted."""

    configure_logging()

    if not krb5_available():
        print("Native Kerberos support is not available.")
        print("Install it with: pip install krbwarden[native]")
        sys.exit(1)

    config = WardenConfig.from_env()

    print("=" * 70)
    print("krbwarden - Scheduled Ticket Refresh")
    print("=" * 70)
    print(f"   Mode:       {config.program_mode.name}")
    print(f"   Key table:  {config.keytab_path}")
    print(f"   Cache:      {config.ccache_path}")
    print()

    result = CredentialService.open(config)
    if isinstance(result, Failure):
        print(f"   Could not initialize Kerberos: {result.failure()}")
        sys.exit(1)

    with result.unwrap() as service:
        if not service.create_credential():
            print("   Initial ticket could not be obtained (see log)")
            sys.exit(1)

        print(f"   Ticket written; refreshing every {REFRESH_INTERVAL}s (Ctrl-C to stop)")

        try:
            while True:
                time.sleep(REFRESH_INTERVAL)
                if not service.refresh_credential():
                    print("   Refresh failed; the cache holds no usable ticket")
        except KeyboardInterrupt:
            print()
            print("   Stopping; credential cache torn down on exit")


if __name__ == "__main__":
    main()
