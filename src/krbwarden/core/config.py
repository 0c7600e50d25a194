"""
krbwarden Configuration

Process settings that decide where the key table and the credential
cache live and how the cache is torn down.
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

import attrs

from krbwarden.core.types import INTERACTIVE_MODE_VALUE, ProgramMode


# Slash-separated keys understood by WardenConfig.from_mapping
KEY_PROGRAM_TYPE = "system/type"
KEY_PROGPATH = "system/progpath"
KEY_PROGNAME = "system/progname"
KEY_KEYTAB = "kerberos/keytab"
KEY_CCACHE_DIR = "kerberos/ccache"
KEY_KEYTAB_PATH = "kerberos/keytab_path"
KEY_CCACHE_PATH = "kerberos/ccache_path"

# Environment variables understood by WardenConfig.from_env
ENV_PREFIX = "KRBWARDEN_"


@attrs.define
class WardenConfig:
    """
    Credential lifecycle configuration.

    Attributes:
        program_mode: INTERACTIVE or MANAGED process
        progpath: Base installation path of the host program
        progname: Program name, used to name the credential cache
        keytab: Key table location (default: <progpath>/keytab)
        ccache_dir: Directory holding the cache (default: progpath)
        keytab_override_path: Explicit key table path, wins over any default
        ccache_override_path: Explicit cache path, wins over any default
    """

    program_mode: ProgramMode = ProgramMode.INTERACTIVE
    progpath: str = ""
    progname: str = ""
    keytab: Optional[str] = None
    ccache_dir: Optional[str] = None
    keytab_override_path: Optional[str] = None
    ccache_override_path: Optional[str] = None

    @property
    def keytab_path(self) -> str:
        """Key table location used by MANAGED processes."""
        if self.keytab:
            return self.keytab
        return f"{self.progpath}/keytab"

    @property
    def ccache_path(self) -> str:
        """Credential cache location used by MANAGED processes."""
        directory = self.ccache_dir if self.ccache_dir else self.progpath
        return f"{directory}/krb5cc_{self.progname}"

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> WardenConfig:
        """
        Build config from slash-keyed program variables.

        Example:
            config = WardenConfig.from_mapping({
                "system/type": "service",
                "system/progpath": "/opt/app",
                "system/progname": "app",
            })
            config.ccache_path  # "/opt/app/krb5cc_app"
        """
        return cls(
            program_mode=ProgramMode.from_value(
                values.get(KEY_PROGRAM_TYPE, INTERACTIVE_MODE_VALUE)
            ),
            progpath=values.get(KEY_PROGPATH, ""),
            progname=values.get(KEY_PROGNAME, ""),
            keytab=values.get(KEY_KEYTAB) or None,
            ccache_dir=values.get(KEY_CCACHE_DIR) or None,
            keytab_override_path=values.get(KEY_KEYTAB_PATH) or None,
            ccache_override_path=values.get(KEY_CCACHE_PATH) or None,
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> WardenConfig:
        """
        Build config from KRBWARDEN_* environment variables.

        KRBWARDEN_MODE, KRBWARDEN_PROGPATH, KRBWARDEN_PROGNAME,
        KRBWARDEN_KEYTAB, KRBWARDEN_CCACHE_DIR, KRBWARDEN_KEYTAB_PATH and
        KRBWARDEN_CCACHE_PATH map onto the corresponding from_mapping keys.
        """
        if environ is None:
            environ = os.environ

        names = {
            "MODE": KEY_PROGRAM_TYPE,
            "PROGPATH": KEY_PROGPATH,
            "PROGNAME": KEY_PROGNAME,
            "KEYTAB": KEY_KEYTAB,
            "CCACHE_DIR": KEY_CCACHE_DIR,
            "KEYTAB_PATH": KEY_KEYTAB_PATH,
            "CCACHE_PATH": KEY_CCACHE_PATH,
        }
        values = {
            key: environ[ENV_PREFIX + suffix]
            for suffix, key in names.items()
            if ENV_PREFIX + suffix in environ
        }
        return cls.from_mapping(values)
