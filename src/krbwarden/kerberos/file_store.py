"""
krbwarden File-Backed Stores

Common base of the key table and the credential cache: a native
resource living at a filesystem path.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import attrs
import structlog

from krbwarden.core.config import WardenConfig
from krbwarden.core.exceptions import Krb5CallError
from krbwarden.core.types import ProgramMode
from krbwarden.kerberos.context import AuthContext

# Storage-backend prefix that may precede a plain file path
FILE_PREFIX = "FILE:"


def strip_file_prefix(name: str) -> str:
    """Filesystem path of a ``FILE:``-prefixed store name."""
    if name.startswith(FILE_PREFIX):
        return name[len(FILE_PREFIX) :]
    return name


@attrs.define
class FileBackedStore(ABC):
    """
    Native store associated with a path.

    The path is resolved exactly once, before the subclass opens the
    native handle:

    1. An explicit ``path`` argument wins.
    2. INTERACTIVE processes use the library's default name.
    3. MANAGED processes use the name derived from configuration.
    """

    context: AuthContext
    config: WardenConfig = attrs.Factory(WardenConfig)
    _path: Optional[str] = attrs.field(default=None, alias="path")
    _program_mode: ProgramMode = attrs.field(default=ProgramMode.INTERACTIVE, init=False)
    _resolved: bool = attrs.field(default=False, init=False)
    _logger: Any = attrs.field(factory=lambda: structlog.get_logger(), alias="_logger")

    @abstractmethod
    def _default_name(self) -> str:
        """Name the library would use by default (may raise Krb5CallError)."""
        ...

    @abstractmethod
    def _config_name(self) -> str:
        """Name derived from configuration."""
        ...

    def _init_path(self) -> bool:
        """
        Resolve the store path and program mode.

        Returns:
            False if the default name could not be queried (reported)
        """
        if self._resolved:
            return self._path is not None

        self._resolved = True
        self._program_mode = self.config.program_mode

        if self._path:
            return True

        if self._program_mode is ProgramMode.INTERACTIVE:
            try:
                self._path = self._default_name()
            except Krb5CallError as e:
                self.context.report_error(e, "querying default store name")
                self._path = None
                return False
        else:
            self._path = self._config_name()

        return True

    @property
    def resolved_path(self) -> str:
        """Store name as passed to the library (may carry ``FILE:``)."""
        return self._path or ""

    @property
    def program_mode(self) -> ProgramMode:
        return self._program_mode

    def exists(self) -> bool:
        """Check whether the backing file is present."""
        path = strip_file_prefix(self.resolved_path)
        if not path:
            return False

        try:
            return Path(path).exists()
        except OSError as e:
            self._logger.error("store_file_access_failed", path=path, error=str(e))
            return False
