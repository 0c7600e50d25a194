"""
Pytest configuration and shared fixtures for krbwarden tests.
"""

from pathlib import Path
from typing import Dict, List, Optional

import attrs
import pytest

from krbwarden.core.config import WardenConfig
from krbwarden.core.exceptions import Krb5CallError
from krbwarden.core.types import ProgramMode, TicketTimes
from krbwarden.kerberos.context import AuthContext
from krbwarden.kerberos.file_store import strip_file_prefix
from krbwarden.kerberos.service import CredentialService, shutdown_service
from krbwarden.transport.backend import tgs_principal_name


# Error codes as returned by MIT libkrb5
KRB5_KT_END = -1765328202
KRB5_CC_NOTFOUND = -1765328243
KRB5_FCC_NOFILE = -1765328189
KRB5KDC_ERR_BADOPTION = -1765328371
KRB5KDC_ERR_PREAUTH_FAILED = -1765328360

TEST_REALM = "EXAMPLE.COM"
TEST_PRINCIPAL = f"HTTP/app.example.com@{TEST_REALM}"
START = 1_700_000_000
TICKET_LIFETIME = 10 * 3600
RENEW_LIFETIME = 7 * 86400


# =============================================================================
# FAKE KERBEROS LIBRARY
# =============================================================================


@attrs.define(frozen=True)
class FakePrincipal:
    name: str


@attrs.define(frozen=True)
class FakeCreds:
    client: str
    server: str
    times: TicketTimes


@attrs.define
class FakeKeytab:
    name: str
    principals: List[str]


@attrs.define
class FakeCCache:
    name: str


@attrs.define
class CacheContents:
    principal: Optional[str] = None
    creds: List[FakeCreds] = attrs.Factory(list)


@attrs.define
class FakeKrb5Backend:
    """
    In-memory Kerberos library.

    Cache contents outlive cache handles (like files do) and are mirrored
    on disk so that existence checks see them. Any call can be made to
    fail by naming it in ``failures``.
    """

    now: int = START
    keytabs: Dict[str, List[str]] = attrs.Factory(dict)
    caches: Dict[str, CacheContents] = attrs.Factory(dict)
    failures: Dict[str, int] = attrs.Factory(dict)
    calls: List[str] = attrs.Factory(list)
    default_keytab: str = "FILE:/etc/krb5.keytab"
    default_ccache: str = "FILE:/tmp/krb5cc_0"
    ticket_lifetime: int = TICKET_LIFETIME
    renew_lifetime: int = RENEW_LIFETIME

    MUTATING_CALLS = (
        "krb5_cc_initialize",
        "krb5_cc_store_cred",
        "krb5_cc_destroy",
        "krb5_get_init_creds_keytab",
        "krb5_get_renewed_creds",
    )

    def _enter(self, call: str) -> None:
        self.calls.append(call)
        if call in self.failures:
            raise Krb5CallError(call, self.failures[call], f"injected failure in {call}")

    def mutations(self) -> List[str]:
        return [call for call in self.calls if call in self.MUTATING_CALLS]

    def cache_file(self, name: str) -> Path:
        return Path(strip_file_prefix(name))

    def add_keytab(self, name: str, *principals: str) -> None:
        self.keytabs[name] = list(principals)

    def put_cached_ticket(self, name: str, principal: str, times: TicketTimes) -> None:
        """Seed a cache as if an earlier run had written it."""
        realm = principal[principal.rfind("@") + 1 :]
        self.caches[name] = CacheContents(
            principal=principal,
            creds=[FakeCreds(principal, tgs_principal_name(realm), times)],
        )
        path = self.cache_file(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()

    # -- context -------------------------------------------------------------

    def init_context(self):
        self._enter("krb5_init_context")
        return object()

    def timeofday(self, context) -> int:
        return self.now

    # -- principals ----------------------------------------------------------

    def copy_principal(self, context, principal):
        self._enter("krb5_copy_principal")
        return FakePrincipal(principal.name)

    def parse_name(self, context, name):
        self._enter("krb5_parse_name")
        return FakePrincipal(name)

    def unparse_name(self, context, principal):
        self._enter("krb5_unparse_name")
        return principal.name

    # -- key table -----------------------------------------------------------

    def kt_default_name(self, context):
        self._enter("krb5_kt_default_name")
        return self.default_keytab

    def kt_resolve(self, context, name):
        self._enter("krb5_kt_resolve")
        return FakeKeytab(name, list(self.keytabs.get(name, [])))

    def kt_start_seq_get(self, context, keytab):
        self._enter("krb5_kt_start_seq_get")
        return iter(keytab.principals)

    def kt_next_principal(self, context, keytab, cursor):
        self._enter("krb5_kt_next_entry")
        try:
            return FakePrincipal(next(cursor))
        except StopIteration:
            raise Krb5CallError("krb5_kt_next_entry", KRB5_KT_END, "End of key table reached")

    def kt_end_seq_get(self, context, keytab, cursor):
        self._enter("krb5_kt_end_seq_get")

    def kt_close(self, context, keytab):
        self._enter("krb5_kt_close")

    def get_init_creds_keytab(self, context, client, keytab):
        self._enter("krb5_get_init_creds_keytab")
        if client.name not in keytab.principals:
            raise Krb5CallError(
                "krb5_get_init_creds_keytab",
                KRB5KDC_ERR_PREAUTH_FAILED,
                "Preauthentication failed",
            )
        realm = client.name[client.name.rfind("@") + 1 :]
        return FakeCreds(
            client.name,
            tgs_principal_name(realm),
            TicketTimes(
                start_time=self.now,
                end_time=self.now + self.ticket_lifetime,
                renew_till=self.now + self.renew_lifetime,
            ),
        )

    # -- credential cache ----------------------------------------------------

    def cc_default_name(self, context):
        self._enter("krb5_cc_default_name")
        return self.default_ccache

    def cc_resolve(self, context, name):
        self._enter("krb5_cc_resolve")
        return FakeCCache(name)

    def cc_initialize(self, context, ccache, principal):
        self._enter("krb5_cc_initialize")
        self.caches[ccache.name] = CacheContents(principal=principal.name)
        path = self.cache_file(ccache.name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()

    def cc_store_cred(self, context, ccache, creds):
        self._enter("krb5_cc_store_cred")
        self.caches[ccache.name].creds.append(creds)

    def cc_get_principal(self, context, ccache):
        self._enter("krb5_cc_get_principal")
        contents = self.caches.get(ccache.name)
        if contents is None or contents.principal is None:
            raise Krb5CallError(
                "krb5_cc_get_principal",
                KRB5_FCC_NOFILE,
                f"No credentials cache found (filename: {ccache.name})",
            )
        return FakePrincipal(contents.principal)

    def cc_retrieve_cred(self, context, ccache, client, server):
        self._enter("krb5_cc_retrieve_cred")
        contents = self.caches.get(ccache.name, CacheContents())
        for creds in reversed(contents.creds):
            if creds.client == client.name and creds.server == server.name:
                return creds
        raise Krb5CallError(
            "krb5_cc_retrieve_cred", KRB5_CC_NOTFOUND, "Matching credential not found"
        )

    def get_renewed_creds(self, context, client, ccache):
        self._enter("krb5_get_renewed_creds")
        realm = client.name[client.name.rfind("@") + 1 :]
        server = FakePrincipal(tgs_principal_name(realm))
        current = self.cc_retrieve_cred(context, ccache, client, server)
        if self.now >= current.times.renew_till:
            raise Krb5CallError(
                "krb5_get_renewed_creds", KRB5KDC_ERR_BADOPTION, "KDC can't fulfill requested option"
            )
        return FakeCreds(
            current.client,
            current.server,
            TicketTimes(
                start_time=self.now,
                end_time=min(self.now + self.ticket_lifetime, current.times.renew_till),
                renew_till=current.times.renew_till,
            ),
        )

    def cc_close(self, context, ccache):
        self._enter("krb5_cc_close")

    def cc_destroy(self, context, ccache):
        self._enter("krb5_cc_destroy")
        self.caches.pop(ccache.name, None)
        path = self.cache_file(ccache.name)
        if path.exists():
            path.unlink()

    # -- credentials ---------------------------------------------------------

    def creds_times(self, creds):
        return creds.times


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_ccache_env(monkeypatch):
    """Keep KRB5CCNAME changes made by caches inside the test."""
    monkeypatch.setenv("KRB5CCNAME", "FILE:/nonexistent/krb5cc_test")


@pytest.fixture(autouse=True)
def reset_process_service():
    """Drop the process-wide service after each test."""
    yield
    shutdown_service()


@pytest.fixture
def managed_config(tmp_path) -> WardenConfig:
    """MANAGED process installed under tmp_path."""
    return WardenConfig(
        program_mode=ProgramMode.MANAGED,
        progpath=str(tmp_path),
        progname="app",
    )


@pytest.fixture
def interactive_config() -> WardenConfig:
    return WardenConfig(program_mode=ProgramMode.INTERACTIVE)


@pytest.fixture
def backend(tmp_path, managed_config) -> FakeKrb5Backend:
    """Fake library with one principal in the configured key table."""
    fake = FakeKrb5Backend(
        default_keytab=f"FILE:{tmp_path}/default.keytab",
        default_ccache=f"FILE:{tmp_path}/krb5cc_default",
    )
    fake.add_keytab(managed_config.keytab_path, TEST_PRINCIPAL)
    return fake


@pytest.fixture
def principal_name() -> str:
    """Principal held in the configured key table."""
    return TEST_PRINCIPAL


@pytest.fixture
def tgs_name() -> str:
    return tgs_principal_name(TEST_REALM)


@pytest.fixture
def fake_creds(principal_name, tgs_name):
    """Build native credentials for the key table principal."""

    def _make(times: TicketTimes) -> FakeCreds:
        return FakeCreds(principal_name, tgs_name, times)

    return _make


@pytest.fixture
def make_service(tmp_path_factory):
    """
    Build independent services, each installed in a fresh directory.

    For property tests, where one test function runs many examples.
    """

    def _make():
        root = tmp_path_factory.mktemp("proc")
        config = WardenConfig(
            program_mode=ProgramMode.MANAGED,
            progpath=str(root),
            progname="app",
        )
        fake = FakeKrb5Backend(
            default_keytab=f"FILE:{root}/default.keytab",
            default_ccache=f"FILE:{root}/krb5cc_default",
        )
        fake.add_keytab(config.keytab_path, TEST_PRINCIPAL)
        return CredentialService.open(config, fake).unwrap(), fake, config

    return _make


@pytest.fixture
def auth_context(backend) -> AuthContext:
    return AuthContext.initialize(backend).unwrap()


@pytest.fixture
def service(backend, managed_config) -> CredentialService:
    """Credential service over the fake library (MANAGED mode)."""
    return CredentialService.open(managed_config, backend).unwrap()


# =============================================================================
# PYTEST MARKERS
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "native: marks tests requiring the krb5 package and libkrb5"
    )
