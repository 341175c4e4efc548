"""Test utilities."""
import argparse
import copy
import functools
import logging
import os
import shutil
import tempfile
from typing import Any
from typing import Dict
from typing import Optional
import unittest
from unittest import mock

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric import rsa
import josepy as jose

from acme import errors as acme_errors
from acme import jws
from acme import messages
from acme_account import configuration
from acme_account import errors
from acme_account._internal import constants

DIRECTORY_URL = "https://ca.example/directory"
NEW_ACCOUNT_URL = "https://ca.example/acme/new-acct"

ACCOUNT_DOES_NOT_EXIST = messages.ERROR_PREFIX + "accountDoesNotExist"
UNAUTHORIZED = messages.ERROR_PREFIX + "unauthorized"
MALFORMED = messages.ERROR_PREFIX + "malformed"
EXTERNAL_ACCOUNT_REQUIRED = messages.ERROR_PREFIX + "externalAccountRequired"


def _pem(private_key: Any) -> str:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()).decode()


def make_ec_key_pem(curve: Any = None) -> str:
    """PEM of a fresh EC private key (P-256 by default)."""
    return _pem(ec.generate_private_key(curve if curve is not None else ec.SECP256R1()))


@functools.lru_cache(maxsize=None)
def make_rsa_key_pem() -> str:
    """PEM of an RSA private key, shared by all tests."""
    return _pem(rsa.generate_private_key(public_exponent=65537, key_size=2048))


def load_key(pem: str) -> jose.JWK:
    """Load a PEM private key as a JWK."""
    return jose.JWK.load(pem.encode())


def make_config(**kwargs: Any) -> configuration.NamespaceConfig:
    """NamespaceConfig with CLI defaults, overridden by `kwargs`."""
    values: Dict[str, Any] = copy.deepcopy(constants.CLI_DEFAULTS)
    values.update(verb="show")
    values.update(kwargs)
    return configuration.NamespaceConfig(argparse.Namespace(**values))


class TempDirTestCase(unittest.TestCase):
    """Base test class which sets up and tears down a temporary directory"""

    def setUp(self) -> None:
        """Execute before test"""
        self.tempdir = tempfile.mkdtemp()

    def tearDown(self) -> None:
        """Execute after test"""
        # Remove logging handlers that have been closed so they won't be
        # accidentally used in future tests.
        logging.shutdown()
        logging.getLogger().handlers = []
        shutil.rmtree(self.tempdir)


class ConfigTestCase(TempDirTestCase):
    """Test class which sets up a NamespaceConfig object."""
    def setUp(self) -> None:
        super().setUp()
        self.config = make_config(
            config_dir=os.path.join(self.tempdir, 'config'),
            logs_dir=os.path.join(self.tempdir, 'logs'),
            server=DIRECTORY_URL)


def problem(status: int, typ: str, detail: str = "") -> errors.ProblemError:
    """ProblemError as raised by acme_account._internal.client.ClientNetwork."""
    return errors.ProblemError(status, typ, detail or None,
                               problem=messages.Error(typ=typ, detail=detail or None))


class FakeCA:
    """In-memory ACME CA speaking the part of `acme.client.ClientV2` used here.

    Accounts are found by the thumbprint of the key the client is bound
    to, as a real CA does with JWS signatures.

    :ivar dict eab_keys: EAB key id to MAC key. `None` if the CA does
        not support EAB, in which case registrations carrying an EAB
        are rejected. Otherwise EAB is required.

    """

    def __init__(self, eab_keys: Optional[Dict[str, bytes]] = None) -> None:
        self.eab_keys = eab_keys
        self.directory = messages.Directory({
            "newAccount": NEW_ACCOUNT_URL,
            "newNonce": "https://ca.example/acme/new-nonce",
        })
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.problems: Dict[str, errors.ProblemError] = {}
        self.calls = []
        self._counter = 0

    def client(self, key: jose.JWK) -> "FakeClient":
        """Client bound to `key`."""
        return FakeClient(self, key)

    def fail(self, url: str, error: errors.ProblemError) -> None:
        """Answer every request about account `url` with `error`."""
        self.problems[url] = error

    def forget(self, url: str) -> None:
        """Delete the account as if an operator had purged it."""
        del self.accounts[url]

    def _find(self, key: jose.JWK) -> Optional[str]:
        thumbprint = key.public_key().thumbprint()
        for url, account in self.accounts.items():
            if account["thumbprint"] == thumbprint:
                return url
        return None

    def _check_eab(self, eab: Optional[Dict[str, Any]]) -> None:
        if self.eab_keys is None:
            if eab:
                raise problem(400, MALFORMED, "External account binding is not supported")
            return
        if not eab:
            raise problem(400, EXTERNAL_ACCOUNT_REQUIRED, "Server requires EAB")
        eab_jws = jws.JWS.from_json(eab)
        kid = eab_jws.signature.combined.kid
        secret = self.eab_keys.get(kid)
        if secret is None or not eab_jws.verify(jose.JWKOct(key=secret)):
            raise problem(400, UNAUTHORIZED, "Invalid external account binding")

    def new_account(self, key: jose.JWK,
                    new_reg: messages.NewRegistration) -> messages.RegistrationResource:
        self.calls.append("new_account")
        existing = self._find(key)
        if existing is not None:
            raise acme_errors.ConflictError(existing)
        self._check_eab(new_reg.external_account_binding)
        if not new_reg.terms_of_service_agreed:
            raise problem(403, messages.ERROR_PREFIX + "userActionRequired",
                          "Terms of service must be agreed to")
        self._counter += 1
        url = f"https://ca.example/acct/{self._counter}"
        self.accounts[url] = {
            "thumbprint": key.public_key().thumbprint(),
            "status": "valid",
            "contact": tuple(new_reg.contact),
        }
        return self._regr(url)

    def _lookup(self, key: jose.JWK) -> str:
        url = self._find(key)
        if url is not None and url in self.problems:
            raise self.problems[url]
        if url is None:
            raise problem(400, ACCOUNT_DOES_NOT_EXIST, "No account exists with the provided key")
        if self.accounts[url]["status"] != "valid":
            raise problem(403, UNAUTHORIZED, "Account is not valid")
        return url

    def query_registration(self, key: jose.JWK) -> messages.RegistrationResource:
        self.calls.append("query_registration")
        return self._regr(self._lookup(key))

    def deactivate_registration(self, key: jose.JWK) -> messages.RegistrationResource:
        self.calls.append("deactivate_registration")
        url = self._lookup(key)
        self.accounts[url]["status"] = "deactivated"
        return self._regr(url)

    def _regr(self, url: str) -> messages.RegistrationResource:
        # decoded the way acme.client.ClientV2 decodes a CA response body
        account = self.accounts[url]
        return messages.RegistrationResource(
            body=messages.Registration.from_json({
                "status": account["status"],
                "contact": list(account["contact"]),
            }),
            uri=url)


class FakeClient:
    """`acme.client.ClientV2` look-alike bound to one key of a `FakeCA`."""

    def __init__(self, ca: FakeCA, key: jose.JWK) -> None:
        self.ca = ca
        self.directory = ca.directory
        self.net = mock.MagicMock(key=key)

    def new_account(self, new_account: messages.NewRegistration
                    ) -> messages.RegistrationResource:
        return self.ca.new_account(self.net.key, new_account)

    def query_registration(self, regr: messages.RegistrationResource
                           ) -> messages.RegistrationResource:
        return self.ca.query_registration(self.net.key)

    def deactivate_registration(self, regr: messages.RegistrationResource
                                ) -> messages.RegistrationResource:
        return self.ca.deactivate_registration(self.net.key)


def client_factory(ca: FakeCA) -> Any:
    """Replacement for `acme_account._internal.client.acme_from_record`."""
    def acme_from_record(config: configuration.NamespaceConfig, record: Any) -> FakeClient:
        return ca.client(load_key(record.account_key_pem))
    return acme_from_record
