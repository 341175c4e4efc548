"""ACME client construction bound to an account key."""
import logging
import platform
from typing import Any
from typing import Optional

import josepy as jose
from josepy import ES256
from josepy import ES384
from josepy import ES512
from josepy import RS256
import requests

from acme import client as acme_client
from acme import messages
import acme_account
from acme_account import configuration
from acme_account import errors
from acme_account._internal.record import AccountRecord

logger = logging.getLogger(__name__)


class ClientNetwork(acme_client.ClientNetwork):
    """`acme.client.ClientNetwork` raising typed CA problems.

    Problem documents are raised as `.errors.ProblemError`, which keeps
    the HTTP status code of the response next to the problem type.

    """

    @classmethod
    def _check_response(cls, response: requests.Response,
                        content_type: Optional[str] = None) -> requests.Response:
        try:
            return super()._check_response(response, content_type=content_type)
        except messages.Error as error:
            raise errors.ProblemError.from_acme_error(error, response.status_code) from error

    def post(self, *args: Any, **kwargs: Any) -> requests.Response:
        """POST object wrapped in `.JWS` and check response.

        If the server responded with a badNonce error, the request will
        be retried once.

        """
        try:
            return self._post_once(*args, **kwargs)
        except errors.ProblemError as error:
            if error.code == 'badNonce':
                logger.debug('Retrying request after error:\n%s', error)
                return self._post_once(*args, **kwargs)
            raise


def load_account_key(account_key_pem: str) -> jose.JWK:
    """Load the account private key.

    :param str account_key_pem: PEM encoded RSA or EC private key

    :raises .errors.MalformedInputError: if the key cannot be loaded

    """
    try:
        key = jose.JWK.load(account_key_pem.encode())
    except (jose.Error, ValueError, TypeError) as error:
        raise errors.MalformedInputError(f"Unable to load the account key: {error}")
    # JWK.load falls back to a symmetric key for anything it cannot parse
    if key.typ not in ('RSA', 'EC'):
        raise errors.MalformedInputError(
            "The account key must be a PEM encoded RSA or EC private key")
    return key


def signing_algorithm(key: jose.JWK) -> jose.JWASignature:
    """Pick the JWS algorithm matching the account key."""
    if key.typ == 'EC':
        key_size = key.key.key_size
        if key_size == 256:
            return ES256
        elif key_size == 384:
            return ES384
        elif key_size == 521:
            return ES512
        raise errors.MalformedInputError(
            "No matching signing algorithm can be found for the key")
    return RS256


def determine_user_agent(config: configuration.NamespaceConfig) -> str:
    """User-Agent sent to the CA, unless overridden with --user-agent."""
    if config.user_agent is not None:
        return config.user_agent
    return "AcmeAccount/{0} ({1} {2}) Py/{3}".format(
        acme_account.__version__, platform.system(), platform.release(),
        platform.python_version())


def acme_from_key(config: configuration.NamespaceConfig, key: jose.JWK,
                  regr: Optional[messages.RegistrationResource] = None
                  ) -> acme_client.ClientV2:
    """Wrangle ACME client construction"""
    net = ClientNetwork(key, alg=signing_algorithm(key), account=regr,
                        verify_ssl=(not config.no_verify_ssl),
                        user_agent=determine_user_agent(config),
                        timeout=config.timeout)
    directory = acme_client.ClientV2.get_directory(config.server, net)
    return acme_client.ClientV2(directory, net)


def acme_from_record(config: configuration.NamespaceConfig,
                     record: AccountRecord) -> acme_client.ClientV2:
    """Build a client authenticated as the account of `record`.

    The account key is loaded before any network traffic, so a broken
    key never reaches the CA. Fetching the directory is the only round
    trip made here; its errors propagate unchanged.

    :param .NamespaceConfig config: Configuration object
    :param .AccountRecord record: account to bind the client to

    :rtype: `acme.client.ClientV2`

    """
    key = load_account_key(record.account_key_pem)
    regr = None
    if record.exists:
        regr = registration_resource(record.registration_url)
    return acme_from_key(config, key, regr)


def registration_resource(registration_url: str) -> messages.RegistrationResource:
    """Registration Resource for a known account URL."""
    return messages.RegistrationResource(body=messages.Registration(),
                                         uri=registration_url)
