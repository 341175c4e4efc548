"""Creates and deactivates ACME accounts."""
import logging
from typing import Any
from typing import Dict
from typing import Optional

import josepy as jose

from acme import client as acme_client
from acme import errors as acme_errors
from acme import messages
from acme_account import errors
from acme_account._internal import problems
from acme_account._internal.client import registration_resource
from acme_account._internal.record import AccountRecord

logger = logging.getLogger(__name__)


def create(record: AccountRecord, acme: acme_client.ClientV2) -> str:
    """Register a new account with the CA and agree to its Terms of Service.

    The registration is bound to the external account of the record if
    it has EAB credentials, otherwise it is a plain registration. The
    existence of the record is the consent to the Terms of Service, so
    they are always agreed to.

    :param .AccountRecord record: account to create, without
        ``registration_url``
    :param acme.client.ClientV2 acme: client bound to the account key of
        `record`

    :raises .errors.MalformedInputError: if the EAB HMAC key is not
        base64. Nothing has been sent to the CA in that case.
    :raises .errors.ProblemError: if the CA rejects the registration.

    :returns: URL of the new account. It must be stored as the
        ``registration_url`` of the record before anything else is done
        with the account.
    :rtype: str

    """
    if record.exists:
        raise errors.Error(
            f"The account is already registered at {record.registration_url}")

    eab: Optional[Dict[str, Any]] = None
    binding = record.external_account_binding
    if binding is not None:
        # Re-encoding canonicalizes standard/padded base64 to what the
        # acme library decodes.
        hmac_key = jose.b64encode(binding.hmac_key).decode()
        eab = messages.ExternalAccountBinding.from_data(
            account_public_key=acme.net.key.public_key(), kid=binding.key_id,
            hmac_key=hmac_key, directory=acme.directory)
        logger.debug("Registering a new account bound to an external account")
    else:
        logger.debug("Registering a new account")

    new_reg = messages.NewRegistration.from_data(
        email=record.email_address or None, terms_of_service_agreed=True,
        external_account_binding=eab)
    try:
        regr = acme.new_account(new_reg)
    except acme_errors.ConflictError as error:
        # The CA already knows this key; its account is the one we manage.
        logger.info("An account already exists for this key at %s", error.location)
        return error.location

    if not regr.uri:
        raise errors.Error("The CA did not return the URL of the new account")
    logger.info("Account registered at %s", regr.uri)
    return regr.uri


def delete(registration_url: str, acme: acme_client.ClientV2) -> None:
    """Deactivate the account.

    The account is identified by the key the client is bound to. If the
    CA reports the account as gone, the account is already in the
    desired state and no error is raised.

    :param str registration_url: URL of the account
    :param acme.client.ClientV2 acme: client bound to the account key

    :raises .errors.ProblemError: if the CA rejects the deactivation for
        any other reason.

    """
    try:
        acme.deactivate_registration(registration_resource(registration_url))
    except errors.ProblemError as error:
        if not problems.is_account_gone(error):
            raise
        logger.info("Account %s no longer exists, nothing to deactivate",
                    registration_url)
        return
    logger.info("Account %s deactivated", registration_url)
