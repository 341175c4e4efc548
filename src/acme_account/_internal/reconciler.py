"""Reconciles stored account records with the CA."""
import logging
from typing import Optional

from acme import client as acme_client
from acme_account import errors
from acme_account._internal import constants
from acme_account._internal import problems
from acme_account._internal.client import registration_resource
from acme_account._internal.record import AccountRecord

logger = logging.getLogger(__name__)


def refresh(record: AccountRecord, acme: acme_client.ClientV2) -> Optional[AccountRecord]:
    """Fetch the current state of the account from the CA.

    :param .AccountRecord record: stored record; the account is looked
        up at its ``registration_url``
    :param acme.client.ClientV2 acme: client bound to the account key

    :raises .errors.ProblemError: if the CA answers with a problem that
        does not mean the account is gone
    :raises Exception: transport failures propagate unchanged

    :returns: the record with the status reported by the CA, or `None`
        if the account no longer exists. In the latter case the caller
        must forget the record.
    :rtype: `.AccountRecord` or `None`

    """
    if not record.exists:
        logger.debug("Record has no account URL, nothing to refresh")
        return None

    try:
        regr = acme.query_registration(registration_resource(record.registration_url))
    except errors.ProblemError as error:
        if problems.is_account_gone(error):
            logger.info("Account %s no longer exists", record.registration_url)
            return None
        raise

    # Registration bodies decoded from the wire keep the status as a str
    status = regr.body.status or None
    if status not in constants.ACCOUNT_STATUSES:
        logger.warning("The CA reported status %r for account %s, treating the "
                       "account as gone", status, record.registration_url)
        return None

    if regr.uri and regr.uri != record.registration_url:
        logger.debug("The CA returned %s for account %s, keeping the stored URL",
                     regr.uri, record.registration_url)

    if record.email_address and record.email_address not in regr.body.emails:
        logger.warning("Contacts of account %s were changed outside of acme-account: %s",
                       record.registration_url, ", ".join(regr.body.contact))

    return record.update(status=status)
