"""acme-account main entry point."""
import logging
import sys
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

import acme_account
from acme_account import configuration
from acme_account import errors
from acme_account import interfaces
from acme_account._internal import cli
from acme_account._internal import client
from acme_account._internal import log
from acme_account._internal import reconciler
from acme_account._internal import registrar
from acme_account._internal import storage
from acme_account._internal.record import AccountRecord

logger = logging.getLogger(__name__)


def notify(msg: str) -> None:
    """Display a message to the user."""
    print(msg)


def _desired_record(config: configuration.NamespaceConfig) -> AccountRecord:
    """Account described by the command line, not registered yet."""
    if not config.account_key:
        raise errors.Error("--account-key is required to register an account")
    try:
        with open(config.account_key) as key_file:
            account_key_pem = key_file.read()
    except OSError as error:
        raise errors.Error(f"Unable to read the account key: {error}")
    return AccountRecord.from_data(account_key_pem, config.email,
                                   config.eab_kid, config.eab_hmac_key)


def _load_record(record_storage: interfaces.RecordStorage,
                 name: str) -> Optional[AccountRecord]:
    try:
        return record_storage.load(name)
    except errors.RecordNotFound:
        return None


def _forget(record_storage: interfaces.RecordStorage, name: str) -> None:
    try:
        record_storage.delete(name)
    except errors.RecordNotFound:
        logger.debug("Record %s was already forgotten", name)


def _report(record: AccountRecord) -> None:
    notify(f"Account {record.registration_url} is {record.status}.")


def _create(config: configuration.NamespaceConfig,
            record_storage: interfaces.RecordStorage,
            desired: AccountRecord) -> AccountRecord:
    acme = client.acme_from_record(config, desired)
    registration_url = registrar.create(desired, acme)
    # the URL is the identity of the account, persist it before anything else
    record = desired.update(registration_url=registration_url)
    record_storage.save(config.name, record)

    refreshed = reconciler.refresh(record, acme)
    if refreshed is None:
        _forget(record_storage, config.name)
        raise errors.Error(
            f"Account {registration_url} no longer exists right after its creation. "
            "If the account key belongs to a deactivated account, register "
            "with a new key.")
    record_storage.save(config.name, refreshed)
    return refreshed


def register(config: configuration.NamespaceConfig,
             record_storage: interfaces.RecordStorage) -> Optional[str]:
    """Create the account, or reconcile the stored one with the CA.

    A stored account whose key, email or EAB credentials differ from the
    command line is deactivated and replaced by a new one. A stored
    account the CA no longer knows about is registered again.

    :param config: Configuration object
    :type config: configuration.NamespaceConfig

    :param record_storage: where account records are kept
    :type record_storage: interfaces.RecordStorage

    :returns: `None` or a string indicating an error
    :rtype: None or str

    """
    desired = _desired_record(config)
    stored = _load_record(record_storage, config.name)

    if stored is not None and stored.exists:
        changed = stored.replacement_fields(desired)
        if changed:
            logger.info("%s changed, replacing account %s",
                        ", ".join(changed), stored.registration_url)
            registrar.delete(stored.registration_url,
                             client.acme_from_record(config, stored))
            _forget(record_storage, config.name)
        else:
            refreshed = reconciler.refresh(stored, client.acme_from_record(config, stored))
            if refreshed is not None:
                record_storage.save(config.name, refreshed)
                _report(refreshed)
                return None
            logger.warning("Account %s no longer exists, registering a new one",
                           stored.registration_url)
            _forget(record_storage, config.name)

    _report(_create(config, record_storage, desired))
    return None


def show(config: configuration.NamespaceConfig,
         record_storage: interfaces.RecordStorage) -> Optional[str]:
    """Fetch the account status from the CA.

    If the CA reports the account as gone, the stored record is removed.

    :returns: `None` or a string indicating an error
    :rtype: None or str

    """
    stored = _load_record(record_storage, config.name)
    if stored is None or not stored.exists:
        return f"Could not find an account named {config.name} for server {config.server}."

    refreshed = reconciler.refresh(stored, client.acme_from_record(config, stored))
    if refreshed is None:
        _forget(record_storage, config.name)
        notify(f"Account {stored.registration_url} no longer exists; "
               "its record has been removed.")
        return None

    record_storage.save(config.name, refreshed)
    _report(refreshed)
    if refreshed.email_address:
        notify(f"Email contact: {refreshed.email_address}")
    return None


def unregister(config: configuration.NamespaceConfig,
               record_storage: interfaces.RecordStorage) -> Optional[str]:
    """Deactivate the account on the CA and forget it.

    :returns: `None` or a string indicating an error
    :rtype: None or str

    """
    stored = _load_record(record_storage, config.name)
    if stored is None or not stored.exists:
        return f"Could not find an account named {config.name} for server {config.server}."

    registrar.delete(stored.registration_url, client.acme_from_record(config, stored))
    _forget(record_storage, config.name)
    notify("Account deactivated.")
    return None


def list_accounts(config: configuration.NamespaceConfig,
                  record_storage: interfaces.RecordStorage) -> Optional[str]:
    """List the accounts stored for the server, without contacting it.

    :returns: `None` or a string indicating an error
    :rtype: None or str

    """
    names = sorted(record_storage.find_all())
    if not names:
        notify(f"No accounts found for server {config.server}.")
        return None
    for name in names:
        record = _load_record(record_storage, name)
        if record is not None:
            notify(f"{name}: {record.registration_url or 'not registered'}")
    return None


VERBS: Dict[str, Callable[[configuration.NamespaceConfig, interfaces.RecordStorage],
                          Optional[str]]] = {
    "register": register,
    "show": show,
    "unregister": unregister,
    "list": list_accounts,
}


def main(cli_args: Optional[List[str]] = None) -> Optional[Union[str, int]]:
    """Run acme-account.

    :param cli_args: command line, defaults to ``sys.argv[1:]``
    :type cli_args: `list` of `str`

    :returns: value for `sys.exit` about the exit status
    :rtype: `str` or `int` or `None`

    """
    if cli_args is None:
        cli_args = sys.argv[1:]

    log.install_except_hook(debug="--debug" in cli_args,
                            quiet="--quiet" in cli_args or "-q" in cli_args)

    # note: arg parser internally handles --help (and exits afterwards)
    args = cli.prepare_and_parse_args(cli_args)
    config = configuration.NamespaceConfig(args)
    log.setup_logging(config)
    logger.debug("acme-account version: %s", acme_account.__version__)

    record_storage = storage.RecordFileStorage(config)
    return VERBS[config.verb](config, record_storage)
