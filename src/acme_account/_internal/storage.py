"""Persists account records between invocations."""
import logging
import os
import shutil
from typing import Dict
from typing import List
from typing import Optional

import josepy as jose

from acme_account import configuration
from acme_account import errors
from acme_account import interfaces
from acme_account import util
from acme_account._internal import constants
from acme_account._internal.record import AccountRecord

logger = logging.getLogger(__name__)


class RecordMemoryStorage(interfaces.RecordStorage):
    """In-memory record storage."""

    def __init__(self, initial_records: Optional[Dict[str, AccountRecord]] = None) -> None:
        self.records = initial_records if initial_records is not None else {}

    def find_all(self) -> List[str]:
        return sorted(self.records)

    def load(self, name: str) -> AccountRecord:
        try:
            return self.records[name]
        except KeyError:
            raise errors.RecordNotFound(name)

    def save(self, name: str, record: AccountRecord) -> None:
        if name in self.records:
            logger.debug("Overwriting record: %s", name)
        self.records[name] = record.persistent()

    def delete(self, name: str) -> None:
        try:
            del self.records[name]
        except KeyError:
            raise errors.RecordNotFound(name)


class RecordFileStorage(interfaces.RecordStorage):
    """Record file storage.

    Each record lives in ``<records_dir>/<name>/record.json``. The file
    holds the account private key, so directories are created with mode
    0700 and the file with mode 0600.

    :ivar acme_account.configuration.NamespaceConfig config: Client configuration

    """
    def __init__(self, config: configuration.NamespaceConfig) -> None:
        self.config = config
        util.make_or_verify_dir(config.records_dir, 0o700, self.config.strict_permissions)

    def _record_dir_path(self, name: str) -> str:
        return os.path.join(self.config.records_dir, name)

    @classmethod
    def _record_path(cls, record_dir_path: str) -> str:
        return os.path.join(record_dir_path, constants.RECORD_FILE)

    def find_all(self) -> List[str]:
        try:
            candidates = os.listdir(self.config.records_dir)
        except OSError:
            return []
        return sorted(name for name in candidates
                      if os.path.isfile(self._record_path(self._record_dir_path(name))))

    def load(self, name: str) -> AccountRecord:
        record_dir_path = self._record_dir_path(name)
        record_path = self._record_path(record_dir_path)
        if not os.path.isfile(record_path):
            raise errors.RecordNotFound(f"Record at {record_dir_path} does not exist")

        try:
            with open(record_path) as record_file:
                return AccountRecord.json_loads(record_file.read())
        except OSError as error:
            raise errors.RecordStorageError(error)
        except jose.DeserializationError as error:
            raise errors.RecordStorageError(
                f"Record at {record_path} is corrupted: {error}")

    def save(self, name: str, record: AccountRecord) -> None:
        """Write the persistent fields of `record`.

        :param str name: name of the record
        :param AccountRecord record: record to save

        """
        record_dir_path = self._record_dir_path(name)
        try:
            util.make_or_verify_dir(record_dir_path, 0o700, self.config.strict_permissions)
            util.atomic_write(self._record_path(record_dir_path),
                              record.persistent().json_dumps(indent=4), chmod=0o600)
        except OSError as error:
            raise errors.RecordStorageError(error)
        logger.debug("Saved record %s to %s", name, record_dir_path)

    def delete(self, name: str) -> None:
        """Delete the record from disk

        :param str name: name of the record which should be deleted

        """
        record_dir_path = self._record_dir_path(name)
        if not os.path.isdir(record_dir_path):
            raise errors.RecordNotFound(f"Record at {record_dir_path} does not exist")
        try:
            shutil.rmtree(record_dir_path)
        except OSError as error:
            raise errors.RecordStorageError(error)
