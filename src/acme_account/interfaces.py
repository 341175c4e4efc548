"""acme-account interfaces."""
from abc import ABCMeta
from abc import abstractmethod
from typing import List
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from acme_account._internal.record import AccountRecord


class RecordStorage(metaclass=ABCMeta):
    """Account record storage interface.

    Records are stored under a caller chosen name, one record per name.

    """

    @abstractmethod
    def find_all(self) -> List[str]:  # pragma: no cover
        """Names of all stored records.

        :rtype: list

        """
        raise NotImplementedError()

    @abstractmethod
    def load(self, name: str) -> 'AccountRecord':  # pragma: no cover
        """Load a record by its name.

        :raises .RecordNotFound: if the record could not be found
        :raises .RecordStorageError: if the record could not be loaded

        :returns: The record loaded
        :rtype: .AccountRecord

        """
        raise NotImplementedError()

    @abstractmethod
    def save(self, name: str, record: 'AccountRecord') -> None:  # pragma: no cover
        """Save a record, replacing any record stored under the same name.

        Fields derived from the CA are not persisted.

        :raises .RecordStorageError: if the record could not be saved

        """
        raise NotImplementedError()

    @abstractmethod
    def delete(self, name: str) -> None:  # pragma: no cover
        """Forget a record.

        :raises .RecordNotFound: if the record could not be found

        """
        raise NotImplementedError()
