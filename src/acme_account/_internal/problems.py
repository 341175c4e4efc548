"""Classification of CA problem documents for account operations."""
import enum
import logging
from typing import FrozenSet
from typing import Tuple

from acme import messages
from acme_account import errors

logger = logging.getLogger(__name__)


class Classification(enum.Enum):
    """What a CA error means for the account being managed."""

    ABSENT = enum.auto()
    """The account no longer exists; the record must be forgotten."""
    FATAL = enum.auto()
    """A real error that must be surfaced to the caller."""


ACCOUNT_GONE_PROBLEMS: FrozenSet[Tuple[int, str]] = frozenset((
    # RFC 8555 section 7.3.1: no account exists for the key when
    # onlyReturnExisting is set.
    (400, messages.ERROR_PREFIX + 'accountDoesNotExist'),
    # Deactivated accounts. The type is broad, but the requests this
    # module classifies only ever concern the account itself.
    (403, messages.ERROR_PREFIX + 'unauthorized'),
))
"""(HTTP status, problem type) pairs meaning the account is gone."""


def classify(status: int, typ: str) -> Classification:
    """Classify a CA problem.

    Both the status code and the type must match an entry of
    `ACCOUNT_GONE_PROBLEMS` for the problem to be `Classification.ABSENT`.

    :param int status: HTTP status code of the response
    :param str typ: problem type URN

    :rtype: Classification

    """
    if (status, typ) in ACCOUNT_GONE_PROBLEMS:
        return Classification.ABSENT
    return Classification.FATAL


def classify_error(error: BaseException) -> Classification:
    """Classify any exception raised while talking to the CA.

    Only `.errors.ProblemError` carries the structured problem needed to
    conclude that the account is gone. Transport failures, undecodable
    responses and problems without a known HTTP status are fatal.

    """
    if isinstance(error, errors.ProblemError):
        return classify(error.status, error.typ)
    return Classification.FATAL


def is_account_gone(error: BaseException) -> bool:
    """Does `error` mean that the account no longer exists?"""
    gone = classify_error(error) is Classification.ABSENT
    if gone:
        logger.debug("CA reports the account as gone: %s", error)
    return gone
