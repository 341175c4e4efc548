"""acme-account errors."""
from typing import Optional

from acme import messages


class Error(Exception):
    """Generic acme-account error."""


class MalformedInputError(Error):
    """Caller supplied input that can never be accepted by a CA.

    Raised before any network round trip, e.g. for an EAB HMAC secret
    that is not base64 or an account key that cannot be loaded.

    """


class ProblemError(Error):
    """ACME problem document returned by the CA.

    Unlike `acme.messages.Error`, this keeps the HTTP status code of the
    response that carried the problem, so that it can be classified
    without inspecting the exception chain.

    :ivar int status: HTTP status code of the response.
    :ivar str typ: Problem type URN, e.g.
        ``urn:ietf:params:acme:error:accountDoesNotExist``.
    :ivar str detail: Human readable explanation from the CA.
    :ivar .messages.Error problem: Decoded problem document.

    """
    def __init__(self, status: int, typ: str, detail: Optional[str] = None,
                 problem: Optional[messages.Error] = None) -> None:
        self.status = status
        self.typ = typ
        self.detail = detail
        self.problem = problem
        super().__init__(status, typ, detail)

    @classmethod
    def from_acme_error(cls, error: messages.Error, status: int) -> 'ProblemError':
        """Wrap a decoded problem document together with its HTTP status."""
        return cls(status, error.typ, error.detail, problem=error)

    @property
    def code(self) -> Optional[str]:
        """ACME error code, i.e. the type without the ACME URN prefix."""
        if self.typ and self.typ.startswith(messages.ERROR_PREFIX):
            return self.typ[len(messages.ERROR_PREFIX):]
        return None

    def __str__(self) -> str:
        detail = self.detail if self.detail else "no detail provided"
        return f"{self.typ} (HTTP {self.status}) :: {detail}"


class RecordStorageError(Error):
    """Generic `.RecordStorage` error."""


class RecordNotFound(RecordStorageError):
    """Account record not found error."""
