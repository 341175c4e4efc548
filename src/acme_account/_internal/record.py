"""Account record managed against an ACME CA."""
import base64
import binascii
import re
from typing import List
from typing import Optional

import josepy as jose

from acme_account import errors

_BASE64_RE = re.compile(r'^[A-Za-z0-9_\-+/]+$')


def decode_hmac_key(hmac_base64: str) -> bytes:
    """Decode an EAB HMAC secret.

    CAs hand out the secret either in the URL-safe alphabet (as RFC 8555
    examples do) or in the standard one, with or without padding. Both
    are accepted here.

    :param str hmac_base64: base64 encoded secret

    :raises .errors.MalformedInputError: if the secret is not base64

    :returns: the raw secret
    :rtype: bytes

    """
    stripped = hmac_base64.strip().rstrip('=')
    if not stripped or not _BASE64_RE.match(stripped) or len(stripped) % 4 == 1:
        raise errors.MalformedInputError(
            "The EAB HMAC key is not valid base64")
    urlsafe = stripped.replace('+', '-').replace('/', '_')
    try:
        return base64.urlsafe_b64decode(urlsafe + '=' * (-len(urlsafe) % 4))
    except (binascii.Error, ValueError) as error:
        raise errors.MalformedInputError(
            f"The EAB HMAC key is not valid base64: {error}")


class ExternalAccountBinding(jose.JSONObjectWithFields):
    """Out-of-band credentials some CAs require for new accounts.

    :ivar str key_id: Key identifier issued by the CA.
    :ivar str hmac_base64: base64 encoded MAC key issued by the CA.

    """
    key_id: str = jose.field('key_id')
    hmac_base64: str = jose.field('hmac_base64')

    @property
    def hmac_key(self) -> bytes:
        """Decoded MAC key."""
        return decode_hmac_key(self.hmac_base64)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(key_id=<redacted>, hmac_base64=<redacted>)"


class AccountRecord(jose.JSONObjectWithFields):
    """ACME account under management.

    Instances are immutable. The key, email and EAB credentials are
    write-once; changing any of them means deactivating the account and
    creating a new one (see `replacement_fields`).

    :ivar str account_key_pem: PEM encoded private key of the account.
    :ivar str email_address: Contact email, may be empty.
    :ivar ExternalAccountBinding external_account_binding: EAB
        credentials, `None` unless the CA requires them.
    :ivar str registration_url: Account URL assigned by the CA, `None`
        until the account has been created.
    :ivar str status: Account status last reported by the CA. It is
        never persisted.

    """
    WRITE_ONCE_FIELDS = ('account_key_pem', 'email_address', 'external_account_binding')

    account_key_pem: str = jose.field('account_key_pem')
    email_address: str = jose.field('email_address')
    external_account_binding: Optional[ExternalAccountBinding] = jose.field(
        'external_account_binding', decoder=ExternalAccountBinding.from_json,
        omitempty=True)
    registration_url: Optional[str] = jose.field('registration_url', omitempty=True)
    status: Optional[str] = jose.field('status', omitempty=True)

    @classmethod
    def from_data(cls, account_key_pem: str, email_address: Optional[str] = None,
                  eab_kid: Optional[str] = None,
                  eab_hmac_key: Optional[str] = None) -> 'AccountRecord':
        """Create a record that has not been registered yet.

        :param str account_key_pem: PEM encoded account private key
        :param str email_address: contact email
        :param str eab_kid: EAB key identifier
        :param str eab_hmac_key: base64 encoded EAB MAC key

        :raises .errors.MalformedInputError: if only half of the EAB
            credentials are given, or the MAC key is not base64

        """
        eab = None
        if eab_kid or eab_hmac_key:
            if not (eab_kid and eab_hmac_key):
                raise errors.MalformedInputError(
                    "Both the EAB key id and the EAB HMAC key are required")
            decode_hmac_key(eab_hmac_key)
            eab = ExternalAccountBinding(key_id=eab_kid, hmac_base64=eab_hmac_key)
        return cls(account_key_pem=account_key_pem,
                   email_address=email_address or '',
                   external_account_binding=eab)

    @property
    def exists(self) -> bool:
        """Whether the account has been created on the CA."""
        return bool(self.registration_url)

    def persistent(self) -> 'AccountRecord':
        """Copy of this record without the fields derived from the CA."""
        return self.update(status=None)

    def replacement_fields(self, desired: 'AccountRecord') -> List[str]:
        """Write-once fields that differ between this record and `desired`.

        A non-empty result means the account has to be deleted and
        created again for `desired` to take effect.

        """
        changed = []
        for name in self.WRITE_ONCE_FIELDS:
            current = getattr(self, name)
            wanted = getattr(desired, name)
            if name == 'account_key_pem':
                current, wanted = current.strip(), wanted.strip()
            if current != wanted:
                changed.append(name)
        return changed

    def __repr__(self) -> str:
        return "<{0}({1}, {2}, eab={3}, status={4})>".format(
            self.__class__.__name__, self.registration_url, self.email_address,
            self.external_account_binding is not None, self.status)

