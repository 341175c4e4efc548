"""acme-account user-supplied configuration."""
import argparse
import os
import re
from typing import Any
from typing import Optional
from urllib import parse

from acme_account import errors
from acme_account._internal import constants


class NamespaceConfig:
    """Configuration wrapper around :class:`argparse.Namespace`.

    Attribute access is delegated to the wrapped namespace. The
    following attributes are derived from
    :attr:`~acme_account.configuration.NamespaceConfig.config_dir` and
    :attr:`~acme_account.configuration.NamespaceConfig.server`:

      - `server_path`
      - `records_dir`

    :ivar namespace: Namespace typically produced by
        :meth:`argparse.ArgumentParser.parse_args`.
    :type namespace: :class:`argparse.Namespace`

    """

    def __init__(self, namespace: argparse.Namespace) -> None:
        self.namespace: argparse.Namespace
        # Avoid recursion loop because of the delegation defined in __setattr__
        object.__setattr__(self, 'namespace', namespace)

        self.namespace.config_dir = os.path.abspath(os.path.expanduser(
            self.namespace.config_dir))
        self.namespace.logs_dir = os.path.abspath(os.path.expanduser(
            self.namespace.logs_dir))

        # Check command line parameters sanity, and error out in case of problem.
        _check_config_sanity(self)

    def __getattr__(self, name: str) -> Any:
        return getattr(self.namespace, name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self.namespace, name, value)

    @property
    def server(self) -> str:
        """ACME Directory Resource URI."""
        return self.namespace.server

    @property
    def email(self) -> Optional[str]:
        """Email used for account registration, `None` if there is none."""
        return self.namespace.email or None

    @property
    def server_path(self) -> str:
        """File path based on ``server``."""
        parsed = parse.urlparse(self.namespace.server)
        return _underscores_for_unsupported_characters(
            (parsed.netloc + parsed.path).replace('/', os.path.sep))

    @property
    def records_dir(self) -> str:
        """Directory where account records for ``server`` are stored."""
        return os.path.join(
            self.namespace.config_dir, constants.RECORDS_DIR, self.server_path)


def _underscores_for_unsupported_characters(path: str) -> str:
    return path.replace(':', '_')


def _check_config_sanity(config: NamespaceConfig) -> None:
    """Validate command line options and display error message if
    requirements are not met.

    :param config: NamespaceConfig instance holding user configuration
    :type args: :class:`acme_account.configuration.NamespaceConfig`

    """
    parsed = parse.urlparse(config.namespace.server)
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise errors.Error(
            f"--server must be an http(s) URL, got {config.namespace.server!r}")

    if bool(config.namespace.eab_kid) != bool(config.namespace.eab_hmac_key):
        raise errors.Error(
            "--eab-kid and --eab-hmac-key must be supplied together")

    if config.namespace.timeout is not None and config.namespace.timeout <= 0:
        raise errors.Error("--timeout must be a positive number of seconds")

    name = config.namespace.name or ''
    if not re.match(r'^[A-Za-z0-9._-]+$', name) or name in ('.', '..'):
        raise errors.Error(
            "--name may only contain letters, digits, '.', '_' and '-'")
