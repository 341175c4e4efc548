"""acme-account constants."""
import logging
import os
from typing import Any
from typing import Dict

CONFIG_DIR = "/etc/acme-account"
LOGS_DIR = "/var/log/acme-account"

CLI_DEFAULTS: Dict[str, Any] = dict(  # noqa
    config_files=[
        os.path.join(CONFIG_DIR, 'cli.ini'),
        # https://freedesktop.org/wiki/Software/xdg-user-dirs/
        os.path.join(os.environ.get("XDG_CONFIG_HOME", "~/.config"),
                     "acme-account", "cli.ini"),
    ],

    # Main parser
    verbose_count=0,
    quiet=False,
    debug=False,
    max_log_backups=100,
    name="default",
    email=None,
    account_key=None,
    eab_kid=None,
    eab_hmac_key=None,
    no_verify_ssl=False,
    user_agent=None,
    timeout=45,
    strict_permissions=False,

    # Path parsers
    config_dir=CONFIG_DIR,
    logs_dir=LOGS_DIR,
    server="https://acme-v02.api.letsencrypt.org/directory",
)
"""Defaults for CLI flags and `acme_account.configuration.NamespaceConfig` attributes."""

STAGING_URI = "https://acme-staging-v02.api.letsencrypt.org/directory"

QUIET_LOGGING_LEVEL = logging.ERROR
"""Logging level to use in quiet mode."""

DEFAULT_LOGGING_LEVEL = logging.WARNING
"""Default logging level to use when not in quiet mode."""

RECORDS_DIR = "records"
"""Directory where all account records are saved, relative to ``config_dir``."""

RECORD_FILE = "record.json"
"""Basename of a persisted account record."""

LOG_FILE = "acme-account.log"
"""Basename of the debug log file in ``logs_dir``."""

ACCOUNT_STATUSES = frozenset(("valid", "deactivated", "revoked"))
"""Account statuses (RFC 8555 section 7.1.2) reported as-is by a refresh.

Any other value is treated as the account being gone.

"""
