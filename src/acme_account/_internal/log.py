"""Logging for acme-account.

Messages go to the terminal, at the verbosity requested on the command
line, and to a rotating debug log in ``logs_dir``. Both outputs pass
through `RedactingFilter`, so private keys and EAB MAC keys never reach
them, not even inside tracebacks.

"""
import functools
import logging
import logging.handlers
import os
import re
import sys
import traceback
from types import TracebackType
from typing import Iterable
from typing import Optional
from typing import Tuple
from typing import Type

from acme_account import configuration
from acme_account import errors
from acme_account import util
from acme_account._internal import constants

# Logging format
CLI_FMT = "%(message)s"
FILE_FMT = "%(asctime)s:%(levelname)s:%(name)s:%(message)s"

REDACTED = "<redacted>"

PEM_PRIVATE_KEY_RE = re.compile(
    r"-----BEGIN ([A-Z ]*)PRIVATE KEY-----.*?-----END \1PRIVATE KEY-----", re.DOTALL)
"""PEM encoded private keys, whatever their algorithm."""

SECRET_FIELD_RE = re.compile(
    r'("(?:account_key_pem|hmac_base64)"\s*:\s*)"(?:[^"\\]|\\.)*"')
"""Secret fields of serialized account records."""

logger = logging.getLogger(__name__)


class RedactingFilter(logging.Filter):
    """Replaces secrets in log records with a placeholder.

    The message is formatted with its arguments before being redacted,
    and so is the traceback of a record logged with ``exc_info``.

    :ivar list secrets: literal values to redact wherever they appear,
        e.g. the EAB MAC key from the command line

    """
    def __init__(self, secrets: Iterable[Optional[str]] = ()) -> None:
        super().__init__()
        self.secrets = [secret for secret in secrets if secret]

    def redact(self, text: str) -> str:
        """Text with every known kind of secret removed."""
        text = PEM_PRIVATE_KEY_RE.sub(REDACTED, text)
        text = SECRET_FIELD_RE.sub(r'\1"' + REDACTED + '"', text)
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self.redact(record.getMessage())
        record.args = ()
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = self.redact(record.exc_text)
        return True


def terminal_level(config: configuration.NamespaceConfig) -> int:
    """Logging level of the terminal output.

    :param acme_account.configuration.NamespaceConfig config: Configuration object

    :rtype: int

    """
    if config.quiet:
        return constants.QUIET_LOGGING_LEVEL
    return max(constants.DEFAULT_LOGGING_LEVEL - config.verbose_count * 10, logging.DEBUG)


def setup_logging(config: configuration.NamespaceConfig) -> str:
    """Setup terminal and file logging once the command line is parsed.

    :param acme_account.configuration.NamespaceConfig config: Configuration object

    :returns: absolute path to the log file
    :rtype: str

    """
    redacting_filter = RedactingFilter([config.eab_hmac_key])
    file_handler, log_path = setup_log_file_handler(config, constants.LOG_FILE, FILE_FMT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(CLI_FMT))
    level = terminal_level(config)
    stream_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # send all records to handlers
    for handler in (stream_handler, file_handler):
        handler.addFilter(redacting_filter)
        root_logger.addHandler(handler)
    logger.debug("Terminal logging level set at %d", level)

    install_except_hook(config.debug, config.quiet, log_path)
    return log_path


def setup_log_file_handler(config: configuration.NamespaceConfig, logfile: str,
                           fmt: str) -> Tuple[logging.Handler, str]:
    """Setup file debug logging.

    :param acme_account.configuration.NamespaceConfig config: Configuration object
    :param str logfile: basename for the log file
    :param str fmt: logging format string

    :returns: file handler and absolute path to the log file
    :rtype: tuple

    """
    try:
        util.make_or_verify_dir(config.logs_dir, 0o700, config.strict_permissions)
    except OSError as error:
        raise errors.Error(util.PERM_ERR_FMT.format(error))
    log_file_path = os.path.join(config.logs_dir, logfile)
    try:
        handler = logging.handlers.RotatingFileHandler(
            log_file_path, maxBytes=2 ** 20,
            backupCount=config.max_log_backups)
    except IOError as error:
        raise errors.Error(util.PERM_ERR_FMT.format(error))
    # one log file per invocation
    if config.max_log_backups:
        handler.doRollover()
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt=fmt))
    return handler, log_file_path


def install_except_hook(debug: bool, quiet: bool, log_path: Optional[str] = None) -> None:
    """Report uncaught exceptions through `except_hook`."""
    sys.excepthook = functools.partial(
        except_hook, debug=debug, quiet=quiet, log_path=log_path)


def except_hook(exc_type: Type[BaseException], exc_value: BaseException,
                trace: TracebackType, debug: bool, quiet: bool,
                log_path: Optional[str]) -> None:
    """Logs a fatal exception and exits with a nonzero status.

    The traceback is only shown to the user with ``--debug``, or when
    the exception is not an `Exception`. It always ends up in the log
    file.

    :param type exc_type: type of the raised exception
    :param BaseException exc_value: raised exception
    :param traceback trace: traceback of where the exception was raised
    :param bool debug: True if the traceback should be shown to the user
    :param bool quiet: True if running in quiet mode
    :param str log_path: path to the debug log, if there is one yet

    """
    if issubclass(exc_type, KeyboardInterrupt):
        logger.error("Exiting due to user request.")
        sys.exit(1)

    exc_info = (exc_type, exc_value, trace)
    if debug or not issubclass(exc_type, Exception):
        logger.error("Exiting abnormally:", exc_info=exc_info)
    else:
        logger.debug("Exiting abnormally:", exc_info=exc_info)
        if issubclass(exc_type, errors.Error):
            logger.error("%s", exc_value)
        else:
            logger.error("An unexpected error occurred: %s", "".join(
                traceback.format_exception_only(exc_type, exc_value)).rstrip())

    if quiet or log_path is None:
        sys.exit(1)
    sys.exit(f"See the logfile {log_path} or re-run with --debug for more details.")
