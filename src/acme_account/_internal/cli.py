"""acme-account command line argument & config processing."""
import argparse
import copy
from typing import Any
from typing import List

import configargparse

import acme_account
from acme_account._internal import constants

VERBS = ("register", "show", "unregister", "list")

COMMAND_OVERVIEW = """
  register      Create the ACME account, or reconcile the stored one
  show          Fetch the account status from the CA
  unregister    Deactivate the account and forget it
  list          List the accounts stored for the server
"""


def flag_default(name: str) -> Any:
    """Default value for CLI flag."""
    return copy.deepcopy(constants.CLI_DEFAULTS[name])


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"{value!r} must be a positive integer")
    return number


def _nonnegative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer")
    if number < 0:
        raise argparse.ArgumentTypeError(f"{value!r} must not be negative")
    return number


def build_parser() -> configargparse.ArgParser:
    """Command line parser, also reading ``cli.ini`` style config files."""
    parser = configargparse.ArgParser(
        prog="acme-account",
        description="Manage the lifecycle of an ACME account." + COMMAND_OVERVIEW,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        args_for_setting_config_path=["-c", "--config"],
        default_config_files=flag_default("config_files"),
        config_arg_help_message="path to config file (default: {0})".format(
            " and ".join(flag_default("config_files"))))

    parser.add_argument("verb", choices=VERBS, help="action to perform")
    parser.add_argument(
        "--version", action="version",
        version=f"%(prog)s {acme_account.__version__}")

    parser.add_argument(
        "-v", "--verbose", dest="verbose_count", action="count",
        default=flag_default("verbose_count"), help="This flag can be used "
        "multiple times to incrementally increase the verbosity of output, "
        "e.g. -vvv.")
    parser.add_argument(
        "-q", "--quiet", dest="quiet", action="store_true",
        default=flag_default("quiet"),
        help="Silence all output except errors.")
    parser.add_argument(
        "--debug", action="store_true", default=flag_default("debug"),
        help="Show tracebacks in case of errors")
    parser.add_argument(
        "--max-log-backups", type=_nonnegative_int,
        default=flag_default("max_log_backups"),
        help="Specifies the maximum number of backup logs that should "
             "be kept. Setting this to 0 disables log rotation.")

    account = parser.add_argument_group("account")
    account.add_argument(
        "--name", default=flag_default("name"),
        help="Name under which the account record is stored, "
             "to manage several accounts on the same server.")
    account.add_argument(
        "--account-key", metavar="PATH", default=flag_default("account_key"),
        help="PEM encoded RSA or EC private key of the account. Required "
             "by register; the key is stored with the account record.")
    account.add_argument(
        "-m", "--email", default=flag_default("email"),
        help="Email address used for account registration.")
    account.add_argument(
        "--eab-kid", dest="eab_kid", metavar="EAB_KID",
        default=flag_default("eab_kid"),
        help="Key Identifier for External Account Binding")
    account.add_argument(
        "--eab-hmac-key", dest="eab_hmac_key", metavar="EAB_HMAC_KEY",
        default=flag_default("eab_hmac_key"),
        help="HMAC key for External Account Binding")

    server = parser.add_argument_group("server")
    server.add_argument(
        "--server", default=flag_default("server"),
        help="ACME Directory Resource URI.")
    server.add_argument(
        "--staging", dest="server", action="store_const",
        const=constants.STAGING_URI,
        help="Use the Let's Encrypt staging server.")
    server.add_argument(
        "--no-verify-ssl", action="store_true",
        default=flag_default("no_verify_ssl"),
        help="Disable verification of the ACME server's certificate.")
    server.add_argument(
        "--user-agent", default=flag_default("user_agent"),
        help="Set a custom user agent string for the client.")
    server.add_argument(
        "--timeout", type=_positive_int, default=flag_default("timeout"),
        help="Timeout in seconds for each request to the ACME server.")

    paths = parser.add_argument_group("paths")
    paths.add_argument(
        "--config-dir", default=flag_default("config_dir"),
        help="Configuration directory; account records are stored in it.")
    paths.add_argument(
        "--logs-dir", default=flag_default("logs_dir"),
        help="Logs directory.")
    paths.add_argument(
        "--strict-permissions", action="store_true",
        default=flag_default("strict_permissions"),
        help="Require that all configuration files are owned by the current "
             "user; only needed if your config is somewhere unsafe like /tmp/")
    return parser


def prepare_and_parse_args(args: List[str]) -> argparse.Namespace:
    """Returns parsed command line arguments.

    :param list args: command line arguments with the program name removed

    :returns: parsed command line arguments
    :rtype: argparse.Namespace

    """
    return build_parser().parse_args(args)
