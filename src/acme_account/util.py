"""Utilities for all acme-account."""
import errno
import logging
import os
import stat
from typing import IO

from acme_account import errors

logger = logging.getLogger(__name__)


PERM_ERR_FMT = os.linesep.join((
    "The following error was encountered:", "{0}",
    "Either run as root, or set --config-dir and --logs-dir to writeable paths."))


def make_or_verify_dir(directory: str, mode: int = 0o755, strict: bool = False) -> None:
    """Make sure directory exists with proper permissions.

    :param str directory: Path to a directory.
    :param int mode: Directory mode.
    :param bool strict: require directory to be owned by current user

    :raises .errors.Error: if a directory already exists,
        but has wrong permissions or owner

    :raises OSError: if invalid or inaccessible file names and
        paths, or other arguments that have the correct type,
        but are not accepted by the operating system.

    """
    try:
        os.makedirs(directory, mode)
    except OSError as exception:
        if exception.errno == errno.EEXIST:
            if strict and not check_permissions(directory, mode):
                raise errors.Error(
                    "%s exists, but it should be owned by current user with"
                    " permissions %s" % (directory, oct(mode)))
        else:
            raise


def check_permissions(filepath: str, mode: int) -> bool:
    """Check file or directory permissions.

    :param str filepath: Path to the tested file (or directory).
    :param int mode: Expected file mode.

    :returns: True if `mode` matches the file mode and the file is
        owned by the current user, False otherwise.
    :rtype: bool

    """
    file_stat = os.stat(filepath)
    return stat.S_IMODE(file_stat.st_mode) == mode and file_stat.st_uid == os.getuid()


def safe_open(path: str, mode: str = "w", chmod: int = 0o600) -> IO:
    """Safely open a new file.

    The file must not exist yet; it is created with permissions `chmod`
    regardless of the process umask.

    :param str path: Path to a file.
    :param str mode: Same os `mode` for `open`.
    :param int chmod: Permissions of the created file.

    """
    fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_RDWR, chmod)
    os.chmod(path, chmod)
    return os.fdopen(fd, mode)


def atomic_write(path: str, contents: str, chmod: int = 0o600) -> None:
    """Replace `path` with `contents` without exposing a partial file.

    :param str path: Destination file.
    :param str contents: Text to write.
    :param int chmod: Permissions of the written file.

    """
    tmp_path = path + ".tmp"
    try:
        os.remove(tmp_path)
    except FileNotFoundError:
        pass
    with safe_open(tmp_path, "w", chmod=chmod) as tmp_file:
        tmp_file.write(contents)
    os.replace(tmp_path, path)
