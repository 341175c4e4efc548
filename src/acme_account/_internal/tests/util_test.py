"""Tests for acme_account.util."""
import os
import stat
import sys
from unittest import mock

import pytest

from acme_account import errors
import acme_account.tests.util as test_util


class MakeOrVerifyDirTest(test_util.TempDirTestCase):
    """Tests for acme_account.util.make_or_verify_dir."""

    def setUp(self):
        super().setUp()

        self.path = os.path.join(self.tempdir, "foo")
        os.mkdir(self.path, 0o600)
        os.chmod(self.path, 0o600)

    def _call(self, directory, mode, strict=False):
        from acme_account.util import make_or_verify_dir
        return make_or_verify_dir(directory, mode, strict)

    def test_creates_dir_when_missing(self):
        path = os.path.join(self.tempdir, "bar")
        self._call(path, 0o700)
        assert os.path.isdir(path)
        assert stat.S_IMODE(os.stat(path).st_mode) & 0o077 == 0

    def test_existing_correct_mode_does_not_fail(self):
        self._call(self.path, 0o600, strict=True)

    def test_existing_wrong_mode_fails(self):
        with pytest.raises(errors.Error):
            self._call(self.path, 0o400, strict=True)

    def test_existing_wrong_mode_not_strict(self):
        self._call(self.path, 0o400)

    def test_reraises_os_error(self):
        with mock.patch("acme_account.util.os.makedirs") as mock_makedirs:
            mock_makedirs.side_effect = OSError()
            with pytest.raises(OSError):
                self._call("bar", 12312312)


class CheckPermissionsTest(test_util.TempDirTestCase):
    """Tests for acme_account.util.check_permissions."""

    def setUp(self):
        super().setUp()
        self.path = os.path.join(self.tempdir, "file")
        open(self.path, "w").close()
        os.chmod(self.path, 0o600)

    def _call(self, mode):
        from acme_account.util import check_permissions
        return check_permissions(self.path, mode)

    def test_ok_mode(self):
        assert self._call(0o600)

    def test_wrong_mode(self):
        assert not self._call(0o644)


class SafeOpenTest(test_util.TempDirTestCase):
    """Tests for acme_account.util.safe_open."""

    def _call(self, mode="w", chmod=0o600):
        from acme_account.util import safe_open
        return safe_open(os.path.join(self.tempdir, "foo"), mode=mode, chmod=chmod)

    def test_permissions(self):
        with self._call(chmod=0o640) as new_file:
            new_file.write("bar")
        assert stat.S_IMODE(os.stat(os.path.join(self.tempdir, "foo")).st_mode) == 0o640

    def test_existing_file_fails(self):
        self._call().close()
        with pytest.raises(OSError):
            self._call()


class AtomicWriteTest(test_util.TempDirTestCase):
    """Tests for acme_account.util.atomic_write."""

    def setUp(self):
        super().setUp()
        self.path = os.path.join(self.tempdir, "record.json")

    def _call(self, contents):
        from acme_account.util import atomic_write
        atomic_write(self.path, contents)

    def test_replaces(self):
        self._call("first")
        self._call("second")
        with open(self.path) as written:
            assert written.read() == "second"
        assert stat.S_IMODE(os.stat(self.path).st_mode) == 0o600

    def test_stale_tmp_file(self):
        with open(self.path + ".tmp", "w") as stale:
            stale.write("leftover from a crash")
        self._call("contents")
        with open(self.path) as written:
            assert written.read() == "contents"
        assert not os.path.exists(self.path + ".tmp")


if __name__ == "__main__":
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
