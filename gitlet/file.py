# file.py -- Safe access to gitlet files
# Copyright (C) 2025 The Gitlet developers
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# Gitlet is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Safe access to gitlet files.

Every file under the control directory is replaced as a whole: writes go to
``<name>.lock`` and are renamed over ``<name>`` when the file is closed, so
readers never observe a half-written object, ref or staging file.
"""

__all__ = [
    "FileLocked",
    "GitFile",
    "ensure_dir_exists",
]

import os
import warnings
from types import TracebackType
from typing import IO, Any, ClassVar

PathLike = str | bytes | os.PathLike[str] | os.PathLike[bytes]


def ensure_dir_exists(dirname: PathLike) -> None:
    """Ensure a directory exists, creating if necessary."""
    try:
        os.makedirs(dirname)
    except FileExistsError:
        pass


def GitFile(
    filename: PathLike,
    mode: str = "rb",
    bufsize: int = -1,
    mask: int = 0o644,
    fsync: bool = True,
) -> "IO[bytes] | _GitFile":
    """Create a file object that obeys the lock file protocol.

    Only read-only and write-only binary modes are supported. Reading returns
    a plain builtin file object; writing returns a :class:`_GitFile`.

    Args:
      filename: Path to the file
      mode: File mode ('rb' or 'wb')
      bufsize: Buffer size for file operations
      mask: File mask for created files
      fsync: Whether to call fsync() before renaming the lock file into place
    Returns: a builtin file object or a _GitFile object
    """
    if "a" in mode:
        raise OSError("append mode not supported for Gitlet files")
    if "+" in mode:
        raise OSError("read/write mode not supported for Gitlet files")
    if "b" not in mode:
        raise OSError("text mode not supported for Gitlet files")
    if "w" in mode:
        return _GitFile(filename, mode, bufsize, mask, fsync)
    return open(filename, mode, bufsize)


class FileLocked(Exception):
    """File is already locked."""

    def __init__(self, filename: PathLike, lockfilename: str | bytes) -> None:
        """Initialize FileLocked.

        Args:
          filename: Name of the file that is locked
          lockfilename: Name of the lock file
        """
        self.filename = filename
        self.lockfilename = lockfilename
        super().__init__(filename, lockfilename)


class _GitFile:
    """File that follows the lock file protocol for writes.

    All writes to a file foo go to foo.lock in the same directory; the lock
    file is renamed over the original on close.

    Note: You *must* call close() or abort() on a _GitFile for the lock to be
        released. Using it as a context manager does this for you.
    """

    PROXY_PROPERTIES: ClassVar[set[str]] = {"mode", "name"}

    def __init__(
        self,
        filename: PathLike,
        mode: str,
        bufsize: int,
        mask: int,
        fsync: bool = True,
    ) -> None:
        self._filename: str | bytes = os.fspath(filename)
        self._fsync = fsync
        if isinstance(self._filename, bytes):
            self._lockfilename: str | bytes = self._filename + b".lock"
        else:
            self._lockfilename = self._filename + ".lock"
        try:
            fd = os.open(
                self._lockfilename,
                os.O_RDWR | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0),
                mask,
            )
        except FileExistsError as exc:
            raise FileLocked(filename, self._lockfilename) from exc
        self._file = os.fdopen(fd, mode, bufsize)
        self._closed = False

    def write(self, data: bytes) -> int:
        return self._file.write(data)

    def writelines(self, lines: list[bytes]) -> None:
        self._file.writelines(lines)

    def flush(self) -> None:
        self._file.flush()

    def abort(self) -> None:
        """Close and discard the lockfile without overwriting the target.

        If the file is already closed, this is a no-op.
        """
        if self._closed:
            return
        self._file.close()
        try:
            os.remove(self._lockfilename)
        except FileNotFoundError:
            # The file may have been removed already, which is ok.
            pass
        self._closed = True

    def close(self) -> None:
        """Close this file, saving the lockfile over the original.

        Raises:
          OSError: if the original file could not be overwritten. The lock
            file is discarded in that case.
        """
        if self._closed:
            return
        self._file.flush()
        if self._fsync:
            os.fsync(self._file.fileno())
        self._file.close()
        try:
            os.replace(self._lockfilename, self._filename)
        finally:
            self.abort()

    @property
    def closed(self) -> bool:
        """Return whether the file is closed."""
        return self._closed

    def __del__(self) -> None:
        if not getattr(self, "_closed", True):
            warnings.warn(f"unclosed {self!r}", ResourceWarning, stacklevel=2)
            self.abort()

    def __enter__(self) -> "_GitFile":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.abort()
        else:
            self.close()

    def __fspath__(self) -> str | bytes:
        """Return the file path for os.fspath() compatibility."""
        return self._filename

    def __getattr__(self, name: str) -> Any:  # noqa: ANN401
        """Proxy property calls to the underlying file."""
        if name in self.PROXY_PROPERTIES:
            return getattr(self._file, name)
        raise AttributeError(name)
