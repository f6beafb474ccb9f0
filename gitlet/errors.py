# errors.py -- Gitlet exception classes
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

"""Gitlet-related exception classes.

Errors that end a command with a single line of output derive from
:class:`GitletError`. The command line dispatcher is the only place that
catches them.
"""

# Please do not add more errors here, but instead add them close to the code
# that raises the error.

__all__ = [
    "AlreadyExists",
    "ChecksumMismatch",
    "FileFormatException",
    "GitletError",
    "NotFound",
    "NotGitletRepository",
    "ObjectFormatException",
    "ObjectMissing",
    "RepositoryExists",
]


class GitletError(Exception):
    """An error that terminates a command with a one-line report.

    Subclasses set ``default_message`` to the text shown to the user when
    no explicit message is given.
    """

    default_message = "Gitlet command failed."

    def __init__(self, msg: str | None = None) -> None:
        """Initialize a GitletError.

        Args:
          msg: Message to report; defaults to the class' default_message
        """
        super().__init__(self.default_message if msg is None else msg)


class NotFound(GitletError):
    """Something that was asked for does not exist."""


class AlreadyExists(GitletError):
    """Something that was asked to be created already exists."""


class ObjectMissing(NotFound):
    """Indicates that a requested object is missing from the object store."""

    def __init__(self, sha: bytes) -> None:
        """Initialize an ObjectMissing exception.

        Args:
          sha: The hex id of the missing object
        """
        self.sha = sha
        super().__init__(f"{sha.decode('ascii', 'replace')} is not in the object store")


class NotGitletRepository(NotFound):
    """Indicates that no Gitlet repository was found."""

    default_message = "Not in an initialized Gitlet directory."


class RepositoryExists(AlreadyExists):
    """A repository already exists at the requested location."""

    default_message = (
        "A Gitlet version-control system already exists in the current directory."
    )


class ChecksumMismatch(Exception):
    """A checksum didn't match the expected contents."""

    def __init__(
        self, expected: bytes | str, got: bytes | str, extra: str | None = None
    ) -> None:
        """Initialize a ChecksumMismatch exception.

        Args:
          expected: The expected checksum (hex)
          got: The actual checksum (hex)
          extra: Optional additional error information
        """
        if isinstance(expected, bytes):
            expected = expected.decode("ascii", "replace")
        if isinstance(got, bytes):
            got = got.decode("ascii", "replace")
        self.expected = expected
        self.got = got
        self.extra = extra
        message = f"Checksum mismatch: Expected {expected}, got {got}"
        if extra is not None:
            message += f"; {extra}"
        super().__init__(message)


class FileFormatException(Exception):
    """Base class for exceptions relating to reading gitlet file formats."""


class ObjectFormatException(FileFormatException):
    """Indicates an error parsing an object."""
