# objects.py -- Access to base gitlet objects
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

"""Access to base gitlet objects.

There are two kinds of objects: blobs, which hold the contents of one file,
and commits, which hold a complete snapshot of the tracked files (a mapping
from path to blob id) together with a message, a timestamp and the id of the
parent commit. Both are immutable once constructed.
"""

__all__ = [
    "Blob",
    "Commit",
    "ObjectID",
    "ShaFile",
    "format_commit_date",
    "format_timezone",
    "parse_timezone",
    "valid_hexsha",
]

import binascii
import time
from collections.abc import Iterator, Mapping
from io import BytesIO
from types import MappingProxyType

from .errors import ObjectFormatException
from .hash import DEFAULT_HASH_ALGORITHM, HashAlgorithm

ObjectID = bytes

# Header fields for commits
_PARENT_HEADER = b"parent"
_TIMESTAMP_HEADER = b"timestamp"
_FILE_HEADER = b"file"

_DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)  # fmt: skip


def valid_hexsha(hex: bytes | str) -> bool:
    """Check whether a value is a full lowercase hex object id."""
    if isinstance(hex, str):
        hex = hex.encode("ascii", "replace")
    if len(hex) not in (40, 64) or hex.lower() != hex:
        return False
    try:
        binascii.unhexlify(hex)
    except (TypeError, binascii.Error):
        return False
    return True


def parse_timezone(text: bytes) -> int:
    """Parse a timezone text fragment (e.g. b'+0100').

    Args:
      text: Text to parse.
    Returns: Offset from UTC in seconds
    """
    if text[:1] not in (b"+", b"-") or len(text) != 5 or not text[1:].isdigit():
        raise ValueError(f"Timezone must start with + or - ({text!r})")
    sign = -1 if text[:1] == b"-" else 1
    hours = int(text[1:3])
    minutes = int(text[3:5])
    return sign * (hours * 3600 + minutes * 60)


def format_timezone(offset: int) -> bytes:
    """Format a timezone for gitlet serialization.

    Args:
      offset: Timezone offset as seconds difference to UTC
    """
    if offset % 60 != 0:
        raise ValueError("Unable to handle non-minute offset.")
    sign = "-" if offset < 0 else "+"
    offset = abs(offset)
    return (f"{sign}{offset // 3600:02d}{(offset // 60) % 60:02d}").encode("ascii")


def format_commit_date(timestamp: int, timezone: int) -> str:
    """Format a commit time the way ``log`` shows it.

    The result does not depend on the current locale, e.g.
    ``Thu Jan 1 00:00:00 1970 +0000``.
    """
    tt = time.gmtime(timestamp + timezone)
    return "{} {} {} {:02d}:{:02d}:{:02d} {} {}".format(
        _DAY_NAMES[tt.tm_wday],
        _MONTH_NAMES[tt.tm_mon - 1],
        tt.tm_mday,
        tt.tm_hour,
        tt.tm_min,
        tt.tm_sec,
        tt.tm_year,
        format_timezone(timezone).decode("ascii"),
    )


class ShaFile:
    """Base class for content-addressed objects."""

    type_name: bytes

    def __init__(self, hash_algorithm: HashAlgorithm | None = None) -> None:
        self._hash_algorithm = hash_algorithm or DEFAULT_HASH_ALGORITHM
        self._sha: ObjectID | None = None

    @classmethod
    def from_string(
        cls, text: bytes, hash_algorithm: HashAlgorithm | None = None
    ) -> "ShaFile":
        """Create an object from its raw (uncompressed) contents."""
        raise NotImplementedError(cls.from_string)

    def as_raw_chunks(self) -> list[bytes]:
        """Return the raw (uncompressed) contents as a list of chunks."""
        raise NotImplementedError(self.as_raw_chunks)

    def as_raw_string(self) -> bytes:
        """Return the raw (uncompressed) contents."""
        return b"".join(self.as_raw_chunks())

    def get_id(self, hash_algorithm: HashAlgorithm | None = None) -> ObjectID:
        """Compute the id of this object under a specific hash algorithm."""
        if hash_algorithm is None or hash_algorithm is self._hash_algorithm:
            return self.id
        return hash_algorithm.hash_object_hex(self.type_name, self.as_raw_chunks())

    @property
    def id(self) -> ObjectID:
        """The hex content hash naming this object."""
        if self._sha is None:
            self._sha = self._hash_algorithm.hash_object_hex(
                self.type_name, self.as_raw_chunks()
            )
        return self._sha

    @property
    def hash_algorithm(self) -> HashAlgorithm:
        return self._hash_algorithm

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.id.decode('ascii')}>"

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        """Return true if the ids of the two objects match."""
        return isinstance(other, ShaFile) and self.id == other.id

    def __ne__(self, other: object) -> bool:
        return not self == other


class Blob(ShaFile):
    """The contents of one file."""

    type_name = b"blob"

    def __init__(
        self, data: bytes = b"", hash_algorithm: HashAlgorithm | None = None
    ) -> None:
        super().__init__(hash_algorithm)
        if not isinstance(data, bytes):
            raise TypeError(f"blob data must be bytes, not {type(data).__name__}")
        self._data = data

    @classmethod
    def from_string(
        cls, data: bytes, hash_algorithm: HashAlgorithm | None = None
    ) -> "Blob":
        """Create a blob from a string."""
        return cls(data, hash_algorithm)

    @property
    def data(self) -> bytes:
        """The contents of the blob."""
        return self._data

    def as_raw_chunks(self) -> list[bytes]:
        return [self._data]


def _check_tracked_path(path: bytes) -> None:
    if not isinstance(path, bytes):
        raise TypeError(f"tracked paths must be bytes, not {type(path).__name__}")
    if not path or b"\n" in path or b"\0" in path:
        raise ValueError(f"invalid tracked path {path!r}")


class Commit(ShaFile):
    """A snapshot of every tracked file at one point in history.

    The tracked mapping is complete: reading a commit never requires looking
    at its parent.
    """

    type_name = b"commit"

    def __init__(
        self,
        message: bytes = b"",
        parent: ObjectID | None = None,
        commit_time: int = 0,
        commit_timezone: int = 0,
        tracked: Mapping[bytes, ObjectID] | None = None,
        hash_algorithm: HashAlgorithm | None = None,
    ) -> None:
        """Create a commit.

        Args:
          message: Commit message
          parent: Id of the parent commit; None for the root commit
          commit_time: Seconds since the epoch
          commit_timezone: Offset from UTC, in seconds
          tracked: Mapping of path to blob id
          hash_algorithm: Hash algorithm naming this commit
        """
        super().__init__(hash_algorithm)
        if parent is not None and not valid_hexsha(parent):
            raise ValueError(f"invalid parent id {parent!r}")
        tracked = dict(tracked or {})
        for path, sha in tracked.items():
            _check_tracked_path(path)
            if not valid_hexsha(sha):
                raise ValueError(f"invalid blob id {sha!r} for {path!r}")
        format_timezone(commit_timezone)
        self._message = message
        self._parent = parent
        self._commit_time = int(commit_time)
        self._commit_timezone = commit_timezone
        self._tracked = MappingProxyType(tracked)

    @property
    def message(self) -> bytes:
        """The commit message."""
        return self._message

    @property
    def parent(self) -> ObjectID | None:
        """Id of the parent commit, or None for the root commit."""
        return self._parent

    @property
    def commit_time(self) -> int:
        """The timestamp of the commit, as seconds since the epoch."""
        return self._commit_time

    @property
    def commit_timezone(self) -> int:
        """The zone the commit time is in."""
        return self._commit_timezone

    @property
    def tracked(self) -> Mapping[bytes, ObjectID]:
        """Read-only mapping of tracked path to blob id."""
        return self._tracked

    def iter_tracked(self) -> Iterator[tuple[bytes, ObjectID]]:
        """Iterate over (path, blob id) pairs, sorted by path."""
        for path in sorted(self._tracked):
            yield path, self._tracked[path]

    def as_raw_chunks(self) -> list[bytes]:
        chunks = []
        if self._parent is not None:
            chunks.append(b"%s %s\n" % (_PARENT_HEADER, self._parent))
        chunks.append(
            b"%s %d %s\n"
            % (
                _TIMESTAMP_HEADER,
                self._commit_time,
                format_timezone(self._commit_timezone),
            )
        )
        for path, sha in self.iter_tracked():
            chunks.append(b"%s %s %s\n" % (_FILE_HEADER, sha, path))
        chunks.append(b"\n")  # There must be a new line after the headers
        chunks.append(self._message)
        return chunks

    @classmethod
    def from_string(
        cls, text: bytes, hash_algorithm: HashAlgorithm | None = None
    ) -> "Commit":
        """Parse a serialized commit.

        Raises:
          ObjectFormatException: if the text is not a valid commit record
        """
        parent = None
        commit_time = None
        commit_timezone = 0
        tracked: dict[bytes, ObjectID] = {}
        f = BytesIO(text)
        for line in f:
            line = line.rstrip(b"\n")
            if line == b"":
                # Empty line indicates end of headers
                break
            try:
                field, value = line.split(b" ", 1)
                if field == _PARENT_HEADER:
                    parent = value
                elif field == _TIMESTAMP_HEADER:
                    timetext, timezonetext = value.rsplit(b" ", 1)
                    commit_time = int(timetext)
                    commit_timezone = parse_timezone(timezonetext)
                elif field == _FILE_HEADER:
                    sha, path = value.split(b" ", 1)
                    tracked[path] = sha
                else:
                    raise ObjectFormatException(f"unknown commit field {field!r}")
            except ValueError as exc:
                raise ObjectFormatException(f"malformed commit line {line!r}") from exc
        else:
            raise ObjectFormatException("commit has no end of headers")
        if commit_time is None:
            raise ObjectFormatException("commit has no timestamp")
        try:
            return cls(
                message=f.read(),
                parent=parent,
                commit_time=commit_time,
                commit_timezone=commit_timezone,
                tracked=tracked,
                hash_algorithm=hash_algorithm,
            )
        except ValueError as exc:
            raise ObjectFormatException(str(exc)) from exc
