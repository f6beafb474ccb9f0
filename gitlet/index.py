# index.py -- File parser/writer for the gitlet staging area
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

"""Parser for the gitlet staging area (index) file.

The staging area records the changes that the next commit makes relative to
the current commit: paths staged for addition (with the id of the staged
blob) and paths staged for removal. A path is never staged both ways.
"""

__all__ = [
    "INDEX_SIGNATURE",
    "INDEX_VERSION",
    "EmptyStage",
    "Index",
    "NothingToRemove",
    "UnsupportedIndexFormat",
    "read_index",
    "validate_path",
    "write_index",
]

import hashlib
import logging
import os
import struct
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import IO, TYPE_CHECKING

from .errors import ChecksumMismatch, FileFormatException, GitletError
from .file import GitFile
from .objects import Blob, ObjectID, valid_hexsha

if TYPE_CHECKING:
    from .object_store import BaseObjectStore

logger = logging.getLogger(__name__)

INDEX_SIGNATURE = b"STAG"
INDEX_VERSION = 1

_HEADER = struct.Struct(">4sLLL")
_ADDITION = struct.Struct(">HH")
_REMOVAL = struct.Struct(">H")
_TRAILER_SIZE = hashlib.sha1().digest_size


class EmptyStage(GitletError):
    """Nothing is staged, so there is nothing to commit."""

    default_message = "No changes added to the commit."


class NothingToRemove(GitletError):
    """The path is neither staged nor tracked by the current commit."""

    default_message = "No reason to remove the file."


class UnsupportedIndexFormat(FileFormatException):
    """An unsupported staging file version was encountered."""

    def __init__(self, version: int) -> None:
        self.index_format_version = version
        super().__init__(f"unsupported staging file version {version}")


def validate_path(path: bytes) -> bool:
    """Check whether a tree path can be tracked.

    Tree paths are relative, ``/``-separated and never enter the control
    directory or leave the working tree.
    """
    if not path or path.startswith(b"/") or b"\n" in path or b"\0" in path:
        return False
    for part in path.split(b"/"):
        if part in (b"", b".", b".."):
            return False
    return path.split(b"/", 1)[0].lower() != b".gitlet"


os_sep_bytes = os.sep.encode("ascii")


def _tree_to_fs_path(root_path: bytes, tree_path: bytes) -> bytes:
    """Convert a tree path to a file system path.

    Args:
      root_path: Root filesystem path
      tree_path: Tree path as bytes
    Returns: File system path.
    """
    assert isinstance(tree_path, bytes)
    if os_sep_bytes != b"/":
        sep_corrected_path = tree_path.replace(b"/", os_sep_bytes)
    else:
        sep_corrected_path = tree_path
    return os.path.join(root_path, sep_corrected_path)


def _fs_to_tree_path(fs_path: str | bytes) -> bytes:
    """Convert a file system path, relative to the root, to a tree path."""
    fs_path_bytes = os.fsencode(fs_path)
    if os_sep_bytes != b"/":
        return fs_path_bytes.replace(os_sep_bytes, b"/")
    return fs_path_bytes


def read_index(f: IO[bytes]) -> tuple[dict[bytes, ObjectID], set[bytes]]:
    """Read a staging file.

    Returns: tuple with the additions (path -> blob id) and the removals
    Raises:
      ChecksumMismatch: if the trailing checksum does not match
      FileFormatException: if the file is malformed
    """
    contents = f.read()
    body, trailer = contents[:-_TRAILER_SIZE], contents[-_TRAILER_SIZE:]
    if len(body) < _HEADER.size:
        raise FileFormatException("staging file is truncated")
    actual = hashlib.sha1(body).digest()
    if actual != trailer:
        raise ChecksumMismatch(trailer.hex(), actual.hex())
    signature, version, num_additions, num_removals = _HEADER.unpack_from(body)
    if signature != INDEX_SIGNATURE:
        raise FileFormatException(f"Invalid staging file signature {signature!r}")
    if version != INDEX_VERSION:
        raise UnsupportedIndexFormat(version)
    offset = _HEADER.size
    additions: dict[bytes, ObjectID] = {}
    removals: set[bytes] = set()
    try:
        for _ in range(num_additions):
            (path_len, sha_len) = _ADDITION.unpack_from(body, offset)
            offset += _ADDITION.size
            path = body[offset : offset + path_len]
            offset += path_len
            sha = body[offset : offset + sha_len]
            offset += sha_len
            if not valid_hexsha(sha):
                raise FileFormatException(f"invalid blob id {sha!r} for {path!r}")
            additions[path] = sha
        for _ in range(num_removals):
            (path_len,) = _REMOVAL.unpack_from(body, offset)
            offset += _REMOVAL.size
            removals.add(body[offset : offset + path_len])
            offset += path_len
    except struct.error as exc:
        raise FileFormatException("staging file is truncated") from exc
    if offset != len(body):
        raise FileFormatException("trailing data in staging file")
    return additions, removals


def write_index(
    f: IO[bytes], additions: Mapping[bytes, ObjectID], removals: Iterable[bytes]
) -> None:
    """Write a staging file.

    Args:
      f: File-like object to write to
      additions: Paths staged for addition, with their blob ids
      removals: Paths staged for removal
    """
    removals = sorted(removals)
    chunks = [_HEADER.pack(INDEX_SIGNATURE, INDEX_VERSION, len(additions), len(removals))]
    for path in sorted(additions):
        sha = additions[path]
        chunks.append(_ADDITION.pack(len(path), len(sha)))
        chunks.append(path)
        chunks.append(sha)
    for path in removals:
        chunks.append(_REMOVAL.pack(len(path)))
        chunks.append(path)
    body = b"".join(chunks)
    f.write(body)
    f.write(hashlib.sha1(body).digest())


class Index:
    """The staging area, backed by a file on disk."""

    def __init__(self, filename: bytes | str | os.PathLike[str], read: bool = True) -> None:
        """Create an index object associated with the given filename.

        Args:
          filename: Path to the staging file
          read: Whether to initialize the index from the given file, should it exist.
        """
        self._filename = os.fspath(filename)
        self._additions: dict[bytes, ObjectID] = {}
        self._removals: set[bytes] = set()
        if read and os.path.exists(self._filename):
            self.read()

    @property
    def path(self) -> bytes | str:
        """Get the path to the staging file."""
        return self._filename

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._filename!r})"

    def write(self) -> None:
        """Write current contents of the staging area to disk."""
        logger.debug(
            "writing staging area: %d additions, %d removals",
            len(self._additions),
            len(self._removals),
        )
        with GitFile(self._filename, "wb") as f:
            write_index(f, self._additions, self._removals)

    def read(self) -> None:
        """Read the staging area from disk."""
        with GitFile(self._filename, "rb") as f:
            self._additions, self._removals = read_index(f)

    @property
    def additions(self) -> Mapping[bytes, ObjectID]:
        """Paths staged for addition, mapped to their blob ids."""
        return MappingProxyType(self._additions)

    @property
    def removals(self) -> frozenset[bytes]:
        """Paths staged for removal."""
        return frozenset(self._removals)

    def is_empty(self) -> bool:
        return not self._additions and not self._removals

    def stage_add(
        self,
        path: bytes,
        data: bytes,
        object_store: "BaseObjectStore",
        head_tracked: Mapping[bytes, ObjectID],
    ) -> ObjectID | None:
        """Stage the contents of a file for addition.

        If the current commit already tracks exactly this content, the path is
        unstaged instead, so that an edit which was reverted is not committed.

        Args:
          path: Tree path of the file
          data: Current contents of the file
          object_store: Store the blob is written to
          head_tracked: Tracked mapping of the current commit
        Returns: the id of the staged blob, or None if the path was unstaged
        """
        if not validate_path(path):
            raise ValueError(f"invalid tree path {path!r}")
        blob_id = Blob(data, object_store.hash_algorithm).id
        if head_tracked.get(path) == blob_id:
            self._additions.pop(path, None)
            self._removals.discard(path)
            return None
        object_store.add_blob(data)
        self._additions[path] = blob_id
        self._removals.discard(path)
        return blob_id

    def stage_remove(self, path: bytes, head_tracked: Mapping[bytes, ObjectID]) -> bool:
        """Unstage a staged file, or stage a tracked file for removal.

        Returns: True if the path was staged for removal, in which case the
            caller should delete the working file
        Raises:
          NothingToRemove: if the path is neither staged nor tracked
        """
        if path in self._additions:
            del self._additions[path]
            return False
        if path in head_tracked:
            self._removals.add(path)
            return True
        raise NothingToRemove()

    def commit_snapshot(
        self, parent_tracked: Mapping[bytes, ObjectID]
    ) -> dict[bytes, ObjectID]:
        """Compute the tracked mapping of the next commit.

        Raises:
          EmptyStage: if nothing is staged
        """
        if self.is_empty():
            raise EmptyStage()
        tracked = dict(parent_tracked)
        tracked.update(self._additions)
        for path in self._removals:
            tracked.pop(path, None)
        return tracked

    def clear(self) -> None:
        """Remove all staged changes."""
        self._additions = {}
        self._removals = set()
