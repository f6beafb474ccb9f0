# object_store.py -- Object store for gitlet objects
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

"""Object store for gitlet objects.

Objects are write-once: there is no way to update or delete a stored blob or
commit. Adding an object that is already present is a no-op.
"""

__all__ = [
    "BLOBDIR",
    "COMMITDIR",
    "BaseObjectStore",
    "DiskObjectStore",
    "MemoryObjectStore",
]

import logging
import os
import zlib
from collections.abc import Iterator
from typing import TYPE_CHECKING

from .errors import ChecksumMismatch, ObjectMissing
from .file import GitFile
from .hash import DEFAULT_HASH_ALGORITHM, HashAlgorithm, get_hash_algorithm
from .objects import Blob, Commit, ObjectID, ShaFile, valid_hexsha

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)

BLOBDIR = "blobs"
COMMITDIR = "commits"

PACK_MODE = 0o444


class BaseObjectStore:
    """Object store interface."""

    def __init__(self, *, hash_algorithm: HashAlgorithm | None = None) -> None:
        self.hash_algorithm = hash_algorithm or DEFAULT_HASH_ALGORITHM

    def add_object(self, obj: ShaFile) -> None:
        """Add a single object to this object store."""
        raise NotImplementedError(self.add_object)

    def _get_object(self, type_name: bytes, sha: ObjectID) -> ShaFile | None:
        raise NotImplementedError(self._get_object)

    def _contains(self, type_name: bytes, sha: ObjectID) -> bool:
        raise NotImplementedError(self._contains)

    def iter_commits(self) -> Iterator[ObjectID]:
        """Iterate over the ids of every stored commit, in no particular order."""
        raise NotImplementedError(self.iter_commits)

    def add_blob(self, data: bytes) -> ObjectID:
        """Store file contents.

        Args:
          data: Contents of the file
        Returns: id of the blob
        """
        blob = Blob(data, self.hash_algorithm)
        self.add_object(blob)
        return blob.id

    def get_blob(self, sha: ObjectID) -> bytes:
        """Retrieve the contents of a blob.

        Raises:
          ObjectMissing: if no blob with that id is stored
        """
        obj = self._get_object(Blob.type_name, sha)
        if obj is None:
            raise ObjectMissing(sha)
        assert isinstance(obj, Blob)
        return obj.data

    def add_commit(self, commit: Commit) -> ObjectID:
        """Store a commit, returning its id in this store's hash algorithm."""
        self.add_object(commit)
        return commit.get_id(self.hash_algorithm)

    def get_commit(self, sha: ObjectID) -> Commit:
        """Retrieve a commit.

        Raises:
          ObjectMissing: if no commit with that id is stored
        """
        obj = self._get_object(Commit.type_name, sha)
        if obj is None:
            raise ObjectMissing(sha)
        assert isinstance(obj, Commit)
        return obj

    def contains_blob(self, sha: ObjectID) -> bool:
        return self._contains(Blob.type_name, sha)

    def contains_commit(self, sha: ObjectID) -> bool:
        return self._contains(Commit.type_name, sha)

    def iter_prefix(self, prefix: bytes) -> Iterator[ObjectID]:
        """Iterate over the ids of all commits starting with a hex prefix."""
        for sha in self.iter_commits():
            if sha.startswith(prefix):
                yield sha

    def close(self) -> None:
        """Close any files opened by this object store."""


class DiskObjectStore(BaseObjectStore):
    """Object store that keeps blobs and commits in two directories on disk."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        hash_algorithm: HashAlgorithm | None = None,
        compression_level: int = -1,
        fsync_object_files: bool = False,
    ) -> None:
        """Open an object store.

        Args:
          path: Path of the object store.
          hash_algorithm: Hash algorithm naming the objects
          compression_level: zlib compression level for commit records
          fsync_object_files: whether to fsync object files for durability
        """
        super().__init__(hash_algorithm=hash_algorithm)
        self.path = path
        self.compression_level = compression_level
        self.fsync_object_files = fsync_object_files

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.path!r})>"

    @classmethod
    def from_config(
        cls, path: str | os.PathLike[str], config: "Config"
    ) -> "DiskObjectStore":
        """Create a DiskObjectStore from a configuration object.

        Args:
          path: Path to the object store directory
          config: Configuration object to read settings from
        Returns: New DiskObjectStore instance configured according to config
        """
        try:
            object_format = config.get((b"extensions",), b"objectformat")
        except KeyError:
            object_format = None
        return cls(
            path,
            hash_algorithm=get_hash_algorithm(object_format),
            compression_level=config.get_int((b"core",), b"compression", -1),
            fsync_object_files=config.get_boolean(
                (b"core",), b"fsyncObjectFiles", False
            ),
        )

    @classmethod
    def init(
        cls,
        path: str | os.PathLike[str],
        *,
        hash_algorithm: HashAlgorithm | None = None,
    ) -> "DiskObjectStore":
        """Initialize a new disk object store.

        Args:
          path: Path where the object store should be created
          hash_algorithm: Hash algorithm to use (SHA1 or SHA256)
        Returns: New DiskObjectStore instance
        """
        try:
            os.mkdir(path)
        except FileExistsError:
            pass
        os.mkdir(os.path.join(path, BLOBDIR))
        os.mkdir(os.path.join(path, COMMITDIR))
        return cls(path, hash_algorithm=hash_algorithm)

    def _get_shafile_path(self, type_name: bytes, sha: ObjectID) -> str:
        subdir = BLOBDIR if type_name == Blob.type_name else COMMITDIR
        return os.path.join(os.fspath(self.path), subdir, sha.decode("ascii"))

    def _contains(self, type_name: bytes, sha: ObjectID) -> bool:
        if not valid_hexsha(sha):
            return False
        return os.path.isfile(self._get_shafile_path(type_name, sha))

    def add_object(self, obj: ShaFile) -> None:
        """Add a single object to this object store.

        Args:
          obj: Object to add
        """
        obj_id = obj.get_id(self.hash_algorithm)
        path = self._get_shafile_path(obj.type_name, obj_id)
        if os.path.exists(path):
            return  # Already there, no need to write again
        logger.debug("writing %s %s", obj.type_name.decode("ascii"), obj_id.decode())
        raw = obj.as_raw_string()
        if obj.type_name == Commit.type_name:
            raw = zlib.compress(raw, self.compression_level)
        with GitFile(path, "wb", mask=PACK_MODE, fsync=self.fsync_object_files) as f:
            f.write(raw)

    def _get_object(self, type_name: bytes, sha: ObjectID) -> ShaFile | None:
        if not valid_hexsha(sha):
            return None
        path = self._get_shafile_path(type_name, sha)
        try:
            with GitFile(path, "rb") as f:
                raw = f.read()
        except FileNotFoundError:
            return None
        obj: ShaFile
        if type_name == Commit.type_name:
            obj = Commit.from_string(zlib.decompress(raw), self.hash_algorithm)
        else:
            obj = Blob(raw, self.hash_algorithm)
        if obj.id != sha:
            raise ChecksumMismatch(sha, obj.id, f"stored at {path}")
        return obj

    def iter_commits(self) -> Iterator[ObjectID]:
        for name in os.listdir(os.path.join(os.fspath(self.path), COMMITDIR)):
            sha = os.fsencode(name)
            if valid_hexsha(sha):
                yield sha


class MemoryObjectStore(BaseObjectStore):
    """Object store that keeps all objects in memory."""

    def __init__(self, *, hash_algorithm: HashAlgorithm | None = None) -> None:
        super().__init__(hash_algorithm=hash_algorithm)
        self._data: dict[tuple[bytes, ObjectID], ShaFile] = {}

    def add_object(self, obj: ShaFile) -> None:
        """Add a single object to this object store."""
        if obj.hash_algorithm is not self.hash_algorithm:
            obj = type(obj).from_string(obj.as_raw_string(), self.hash_algorithm)
        self._data.setdefault((obj.type_name, obj.id), obj)

    def _get_object(self, type_name: bytes, sha: ObjectID) -> ShaFile | None:
        return self._data.get((type_name, sha))

    def _contains(self, type_name: bytes, sha: ObjectID) -> bool:
        return (type_name, sha) in self._data

    def iter_commits(self) -> Iterator[ObjectID]:
        return iter(
            [sha for (type_name, sha) in self._data if type_name == Commit.type_name]
        )
