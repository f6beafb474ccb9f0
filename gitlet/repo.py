# repo.py -- For dealing with gitlet repositories.
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

"""Repository access.

A :class:`Repo` is an explicit handle on one repository: its object store,
refs, staging area and configuration. Nothing is kept in module-level state,
so several repositories can be used side by side in one process.
"""

__all__ = [
    "CONTROLDIR",
    "DEFAULT_BRANCH",
    "INDEX_FILENAME",
    "INITIAL_COMMIT_MESSAGE",
    "OBJECTDIR",
    "REFSDIR",
    "Repo",
    "UnsupportedVersion",
]

import logging
import os
from types import TracebackType
from typing import TYPE_CHECKING

from .errors import NotGitletRepository, RepositoryExists
from .graph import create_commit
from .hash import get_hash_algorithm
from .index import Index
from .object_store import DiskObjectStore
from .objects import Commit, ObjectID
from .refs import DiskRefsContainer, check_branch_name
from .worktree import WorkTree

if TYPE_CHECKING:
    from .config import ConfigFile, StackedConfig

logger = logging.getLogger(__name__)

CONTROLDIR = ".gitlet"
OBJECTDIR = "objects"
REFSDIR = "refs"
INDEX_FILENAME = "index"
CONFIG_FILENAME = "config"

DEFAULT_BRANCH = b"master"
INITIAL_COMMIT_MESSAGE = b"initial commit"

BASE_DIRECTORIES = [
    [REFSDIR],
    [REFSDIR, "heads"],
]


class UnsupportedVersion(Exception):
    """Unsupported repository version."""

    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"unsupported repository format version {version}")


class Repo:
    """A gitlet repository backed by local disk.

    To open an existing repository, call the constructor with the path of
    the working tree. To create a new repository, use :meth:`Repo.init`.

    Attributes:
      path: Path to the working tree
      object_store: Store holding blobs and commits
      refs: Branches and HEAD
    """

    def __init__(self, root: str | bytes | os.PathLike[str]) -> None:
        """Open a repository on disk.

        Args:
          root: Path to the repository's working tree.
        Raises:
          NotGitletRepository: if there is no repository at root
        """
        root = os.fsdecode(os.fspath(root))
        controldir = os.path.join(root, CONTROLDIR)
        if not os.path.isdir(os.path.join(controldir, OBJECTDIR)):
            raise NotGitletRepository()
        self.path = root
        self._controldir = controldir
        config = self.get_config()
        format_version = config.get_int((b"core",), b"repositoryformatversion", 0)
        if format_version not in (0, 1):
            raise UnsupportedVersion(format_version)
        self.object_store = DiskObjectStore.from_config(
            os.path.join(controldir, OBJECTDIR), config
        )
        self.refs = DiskRefsContainer(controldir)

    def __repr__(self) -> str:
        return f"<Repo at {self.path!r}>"

    @classmethod
    def discover(cls, start: str | bytes | os.PathLike[str] = ".") -> "Repo":
        """Iterate parent directories to discover a repository.

        Return a Repo object for the first parent directory that contains a
        gitlet control directory.

        Args:
          start: The directory to start discovery from (defaults to '.')
        """
        path = os.path.abspath(os.fsdecode(os.fspath(start)))
        while True:
            try:
                return cls(path)
            except NotGitletRepository:
                new_path, _tail = os.path.split(path)
                if new_path == path:  # Root reached
                    break
                path = new_path
        raise NotGitletRepository()

    @classmethod
    def init(
        cls,
        path: str | bytes | os.PathLike[str],
        *,
        mkdir: bool = False,
        config: "StackedConfig | None" = None,
        default_branch: bytes | None = None,
        object_format: str | None = None,
    ) -> "Repo":
        """Create a new repository.

        The new repository has a single commit (the initial commit, with an
        empty snapshot and timestamp 0) and a single branch pointing at it.

        Args:
          path: Path in which to create the repository
          mkdir: Whether to create the directory
          config: Configuration to read ``init.defaultBranch`` from
          default_branch: Initial branch name, overriding the configuration
          object_format: Object format to use ("sha1" or "sha256")
        Returns: `Repo` instance
        Raises:
          RepositoryExists: if a repository already exists at path
        """
        from .config import ConfigFile, StackedConfig

        path = os.fsdecode(os.fspath(path))
        if mkdir:
            os.mkdir(path)
        controldir = os.path.join(path, CONTROLDIR)
        if os.path.exists(controldir):
            raise RepositoryExists()
        if config is None:
            config = StackedConfig.default()
        if default_branch is None:
            try:
                default_branch = config.get((b"init",), b"defaultBranch")
            except KeyError:
                default_branch = DEFAULT_BRANCH
        check_branch_name(default_branch)
        hash_algorithm = get_hash_algorithm(object_format)

        os.mkdir(controldir)
        for d in BASE_DIRECTORIES:
            os.mkdir(os.path.join(controldir, *d))
        repo_config = ConfigFile()
        if hash_algorithm.name == "sha1":
            repo_config.set((b"core",), b"repositoryformatversion", b"0")
        else:
            repo_config.set((b"core",), b"repositoryformatversion", b"1")
            repo_config.set(
                (b"extensions",), b"objectformat", hash_algorithm.name.encode("ascii")
            )
        repo_config.write_to_path(os.path.join(controldir, CONFIG_FILENAME))
        DiskObjectStore.init(
            os.path.join(controldir, OBJECTDIR), hash_algorithm=hash_algorithm
        )

        ret = cls(path)
        root = create_commit(
            ret.object_store,
            INITIAL_COMMIT_MESSAGE,
            None,
            {},
            commit_time=0,
            commit_timezone=0,
        )
        ret.refs.set_branch(default_branch, root.id)
        ret.refs.set_head(default_branch)
        Index(ret.index_path(), read=False).write()
        logger.debug("initialized repository at %s on branch %r", path, default_branch)
        return ret

    def controldir(self) -> str:
        """Return the path of the control directory."""
        return self._controldir

    def index_path(self) -> str:
        """Return path to the staging file."""
        return os.path.join(self.controldir(), INDEX_FILENAME)

    def open_index(self) -> Index:
        """Open the staging area for this repository."""
        return Index(self.index_path())

    def get_config(self) -> "ConfigFile":
        """Retrieve the config object.

        Returns: `ConfigFile` object for the ``.gitlet/config`` file.
        """
        from .config import ConfigFile

        path = os.path.join(self._controldir, CONFIG_FILENAME)
        try:
            return ConfigFile.from_path(path)
        except FileNotFoundError:
            ret = ConfigFile()
            ret.path = path
            return ret

    def head_branch(self) -> bytes:
        """Return the name of the current branch."""
        return self.refs.get_head()

    def head(self) -> ObjectID:
        """Return the id of the current commit."""
        return self.refs.head_commit_id()

    def head_commit(self) -> Commit:
        """Return the current commit."""
        return self.object_store.get_commit(self.head())

    def get_worktree(self) -> WorkTree:
        """Get the working tree for this repository."""
        return WorkTree(self, self.path)

    def close(self) -> None:
        """Close any files opened by this repository."""
        self.object_store.close()

    def __enter__(self) -> "Repo":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

