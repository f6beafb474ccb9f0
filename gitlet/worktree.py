# worktree.py -- Working tree operations for Gitlet repositories
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

"""Working tree operations for Gitlet repositories.

This module reconciles the files in the working directory with stored
commits: restoring single files, switching branches, and reporting the
differences shown by ``status``.
"""

__all__ = [
    "FileNotFound",
    "FileNotInCommit",
    "NoOpBranch",
    "NoSuchBranch",
    "SwitchPlan",
    "UntrackedFileInTheWay",
    "WorkTree",
    "plan_switch",
]

import logging
import os
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, NamedTuple

from .errors import GitletError, NotFound
from .graph import resolve_commit_id
from .index import Index, _fs_to_tree_path, _tree_to_fs_path
from .objects import Blob, Commit, ObjectID

if TYPE_CHECKING:
    from .repo import Repo

logger = logging.getLogger(__name__)


class FileNotFound(NotFound):
    """The file does not exist in the working directory."""

    default_message = "File does not exist."


class FileNotInCommit(GitletError):
    """The commit does not track the requested path."""

    default_message = "File does not exist in that commit."


class NoOpBranch(GitletError):
    """The branch to switch to is already the current branch."""

    default_message = "No need to checkout the current branch."


class NoSuchBranch(NotFound):
    """The branch to switch to does not exist."""

    default_message = "No such branch exists."


class UntrackedFileInTheWay(GitletError):
    """Switching branches would overwrite a file that is not tracked."""

    default_message = (
        "There is an untracked file in the way; delete it, or add and commit it first."
    )


class SwitchPlan(NamedTuple):
    """Changes to the working directory needed to move between two snapshots.

    Attributes:
      updated: paths tracked by both, with different contents
      removed: paths only tracked by the current snapshot
      added: paths only tracked by the target snapshot
    """

    updated: frozenset[bytes]
    removed: frozenset[bytes]
    added: frozenset[bytes]


def plan_switch(
    current: Mapping[bytes, ObjectID], target: Mapping[bytes, ObjectID]
) -> SwitchPlan:
    """Compare two tracked mappings."""
    current_paths = current.keys()
    target_paths = target.keys()
    return SwitchPlan(
        updated=frozenset(
            path for path in current_paths & target_paths if current[path] != target[path]
        ),
        removed=frozenset(current_paths - target_paths),
        added=frozenset(target_paths - current_paths),
    )


class WorkTree:
    """Working tree operations for a Gitlet repository.

    The staging area is passed in by the caller, which is responsible for
    writing it back once the command completes.
    """

    def __init__(self, repo: "Repo", path: str | bytes | os.PathLike) -> None:
        """Initialize a WorkTree for the given repository.

        Args:
            repo: The repository this working tree belongs to
            path: Path to the working tree directory
        """
        self._repo = repo
        self.path = os.path.abspath(os.fsdecode(os.fspath(path)))
        self._root_path = os.fsencode(self.path)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.path!r})"

    def _read_file(self, tree_path: bytes) -> bytes | None:
        full_path = _tree_to_fs_path(self._root_path, tree_path)
        try:
            with open(full_path, "rb") as f:
                return f.read()
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            return None

    def _write_file(self, tree_path: bytes, data: bytes) -> None:
        full_path = _tree_to_fs_path(self._root_path, tree_path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "wb") as f:
            f.write(data)

    def _remove_file(self, tree_path: bytes) -> None:
        full_path = _tree_to_fs_path(self._root_path, tree_path)
        try:
            os.remove(full_path)
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            return
        # Prune directories emptied by the removal
        parent = os.path.dirname(full_path)
        while parent != self._root_path and parent.startswith(self._root_path):
            try:
                os.rmdir(parent)
            except OSError:
                break
            parent = os.path.dirname(parent)

    def _blob_id(self, data: bytes) -> ObjectID:
        return Blob(data, self._repo.object_store.hash_algorithm).id

    def stage(self, index: Index, tree_path: bytes) -> ObjectID | None:
        """Stage the current contents of a file.

        Raises:
          FileNotFound: if the file does not exist in the working directory
        """
        data = self._read_file(tree_path)
        if data is None:
            raise FileNotFound()
        return index.stage_add(
            tree_path,
            data,
            self._repo.object_store,
            self._repo.head_commit().tracked,
        )

    def remove(self, index: Index, tree_path: bytes) -> None:
        """Unstage a file, or stage a tracked file for removal and delete it.

        Raises:
          NothingToRemove: if the path is neither staged nor tracked
        """
        if index.stage_remove(tree_path, self._repo.head_commit().tracked):
            self._remove_file(tree_path)

    def restore_file(self, commit: Commit, tree_path: bytes) -> None:
        """Overwrite a working file with its version in a commit.

        The staging area is not touched.

        Raises:
          FileNotInCommit: if the commit does not track the path
          UntrackedFileInTheWay: if a directory holding files, or a file at a
            parent path, occupies the place of the restored file
        """
        try:
            blob_id = commit.tracked[tree_path]
        except KeyError as exc:
            raise FileNotInCommit() from exc
        full_path = _tree_to_fs_path(self._root_path, tree_path)
        if os.path.isdir(full_path) and any(self._walk_files(full_path)):
            raise UntrackedFileInTheWay()
        if self._file_parent(tree_path) is not None:
            raise UntrackedFileInTheWay()
        self._remove_empty_dirs(tree_path)
        self._write_file(tree_path, self._repo.object_store.get_blob(blob_id))

    def restore_file_from(self, committish: bytes, tree_path: bytes) -> None:
        """Restore a file from the commit with a full or abbreviated id.

        Raises:
          NoSuchCommit: if no stored commit has that id
          FileNotInCommit: if the commit does not track the path
        """
        object_store = self._repo.object_store
        commit = object_store.get_commit(resolve_commit_id(object_store, committish))
        self.restore_file(commit, tree_path)

    def _has_kept_files(self, tree_path: bytes, plan: SwitchPlan) -> bool:
        # A directory at tree_path may only hold files this switch removes
        full_path = _tree_to_fs_path(self._root_path, tree_path)
        if not os.path.isdir(full_path):
            return False
        return any(path not in plan.removed for path in self._walk_files(full_path))

    def _is_blocked(self, tree_path: bytes, plan: SwitchPlan) -> bool:
        """Check whether writing tree_path would clobber files the switch keeps."""
        if self._has_kept_files(tree_path, plan):
            return True
        parent = self._file_parent(tree_path)
        return parent is not None and parent not in plan.removed

    def _is_in_the_way(
        self, tree_path: bytes, target_id: ObjectID, plan: SwitchPlan
    ) -> bool:
        if self._is_blocked(tree_path, plan):
            return True
        full_path = _tree_to_fs_path(self._root_path, tree_path)
        if os.path.isdir(full_path) or not os.path.lexists(full_path):
            return False
        data = self._read_file(tree_path)
        return data is None or self._blob_id(data) != target_id

    def _file_parent(self, tree_path: bytes) -> bytes | None:
        """Return the first parent of tree_path that exists as a non-directory."""
        parent = tree_path
        while b"/" in parent:
            parent = parent.rsplit(b"/", 1)[0]
            parent_path = _tree_to_fs_path(self._root_path, parent)
            if os.path.lexists(parent_path) and not os.path.isdir(parent_path):
                return parent
        return None

    def _remove_empty_dirs(self, tree_path: bytes) -> None:
        full_path = _tree_to_fs_path(self._root_path, tree_path)
        if not os.path.isdir(full_path):
            return
        for root, _dirs, _files in os.walk(full_path, topdown=False):
            os.rmdir(root)

    def switch_branch(self, index: Index, target: bytes) -> SwitchPlan:
        """Make the working directory match the head of another branch.

        All checks happen before any file is written: either the switch fails
        without changes, or the working directory, HEAD and the (cleared)
        staging area all reflect the target branch.

        Raises:
          NoOpBranch: if target is the current branch
          NoSuchBranch: if target does not exist
          UntrackedFileInTheWay: if a file only tracked by the target is
            present in the working directory with other contents,
            or if a path the switch writes or removes is a directory holding
            files it does not remove
        """
        refs = self._repo.refs
        object_store = self._repo.object_store
        if target == refs.get_head():
            raise NoOpBranch()
        if not refs.has_branch(target):
            raise NoSuchBranch()
        current = self._repo.head_commit().tracked
        target_tracked = object_store.get_commit(refs.get_branch(target)).tracked
        plan = plan_switch(current, target_tracked)

        for tree_path in sorted(plan.added):
            if self._is_in_the_way(tree_path, target_tracked[tree_path], plan):
                logger.debug("untracked file in the way: %r", tree_path)
                raise UntrackedFileInTheWay()
        for tree_path in sorted(plan.updated):
            if self._is_blocked(tree_path, plan):
                logger.debug("untracked files block %r", tree_path)
                raise UntrackedFileInTheWay()
        for tree_path in sorted(plan.removed):
            if self._has_kept_files(tree_path, plan):
                logger.debug("untracked files block %r", tree_path)
                raise UntrackedFileInTheWay()

        for tree_path in sorted(plan.removed):
            self._remove_empty_dirs(tree_path)
            self._remove_file(tree_path)
        for tree_path in sorted(plan.updated | plan.added):
            self._remove_empty_dirs(tree_path)
            self._write_file(tree_path, object_store.get_blob(target_tracked[tree_path]))
        logger.debug(
            "switched working tree: %d updated, %d removed, %d added",
            len(plan.updated),
            len(plan.removed),
            len(plan.added),
        )
        refs.set_head(target)
        index.clear()
        return plan

    def _walk_files(self, top: bytes | None = None) -> Iterator[bytes]:
        """Iterate over the tree paths of all files in the working directory.

        Args:
          top: Directory to restrict the walk to (defaults to the whole tree)
        """
        from .repo import CONTROLDIR

        controldir = os.fsencode(CONTROLDIR)
        for root, dirs, files in os.walk(top or self._root_path):
            if root == self._root_path:
                dirs[:] = [d for d in dirs if d != controldir]
            for filename in files:
                full_path = os.path.join(root, filename)
                yield _fs_to_tree_path(os.path.relpath(full_path, self._root_path))

    def iter_untracked(self, index: Index) -> Iterator[bytes]:
        """Iterate over files that are neither tracked nor staged, sorted.

        A file staged for removal and then re-created counts as untracked.
        """
        tracked = self._repo.head_commit().tracked
        additions = index.additions
        removals = index.removals
        for tree_path in sorted(self._walk_files()):
            if tree_path in additions:
                continue
            if tree_path not in tracked or tree_path in removals:
                yield tree_path

    def iter_unstaged_changes(self, index: Index) -> Iterator[tuple[bytes, str]]:
        """Iterate over (path, kind) for changes that are not staged, sorted.

        kind is ``"modified"`` or ``"deleted"``.
        """
        tracked = self._repo.head_commit().tracked
        additions = index.additions
        removals = index.removals
        for tree_path in sorted(set(tracked) | set(additions)):
            if tree_path in removals:
                continue
            expected = additions.get(tree_path, tracked.get(tree_path))
            data = self._read_file(tree_path)
            if data is None:
                yield tree_path, "deleted"
            elif self._blob_id(data) != expected:
                yield tree_path, "modified"
