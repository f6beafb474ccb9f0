# porcelain.py -- Porcelain-like layer on top of Gitlet
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

"""Simple wrapper that provides porcelain-like functions on top of Gitlet.

Currently implemented:
 * init
 * add
 * branch{_create,_delete,_list}
 * checkout_branch
 * checkout_file
 * commit
 * find
 * global_log
 * log
 * remove
 * rm
 * status

These functions are meant to behave similarly to the gitlet subcommands.
Differences in behaviour are considered bugs.

Note: one of the consequences of this is that paths tend to be
interpreted relative to the repository root rather than relative to the
current working directory.

Functions should generally accept both unicode strings and bytestrings
"""

__all__ = [
    "EmptyCommitMessage",
    "GitletStatus",
    "add",
    "branch_create",
    "branch_delete",
    "branch_list",
    "checkout_branch",
    "checkout_file",
    "commit",
    "find",
    "global_log",
    "init",
    "log",
    "open_repo_closing",
    "path_to_tree_path",
    "print_commit",
    "print_status",
    "remove",
    "rm",
    "status",
]

import os
import sys
from collections import namedtuple
from collections.abc import Iterator, Sequence
from contextlib import AbstractContextManager, closing, contextmanager
from pathlib import Path
from typing import TextIO

from .errors import GitletError
from .graph import create_commit, find_by_message, iter_all_commits, iter_ancestors
from .index import validate_path
from .objects import Commit, ObjectID, format_commit_date
from .repo import Repo
from .worktree import FileNotFound

DEFAULT_ENCODING = "utf-8"

RepoPath = str | os.PathLike[str] | Repo

GitletStatus = namedtuple(
    "GitletStatus", "branches current_branch staged removed unstaged untracked"
)


class EmptyCommitMessage(GitletError):
    """A commit was attempted without a message."""

    default_message = "Please enter a commit message."


@contextmanager
def _noop_context_manager(obj: Repo) -> Iterator[Repo]:
    """Context manager that has the same api as closing but does nothing."""
    yield obj


def open_repo_closing(path_or_repo: RepoPath) -> AbstractContextManager[Repo]:
    """Open an argument that can be a repository or a path for a repository.

    returns a context manager that will close the repo on exit if the argument
    is a path, else does nothing if the argument is a repo.
    """
    if isinstance(path_or_repo, Repo):
        return _noop_context_manager(path_or_repo)
    return closing(Repo.discover(path_or_repo))


def path_to_tree_path(
    repopath: str | os.PathLike[str], path: str | bytes | os.PathLike[str]
) -> bytes:
    """Convert a path to a path usable in the staging area.

    Args:
      repopath: Repository path, absolute or relative to the cwd
      path: A path, absolute or relative to the repository root
    Returns: A tree path: bytes, ``/``-separated and relative to the root
    Raises:
      ValueError: if the path is outside the working tree or inside the
        control directory
    """
    if isinstance(path, bytes):
        path = os.fsdecode(path)
    repopath = Path(repopath).resolve()
    path = Path(path)
    if not path.is_absolute():
        # Make relative paths relative to the repo directory
        path = repopath / path
    # Resolve the parent only, so that a symlink is named by its own path
    resolved_path = path.parent.resolve() / path.name
    relpath = resolved_path.relative_to(repopath)
    tree_path = str(relpath).replace(os.path.sep, "/").encode(DEFAULT_ENCODING)
    if not validate_path(tree_path):
        raise ValueError(f"{os.fspath(path)} is not a path in the working tree")
    return tree_path


def _as_bytes(value: str | bytes) -> bytes:
    if isinstance(value, str):
        return value.encode(DEFAULT_ENCODING)
    return value


def _as_paths(paths: str | bytes | os.PathLike | Sequence) -> list:
    if isinstance(paths, (str, bytes, os.PathLike)):
        return [paths]
    return list(paths)


def init(
    path: str | os.PathLike[str] = ".",
    *,
    mkdir: bool = False,
    default_branch: str | bytes | None = None,
    object_format: str | None = None,
) -> Repo:
    """Create a new gitlet repository.

    Args:
      path: Path to repository.
      mkdir: Whether to create the directory
      default_branch: Name of the initial branch
      object_format: Object format to use ("sha1" or "sha256")
    Returns: A Repo instance
    """
    if default_branch is not None:
        default_branch = _as_bytes(default_branch)
    return Repo.init(
        path, mkdir=mkdir, default_branch=default_branch, object_format=object_format
    )


def add(
    repo: RepoPath = ".", paths: str | os.PathLike | Sequence = ()
) -> list[bytes]:
    """Stage files for addition.

    A file whose contents match the current commit is unstaged instead.

    Args:
      repo: Repository for the files
      paths: Paths to add, relative to the repository root or absolute
    Returns: tree paths that were processed
    Raises:
      FileNotFound: if a file does not exist
    """
    with open_repo_closing(repo) as r:
        index = r.open_index()
        worktree = r.get_worktree()
        processed = []
        for path in _as_paths(paths):
            try:
                tree_path = path_to_tree_path(r.path, path)
            except ValueError as exc:
                raise FileNotFound() from exc
            worktree.stage(index, tree_path)
            processed.append(tree_path)
        index.write()
        return processed


def commit(
    repo: RepoPath = ".",
    message: str | bytes | None = None,
    commit_time: int | None = None,
    commit_timezone: int | None = None,
) -> ObjectID:
    """Create a new commit from the staged changes.

    Args:
      repo: Path to repository
      message: Commit message
      commit_time: Commit timestamp (defaults to now)
      commit_timezone: Commit timestamp timezone (defaults to local)
    Returns: SHA1 of the new commit
    Raises:
      EmptyCommitMessage: if the message is empty
      EmptyStage: if nothing is staged
    """
    with open_repo_closing(repo) as r:
        if not message:
            raise EmptyCommitMessage()
        index = r.open_index()
        parent = r.head_commit()
        tracked = index.commit_snapshot(parent.tracked)
        new_commit = create_commit(
            r.object_store,
            _as_bytes(message),
            parent.id,
            tracked,
            commit_time=commit_time,
            commit_timezone=commit_timezone,
        )
        r.refs.set_branch(r.head_branch(), new_commit.id)
        index.clear()
        index.write()
        return new_commit.id


def remove(repo: RepoPath = ".", paths: str | os.PathLike | Sequence = ()) -> None:
    """Unstage files, or stage tracked files for removal.

    Tracked files are deleted from the working directory.

    Args:
      repo: Repository for the files
      paths: Paths to remove, relative to the repository root or absolute
    Raises:
      NothingToRemove: if a path is neither staged nor tracked
    """
    with open_repo_closing(repo) as r:
        index = r.open_index()
        worktree = r.get_worktree()
        for path in _as_paths(paths):
            try:
                tree_path = path_to_tree_path(r.path, path)
            except ValueError as exc:
                raise FileNotFound() from exc
            worktree.remove(index, tree_path)
        index.write()


rm = remove


def print_commit(commit: Commit, outstream: TextIO = sys.stdout) -> None:
    """Write a human-readable commit log entry.

    Args:
      commit: A `Commit` object
      outstream: A stream file to write to
    """
    outstream.write("===\n")
    outstream.write("commit " + commit.id.decode("ascii") + "\n")
    outstream.write(
        "Date: " + format_commit_date(commit.commit_time, commit.commit_timezone) + "\n"
    )
    outstream.write(commit.message.decode(DEFAULT_ENCODING, "replace") + "\n")
    outstream.write("\n")


def log(repo: RepoPath = ".", outstream: TextIO = sys.stdout) -> None:
    """Write the history of the current branch, newest first.

    Args:
      repo: Path to repository
      outstream: Stream to write log output to
    """
    with open_repo_closing(repo) as r:
        for entry in iter_ancestors(r.object_store, r.head()):
            print_commit(entry, outstream)


def global_log(repo: RepoPath = ".", outstream: TextIO = sys.stdout) -> None:
    """Write every commit ever made, in no particular order.

    Args:
      repo: Path to repository
      outstream: Stream to write log output to
    """
    with open_repo_closing(repo) as r:
        for entry in iter_all_commits(r.object_store):
            print_commit(entry, outstream)


def find(
    repo: RepoPath = ".",
    message: str | bytes = b"",
    outstream: TextIO = sys.stdout,
) -> list[ObjectID]:
    """Write the ids of all commits with exactly the given message.

    Raises:
      NoCommitWithMessage: if no commit has that message
    """
    with open_repo_closing(repo) as r:
        found = find_by_message(r.object_store, _as_bytes(message))
        for sha in found:
            outstream.write(sha.decode("ascii") + "\n")
        return found


def status(repo: RepoPath = ".") -> GitletStatus:
    """Returns staged, unstaged, and untracked changes relative to HEAD.

    Args:
      repo: Path to repository or repository object
    Returns: GitletStatus tuple,
        branches: sorted branch names
        current_branch: name of the branch HEAD points at
        staged: sorted paths staged for addition
        removed: sorted paths staged for removal
        unstaged: sorted (path, "modified" | "deleted") pairs
        untracked: sorted paths neither tracked nor staged
    """
    with open_repo_closing(repo) as r:
        index = r.open_index()
        worktree = r.get_worktree()
        return GitletStatus(
            branches=r.refs.branches(),
            current_branch=r.head_branch(),
            staged=sorted(index.additions),
            removed=sorted(index.removals),
            unstaged=list(worktree.iter_unstaged_changes(index)),
            untracked=list(worktree.iter_untracked(index)),
        )


def print_status(st: GitletStatus, outstream: TextIO = sys.stdout) -> None:
    """Write a status report in the gitlet format."""

    def decode(path: bytes) -> str:
        return path.decode(DEFAULT_ENCODING, "replace")

    outstream.write("=== Branches ===\n")
    for name in st.branches:
        marker = "*" if name == st.current_branch else ""
        outstream.write(marker + decode(name) + "\n")
    outstream.write("\n=== Staged Files ===\n")
    for path in st.staged:
        outstream.write(decode(path) + "\n")
    outstream.write("\n=== Removed Files ===\n")
    for path in st.removed:
        outstream.write(decode(path) + "\n")
    outstream.write("\n=== Modifications Not Staged For Commit ===\n")
    for path, kind in st.unstaged:
        outstream.write(f"{decode(path)} ({kind})\n")
    outstream.write("\n=== Untracked Files ===\n")
    for path in st.untracked:
        outstream.write(decode(path) + "\n")
    outstream.write("\n")


def checkout_file(
    repo: RepoPath = ".",
    path: str | bytes | os.PathLike = "",
    committish: str | bytes | None = None,
) -> None:
    """Restore one file from the current commit or from another commit.

    The staging area is left untouched.

    Args:
      repo: Path to repository
      path: Path of the file, relative to the repository root or absolute
      committish: Full or abbreviated commit id; the current commit if None
    Raises:
      NoSuchCommit: if no commit has the given id
      FileNotInCommit: if the commit does not track the file
      UntrackedFileInTheWay: if untracked files occupy the file's place
    """
    from .worktree import FileNotInCommit

    with open_repo_closing(repo) as r:
        try:
            tree_path = path_to_tree_path(r.path, path)
        except ValueError as exc:
            raise FileNotInCommit() from exc
        worktree = r.get_worktree()
        if committish is None:
            worktree.restore_file(r.head_commit(), tree_path)
        else:
            worktree.restore_file_from(_as_bytes(committish), tree_path)


def checkout_branch(repo: RepoPath = ".", name: str | bytes = b"") -> None:
    """Switch to another branch, updating the working directory.

    Raises:
      NoOpBranch: if the branch is already checked out
      NoSuchBranch: if the branch does not exist
      UntrackedFileInTheWay: if an untracked file would be overwritten
    """
    with open_repo_closing(repo) as r:
        index = r.open_index()
        r.get_worktree().switch_branch(index, _as_bytes(name))
        index.write()


def branch_create(repo: RepoPath = ".", name: str | bytes = b"") -> None:
    """Create a branch pointing at the current commit.

    Raises:
      BranchExists: if the branch already exists
    """
    with open_repo_closing(repo) as r:
        r.refs.create_branch(_as_bytes(name), r.head())


def branch_delete(repo: RepoPath = ".", name: str | bytes = b"") -> None:
    """Delete a branch; its commits are kept.

    Raises:
      BranchNotFound: if the branch does not exist
      CurrentBranch: if the branch is checked out
    """
    with open_repo_closing(repo) as r:
        r.refs.delete_branch(_as_bytes(name))


def branch_list(repo: RepoPath = ".") -> list[bytes]:
    """List all branches, sorted."""
    with open_repo_closing(repo) as r:
        return r.refs.branches()
