# refs.py -- For dealing with gitlet refs
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

"""Ref handling.

Branches live in ``refs/heads/<name>`` and contain a commit id. ``HEAD`` is
always symbolic: it names the current branch and never holds a raw commit id.
"""

__all__ = [
    "HEADREF",
    "LOCAL_BRANCH_PREFIX",
    "SYMREF",
    "BranchExists",
    "BranchNameConflict",
    "BranchNotFound",
    "CurrentBranch",
    "DiskRefsContainer",
    "InvalidBranchName",
    "check_branch_name",
    "check_ref_format",
    "parse_symref_value",
]

import logging
import os
from collections.abc import Iterator

from .errors import AlreadyExists, GitletError, NotFound
from .file import GitFile, ensure_dir_exists
from .objects import ObjectID, valid_hexsha

logger = logging.getLogger(__name__)

HEADREF = b"HEAD"
SYMREF = b"ref: "
LOCAL_BRANCH_PREFIX = b"refs/heads/"
BAD_REF_CHARS = set(b"\177 ~^:?*[")


class BranchExists(AlreadyExists):
    """A branch with the requested name already exists."""

    default_message = "A branch with that name already exists."


class BranchNameConflict(AlreadyExists):
    """A branch exists at a parent or child path of the requested name."""

    default_message = "A branch with a conflicting name already exists."


class BranchNotFound(NotFound):
    """A branch with the requested name does not exist."""

    default_message = "A branch with that name does not exist."


class CurrentBranch(GitletError):
    """The operation is not allowed on the branch HEAD names."""

    default_message = "Cannot remove the current branch."


class InvalidBranchName(GitletError):
    """The branch name is not a valid ref component."""

    default_message = "Invalid branch name."


def parse_symref_value(contents: bytes) -> bytes:
    """Parse a symref value.

    A bare ref path (without the ``ref: `` prefix) is accepted as well.

    Args:
      contents: Contents to parse
    Returns: Destination
    """
    if contents.startswith(SYMREF):
        return contents[len(SYMREF) :].rstrip(b"\r\n")
    contents = contents.rstrip(b"\r\n")
    if contents.startswith(LOCAL_BRANCH_PREFIX):
        return contents
    raise ValueError(contents)


def check_ref_format(refname: bytes) -> bool:
    """Check if a refname is correctly formatted.

    Implements the rules of git-check-ref-format.

    Args:
      refname: The refname to check
    Returns: True if refname is valid, False otherwise
    """
    # These could be combined into one big expression, but are listed
    # separately to parallel git-check-ref-format.
    if b"/." in refname or refname.startswith(b"."):
        return False
    if b"/" not in refname:
        return False
    if b".." in refname or b"//" in refname:
        return False
    for i, c in enumerate(refname):
        if ord(refname[i : i + 1]) < 0o40 or c in BAD_REF_CHARS:
            return False
    if refname[-1] in b"/.":
        return False
    if refname.endswith(b".lock"):
        return False
    if b"@{" in refname:
        return False
    if b"\\" in refname:
        return False
    return True


def check_branch_name(name: bytes) -> None:
    """Raise InvalidBranchName unless name can be stored under refs/heads/."""
    if not name or name == HEADREF or not check_ref_format(LOCAL_BRANCH_PREFIX + name):
        raise InvalidBranchName(
            f"Invalid branch name: {name.decode('utf-8', 'replace')}"
        )


class DiskRefsContainer:
    """Refs container that reads refs from disk."""

    def __init__(self, path: str | bytes | os.PathLike[str]) -> None:
        self.path = os.fsencode(os.fspath(path))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.path!r})"

    def refpath(self, name: bytes) -> bytes:
        """Return the disk path of a ref."""
        path = name
        if os.path.sep != "/":
            path = path.replace(b"/", os.fsencode(os.path.sep))
        return os.path.join(self.path, path)

    def _branchpath(self, name: bytes) -> bytes:
        check_branch_name(name)
        return self.refpath(LOCAL_BRANCH_PREFIX + name)

    def get_head(self) -> bytes:
        """Return the name of the branch HEAD points at."""
        with GitFile(self.refpath(HEADREF), "rb") as f:
            target = parse_symref_value(f.read())
        if not target.startswith(LOCAL_BRANCH_PREFIX):
            raise ValueError(f"HEAD does not point at a branch: {target!r}")
        return target[len(LOCAL_BRANCH_PREFIX) :]

    def set_head(self, name: bytes) -> None:
        """Make HEAD point at an existing branch.

        Raises:
          BranchNotFound: if the branch does not exist
        """
        if not self.has_branch(name):
            raise BranchNotFound()
        logger.debug("setting HEAD to %s", name.decode("utf-8", "replace"))
        with GitFile(self.refpath(HEADREF), "wb") as f:
            f.write(SYMREF + LOCAL_BRANCH_PREFIX + name + b"\n")

    def has_branch(self, name: bytes) -> bool:
        try:
            return os.path.isfile(self._branchpath(name))
        except InvalidBranchName:
            return False

    def branches(self) -> list[bytes]:
        """Return the names of all branches, sorted."""
        headspath = self.refpath(LOCAL_BRANCH_PREFIX.rstrip(b"/"))
        return sorted(self._iter_branches(headspath))

    def _iter_branches(self, headspath: bytes) -> Iterator[bytes]:
        prefix_len = len(os.path.join(headspath, b""))
        for root, dirs, files in os.walk(headspath):
            directory = root[prefix_len:]
            if os.path.sep != "/":
                directory = directory.replace(os.fsencode(os.path.sep), b"/")
            for filename in files:
                if filename.endswith(b".lock"):
                    continue
                name = b"/".join([directory, filename]) if directory else filename
                if check_ref_format(LOCAL_BRANCH_PREFIX + name):
                    yield name

    def get_branch(self, name: bytes) -> ObjectID:
        """Return the commit id a branch points at.

        Raises:
          BranchNotFound: if the branch does not exist
        """
        if not self.has_branch(name):
            raise BranchNotFound()
        with GitFile(self._branchpath(name), "rb") as f:
            sha = f.readline().rstrip(b"\r\n")
        if not valid_hexsha(sha):
            raise ValueError(f"branch {name!r} holds an invalid commit id {sha!r}")
        return sha

    def set_branch(self, name: bytes, sha: ObjectID) -> None:
        """Point a branch at a commit, creating it if necessary."""
        if not valid_hexsha(sha):
            raise ValueError(f"invalid commit id {sha!r}")
        filename = self._branchpath(name)
        ensure_dir_exists(os.path.dirname(filename))
        logger.debug(
            "updating branch %s to %s", name.decode("utf-8", "replace"), sha.decode()
        )
        with GitFile(filename, "wb") as f:
            f.write(sha + b"\n")

    def create_branch(self, name: bytes, sha: ObjectID) -> None:
        """Create a new branch pointing at a commit.

        Raises:
          BranchExists: if a branch with that name already exists
          BranchNameConflict: if a branch exists at a parent or child path
          InvalidBranchName: if the name is not usable as a branch name
        """
        check_branch_name(name)
        if self.has_branch(name):
            raise BranchExists()
        self._check_no_conflict(name)
        self.set_branch(name, sha)

    def _check_no_conflict(self, name: bytes) -> None:
        # "a" and "a/b" cannot both exist: one would be a file and a directory
        parts = name.split(b"/")
        for i in range(1, len(parts)):
            parent = b"/".join(parts[:i])
            if os.path.isfile(self.refpath(LOCAL_BRANCH_PREFIX + parent)):
                raise BranchNameConflict(self._conflict_message(name, parent))
        if os.path.isdir(self._branchpath(name)):
            for other in self.branches():
                if other.startswith(name + b"/"):
                    raise BranchNameConflict(self._conflict_message(name, other))
            raise BranchNameConflict()

    @staticmethod
    def _conflict_message(name: bytes, other: bytes) -> str:
        name_str = name.decode("utf-8", "replace")
        other_str = other.decode("utf-8", "replace")
        return f"Cannot create branch {name_str}: branch {other_str} exists."

    def delete_branch(self, name: bytes) -> None:
        """Remove a branch pointer; the commits it pointed at are kept.

        Raises:
          BranchNotFound: if the branch does not exist
          CurrentBranch: if HEAD names the branch
        """
        if not self.has_branch(name):
            raise BranchNotFound()
        if name == self.get_head():
            raise CurrentBranch()
        filename = self._branchpath(name)
        f = GitFile(filename, "wb")
        try:
            os.remove(filename)
            logger.debug("deleted branch %s", name.decode("utf-8", "replace"))
        finally:
            # never write, we just wanted the lock
            f.abort()

        # clean up any parent directory that might now be empty, so that a
        # branch named like the removed directory can be created later
        parent = name
        while True:
            try:
                parent, _ = parent.rsplit(b"/", 1)
            except ValueError:
                break
            try:
                os.rmdir(self.refpath(LOCAL_BRANCH_PREFIX + parent))
            except OSError:
                # this can be caused by the parent directory being
                # not empty, which is fine
                break

    def head_commit_id(self) -> ObjectID:
        """Return the id of the commit the current branch points at."""
        return self.get_branch(self.get_head())
