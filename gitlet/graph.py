# graph.py -- Commit history traversal
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

"""Creating commits and walking the commit history."""

__all__ = [
    "MIN_ABBREV_LENGTH",
    "AmbiguousCommitId",
    "NoCommitWithMessage",
    "NoSuchCommit",
    "create_commit",
    "find_by_message",
    "iter_all_commits",
    "iter_ancestors",
    "local_timezone",
    "resolve_commit_id",
]

import binascii
import logging
import time
from collections.abc import Iterator, Mapping

from .errors import GitletError, NotFound
from .object_store import BaseObjectStore
from .objects import Commit, ObjectID

logger = logging.getLogger(__name__)

# Shortest abbreviated commit id accepted by resolve_commit_id
MIN_ABBREV_LENGTH = 4


class NoSuchCommit(NotFound):
    """No stored commit has the requested id."""

    default_message = "No commit with that id exists."


class AmbiguousCommitId(GitletError):
    """An abbreviated commit id matches more than one commit."""

    default_message = "Commit id is ambiguous."


class NoCommitWithMessage(NotFound):
    """No stored commit has the requested message."""

    default_message = "Found no commit with that message."


def local_timezone(timestamp: int) -> int:
    """Return the local offset from UTC at a point in time, in seconds."""
    return time.localtime(timestamp).tm_gmtoff


def create_commit(
    object_store: BaseObjectStore,
    message: bytes,
    parent: ObjectID | None,
    tracked: Mapping[bytes, ObjectID],
    commit_time: int | None = None,
    commit_timezone: int | None = None,
) -> Commit:
    """Build a commit, store it and return it.

    Args:
      object_store: Store the commit is added to
      message: Commit message
      parent: Id of the parent commit, or None for a root commit
      tracked: Complete path -> blob id snapshot
      commit_time: Seconds since the epoch; defaults to now
      commit_timezone: Offset from UTC; defaults to the local timezone
    Returns: the new commit
    """
    if commit_time is None:
        commit_time = int(time.time())
    if commit_timezone is None:
        commit_timezone = local_timezone(commit_time)
    commit = Commit(
        message=message,
        parent=parent,
        commit_time=commit_time,
        commit_timezone=commit_timezone,
        tracked=tracked,
        hash_algorithm=object_store.hash_algorithm,
    )
    object_store.add_commit(commit)
    logger.debug("created commit %s", commit.id.decode("ascii"))
    return commit


def iter_ancestors(object_store: BaseObjectStore, sha: ObjectID) -> Iterator[Commit]:
    """Walk first-parent history, newest first, ending with the root commit.

    Args:
      object_store: Store to read commits from
      sha: Id of the commit to start at (yielded first)
    """
    next_sha: ObjectID | None = sha
    while next_sha is not None:
        commit = object_store.get_commit(next_sha)
        yield commit
        next_sha = commit.parent


def iter_all_commits(object_store: BaseObjectStore) -> Iterator[Commit]:
    """Iterate over every stored commit, reachable or not, in no particular order."""
    for sha in object_store.iter_commits():
        yield object_store.get_commit(sha)


def find_by_message(object_store: BaseObjectStore, message: bytes) -> list[ObjectID]:
    """Find the ids of all commits with exactly the given message.

    Raises:
      NoCommitWithMessage: if no commit matches
    """
    found = sorted(
        commit.id for commit in iter_all_commits(object_store) if commit.message == message
    )
    if not found:
        raise NoCommitWithMessage()
    return found


def resolve_commit_id(object_store: BaseObjectStore, committish: bytes) -> ObjectID:
    """Resolve a full or abbreviated commit id.

    Any stored commit can be named, whether or not it is reachable from a
    branch.

    Raises:
      NoSuchCommit: if no stored commit matches
      AmbiguousCommitId: if an abbreviated id matches several commits
    """
    committish = committish.lower()
    if len(committish) < MIN_ABBREV_LENGTH:
        raise NoSuchCommit()
    try:
        binascii.unhexlify(committish + b"0" * (len(committish) % 2))
    except binascii.Error as exc:
        raise NoSuchCommit() from exc
    if len(committish) == object_store.hash_algorithm.hex_length:
        if object_store.contains_commit(committish):
            return committish
        raise NoSuchCommit()
    matches = list(object_store.iter_prefix(committish))
    if not matches:
        raise NoSuchCommit()
    if len(matches) > 1:
        raise AmbiguousCommitId()
    return matches[0]
