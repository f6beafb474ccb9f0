# test_porcelain.py -- Tests for gitlet.porcelain
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

"""Tests for gitlet.porcelain."""

import os
import re
import shutil
import tempfile
from io import StringIO

from gitlet import porcelain
from gitlet.errors import NotGitletRepository, RepositoryExists
from gitlet.graph import NoCommitWithMessage, NoSuchCommit
from gitlet.index import EmptyStage, NothingToRemove
from gitlet.objects import Blob
from gitlet.refs import BranchExists, BranchNotFound, CurrentBranch
from gitlet.repo import Repo
from gitlet.worktree import FileNotFound, FileNotInCommit, NoOpBranch, NoSuchBranch

from . import TestCase

LOG_ENTRY_RE = re.compile(
    r"===\ncommit ([0-9a-f]{40})\nDate: \w{3} \w{3} \d{1,2} \d\d:\d\d:\d\d \d{4} [+-]\d{4}\n"
    r"(.*)\n\n"
)


class PorcelainTestCase(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.test_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.test_dir)
        self.repo_path = os.path.join(self.test_dir, "repo")
        self.repo = porcelain.init(self.repo_path, mkdir=True)
        self.addCleanup(self.repo.close)

    def path(self, name: str) -> str:
        return os.path.join(self.repo_path, *name.split("/"))

    def write(self, name: str, data: bytes) -> None:
        os.makedirs(os.path.dirname(self.path(name)), exist_ok=True)
        with open(self.path(name), "wb") as f:
            f.write(data)

    def read(self, name: str) -> bytes:
        with open(self.path(name), "rb") as f:
            return f.read()

    def log_entries(self, func=porcelain.log) -> list[tuple[str, str]]:
        out = StringIO()
        func(self.repo_path, outstream=out)
        entries = LOG_ENTRY_RE.findall(out.getvalue())
        matched = "".join(m.group(0) for m in LOG_ENTRY_RE.finditer(out.getvalue()))
        self.assertEqual(out.getvalue(), matched)
        return entries


class InitTests(PorcelainTestCase):
    def test_log(self) -> None:
        out = StringIO()
        porcelain.log(self.repo_path, outstream=out)
        self.assertEqual(
            "===\n"
            f"commit {self.repo.head().decode('ascii')}\n"
            "Date: Thu Jan 1 00:00:00 1970 +0000\n"
            "initial commit\n"
            "\n",
            out.getvalue(),
        )

    def test_status(self) -> None:
        out = StringIO()
        porcelain.print_status(porcelain.status(self.repo_path), outstream=out)
        self.assertEqual(
            "=== Branches ===\n"
            "*master\n"
            "\n"
            "=== Staged Files ===\n"
            "\n"
            "=== Removed Files ===\n"
            "\n"
            "=== Modifications Not Staged For Commit ===\n"
            "\n"
            "=== Untracked Files ===\n"
            "\n",
            out.getvalue(),
        )

    def test_init_twice(self) -> None:
        with self.assertRaises(RepositoryExists) as cm:
            porcelain.init(self.repo_path)
        self.assertEqual(
            "A Gitlet version-control system already exists in the current directory.",
            str(cm.exception),
        )

    def test_default_branch(self) -> None:
        path = os.path.join(self.test_dir, "other")
        with porcelain.init(path, mkdir=True, default_branch="main") as repo:
            self.assertEqual(b"main", repo.head_branch())

    def test_not_a_repository(self) -> None:
        path = os.path.join(self.test_dir, "empty")
        os.mkdir(path)
        self.assertRaises(NotGitletRepository, porcelain.status, path)

    def test_commit_outside_repository(self) -> None:
        path = os.path.join(self.test_dir, "empty")
        os.mkdir(path)
        self.assertRaises(NotGitletRepository, porcelain.commit, path, "")


class AddCommitTests(PorcelainTestCase):
    def test_add_commit(self) -> None:
        self.write("wug.txt", b"wug\n")
        self.assertEqual([b"wug.txt"], porcelain.add(self.repo_path, "wug.txt"))
        sha = porcelain.commit(self.repo_path, "added wug")
        self.assertEqual(sha, self.repo.head())
        commit = self.repo.head_commit()
        self.assertEqual(b"added wug", commit.message)
        self.assertEqual([b"wug.txt"], list(commit.tracked))
        self.assertEqual(
            b"wug\n", self.repo.object_store.get_blob(commit.tracked[b"wug.txt"])
        )
        self.assertTrue(self.repo.open_index().is_empty())
        entries = self.log_entries()
        self.assertEqual(
            [
                (sha.decode("ascii"), "added wug"),
                (commit.parent.decode("ascii"), "initial commit"),
            ],
            entries,
        )

    def test_add_absolute_path(self) -> None:
        self.write("dir/f", b"f")
        self.assertEqual([b"dir/f"], porcelain.add(self.repo, [self.path("dir/f")]))

    def test_add_missing(self) -> None:
        with self.assertRaises(FileNotFound) as cm:
            porcelain.add(self.repo_path, ["nope.txt"])
        self.assertEqual("File does not exist.", str(cm.exception))

    def test_add_outside_tree(self) -> None:
        outside = os.path.join(self.test_dir, "outside")
        with open(outside, "wb") as f:
            f.write(b"x")
        self.assertRaises(FileNotFound, porcelain.add, self.repo_path, [outside])

    def test_add_control_directory(self) -> None:
        self.assertRaises(FileNotFound, porcelain.add, self.repo_path, [".gitlet/HEAD"])

    def test_add_unchanged_unstages(self) -> None:
        self.write("f", b"v1")
        porcelain.add(self.repo_path, ["f"])
        porcelain.commit(self.repo_path, "v1")
        self.write("f", b"v2")
        porcelain.add(self.repo_path, ["f"])
        self.write("f", b"v1")
        porcelain.add(self.repo_path, ["f"])
        self.assertEqual([], porcelain.status(self.repo_path).staged)
        self.assertRaises(EmptyStage, porcelain.commit, self.repo_path, "nothing")

    def test_commit_empty_stage(self) -> None:
        with self.assertRaises(EmptyStage) as cm:
            porcelain.commit(self.repo_path, "nothing")
        self.assertEqual("No changes added to the commit.", str(cm.exception))
        self.assertEqual(1, len(self.log_entries()))

    def test_commit_empty_message(self) -> None:
        self.write("f", b"f")
        porcelain.add(self.repo_path, ["f"])
        with self.assertRaises(porcelain.EmptyCommitMessage) as cm:
            porcelain.commit(self.repo_path, "")
        self.assertEqual("Please enter a commit message.", str(cm.exception))
        self.assertEqual(["f".encode()], porcelain.status(self.repo_path).staged)

    def test_commit_inherits_tracked(self) -> None:
        self.write("a", b"a")
        self.write("b", b"b")
        porcelain.add(self.repo_path, ["a", "b"])
        porcelain.commit(self.repo_path, "two files")
        self.write("a", b"a2")
        porcelain.add(self.repo_path, ["a"])
        porcelain.commit(self.repo_path, "change a")
        tracked = self.repo.head_commit().tracked
        self.assertEqual(
            b"a2", self.repo.object_store.get_blob(tracked[b"a"])
        )
        self.assertEqual(b"b", self.repo.object_store.get_blob(tracked[b"b"]))

    def test_commit_time(self) -> None:
        self.write("f", b"f")
        porcelain.add(self.repo_path, ["f"])
        porcelain.commit(
            self.repo_path, "timed", commit_time=1700000000, commit_timezone=3600
        )
        out = StringIO()
        porcelain.log(self.repo_path, outstream=out)
        self.assertIn("Date: Tue Nov 14 23:13:20 2023 +0100\n", out.getvalue())

    def test_same_contents_stored_once(self) -> None:
        self.write("a", b"same")
        self.write("b", b"same")
        porcelain.add(self.repo_path, ["a", "b"])
        porcelain.commit(self.repo_path, "dup")
        tracked = self.repo.head_commit().tracked
        self.assertEqual(tracked[b"a"], tracked[b"b"])
        blobs = os.listdir(os.path.join(self.repo.controldir(), "objects", "blobs"))
        self.assertEqual([tracked[b"a"].decode("ascii")], blobs)


class RemoveTests(PorcelainTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.write("f", b"f")
        porcelain.add(self.repo_path, ["f"])
        porcelain.commit(self.repo_path, "add f")

    def test_remove_tracked(self) -> None:
        porcelain.rm(self.repo_path, ["f"])
        self.assertFalse(os.path.exists(self.path("f")))
        st = porcelain.status(self.repo_path)
        self.assertEqual([b"f"], st.removed)
        porcelain.commit(self.repo_path, "remove f")
        self.assertEqual({}, dict(self.repo.head_commit().tracked))

    def test_remove_untracked(self) -> None:
        self.write("g", b"g")
        with self.assertRaises(NothingToRemove) as cm:
            porcelain.remove(self.repo_path, ["g"])
        self.assertEqual("No reason to remove the file.", str(cm.exception))

    def test_remove_staged(self) -> None:
        self.write("g", b"g")
        porcelain.add(self.repo_path, ["g"])
        porcelain.remove(self.repo_path, ["g"])
        self.assertTrue(os.path.exists(self.path("g")))
        st = porcelain.status(self.repo_path)
        self.assertEqual([], st.staged)
        self.assertEqual([b"g"], st.untracked)

    def test_add_after_remove(self) -> None:
        porcelain.remove(self.repo_path, ["f"])
        self.write("f", b"f")
        porcelain.add(self.repo_path, ["f"])
        st = porcelain.status(self.repo_path)
        self.assertEqual([], st.removed)
        self.assertEqual([], st.staged)


class LogTests(PorcelainTestCase):
    def commit(self, name: str, data: bytes, message: str) -> bytes:
        self.write(name, data)
        porcelain.add(self.repo_path, [name])
        return porcelain.commit(self.repo_path, message)

    def test_log_follows_current_branch(self) -> None:
        first = self.commit("f", b"1", "first")
        porcelain.branch_create(self.repo_path, "side")
        second = self.commit("f", b"2", "second")
        porcelain.checkout_branch(self.repo_path, "side")
        third = self.commit("f", b"3", "third")
        self.assertEqual(
            [third, first], [sha.encode() for sha, _ in self.log_entries()[:2]]
        )
        porcelain.checkout_branch(self.repo_path, "master")
        self.assertEqual(
            [second, first], [sha.encode() for sha, _ in self.log_entries()[:2]]
        )

    def test_global_log(self) -> None:
        first = self.commit("f", b"1", "first")
        porcelain.branch_create(self.repo_path, "side")
        porcelain.checkout_branch(self.repo_path, "side")
        second = self.commit("f", b"2", "second")
        porcelain.checkout_branch(self.repo_path, "master")
        porcelain.branch_delete(self.repo_path, "side")
        ids = sorted(sha.encode() for sha, _ in self.log_entries(porcelain.global_log))
        self.assertEqual(sorted([first, second, self.repo.head_commit().parent]), ids)

    def test_find(self) -> None:
        one = self.commit("f", b"1", "same message")
        two = self.commit("f", b"2", "same message")
        self.commit("f", b"3", "other message")
        out = StringIO()
        found = porcelain.find(self.repo_path, "same message", outstream=out)
        self.assertEqual(sorted([one, two]), found)
        self.assertEqual(
            "".join(sha.decode("ascii") + "\n" for sha in sorted([one, two])),
            out.getvalue(),
        )

    def test_find_initial_commit(self) -> None:
        out = StringIO()
        porcelain.find(self.repo_path, "initial commit", outstream=out)
        self.assertEqual(self.repo.head().decode("ascii") + "\n", out.getvalue())

    def test_find_nothing(self) -> None:
        with self.assertRaises(NoCommitWithMessage) as cm:
            porcelain.find(self.repo_path, "nope", outstream=StringIO())
        self.assertEqual("Found no commit with that message.", str(cm.exception))


class StatusTests(PorcelainTestCase):
    def test_full(self) -> None:
        self.write("tracked", b"t")
        self.write("doomed", b"d")
        self.write("deleted", b"x")
        porcelain.add(self.repo_path, ["tracked", "doomed", "deleted"])
        porcelain.commit(self.repo_path, "base")
        porcelain.branch_create(self.repo_path, "other")
        self.write("staged", b"s")
        porcelain.add(self.repo_path, ["staged"])
        porcelain.remove(self.repo_path, ["doomed"])
        self.write("tracked", b"changed")
        os.remove(self.path("deleted"))
        self.write("untracked", b"u")

        out = StringIO()
        porcelain.print_status(porcelain.status(self.repo_path), outstream=out)
        self.assertEqual(
            "=== Branches ===\n"
            "*master\n"
            "other\n"
            "\n"
            "=== Staged Files ===\n"
            "staged\n"
            "\n"
            "=== Removed Files ===\n"
            "doomed\n"
            "\n"
            "=== Modifications Not Staged For Commit ===\n"
            "deleted (deleted)\n"
            "tracked (modified)\n"
            "\n"
            "=== Untracked Files ===\n"
            "untracked\n"
            "\n",
            out.getvalue(),
        )

    def test_status_tuple(self) -> None:
        self.write("b", b"b")
        self.write("a", b"a")
        porcelain.add(self.repo_path, ["b", "a"])
        st = porcelain.status(self.repo)
        self.assertEqual([b"master"], st.branches)
        self.assertEqual(b"master", st.current_branch)
        self.assertEqual([b"a", b"b"], st.staged)


class CheckoutFileTests(PorcelainTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.write("wug.txt", b"version 1")
        porcelain.add(self.repo_path, ["wug.txt"])
        self.first = porcelain.commit(self.repo_path, "v1")
        self.write("wug.txt", b"version 2")
        porcelain.add(self.repo_path, ["wug.txt"])
        porcelain.commit(self.repo_path, "v2")

    def test_from_head(self) -> None:
        self.write("wug.txt", b"scribbles")
        porcelain.checkout_file(self.repo_path, "wug.txt")
        self.assertEqual(b"version 2", self.read("wug.txt"))

    def test_from_commit(self) -> None:
        porcelain.checkout_file(self.repo_path, "wug.txt", committish=self.first)
        self.assertEqual(b"version 1", self.read("wug.txt"))
        self.assertTrue(self.repo.open_index().is_empty())

    def test_from_abbreviated_commit(self) -> None:
        porcelain.checkout_file(
            self.repo_path, "wug.txt", committish=self.first[:6].decode("ascii")
        )
        self.assertEqual(b"version 1", self.read("wug.txt"))

    def test_not_in_commit(self) -> None:
        with self.assertRaises(FileNotInCommit) as cm:
            porcelain.checkout_file(self.repo_path, "other.txt")
        self.assertEqual("File does not exist in that commit.", str(cm.exception))

    def test_no_such_commit(self) -> None:
        with self.assertRaises(NoSuchCommit) as cm:
            porcelain.checkout_file(self.repo_path, "wug.txt", committish="f" * 40)
        self.assertEqual("No commit with that id exists.", str(cm.exception))
        self.assertEqual(b"version 2", self.read("wug.txt"))


class BranchTests(PorcelainTestCase):
    def test_create_list(self) -> None:
        porcelain.branch_create(self.repo_path, "cool-beans")
        self.assertEqual([b"cool-beans", b"master"], porcelain.branch_list(self.repo_path))
        self.assertEqual(self.repo.head(), self.repo.refs.get_branch(b"cool-beans"))
        self.assertEqual(b"master", self.repo.head_branch())

    def test_create_existing(self) -> None:
        with self.assertRaises(BranchExists) as cm:
            porcelain.branch_create(self.repo_path, "master")
        self.assertEqual("A branch with that name already exists.", str(cm.exception))

    def test_delete(self) -> None:
        porcelain.branch_create(self.repo_path, "other")
        porcelain.checkout_branch(self.repo_path, "other")
        self.write("f", b"f")
        porcelain.add(self.repo_path, ["f"])
        sha = porcelain.commit(self.repo_path, "on other")
        porcelain.checkout_branch(self.repo_path, "master")
        porcelain.branch_delete(self.repo_path, "other")
        self.assertEqual([b"master"], porcelain.branch_list(self.repo_path))
        # The commit is still there
        self.assertTrue(self.repo.object_store.contains_commit(sha))
        porcelain.checkout_file(self.repo_path, "f", committish=sha)
        self.assertEqual(b"f", self.read("f"))

    def test_delete_missing(self) -> None:
        with self.assertRaises(BranchNotFound) as cm:
            porcelain.branch_delete(self.repo_path, "nope")
        self.assertEqual("A branch with that name does not exist.", str(cm.exception))

    def test_delete_current(self) -> None:
        with self.assertRaises(CurrentBranch) as cm:
            porcelain.branch_delete(self.repo_path, "master")
        self.assertEqual("Cannot remove the current branch.", str(cm.exception))


class CheckoutBranchTests(PorcelainTestCase):
    def test_switch(self) -> None:
        self.write("wug.txt", b"wug")
        porcelain.add(self.repo_path, ["wug.txt"])
        porcelain.commit(self.repo_path, "master wug")
        porcelain.branch_create(self.repo_path, "other")
        self.write("wug.txt", b"master only")
        porcelain.add(self.repo_path, ["wug.txt"])
        porcelain.commit(self.repo_path, "master change")

        porcelain.checkout_branch(self.repo_path, "other")
        self.assertEqual(b"wug", self.read("wug.txt"))
        self.assertEqual(b"other", porcelain.status(self.repo_path).current_branch)

        self.write("notwug.txt", b"other only")
        porcelain.add(self.repo_path, ["notwug.txt"])
        porcelain.commit(self.repo_path, "other notwug")

        porcelain.checkout_branch(self.repo_path, "master")
        self.assertEqual(b"master only", self.read("wug.txt"))
        self.assertFalse(os.path.exists(self.path("notwug.txt")))

    def test_missing_branch(self) -> None:
        with self.assertRaises(NoSuchBranch) as cm:
            porcelain.checkout_branch(self.repo_path, "nope")
        self.assertEqual("No such branch exists.", str(cm.exception))

    def test_current_branch(self) -> None:
        with self.assertRaises(NoOpBranch) as cm:
            porcelain.checkout_branch(self.repo_path, "master")
        self.assertEqual("No need to checkout the current branch.", str(cm.exception))


class PathToTreePathTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.test_dir = os.path.realpath(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, self.test_dir)

    def test_relative(self) -> None:
        self.assertEqual(
            b"dir/file", porcelain.path_to_tree_path(self.test_dir, "dir/file")
        )

    def test_absolute(self) -> None:
        self.assertEqual(
            b"file",
            porcelain.path_to_tree_path(self.test_dir, os.path.join(self.test_dir, "file")),
        )

    def test_bytes(self) -> None:
        self.assertEqual(b"file", porcelain.path_to_tree_path(self.test_dir, b"file"))

    def test_outside(self) -> None:
        self.assertRaises(
            ValueError, porcelain.path_to_tree_path, self.test_dir, "/elsewhere/file"
        )

    def test_root(self) -> None:
        self.assertRaises(ValueError, porcelain.path_to_tree_path, self.test_dir, ".")


class ScenarioTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.repo_path = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.repo_path)

    def write(self, name: str, data: bytes) -> None:
        with open(os.path.join(self.repo_path, name), "wb") as f:
            f.write(data)

    def test_add_then_commit(self) -> None:
        with porcelain.init(self.repo_path) as repo:
            self.write("a.txt", b"hello")
            porcelain.add(repo, ["a.txt"])
            porcelain.commit(repo, "first")
            self.assertEqual(
                {b"a.txt": Blob(b"hello").id}, dict(repo.head_commit().tracked)
            )
            self.assertTrue(repo.open_index().is_empty())

    def test_switch_between_main_and_feature(self) -> None:
        with porcelain.init(self.repo_path, default_branch="main") as repo:
            self.write("a.txt", b"main version")
            porcelain.add(repo, ["a.txt"])
            porcelain.commit(repo, "on main")
            porcelain.branch_create(repo, "feature")
            porcelain.checkout_branch(repo, "feature")
            self.write("a.txt", b"feature version")
            porcelain.add(repo, ["a.txt"])
            porcelain.commit(repo, "on feature")
            porcelain.checkout_branch(repo, "main")
            self.write("b.txt", b"staged")
            porcelain.add(repo, ["b.txt"])

            porcelain.checkout_branch(repo, "feature")
            with open(os.path.join(self.repo_path, "a.txt"), "rb") as f:
                self.assertEqual(b"feature version", f.read())
            self.assertTrue(repo.open_index().is_empty())
            self.assertEqual(b"feature", repo.head_branch())
