# test_objects.py -- Tests for gitlet.objects
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

"""Tests for the gitlet object model."""

import hashlib

from gitlet.errors import ObjectFormatException
from gitlet.hash import SHA256
from gitlet.objects import (
    Blob,
    Commit,
    format_commit_date,
    format_timezone,
    parse_timezone,
    valid_hexsha,
)

from . import TestCase

a_sha = b"a" * 40
b_sha = b"b" * 40
c_sha = b"c" * 40


class BlobTests(TestCase):
    def test_id(self) -> None:
        expected = hashlib.sha1(b"blob 5\0hello").hexdigest().encode("ascii")
        self.assertEqual(expected, Blob(b"hello").id)

    def test_same_content_same_id(self) -> None:
        self.assertEqual(Blob(b"foo").id, Blob(b"foo").id)
        self.assertEqual(Blob(b"foo"), Blob(b"foo"))
        self.assertNotEqual(Blob(b"foo").id, Blob(b"bar").id)

    def test_empty(self) -> None:
        self.assertTrue(valid_hexsha(Blob(b"").id))
        self.assertEqual(b"", Blob().data)

    def test_rejects_str(self) -> None:
        self.assertRaises(TypeError, Blob, "text")

    def test_sha256(self) -> None:
        blob = Blob(b"hello", SHA256)
        self.assertEqual(64, len(blob.id))
        self.assertEqual(
            hashlib.sha256(b"blob 5\0hello").hexdigest().encode("ascii"), blob.id
        )

    def test_get_id_other_algorithm(self) -> None:
        blob = Blob(b"hello")
        self.assertEqual(Blob(b"hello", SHA256).id, blob.get_id(SHA256))


class CommitTests(TestCase):
    def make_commit(self, **kwargs) -> Commit:
        attrs = {
            "message": b"a message",
            "parent": a_sha,
            "commit_time": 1174773719,
            "commit_timezone": 0,
            "tracked": {b"foo": b_sha, b"dir/bar": c_sha},
        }
        attrs.update(kwargs)
        return Commit(**attrs)

    def test_serialize(self) -> None:
        self.assertEqual(
            b"parent " + a_sha + b"\n"
            b"timestamp 1174773719 +0000\n"
            b"file " + c_sha + b" dir/bar\n"
            b"file " + b_sha + b" foo\n"
            b"\n"
            b"a message",
            self.make_commit().as_raw_string(),
        )

    def test_serialize_root(self) -> None:
        commit = Commit(message=b"initial commit")
        self.assertEqual(
            b"timestamp 0 +0000\n\ninitial commit", commit.as_raw_string()
        )
        self.assertIsNone(commit.parent)

    def test_parse(self) -> None:
        commit = self.make_commit(commit_timezone=-3600)
        parsed = Commit.from_string(commit.as_raw_string())
        self.assertEqual(commit.id, parsed.id)
        self.assertEqual(a_sha, parsed.parent)
        self.assertEqual(1174773719, parsed.commit_time)
        self.assertEqual(-3600, parsed.commit_timezone)
        self.assertEqual({b"foo": b_sha, b"dir/bar": c_sha}, dict(parsed.tracked))
        self.assertEqual(b"a message", parsed.message)

    def test_parse_multiline_message(self) -> None:
        commit = self.make_commit(message=b"first\n\nsecond\n")
        self.assertEqual(
            b"first\n\nsecond\n", Commit.from_string(commit.as_raw_string()).message
        )

    def test_path_with_spaces(self) -> None:
        commit = self.make_commit(tracked={b"a file name": b_sha})
        parsed = Commit.from_string(commit.as_raw_string())
        self.assertEqual({b"a file name": b_sha}, dict(parsed.tracked))

    def test_id_covers_content(self) -> None:
        commit = self.make_commit()
        self.assertEqual(commit.id, self.make_commit().id)
        self.assertNotEqual(commit.id, self.make_commit(message=b"other").id)
        self.assertNotEqual(commit.id, self.make_commit(parent=b_sha).id)
        self.assertNotEqual(commit.id, self.make_commit(commit_time=1).id)
        self.assertNotEqual(commit.id, self.make_commit(tracked={}).id)

    def test_tracked_is_read_only(self) -> None:
        commit = self.make_commit()
        with self.assertRaises(TypeError):
            commit.tracked[b"foo"] = c_sha  # type: ignore[index]

    def test_tracked_is_copied(self) -> None:
        tracked = {b"foo": b_sha}
        commit = self.make_commit(tracked=tracked)
        tracked[b"bar"] = c_sha
        self.assertEqual([b"foo"], list(commit.tracked))

    def test_invalid_parent(self) -> None:
        self.assertRaises(ValueError, self.make_commit, parent=b"not a sha")

    def test_invalid_path(self) -> None:
        self.assertRaises(ValueError, self.make_commit, tracked={b"a\nb": b_sha})

    def test_parse_missing_timestamp(self) -> None:
        self.assertRaises(
            ObjectFormatException, Commit.from_string, b"parent " + a_sha + b"\n\nmsg"
        )

    def test_parse_unknown_field(self) -> None:
        self.assertRaises(
            ObjectFormatException,
            Commit.from_string,
            b"timestamp 0 +0000\nauthor someone\n\nmsg",
        )

    def test_parse_no_end_of_headers(self) -> None:
        self.assertRaises(
            ObjectFormatException, Commit.from_string, b"timestamp 0 +0000\n"
        )

    def test_parse_bad_blob_id(self) -> None:
        self.assertRaises(
            ObjectFormatException,
            Commit.from_string,
            b"timestamp 0 +0000\nfile xyz foo\n\nmsg",
        )


class TimezoneTests(TestCase):
    def test_parse_timezone(self) -> None:
        self.assertEqual(0, parse_timezone(b"+0000"))
        self.assertEqual(5400, parse_timezone(b"+0130"))
        self.assertEqual(-28800, parse_timezone(b"-0800"))

    def test_parse_timezone_invalid(self) -> None:
        self.assertRaises(ValueError, parse_timezone, b"0100")
        self.assertRaises(ValueError, parse_timezone, b"+01")

    def test_format_timezone(self) -> None:
        self.assertEqual(b"+0000", format_timezone(0))
        self.assertEqual(b"+0130", format_timezone(5400))
        self.assertEqual(b"-0800", format_timezone(-28800))

    def test_format_timezone_non_minute(self) -> None:
        self.assertRaises(ValueError, format_timezone, 30)

    def test_format_commit_date_epoch(self) -> None:
        self.assertEqual("Thu Jan 1 00:00:00 1970 +0000", format_commit_date(0, 0))

    def test_format_commit_date_offset(self) -> None:
        self.assertEqual(
            "Wed Dec 31 16:00:00 1969 -0800", format_commit_date(0, -28800)
        )


class ValidHexShaTests(TestCase):
    def test_valid(self) -> None:
        self.assertTrue(valid_hexsha(a_sha))
        self.assertTrue(valid_hexsha("a" * 64))

    def test_invalid(self) -> None:
        self.assertFalse(valid_hexsha(b"a" * 39))
        self.assertFalse(valid_hexsha(b"A" * 40))
        self.assertFalse(valid_hexsha(b"g" * 40))
