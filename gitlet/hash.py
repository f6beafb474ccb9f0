# hash.py -- Hash algorithm abstraction
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

"""Content hashes for gitlet objects.

An object's id is the hex digest of ``b"<type> <length>\\0"`` followed by the
object's raw bytes. SHA-1 is used unless the repository was created with
``extensions.objectformat = sha256``.
"""

from collections.abc import Callable, Iterable
from hashlib import sha1, sha256
from typing import Any


class HashAlgorithm:
    """A digest used to name gitlet objects."""

    def __init__(self, name: str, hex_length: int, hash_func: Callable[[], Any]) -> None:
        """Initialize a hash algorithm.

        Args:
            name: Name of the algorithm (e.g., "sha1", "sha256")
            hex_length: Length of the hexadecimal object id in characters
            hash_func: Hash constructor from hashlib
        """
        self.name = name
        self.hex_length = hex_length
        self.hash_func = hash_func

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"HashAlgorithm({self.name!r})"

    def hash_object_hex(self, type_name: bytes, chunks: Iterable[bytes]) -> bytes:
        """Compute the id of an object.

        Args:
            type_name: Object type, e.g. b"blob" or b"commit"
            chunks: Raw object contents, possibly split in several chunks

        Returns:
            Hexadecimal digest as bytes
        """
        chunks = list(chunks)
        h = self.hash_func()
        h.update(b"%s %d\0" % (type_name, sum(len(c) for c in chunks)))
        for chunk in chunks:
            h.update(chunk)
        return h.hexdigest().encode("ascii")


SHA1 = HashAlgorithm("sha1", 40, sha1)
SHA256 = HashAlgorithm("sha256", 64, sha256)

HASH_ALGORITHMS = {
    "sha1": SHA1,
    "sha256": SHA256,
}

DEFAULT_HASH_ALGORITHM = SHA1


def get_hash_algorithm(name: str | bytes | None = None) -> HashAlgorithm:
    """Get a hash algorithm by name.

    Args:
        name: Algorithm name ("sha1" or "sha256"). If None, returns default.

    Returns:
        HashAlgorithm instance

    Raises:
        ValueError: If the algorithm name is not supported
    """
    if name is None:
        return DEFAULT_HASH_ALGORITHM
    if isinstance(name, bytes):
        name = name.decode("ascii", "replace")
    try:
        return HASH_ALGORITHMS[name.lower()]
    except KeyError:
        raise ValueError(f"Unsupported hash algorithm: {name}")
