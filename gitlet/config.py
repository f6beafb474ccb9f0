# config.py - Reading and writing gitlet config files
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

"""Reading and writing gitlet configuration files.

Files use a subset of the git-config syntax: ``[section]`` and
``[section "subsection"]`` headers followed by ``name = value`` lines, with
``#`` and ``;`` comments and double-quoted values. Section and variable names
are case-insensitive; subsection names are not.
"""

__all__ = [
    "Config",
    "ConfigFile",
    "StackedConfig",
]

import logging
import os
import re
from collections.abc import Iterable
from typing import IO

from .file import GitFile, _GitFile

logger = logging.getLogger(__name__)

Section = tuple[bytes, ...]
SectionLike = bytes | tuple[bytes, ...]

_BOM = b"\xef\xbb\xbf"
_QUOTE = ord(b'"')
_BACKSLASH = ord(b"\\")
_COMMENT_CHARS = frozenset(b"#;")
_ESCAPES = {
    ord(b"\\"): b"\\",
    ord(b'"'): b'"',
    ord(b"n"): b"\n",
    ord(b"t"): b"\t",
    ord(b"b"): b"\b",
}
_SECTION_HEADER_RE = re.compile(rb'\[([A-Za-z0-9.-]+)(?:\s+"((?:[^"\\]|\\.)*)")?\]')
_VARIABLE_NAME_RE = re.compile(rb"[A-Za-z][A-Za-z0-9-]*")


def _section_key(section: SectionLike) -> Section:
    if isinstance(section, bytes):
        section = (section,)
    return (section[0].lower(), *section[1:])


def _strip_comment(line: bytes) -> bytes:
    in_quotes = False
    for i, c in enumerate(line):
        if c == _QUOTE:
            in_quotes = not in_quotes
        elif c in _COMMENT_CHARS and not in_quotes:
            return line[:i]
    return line


def _parse_value(value: bytes) -> bytes:
    """Remove quoting and escapes from a value."""
    ret = bytearray()
    in_quotes = False
    chars = iter(value)
    for c in chars:
        if c == _QUOTE:
            in_quotes = not in_quotes
        elif c == _BACKSLASH:
            escaped = next(chars, None)
            if escaped is None:
                raise ValueError("escape character at end of value")
            try:
                ret += _ESCAPES[escaped]
            except KeyError as exc:
                raise ValueError(
                    f"unknown escape sequence \\{chr(escaped)} in value"
                ) from exc
        else:
            ret.append(c)
    if in_quotes:
        raise ValueError("missing end quote")
    return bytes(ret)


def _format_value(value: bytes) -> bytes:
    escaped = (
        value.replace(b"\\", b"\\\\")
        .replace(b'"', b'\\"')
        .replace(b"\n", b"\\n")
        .replace(b"\t", b"\\t")
    )
    if value != value.strip() or any(c in _COMMENT_CHARS for c in value):
        return b'"' + escaped + b'"'
    return escaped


def _parse_section_header(line: bytes) -> Section:
    m = _SECTION_HEADER_RE.fullmatch(line)
    if m is None:
        raise ValueError(f"invalid section header {line!r}")
    name, subsection = m.groups()
    if subsection is not None:
        return (name.lower(), re.sub(rb"\\(.)", rb"\1", subsection))
    # [section.subsection] is an older spelling of [section "subsection"]
    if b"." in name:
        name, subsection = name.split(b".", 1)
        return (name.lower(), subsection)
    return (name.lower(),)


class Config:
    """A gitlet configuration."""

    def get(self, section: SectionLike, name: bytes) -> bytes:
        """Retrieve the contents of a configuration setting.

        Args:
          section: Section name, or tuple of section and subsection name
          name: Variable name
        Returns:
          Contents of the setting
        Raises:
          KeyError: if the value is not set
        """
        raise NotImplementedError(self.get)

    def get_boolean(
        self, section: SectionLike, name: bytes, default: bool | None = None
    ) -> bool | None:
        """Retrieve a configuration setting as boolean.

        Raises:
          ValueError: if the value is not a boolean spelling git accepts
        """
        try:
            value = self.get(section, name).lower()
        except KeyError:
            return default
        if value in (b"true", b"yes", b"on", b"1"):
            return True
        if value in (b"false", b"no", b"off", b"0", b""):
            return False
        raise ValueError(f"not a valid boolean string: {value!r}")

    def get_int(
        self, section: SectionLike, name: bytes, default: int | None = None
    ) -> int | None:
        """Retrieve a configuration setting as an integer."""
        try:
            value = self.get(section, name)
        except KeyError:
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise ValueError(f"not a valid integer: {value!r}") from exc


class ConfigFile(Config):
    """A configuration file, like .gitlet/config or ~/.gitletconfig."""

    def __init__(self) -> None:
        self.path: str | None = None
        self._sections: dict[Section, dict[bytes, bytes]] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._sections!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ConfigFile) and self._sections == other._sections

    def get(self, section: SectionLike, name: bytes) -> bytes:
        return self._sections[_section_key(section)][name.lower()]

    def set(self, section: SectionLike, name: bytes, value: bytes) -> None:
        """Set a configuration value."""
        self._sections.setdefault(_section_key(section), {})[name.lower()] = value

    @classmethod
    def from_file(cls, f: IO[bytes]) -> "ConfigFile":
        """Read configuration from a file-like object.

        Raises:
          ValueError: on a line that cannot be parsed
        """
        ret = cls()
        section: Section | None = None
        for lineno, line in enumerate(f.readlines(), 1):
            if lineno == 1 and line.startswith(_BOM):
                line = line[len(_BOM) :]
            line = _strip_comment(line).strip()
            if not line:
                continue
            if line.startswith(b"["):
                section = _parse_section_header(line)
                ret._sections.setdefault(section, {})
                continue
            if section is None:
                raise ValueError(f"line {lineno}: setting {line!r} without section")
            name, sep, value = line.partition(b"=")
            name = name.strip()
            if not _VARIABLE_NAME_RE.fullmatch(name):
                raise ValueError(f"line {lineno}: invalid variable name {name!r}")
            # A bare name is a boolean set to true
            ret._sections[section][name.lower()] = (
                _parse_value(value.strip()) if sep else b"true"
            )
        return ret

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> "ConfigFile":
        """Read configuration from a file on disk."""
        abs_path = os.fspath(path)
        with GitFile(abs_path, "rb") as f:
            ret = cls.from_file(f)
        ret.path = abs_path
        return ret

    def write_to_path(self, path: str | os.PathLike[str] | None = None) -> None:
        """Write configuration to a file on disk, by default where it was read."""
        if path is None:
            if self.path is None:
                raise ValueError("No path specified and no default path available")
            path = self.path
        with GitFile(path, "wb") as f:
            self.write_to_file(f)

    def write_to_file(self, f: IO[bytes] | _GitFile) -> None:
        """Write configuration to a file-like object."""
        for section, values in self._sections.items():
            if len(section) == 1:
                f.write(b"[" + section[0] + b"]\n")
            else:
                subsection = section[1].replace(b"\\", b"\\\\").replace(b'"', b'\\"')
                f.write(b"[" + section[0] + b' "' + subsection + b'"]\n')
            for name, value in values.items():
                f.write(b"\t" + name + b" = " + _format_value(value) + b"\n")


class StackedConfig(Config):
    """Configuration which reads from several files, first match wins."""

    def __init__(self, backends: Iterable[Config]) -> None:
        self.backends = list(backends)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} for {self.backends!r}>"

    @classmethod
    def default(cls) -> "StackedConfig":
        return cls(cls.default_backends())

    @classmethod
    def default_backends(cls) -> list[ConfigFile]:
        """Retrieve the user-level configuration.

        ``$GITLET_CONFIG_GLOBAL`` names the file if set; otherwise
        ``~/.gitletconfig`` is used.
        """
        path = os.environ.get("GITLET_CONFIG_GLOBAL")
        if path is None:
            path = os.path.expanduser("~/.gitletconfig")
        try:
            backend = ConfigFile.from_path(path)
        except FileNotFoundError:
            logger.debug("configuration file not found: %s", path)
            return []
        logger.debug("loaded configuration from %s", path)
        return [backend]

    def get(self, section: SectionLike, name: bytes) -> bytes:
        for backend in self.backends:
            try:
                return backend.get(section, name)
            except KeyError:
                pass
        raise KeyError(name)
