#!/usr/bin/env python3
#
# gitlet - Simple command-line interface to Gitlet
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

"""Simple command-line interface to Gitlet.

Every command runs to completion or stops with a single line on stdout
explaining why. User errors do not change the exit status.
"""

import argparse
import logging
import os
import signal
import sys
import types
from collections.abc import Sequence
from typing import NoReturn

from . import porcelain
from .errors import GitletError
from .log_utils import default_logging_config

logger = logging.getLogger(__name__)


class NoCommand(GitletError):
    """No command was given."""

    default_message = "Please enter a command."


class UnknownCommand(GitletError):
    """The command does not exist."""

    default_message = "No command with that name exists."


class IncorrectOperands(GitletError):
    """The command was given the wrong number or format of operands."""

    default_message = "Incorrect operands."


class OperandParser(argparse.ArgumentParser):
    """Argument parser that reports misuse as IncorrectOperands."""

    def __init__(self, prog: str) -> None:
        super().__init__(prog=f"gitlet {prog}", add_help=False)

    def error(self, message: str) -> NoReturn:
        logger.debug("%s: %s", self.prog, message)
        raise IncorrectOperands()


def signal_int(signal: int, frame: types.FrameType | None) -> None:
    """Handle interrupt signal by exiting.

    Args:
        signal: Signal number
        frame: Current stack frame
    """
    sys.exit(1)


def _abspath(path: str) -> str:
    # Operands are relative to the current directory, which may be a
    # subdirectory of the working tree
    return os.path.abspath(path)


class Command:
    """A Gitlet subcommand."""

    def run(self, args: Sequence[str]) -> int | None:
        """Run the command."""
        raise NotImplementedError(self.run)


class cmd_init(Command):
    """Create an empty Gitlet repository in the current directory."""

    def run(self, argv: Sequence[str]) -> None:
        OperandParser("init").parse_args(argv)
        porcelain.init(".")


class cmd_add(Command):
    """Stage a file for addition."""

    def run(self, argv: Sequence[str]) -> None:
        parser = OperandParser("add")
        parser.add_argument("path")
        args = parser.parse_args(argv)
        porcelain.add(".", paths=[_abspath(args.path)])


class cmd_commit(Command):
    """Record the staged changes in a new commit."""

    def run(self, argv: Sequence[str]) -> None:
        parser = OperandParser("commit")
        parser.add_argument("message", nargs="?", default="")
        args = parser.parse_args(argv)
        porcelain.commit(".", message=args.message)


class cmd_rm(Command):
    """Unstage a file, or stage it for removal and delete it."""

    def run(self, argv: Sequence[str]) -> None:
        parser = OperandParser("rm")
        parser.add_argument("path")
        args = parser.parse_args(argv)
        porcelain.remove(".", paths=[_abspath(args.path)])


class cmd_log(Command):
    """Show the history of the current branch."""

    def run(self, argv: Sequence[str]) -> None:
        OperandParser("log").parse_args(argv)
        porcelain.log(".", outstream=sys.stdout)


class cmd_global_log(Command):
    """Show every commit ever made."""

    def run(self, argv: Sequence[str]) -> None:
        OperandParser("global-log").parse_args(argv)
        porcelain.global_log(".", outstream=sys.stdout)


class cmd_find(Command):
    """Print the ids of all commits with the given message."""

    def run(self, argv: Sequence[str]) -> None:
        parser = OperandParser("find")
        parser.add_argument("message")
        args = parser.parse_args(argv)
        porcelain.find(".", message=args.message, outstream=sys.stdout)


class cmd_status(Command):
    """Show branches, staged files and working directory changes."""

    def run(self, argv: Sequence[str]) -> None:
        OperandParser("status").parse_args(argv)
        porcelain.print_status(porcelain.status("."), outstream=sys.stdout)


class cmd_checkout(Command):
    """Restore a file, or switch branches.

    Forms accepted:
      checkout -- <file>
      checkout <commit id> -- <file>
      checkout <branch>
    """

    def run(self, argv: Sequence[str]) -> None:
        argv = list(argv)
        if len(argv) == 2 and argv[0] == "--":
            porcelain.checkout_file(".", _abspath(argv[1]))
        elif len(argv) == 3 and argv[1] == "--":
            porcelain.checkout_file(".", _abspath(argv[2]), committish=argv[0])
        elif len(argv) == 1 and argv[0] != "--":
            porcelain.checkout_branch(".", argv[0])
        else:
            raise IncorrectOperands()


class cmd_branch(Command):
    """Create a branch pointing at the current commit."""

    def run(self, argv: Sequence[str]) -> None:
        parser = OperandParser("branch")
        parser.add_argument("name")
        args = parser.parse_args(argv)
        porcelain.branch_create(".", args.name)


class cmd_rm_branch(Command):
    """Delete a branch pointer."""

    def run(self, argv: Sequence[str]) -> None:
        parser = OperandParser("rm-branch")
        parser.add_argument("name")
        args = parser.parse_args(argv)
        porcelain.branch_delete(".", args.name)


commands = {
    "add": cmd_add,
    "branch": cmd_branch,
    "checkout": cmd_checkout,
    "commit": cmd_commit,
    "find": cmd_find,
    "global-log": cmd_global_log,
    "init": cmd_init,
    "log": cmd_log,
    "rm": cmd_rm,
    "rm-branch": cmd_rm_branch,
    "status": cmd_status,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the Gitlet CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    default_logging_config()

    try:
        if not argv:
            raise NoCommand()
        try:
            cmd_kls = commands[argv[0]]
        except KeyError as exc:
            raise UnknownCommand() from exc
        return cmd_kls().run(argv[1:]) or 0
    except GitletError as e:
        logger.debug("%s failed", argv[0] if argv else "gitlet", exc_info=True)
        sys.stdout.write(f"{e}\n")
        return 0


def _main() -> None:
    signal.signal(signal.SIGINT, signal_int)

    sys.exit(main())


if __name__ == "__main__":
    _main()
