# log_utils.py -- Logging utilities for Gitlet
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

"""Logging utilities for Gitlet.

Gitlet is usable as a library, so the ``gitlet`` logger carries a handler
that drops every record until an application configures logging. The
command line tool calls :func:`default_logging_config`, which only produces
output when ``GITLET_TRACE`` asks for it: command results go to stdout and
must not be mixed with log records.
"""

__all__ = [
    "TRACE_ENVIRONMENT_VARIABLE",
    "default_logging_config",
    "getLogger",
    "remove_null_handler",
]

import logging
import os
import sys
from typing import IO

getLogger = logging.getLogger

TRACE_ENVIRONMENT_VARIABLE = "GITLET_TRACE"
TRACE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


class _NullHandler(logging.Handler):
    """No-op logging handler to avoid unexpected logging warnings."""

    def emit(self, record: logging.LogRecord) -> None:
        pass


_NULL_HANDLER = _NullHandler()
_GITLET_LOGGER = getLogger("gitlet")
_GITLET_LOGGER.addHandler(_NULL_HANDLER)


def _get_trace_target(trace_value: str) -> str | int | None:
    """Interpret the value of GITLET_TRACE.

    Returns:
        - None if tracing is disabled
        - 2 for stderr output (values "1", "2", "true")
        - int (3-9) for file descriptor
        - str for an absolute file or directory path
    """
    if not trace_value or trace_value.lower() in ("0", "false"):
        return None
    if trace_value.lower() in ("1", "2", "true"):
        return 2
    try:
        fd = int(trace_value)
    except ValueError:
        pass
    else:
        return fd if 3 <= fd <= 9 else None
    if os.path.isabs(trace_value):
        return trace_value
    return None


def _open_trace_stream(target: str | int) -> IO[str]:
    if target == 2:
        return sys.stderr
    if isinstance(target, int):
        return os.fdopen(target, "w", buffering=1)
    if os.path.isdir(target):
        # one file per process
        target = os.path.join(target, f"trace.{os.getpid()}")
    return open(target, "a", buffering=1)


def _configure_logging_from_trace() -> logging.Handler | None:
    """Send gitlet log records wherever GITLET_TRACE points.

    Returns: the installed handler, or None if tracing is disabled or the
        target could not be opened
    """
    target = _get_trace_target(os.environ.get(TRACE_ENVIRONMENT_VARIABLE, ""))
    if target is None:
        return None
    try:
        stream = _open_trace_stream(target)
    except OSError as e:
        sys.stderr.write(
            f"Warning: Failed to open {TRACE_ENVIRONMENT_VARIABLE} target {target}: {e}\n"
        )
        return None
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(TRACE_FORMAT))
    _GITLET_LOGGER.addHandler(handler)
    _GITLET_LOGGER.setLevel(logging.DEBUG)
    return handler


def default_logging_config() -> None:
    """Set up the default Gitlet loggers.

    Respects the GITLET_TRACE environment variable:
    - "1", "2" or "true": trace to stderr
    - an integer 3-9: trace to that file descriptor
    - an absolute path: append to that file, or to a per-process file if the
      path is a directory
    Without tracing, only warnings and errors are logged, to stderr.
    """
    remove_null_handler()
    if _configure_logging_from_trace() is None:
        logging.basicConfig(
            level=logging.WARNING,
            stream=sys.stderr,
            format="%(levelname)s: %(message)s",
        )


def remove_null_handler() -> None:
    """Remove the null handler from the Gitlet loggers.

    If a caller wants to set up logging using something other than
    default_logging_config, calling this function first is a minor optimization
    to avoid the overhead of using the _NullHandler.
    """
    _GITLET_LOGGER.removeHandler(_NULL_HANDLER)
