# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Console output for debpack.

Library modules never print directly. They fetch the process-wide logger
with get_global_logger() and report through it; the CLI decides how much of
that reaches the terminal by installing a DefaultLogger with the requested
verbosity.

Levels:
- step: numbered pipeline progress ("[3/5] Normalizing permissions..."),
  always shown
- warning: non-fatal problems (leftover staging directory, failed install,
  control fields that disagree with the recipe), always shown on stderr
- verbose: per-file staging and tool invocation details (-v)
- debug: merged recipe dumps and individual chmod calls (-d, implies -v)

Example:
    ```python
    from debpack.logging import get_global_logger, get_logger, set_global_logger

    set_global_logger(get_logger(verbose=True))

    logger = get_global_logger()
    logger.step(1, 5, "Resolving package metadata...")
    logger.verbose("STAGE", "Copied binary: RoExtract -> /usr/bin/roextract")
    ```

Until something calls set_global_logger(), the global logger is a
SilentLogger, so importing debpack as a library produces no output.
"""

from __future__ import annotations

import sys
from typing import Protocol, TextIO


class Logger(Protocol):
    """Interface every debpack logger provides.

    Prefixes name the pipeline area a message comes from: CONFIG, VERSION,
    STAGE, PERMS, ARCHIVE, INSTALL, CLEANUP, BUILD or VALIDATE.
    """

    def step(self, step: int, total: int, message: str) -> None: ...

    def verbose(self, prefix: str, message: str) -> None: ...

    def debug(self, prefix: str, message: str) -> None: ...

    def warning(self, prefix: str, message: str) -> None: ...


class DefaultLogger:
    """Terminal logger used by the CLI.

    Args:
        verbose: Show verbose messages.
        debug: Show debug messages as well (turns on verbose).
        out: Stream for steps, verbose and debug output. Default: stdout
        err: Stream for warnings. Default: stderr
    """

    def __init__(
        self,
        verbose: bool = False,
        debug: bool = False,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ) -> None:
        self._verbose = verbose or debug
        self._debug = debug
        self._out = out
        self._err = err

    def _emit(self, text: str, stream: TextIO | None, fallback: TextIO) -> None:
        # sys.stdout/sys.stderr are read per call, not bound at construction
        print(text, file=stream or fallback)

    def step(self, step: int, total: int, message: str) -> None:
        self._emit(f"[{step}/{total}] {message}", self._out, sys.stdout)

    def verbose(self, prefix: str, message: str) -> None:
        if self._verbose:
            self._emit(f"[{prefix}] {message}", self._out, sys.stdout)

    def debug(self, prefix: str, message: str) -> None:
        if self._debug:
            self._emit(f"[{prefix}] {message}", self._out, sys.stdout)

    def warning(self, prefix: str, message: str) -> None:
        self._emit(f"[WARNING] [{prefix}] {message}", self._err, sys.stderr)


class SilentLogger:
    """Discards everything. The default until the CLI configures output."""

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass

    def warning(self, prefix: str, message: str) -> None:
        pass


_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Create a terminal logger for the given -v/-d flags."""
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    """Return the logger library code should report through."""
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Replace the process-wide logger.

    Every later get_global_logger() call, in any debpack module, returns
    this logger.
    """
    global _global_logger
    _global_logger = logger
