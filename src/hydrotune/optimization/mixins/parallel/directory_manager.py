# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Per-invocation scratch directories.

Each simulator invocation works in its own directory under a scratch root,
so that concurrent runs never share input or output files. Directories are
removed when the invocation ends; failed ones can be kept for inspection.
"""

import logging
import shutil
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from hydrotune.core.exceptions import SimulationError


class DirectoryManager:
    """
    Allocates and releases exclusive scratch directories keyed by invocation id.

    Args:
        root: Directory under which run directories are created
        keep_failed: Keep the directory of a failed run and attach its path to
            the SimulationError as ``workdir``
        logger: Logger instance
    """

    def __init__(
        self,
        root: Union[str, Path],
        keep_failed: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        self.root = Path(root)
        self.keep_failed = keep_failed
        self.logger = logger or logging.getLogger(__name__)
        self._active: Dict[int, Path] = {}
        self._lock = threading.Lock()

    def __getstate__(self):
        state = self.__dict__.copy()
        del state['_lock']
        state['_active'] = {}
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._lock = threading.Lock()

    @property
    def active(self) -> Dict[int, Path]:
        """Directories currently in use, by invocation id."""
        with self._lock:
            return dict(self._active)

    @contextmanager
    def acquire(self, invocation_id: int) -> Iterator[Path]:
        """
        Create a fresh directory for one invocation and release it on exit.

        Raises:
            RuntimeError: If the invocation id already holds a directory
        """
        path = self.root / f"run_{invocation_id:06d}_{uuid.uuid4().hex[:8]}"
        with self._lock:
            if invocation_id in self._active:
                raise RuntimeError(
                    f"Invocation {invocation_id} already holds {self._active[invocation_id]}"
                )
            self._active[invocation_id] = path
        try:
            path.mkdir(parents=True, exist_ok=False)
        except OSError:
            with self._lock:
                self._active.pop(invocation_id, None)
            raise

        failed = False
        try:
            yield path
        except BaseException as exc:
            failed = True
            if self.keep_failed and isinstance(exc, SimulationError):
                exc.workdir = path
            raise
        finally:
            with self._lock:
                self._active.pop(invocation_id, None)
            if failed and self.keep_failed:
                self.logger.info(f"Keeping scratch directory of failed run: {path}")
            else:
                self.release(path)

    def release(self, path: Path) -> None:
        """Remove a run directory."""
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove scratch directory {path}: {e}")

    def cleanup(self) -> None:
        """Remove the scratch root if nothing is left in it."""
        try:
            self.root.rmdir()
        except OSError:
            self.logger.debug(f"Scratch root not removed (not empty or missing): {self.root}")
