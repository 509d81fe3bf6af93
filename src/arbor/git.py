"""Git synchronization before a reload.

``sync()`` fetches the remote and hard-resets the working copy to it.
Local commits cannot be told apart from upstream history rewrites, so
the sync refuses to run on a working copy with local changes, and it
refuses to run from an interactive terminal where a developer is likely
editing the files. Dropped commits remain reachable via ``git reflog``.
"""

import logging
import subprocess
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from arbor.errors import GitSyncError

logger = logging.getLogger("arbor.reload")


class GitRepository:
    """A git working copy that can be synchronized with its remote.

    ``run`` and ``interactive`` exist for tests: the former replaces
    ``subprocess.run``, the latter the terminal check.
    """

    __slots__ = ("_interactive", "_path", "_run")

    def __init__(
        self,
        path: str | Path,
        *,
        run: Callable[..., subprocess.CompletedProcess[Any]] = subprocess.run,
        interactive: Callable[[], bool] | None = None,
    ) -> None:
        self._path = Path(path)
        self._run = run
        self._interactive = interactive or sys.stdout.isatty

    @property
    def path(self) -> Path:
        return self._path

    def _git(self, *args: str) -> subprocess.CompletedProcess[Any]:
        command = ["git", *args]
        try:
            return self._run(
                command, cwd=self._path, capture_output=True, text=True, check=False
            )
        except OSError as exc:
            msg = f"error running git {args[0]}: {exc}"
            raise GitSyncError(msg) from exc

    def _check(self, result: subprocess.CompletedProcess[Any], name: str) -> None:
        if result.returncode != 0:
            detail = (result.stderr or "").strip() or f"exit status {result.returncode}"
            msg = f"error running git {name}: {detail}"
            raise GitSyncError(msg)

    def sync(self) -> None:
        """Fetch and reset to the remote.

        Raises:
            GitSyncError: If running in a terminal, the working copy has
                local changes, or a git command fails.
        """
        if self._interactive():
            msg = "git reload has no effect when running in a terminal"
            raise GitSyncError(msg)

        status = self._git("status", "--porcelain")
        self._check(status, "status")
        if (status.stdout or "").strip():
            msg = "git working copy has local changes"
            raise GitSyncError(msg)

        self._check(self._git("fetch"), "fetch")
        self._check(self._git("reset", "--hard", "origin"), "reset")
        logger.info("synchronized %s with its remote", self._path)
