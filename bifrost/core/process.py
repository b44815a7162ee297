"""Blocking execution of external programs."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from bifrost.core.errors import ProcessFailureError

logger = logging.getLogger(__name__)


@dataclass
class ProcessOutput:
    """Captured result of a finished process."""
    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_process(
    argv: Sequence[str],
    cwd: Optional[Path] = None,
    timeout: Optional[int] = None,
    check: bool = True,
) -> ProcessOutput:
    """Run ``argv`` to completion and capture its output.

    Raises:
        ProcessFailureError: if the program cannot be started, times out,
            or (with ``check``) exits non-zero.
    """
    logger.debug(f"exec {' '.join(argv)} (cwd={cwd})")
    try:
        completed = subprocess.run(
            list(argv),
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ProcessFailureError(f"{argv[0]}: command not found") from e
    except subprocess.TimeoutExpired as e:
        raise ProcessFailureError(
            f"{argv[0]} timed out after {timeout} seconds",
            stderr=e.stderr or b"",
        ) from e
    except OSError as e:
        raise ProcessFailureError(f"could not start {argv[0]}: {e}") from e

    output = ProcessOutput(
        returncode=completed.returncode,
        stdout=completed.stdout or b"",
        stderr=completed.stderr or b"",
    )
    if check and not output.ok:
        detail = output.stderr.decode("utf-8", errors="replace").strip()
        message = f"{argv[0]} exited with status {output.returncode}"
        if detail:
            message = f"{message}: {detail}"
        raise ProcessFailureError(message, returncode=output.returncode, stderr=output.stderr)
    return output
