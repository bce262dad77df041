"""
Subprocess helpers shared by the build stages.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Dict, Optional, Type

from sno_iso.errors import BuildError

logger = logging.getLogger(__name__)


def run(
    cmd: list[str],
    *,
    error_cls: Type[BuildError] = BuildError,
    check: bool = True,
    capture_output: bool = False,
    stdin: Optional[str] = None,
    cwd: str | Path | None = None,
    env: Dict[str, str] | None = None,
    timeout: Optional[int] = None,
) -> subprocess.CompletedProcess:
    """Thin wrapper around subprocess.run with nicer error messages.

    Failures (non-zero exit with ``check``, timeouts, missing executables)
    are raised as ``error_cls`` so every stage reports its own error type.
    """
    logger.debug("Running: %s", shlex.join(cmd))
    try:
        return subprocess.run(
            cmd,
            check=check,
            capture_output=capture_output,
            text=True,
            input=stdin,
            cwd=cwd,
            env=env,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as exc:
        msg = f"Command failed: {' '.join(cmd)}"
        if exc.stdout:
            msg += f"\nSTDOUT:\n{exc.stdout}"
        if exc.stderr:
            msg += f"\nSTDERR:\n{exc.stderr}"
        raise error_cls(msg) from exc
    except subprocess.TimeoutExpired as exc:
        raise error_cls(f"Command timed out after {timeout}s: {' '.join(cmd)}") from exc
    except FileNotFoundError as exc:
        raise error_cls(f"Executable not found: {cmd[0]}") from exc
