"""
Command execution and system dependency checks.

This module runs the external decoders (sadf, atopsar) and reference tools
(lsblk, lvs), always with a timeout and a C locale so their output can be
parsed reliably.
"""

import logging
import os
import shutil
import subprocess
from typing import List, Optional, Sequence, Tuple

import psutil

logger = logging.getLogger(__name__)


def run_command(
    args: Sequence[str],
    timeout: Optional[float] = None,
    env_overrides: Optional[dict] = None,
) -> Tuple[int, str, str]:
    """Execute a command and capture its output with robust error handling.

    Args:
        args: Command and arguments; no shell is involved.
        timeout: Seconds before the command is killed, None for no limit.
        env_overrides: Variables added to a copy of the current environment.

    Returns:
        Tuple of (return_code, stdout_string, stderr_string).
        return_code is -1 when the command could not run or timed out.
    """
    command: List[str] = [str(a) for a in args]
    env = os.environ.copy()
    env["LC_ALL"] = "C"
    if env_overrides:
        env.update(env_overrides)

    logger.debug(f"Executing command: '{' '.join(command)}' (timeout={timeout})")
    try:
        process = subprocess.run(
            command,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            env=env,
            check=False,
        )
        return process.returncode, process.stdout, process.stderr
    except subprocess.TimeoutExpired:
        logger.warning(f"Command timed out after {timeout}s: {' '.join(command)}")
        return -1, "", f"Error: command timed out after {timeout}s"
    except FileNotFoundError as e:
        logger.error(f"Command not found: {command[0]}: {type(e).__name__}: {e}")
        return -1, "", f"Error: Command not found '{command[0]}'"
    except OSError as e:
        logger.error(f"Unexpected error while running '{command[0]}': {type(e).__name__}: {e}", exc_info=True)
        return -1, "", f"An unexpected error occurred: {e}"


def check_sadf_installed() -> bool:
    """Check if the 'sadf' decoder (sysstat package) is on PATH."""
    return shutil.which("sadf") is not None


def check_atopsar_installed() -> bool:
    """Check if the 'atopsar' decoder (atop package) is on PATH."""
    return shutil.which("atopsar") is not None


def get_vcpu_count() -> int:
    """Number of logical CPUs, at least 1."""
    count = psutil.cpu_count(logical=True)
    return count if count and count > 0 else 1
