"""
Lifecycle Script Runner.

This module runs the optional install/uninstall scripts shipped in a
package's tools/ directory.

Key features:
- Script discovery by phase (tools/<phase>.py, .sh, .ps1, .bat, .cmd, or
  an extensionless executable)
- Parameter injection through ZIPKG_* environment variables
- Verbose and debug modes always on
- Output multiplexed into the caller's trace channels
- Blocking execution with an optional timeout
"""

import os
import re
import stat
import subprocess
import sys
from enum import Enum
from pathlib import Path

from zipkg.provider.cache import TOOLS_DIR
from zipkg.provider.context import Channel, OperationContext
from zipkg.provider.descriptor import Package
from zipkg.provider.errors import ScriptExecutionFailure


class Phase(Enum):
    """Lifecycle phase enumeration."""

    INSTALL = "install"
    UNINSTALL = "uninstall"


SCRIPT_EXTENSIONS = (".py", ".sh", ".ps1", ".bat", ".cmd", "")

_CHANNEL_PREFIX = re.compile(r"^(VERBOSE|DEBUG|INFO|WARNING|ERROR):\s?(.*)$", re.IGNORECASE)


def find_script(package_dir: Path, phase: Phase) -> Path | None:
    """
    Find the script for a phase.

    Args:
        package_dir: Staged or installed package directory
        phase: Lifecycle phase

    Returns:
        Path to the script, or None if the package has none
    """
    tools_dir = package_dir / TOOLS_DIR
    if not tools_dir.is_dir():
        return None

    for ext in SCRIPT_EXTENSIONS:
        script = tools_dir / f"{phase.value}{ext}"
        if script.is_file():
            return script

    return None


def build_command(script: Path) -> list[str]:
    ext = script.suffix.lower()
    if ext == ".py":
        return [sys.executable, str(script)]
    if ext == ".sh":
        return ["sh", str(script)]
    if ext == ".ps1":
        return [
            "pwsh",
            "-NoProfile",
            "-NonInteractive",
            "-File",
            str(script),
            "-Verbose",
            "-Debug",
        ]
    if ext in (".bat", ".cmd"):
        return ["cmd", "/c", str(script)]
    return [str(script)]


def forward_output(stdout: str, stderr: str, context: OperationContext) -> None:
    """
    Re-emit script output through the context's trace channels.

    Stdout lines prefixed with a channel name ("WARNING: ...") go to that
    channel, other stdout lines are informational and stderr lines go to
    the error channel. Nothing here fails the operation.
    """
    for line in stdout.splitlines():
        if not line.strip():
            continue
        match = _CHANNEL_PREFIX.match(line)
        if match:
            context.emit(Channel(match.group(1).lower()), match.group(2))
        else:
            context.info(line)

    for line in stderr.splitlines():
        if line.strip():
            context.error(line)


def run_script(
    package_dir: Path,
    phase: Phase,
    context: OperationContext,
    *,
    package: Package | None = None,
    install_dir: Path | None = None,
    timeout: int | None = None,
) -> None:
    """
    Run a package's lifecycle script for a phase.

    Args:
        package_dir: Directory the script is looked up in and run from
        phase: Lifecycle phase
        context: Operation context (parameters and trace output)
        package: Package the script belongs to
        install_dir: Cache directory the package is installed into
        timeout: Timeout in seconds; None or 0 waits indefinitely. A
            timeout in the context parameters takes precedence.

    Raises:
        ScriptExecutionFailure: If the script exits non-zero, times out or
            cannot be launched
    """
    script = find_script(package_dir, phase)

    if script is None:
        context.verbose(f"No {phase.value} script found in {package_dir}")
        return

    env = os.environ.copy()
    env.update(context.parameters.to_env())
    env["ZIPKG_PACKAGE_DIR"] = str(package_dir)
    env["ZIPKG_PHASE"] = phase.value
    if install_dir is not None:
        env["ZIPKG_INSTALL_DIR"] = str(install_dir)
    if package is not None:
        env["ZIPKG_PACKAGE_NAME"] = package.name
        env["ZIPKG_PACKAGE_VERSION"] = str(package.version)

    if context.parameters.timeout is not None:
        timeout = context.parameters.timeout
    timeout = timeout or None

    # Archives do not keep the executable bit
    if not script.suffix and os.name != "nt":
        try:
            script.chmod(script.stat().st_mode | stat.S_IXUSR)
        except OSError as e:
            context.debug(f"Could not mark {script} executable: {e}")

    context.verbose(f"Running {phase.value} script {script}")

    try:
        result = subprocess.run(
            build_command(script),
            cwd=package_dir,
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise ScriptExecutionFailure(
            f"{phase.value} script {script} timed out after {timeout} seconds"
        ) from e
    except OSError as e:
        raise ScriptExecutionFailure(
            f"Failed to launch {phase.value} script {script}: {e}"
        ) from e

    forward_output(result.stdout or "", result.stderr or "", context)

    if result.returncode != 0:
        raise ScriptExecutionFailure(
            f"{phase.value} script {script} failed with exit code {result.returncode}"
        )
