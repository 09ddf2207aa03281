"""PowerShell command boundary.

Commands are collected as typed records in a CommandBatch and only turned into
PowerShell text when a batch is handed to PowerShellRunner, so the planning
code never deals with script syntax. Every batch runs as one script in one
powershell process.
"""

import asyncio
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Generic, Iterator, List, TypeVar

logger = logging.getLogger(__name__)

POWERSHELL_EXE = "powershell"
POWERSHELL_ARGS = ["-NoProfile", "-NonInteractive", "-ExecutionPolicy", "Bypass", "-File"]


def quote(value: str) -> str:
    """Single-quoted PowerShell literal; no variable expansion inside."""
    return "'" + value.replace("'", "''") + "'"


@dataclass(frozen=True)
class DownloadIcon:
    """Fetch one tile icon from the image CDN"""
    release_key: str
    url: str
    target: str

    def to_powershell(self) -> str:
        return f"Invoke-WebRequest -Uri {quote(self.url)} -OutFile {quote(self.target)}"


@dataclass(frozen=True)
class CreateShortcut:
    """Create a .lnk pointing at a launcher script"""
    link_path: str
    target_path: str

    def to_powershell(self) -> str:
        return "\n".join([
            f"$Shortcut = $WScriptShell.CreateShortcut({quote(self.link_path)})",
            f"$Shortcut.TargetPath = {quote(self.target_path)}",
            "$Shortcut.Save()",
        ])


T = TypeVar("T", DownloadIcon, CreateShortcut)


class CommandBatch(Generic[T]):
    """Ordered collection of command records, executed together."""

    def __init__(self, preamble: str = ""):
        self.preamble = preamble
        self.commands: List[T] = []

    def add(self, command: T) -> None:
        self.commands.append(command)

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self) -> Iterator[T]:
        return iter(self.commands)

    def to_powershell(self) -> str:
        lines = [self.preamble] if self.preamble else []
        lines.extend(cmd.to_powershell() for cmd in self.commands)
        return "\n".join(lines) + "\n"


def shortcut_batch() -> "CommandBatch[CreateShortcut]":
    """Empty batch with the COM object every CreateShortcut record uses."""
    return CommandBatch("$WScriptShell = New-Object -ComObject WScript.Shell")


@dataclass
class CommandResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.stderr.strip()

    def error_lines(self) -> List[str]:
        return [line.rstrip() for line in self.stderr.splitlines() if line.strip()]


class PowerShellRunner:
    """Runs PowerShell scripts and reports their output through logging."""

    def __init__(self, executable: str = POWERSHELL_EXE):
        self.executable = executable

    async def run(self, script: str) -> CommandResult:
        """Run a script and capture its output.

        stderr lines are logged as errors and execution is not interrupted;
        callers decide whether a failed result is fatal.

        Args:
            script: PowerShell source

        Returns:
            CommandResult with decoded stdout/stderr
        """
        fd, script_path = tempfile.mkstemp(suffix=".ps1", prefix="gogtiles_")
        try:
            with os.fdopen(fd, "w", encoding="utf-8-sig") as f:
                f.write(script)

            try:
                proc = await asyncio.create_subprocess_exec(
                    self.executable, *POWERSHELL_ARGS, script_path,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
                stdout, stderr = await proc.communicate()
            except OSError as e:
                logger.error(f"[PowerShell] Could not start {self.executable}: {e}")
                return CommandResult(returncode=-1, stderr=str(e))

            result = CommandResult(
                returncode=proc.returncode,
                stdout=stdout.decode(errors="replace"),
                stderr=stderr.decode(errors="replace"),
            )
        finally:
            try:
                os.remove(script_path)
            except OSError as e:
                logger.debug(f"[PowerShell] Could not remove {script_path}: {e}")

        self._log_result(script, result)
        return result

    async def run_batch(self, batch: CommandBatch) -> CommandResult:
        logger.debug(f"[PowerShell] Running batch of {len(batch)} command(s)")
        return await self.run(batch.to_powershell())

    def _log_result(self, script: str, result: CommandResult) -> None:
        if result.returncode != 0:
            logger.error(f"[PowerShell] Exited with status {result.returncode}")
        errors = result.error_lines()
        for line in errors:
            logger.error(line)
        if errors:
            logger.warning(f"Script: {script}")
        for line in result.stdout.splitlines():
            if line.strip():
                logger.debug(line.rstrip())
