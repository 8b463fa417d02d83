"""
Bounded execution of OS command-line tools.

Every probe that shells out goes through :func:`run_command`. A timeout, a
missing executable or an OS error is reported as ``None`` so the caller can
degrade that one data point instead of failing its scan.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_LIMIT = 4 * 1024 * 1024


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str
    truncated: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0


# Signature shared by run_command and the fakes used in tests.
CommandRunner = Callable[..., Awaitable[Optional[CommandResult]]]


READ_CHUNK = 64 * 1024


async def _read_capped(stream: Optional[asyncio.StreamReader], limit: int) -> tuple[bytes, bool]:
    """
    Keep at most ``limit`` bytes of a pipe and discard the rest.

    The pipe is drained to EOF so the child never blocks on a full buffer.
    """
    if stream is None:
        return b"", False
    kept = bytearray()
    truncated = False
    while True:
        chunk = await stream.read(READ_CHUNK)
        if not chunk:
            break
        room = limit - len(kept)
        if room > 0:
            kept += chunk[:room]
        if len(chunk) > room:
            truncated = True
    return bytes(kept), truncated


async def run_command(
    args: Sequence[str],
    timeout: float,
    output_limit: int = DEFAULT_OUTPUT_LIMIT,
) -> Optional[CommandResult]:
    """
    Run a command without a shell and capture its output.

    Args:
        args: Program and arguments
        timeout: Seconds before the process is killed
        output_limit: Maximum bytes kept from each of stdout and stderr

    Returns:
        CommandResult, or None if the command could not run or timed out
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as e:
        logger.debug("Command unavailable %s: %s", args[0], e)
        return None
    except OSError as e:
        logger.warning("Failed to start %s: %s", args[0], e)
        return None

    async def collect():
        (out, out_cut), (err, err_cut), _ = await asyncio.gather(
            _read_capped(proc.stdout, output_limit),
            _read_capped(proc.stderr, output_limit),
            proc.wait(),
        )
        return out, err, out_cut or err_cut

    try:
        stdout, stderr, truncated = await asyncio.wait_for(collect(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Command timed out after %.0fs: %s", timeout, " ".join(args[:3]))
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
        return None

    if truncated:
        logger.warning("Output of %s truncated at %d bytes", args[0], output_limit)
    return CommandResult(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
        truncated=truncated,
    )


async def run_powershell(
    script: str,
    timeout: float,
    output_limit: int = DEFAULT_OUTPUT_LIMIT,
    runner: Optional[CommandRunner] = None,
) -> Optional[CommandResult]:
    """Run a PowerShell script non-interactively."""
    runner = runner or run_command
    return await runner(
        ["powershell", "-NoProfile", "-NonInteractive", "-Command", script],
        timeout=timeout,
        output_limit=output_limit,
    )
