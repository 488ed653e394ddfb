"""Child-process runner shared by queued and synchronous agent runs."""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import os
import signal
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence

_CHUNK_SIZE = 64 * 1024
_GRACE_SECONDS = 2.0

OutputSink = Callable[[str], None]


@dataclass(frozen=True)
class ProcessOutcome:
    exit_code: Optional[int]
    timed_out: bool


async def run_process(
    command: Sequence[str],
    *,
    cwd: str,
    env: Mapping[str, str],
    timeout_seconds: float,
    on_stdout: OutputSink,
    on_stderr: OutputSink,
) -> ProcessOutcome:
    """Run ``command`` to completion, streaming decoded output into the sinks.

    The command runs in its own process group so that helpers it starts are
    signalled with it. Raises ``OSError`` when the process cannot be started.
    When the wall-clock ceiling is hit the group is terminated and the outcome
    carries no exit code. If the awaiting task is cancelled the group is
    terminated before the cancellation propagates.

    Output still held open by a leftover group member after the command exits
    is read for at most a short grace period, then the group is killed.
    """
    process = await asyncio.create_subprocess_exec(
        *command,
        cwd=cwd,
        env=dict(env),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        start_new_session=True,
    )
    readers = asyncio.gather(
        _pump(process.stdout, on_stdout),
        _pump(process.stderr, on_stderr),
    )
    try:
        await asyncio.wait_for(process.wait(), timeout_seconds)
    except asyncio.TimeoutError:
        await terminate(process)
        await _drain(process, readers)
        return ProcessOutcome(exit_code=None, timed_out=True)
    except asyncio.CancelledError:
        await terminate(process)
        _signal_group(process, signal.SIGKILL)
        readers.cancel()
        raise
    await _drain(process, readers)
    return ProcessOutcome(exit_code=process.returncode, timed_out=False)


async def _pump(stream: asyncio.StreamReader, sink: OutputSink) -> None:
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            break
        text = decoder.decode(chunk)
        if text:
            sink(text)
    tail = decoder.decode(b"", final=True)
    if tail:
        sink(tail)


async def _drain(process: asyncio.subprocess.Process, readers: asyncio.Future) -> None:
    _, pending = await asyncio.wait({readers}, timeout=_GRACE_SECONDS)
    if not pending:
        readers.result()
        return
    _signal_group(process, signal.SIGKILL)
    readers.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await readers


def _signal_group(process: asyncio.subprocess.Process, signum: int) -> bool:
    try:
        os.killpg(process.pid, signum)
    except ProcessLookupError:
        return False
    return True


async def terminate(process: asyncio.subprocess.Process) -> None:
    """SIGTERM the process group, then SIGKILL it after the grace period."""
    if process.returncode is not None:
        return
    if not _signal_group(process, signal.SIGTERM):
        return
    try:
        await asyncio.wait_for(process.wait(), _GRACE_SECONDS)
    except asyncio.TimeoutError:
        _signal_group(process, signal.SIGKILL)
        await process.wait()
