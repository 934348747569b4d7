"""
Authoritative pricing engine adapter (Infracost CLI).

Runs `infracost breakdown` as a subprocess under a hard timeout with a
bounded output buffer. Every expected failure (missing credentials or
binary, open circuit, timeout, non-zero exit, oversized or malformed
output) comes back as EngineRunResult(ok=False); only cancellation
propagates, after the subprocess has been killed.
"""
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass
from pathlib import Path
import asyncio
import json
import logging
import os
import shutil
import time

from cloudcost.core.config import config, MAX_ENGINE_TIMEOUT_SECONDS
from cloudcost.resilience.circuit_breaker import CircuitBreaker


logger = logging.getLogger(__name__)


ENGINE_NAME = "infracost"
STDERR_LIMIT_BYTES = 64 * 1024
READ_CHUNK_BYTES = 64 * 1024


@dataclass(frozen=True)
class EngineRunResult:
    """Outcome of one engine invocation."""
    ok: bool
    raw: Optional[Dict[str, Any]] = None
    reason: str = ""


async def _read_bounded(stream: asyncio.StreamReader, limit: int) -> Tuple[bytes, bool]:
    """Read a stream to EOF; stop early and flag overflow past limit bytes."""
    chunks: List[bytes] = []
    size = 0
    while True:
        chunk = await stream.read(READ_CHUNK_BYTES)
        if not chunk:
            return b"".join(chunks), False
        size += len(chunk)
        if size > limit:
            return b"".join(chunks), True
        chunks.append(chunk)


def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass


class InfracostRunner:
    """Invokes the pricing engine once per call; never retries."""

    def __init__(
        self,
        binary: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        max_output_bytes: Optional[int] = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        """
        Args:
            binary: Engine executable (defaults to config.INFRACOST_BINARY)
            api_key: Engine credential (defaults to config.INFRACOST_API_KEY)
            timeout_seconds: Per-call timeout, clamped to 30 seconds
            max_output_bytes: Stdout buffer bound
            breaker: Circuit breaker owned by this runner
        """
        self.binary = binary if binary is not None else config.INFRACOST_BINARY
        self.api_key = api_key if api_key is not None else config.INFRACOST_API_KEY
        timeout = timeout_seconds if timeout_seconds is not None else config.INFRACOST_TIMEOUT_SECONDS
        self.timeout_seconds = min(float(timeout), MAX_ENGINE_TIMEOUT_SECONDS)
        self.max_output_bytes = max_output_bytes or config.INFRACOST_MAX_OUTPUT_BYTES
        self.breaker = breaker or CircuitBreaker(
            ENGINE_NAME,
            failure_threshold=config.ENGINE_FAILURE_THRESHOLD,
            open_duration=config.ENGINE_OPEN_SECONDS,
        )

    def unavailable_reason(self) -> Optional[str]:
        """Why the engine cannot be used at all, or None if it can."""
        if not self.api_key:
            return "INFRACOST_API_KEY not configured"
        if shutil.which(self.binary) is None:
            return f"{self.binary} binary not found"
        return None

    def build_command(self, descriptor_dir: Path, usage_file: Optional[Path] = None) -> List[str]:
        command = [self.binary, "breakdown", "--path", str(descriptor_dir), "--format", "json"]
        if usage_file is not None:
            command.extend(["--usage-file", str(usage_file)])
        return command

    def _environment(self) -> Dict[str, str]:
        env = dict(os.environ)
        env["INFRACOST_API_KEY"] = self.api_key
        env["INFRACOST_SKIP_UPDATE_CHECK"] = "true"
        env["INFRACOST_NO_COLOR"] = "true"
        return env

    def _failure(self, reason: str) -> EngineRunResult:
        self.breaker.record_failure()
        logger.warning("Pricing engine failed: %s", reason)
        return EngineRunResult(ok=False, reason=reason)

    async def run(
        self,
        descriptor_dir: Path,
        usage_file: Optional[Path] = None,
        deadline: Optional[float] = None,
    ) -> EngineRunResult:
        """
        Price the descriptor in descriptor_dir.

        Args:
            descriptor_dir: Directory containing the Terraform descriptor
            usage_file: Optional usage side-file
            deadline: Absolute time.monotonic() deadline; the call timeout
                never extends past it

        Returns:
            EngineRunResult with the parsed JSON on success
        """
        reason = self.unavailable_reason()
        if reason:
            logger.warning("Pricing engine unavailable: %s", reason)
            return EngineRunResult(ok=False, reason=reason)

        timeout = self.timeout_seconds
        if deadline is not None:
            timeout = min(timeout, deadline - time.monotonic())
            if timeout <= 0:
                logger.warning("Pricing engine skipped: request deadline already passed")
                return EngineRunResult(ok=False, reason="request deadline exceeded")

        if not self.breaker.allow_request():
            logger.warning("Pricing engine skipped: circuit open")
            return EngineRunResult(ok=False, reason="circuit open")

        command = self.build_command(descriptor_dir, usage_file)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._environment(),
            )
        except OSError as error:
            return self._failure(f"could not start engine: {error}")

        async def communicate() -> Tuple[bytes, bool, bytes]:
            stderr_task = asyncio.ensure_future(_read_bounded(process.stderr, STDERR_LIMIT_BYTES))
            try:
                stdout, overflow = await _read_bounded(process.stdout, self.max_output_bytes)
                if overflow:
                    # Stop a writer blocked on a full pipe
                    _kill(process)
                stderr, _ = await stderr_task
            finally:
                stderr_task.cancel()
            await process.wait()
            return stdout, overflow, stderr

        try:
            stdout, overflow, stderr = await asyncio.wait_for(communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            _kill(process)
            await process.wait()
            return self._failure(f"timed out after {timeout:.1f}s")
        except asyncio.CancelledError:
            _kill(process)
            raise

        if overflow:
            return self._failure(f"output exceeded {self.max_output_bytes} bytes")
        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()[:500]
            return self._failure(f"exit code {process.returncode}: {detail}")

        try:
            raw = json.loads(stdout.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as error:
            return self._failure(f"malformed output: {error}")
        if not isinstance(raw, dict) or not isinstance(raw.get("projects"), list):
            return self._failure("malformed output: missing projects")

        self.breaker.record_success()
        return EngineRunResult(ok=True, raw=raw)
