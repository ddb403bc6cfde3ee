"""
Port Scanner Module

Drives a full port sweep against one target:
- TCP connect phase over every configured port
- Optional UDP phase, started only after the TCP phase has fully drained
- Bounded concurrency through a shared admission gate
- Streaming of results to the result sink as probes complete
"""

import asyncio
import time
from typing import Awaitable, Callable, Dict, List, Optional, Set
from dataclasses import dataclass, field
import logging

from rich.console import Console

from .address import ResolvedTarget, normalize_host, resolve_address
from .errors import ConfigError, OutputError
from .limiter import ConcurrencyLimiter
from .probes import (
    MAX_PORT,
    MIN_PORT,
    PortStatus,
    Protocol,
    ScanJob,
    ScanResult,
    tcp_probe,
    udp_probe,
)
from .sink import ResultSink, SinkReport

logger = logging.getLogger(__name__)

ALL_PORTS = range(MIN_PORT, MAX_PORT + 1)

ProgressCallback = Callable[[Protocol, int, int], Awaitable[None]]


def _positive_int(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class ScanConfig:
    """Configuration for a scan. Validated on construction."""
    target: str
    concurrency: int = 500
    timeout: int = 1  # seconds
    show_only_open: bool = False
    verbose: bool = False
    udp_enabled: bool = False
    output_path: str = "scan_results.txt"
    ports: range = ALL_PORTS

    def __post_init__(self):
        if not isinstance(self.target, str) or not self.target.strip():
            raise ConfigError("target must be a non-empty string")
        normalize_host(self.target)
        _positive_int("concurrency", self.concurrency)
        _positive_int("timeout", self.timeout)
        if not isinstance(self.output_path, str) or not self.output_path.strip():
            raise ConfigError("output_path must be a non-empty path")
        if not isinstance(self.ports, range) or len(self.ports) == 0:
            raise ConfigError(f"ports must be a non-empty range, got {self.ports!r}")
        if min(self.ports) < MIN_PORT or max(self.ports) > MAX_PORT:
            raise ConfigError(f"ports must lie within {MIN_PORT}-{MAX_PORT}")


@dataclass
class ScanSummary:
    """Totals reported once a scan has finished."""
    host: str
    output_path: str
    tcp_counts: Dict[PortStatus, int]
    udp_open: int
    sink: SinkReport
    duration: float
    cancelled: bool = False
    peak_in_flight: int = 0
    phases: List[Protocol] = field(default_factory=list)

    @property
    def open(self) -> int:
        return self.tcp_counts[PortStatus.OPEN] + self.udp_open

    @property
    def closed(self) -> int:
        return self.tcp_counts[PortStatus.CLOSED]

    @property
    def timeout(self) -> int:
        return self.tcp_counts[PortStatus.TIMEOUT]


class PortScanner:
    """Two-phase (TCP, then optional UDP) port sweep with bounded concurrency."""

    def __init__(
        self,
        config: ScanConfig,
        console: Optional[Console] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.config = config
        self.console = console
        self.progress_callback = progress_callback
        self.tcp_probe = tcp_probe
        self.udp_probe = udp_probe
        self.target: Optional[ResolvedTarget] = None
        self.limiter: Optional[ConcurrencyLimiter] = None
        self._cancel = asyncio.Event()
        self._tcp_counts: Dict[PortStatus, int] = {status: 0 for status in PortStatus}
        self._udp_open = 0
        self._completed = 0

    def cancel(self):
        """Stop dispatching new probes. Probes already running are drained."""
        self._cancel.set()
        logger.info("Scan cancellation requested")

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    async def scan(self) -> ScanSummary:
        """Run the sweep and return its summary.

        Raises AddressResolutionError or OutputError before any probe is
        sent, and LimiterError if the admission gate is closed mid-phase.
        """
        start_time = time.time()
        loop = asyncio.get_running_loop()
        self.target = await loop.run_in_executor(None, resolve_address, self.config.target)

        try:
            output = open(self.config.output_path, "w", encoding="utf-8")
        except OSError as e:
            raise OutputError(self.config.output_path, e.strerror or str(e)) from e

        self.limiter = ConcurrencyLimiter(self.config.concurrency)
        phases: List[Protocol] = []
        with output:
            sink = ResultSink(
                output,
                show_only_open=self.config.show_only_open,
                verbose=self.config.verbose,
                console=self.console,
            )
            sink.write_header(self.target.host)

            await self._run_phase(Protocol.TCP, sink)
            phases.append(Protocol.TCP)

            if self.config.udp_enabled and not self.cancelled:
                await self._run_phase(Protocol.UDP, sink)
                phases.append(Protocol.UDP)

        summary = ScanSummary(
            host=self.target.host,
            output_path=self.config.output_path,
            tcp_counts=dict(self._tcp_counts),
            udp_open=self._udp_open,
            sink=sink.report(),
            duration=time.time() - start_time,
            cancelled=self.cancelled,
            peak_in_flight=self.limiter.peak,
            phases=phases,
        )
        logger.info(
            f"Scan of {summary.host} completed in {summary.duration:.2f}s: "
            f"{summary.open} open, {summary.closed} closed, {summary.timeout} timeout"
        )
        if not summary.sink.ok:
            logger.warning(f"{summary.sink.write_errors} result lines could not be written")
        return summary

    async def _run_phase(self, protocol: Protocol, sink: ResultSink) -> None:
        """Dispatch one probe per port and wait for all of them to finish."""
        logger.info(f"Starting {protocol.value} scan of {self.target.host} ({len(self.config.ports)} ports)")
        self._completed = 0
        pending: Set[asyncio.Task] = set()
        failures: List[BaseException] = []

        def finished(task: asyncio.Task) -> None:
            pending.discard(task)
            if not task.cancelled() and task.exception() is not None:
                failures.append(task.exception())

        try:
            for port in self.config.ports:
                if self.cancelled:
                    break
                job = ScanJob(self.target.host, port, protocol)
                await self.limiter.acquire()
                if self.cancelled:
                    self.limiter.release()
                    break
                task = asyncio.create_task(self._run_job(job, sink))
                pending.add(task)
                task.add_done_callback(finished)
        finally:
            # join barrier: the phase ends only when every probe has returned
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if failures:
            logger.error(f"{len(failures)} {protocol.value} probes failed: {failures[0]!r}")
            raise failures[0]
        logger.info(f"{protocol.value} scan finished")

    async def _run_job(self, job: ScanJob, sink: ResultSink) -> None:
        try:
            if job.protocol is Protocol.TCP:
                result = await self.tcp_probe(self.target, job.port, self.config.timeout)
            else:
                result = await self.udp_probe(self.target, job.port, self.config.timeout)
            if result is not None:
                self._tally(result)
                sink.record(result)
        finally:
            self.limiter.release()

        self._completed += 1
        if self.progress_callback:
            await self.progress_callback(job.protocol, self._completed, len(self.config.ports))

    def _tally(self, result: ScanResult) -> None:
        if result.protocol is Protocol.TCP:
            self._tcp_counts[result.status] += 1
        elif result.is_open:
            self._udp_open += 1


async def run_scan(config: ScanConfig, console: Optional[Console] = None) -> ScanSummary:
    """Scan ``config.target`` with a fresh PortScanner."""
    return await PortScanner(config, console=console).scan()
