"""
portsweep - concurrent TCP/UDP port sweep of a single host.

This package provides modules for:
- Target normalization and resolution
- Bounded-concurrency TCP connect and UDP probing
- Best-effort banner capture
- Streaming result output
"""

__version__ = "1.0.0"

from .address import ResolvedTarget, format_target, normalize_host, resolve_address
from .errors import (
    AddressResolutionError,
    ConfigError,
    LimiterError,
    OutputError,
    ScanError,
    SinkWriteError,
)
from .limiter import ConcurrencyLimiter
from .probes import PortStatus, Protocol, ScanJob, ScanResult, tcp_probe, udp_probe
from .scanner import PortScanner, ScanConfig, ScanSummary, run_scan
from .sink import ResultSink, SinkReport

__all__ = [
    "AddressResolutionError",
    "ConcurrencyLimiter",
    "ConfigError",
    "LimiterError",
    "OutputError",
    "PortScanner",
    "PortStatus",
    "Protocol",
    "ResolvedTarget",
    "ResultSink",
    "ScanConfig",
    "ScanError",
    "ScanJob",
    "ScanResult",
    "ScanSummary",
    "SinkReport",
    "SinkWriteError",
    "format_target",
    "normalize_host",
    "resolve_address",
    "run_scan",
    "tcp_probe",
    "udp_probe",
]
