"""
Exception Hierarchy

Errors raised by the scanning engine:
- ConfigError and its subclasses abort a scan before any probe is sent
- LimiterError aborts the phase that is running
- SinkWriteError is recorded by the result sink, never raised out of it

Per-port connect failures are not errors; probes map them to a status.
"""


class ScanError(Exception):
    """Base class for scanner errors."""


class ConfigError(ScanError):
    """Invalid scan configuration. Fatal, raised before scanning starts."""


class AddressResolutionError(ConfigError):
    """The target could not be resolved to a socket address."""

    def __init__(self, host: str, reason: str = "no address found"):
        self.host = host
        self.reason = reason
        super().__init__(f"Could not resolve target '{host}': {reason}")


class OutputError(ConfigError):
    """The output destination could not be opened for writing."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write results to '{path}': {reason}")


class LimiterError(ScanError):
    """The concurrency limiter was closed or misused."""


class SinkWriteError(ScanError):
    """A single result line could not be persisted."""

    def __init__(self, line: str, cause: Exception):
        self.line = line
        self.cause = cause
        super().__init__(f"Failed to write result line {line!r}: {cause}")
