"""
Result Sink

Formats classified results and appends them to the output destination as
they complete. Results arrive in completion order, not port order.

Every record is written with a single ``write()`` call holding one complete
line, and all writers run on the event loop thread, so concurrent probes
never interleave partial lines. A sink shared across threads would need a
lock around ``record()``.
"""

from typing import List, Optional, TextIO
from dataclasses import dataclass, field
import logging

from rich.console import Console

from .errors import OutputError, SinkWriteError
from .probes import PortStatus, ScanResult

logger = logging.getLogger(__name__)


@dataclass
class SinkReport:
    """What the sink did over one scan."""
    written: int = 0
    filtered: int = 0
    write_errors: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.write_errors == 0


def format_result(result: ScanResult) -> str:
    """Render a result as ``[TCP] host:port => OPEN | Banner: ...``."""
    line = f"[{result.protocol.value}] {result.host}:{result.port} => {result.status.value}"
    if result.banner:
        line += f" | Banner: {result.banner}"
    return line


class ResultSink:
    """Append-only writer for scan results."""

    def __init__(
        self,
        output: TextIO,
        show_only_open: bool = False,
        verbose: bool = False,
        console: Optional[Console] = None,
    ):
        self.output = output
        self.show_only_open = show_only_open
        self.verbose = verbose
        self.console = console or Console(highlight=False)
        self._report = SinkReport()

    def write_header(self, host: str) -> None:
        """Write the scan header. An unwritable destination is fatal here."""
        try:
            self.output.write(f"Scan Results for {host}\n\n")
            self.output.flush()
        except (OSError, ValueError) as e:
            raise OutputError(getattr(self.output, "name", repr(self.output)), str(e)) from e

    def record(self, result: ScanResult) -> bool:
        """Persist one result. Returns False when it was filtered or lost."""
        if self.show_only_open and result.status is not PortStatus.OPEN:
            self._report.filtered += 1
            return False

        line = format_result(result)
        if self.verbose:
            self.console.print(line, markup=False)
        if not self._append(line + "\n"):
            return False
        self._report.written += 1
        return True

    def _append(self, text: str) -> bool:
        try:
            self.output.write(text)
            self.output.flush()
        except (OSError, ValueError) as e:
            error = SinkWriteError(text.rstrip("\n"), e)
            logger.warning(str(error))
            self._report.write_errors += 1
            self._report.errors.append(str(error))
            return False
        return True

    def report(self) -> SinkReport:
        return self._report
