"""
Command Line Interface

Rich CLI front end for the port sweep:
- Builds one validated ScanConfig from arguments or interactive prompts
- Shows per-phase progress bars while scanning
- Prints a summary table and exits with a status that tells setup
  failures apart from completed scans
"""

import asyncio
import argparse
import sys
from typing import List, Optional
import logging

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn
from rich.prompt import Prompt, IntPrompt, Confirm
from rich.table import Table

from .errors import ConfigError, LimiterError
from .probes import MAX_PORT, MIN_PORT, Protocol
from .scanner import ALL_PORTS, PortScanner, ScanConfig, ScanSummary

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130


def parse_ports(spec: str) -> range:
    """Parse ``80`` or ``1-1024`` into a port range."""
    spec = spec.strip()
    try:
        if "-" in spec:
            start_s, end_s = spec.split("-", 1)
            start, end = int(start_s), int(end_s)
        else:
            start = end = int(spec)
    except ValueError:
        raise ConfigError(f"Invalid port spec: {spec!r}") from None
    if start < MIN_PORT or end > MAX_PORT or start > end:
        raise ConfigError(f"Invalid port range: {spec!r}")
    return range(start, end + 1)


class PortSweepCLI:
    """Command line interface for the scanner."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.summary: Optional[ScanSummary] = None

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI and return the process exit status."""
        parser = self._create_parser()
        args = parser.parse_args(args)

        logging.basicConfig(
            level=logging.DEBUG if args.debug else logging.INFO if args.verbose else logging.WARNING,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        try:
            config = self._interactive_config(args) if args.interactive else self._config_from_args(args)
            self.summary = asyncio.run(self._run_scan(config))
        except ConfigError as e:
            self.console.print(f"Error: {escape(str(e))}", style="red")
            return EXIT_FATAL
        except LimiterError as e:
            self.console.print(f"Scan aborted: {escape(str(e))}", style="red")
            return EXIT_FATAL
        except KeyboardInterrupt:
            self.console.print("Scan interrupted", style="yellow")
            return EXIT_INTERRUPTED

        self._display_summary(self.summary)
        return EXIT_OK

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="portsweep",
            description="portsweep - concurrent TCP/UDP port sweep of a single host",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  %(prog)s 192.168.1.1
  %(prog)s example.com --concurrency 1000 --timeout 2 --open-only
  %(prog)s "[::1]" --udp --output ipv6_results.txt
  %(prog)s 10.0.0.5 --ports 1-1024 --verbose
  %(prog)s 10.0.0.5 --interactive
            """
        )
        parser.add_argument("target", help="Target hostname, IPv4 or IPv6 address")
        parser.add_argument("--concurrency", "-c", default=500, type=int, help="Maximum probes in flight")
        parser.add_argument("--timeout", "-t", default=1, type=int, help="Per-probe timeout in seconds")
        parser.add_argument("--open-only", action="store_true", help="Only record open ports")
        parser.add_argument("--udp", action="store_true", help="Run a UDP sweep after the TCP sweep")
        parser.add_argument("--output", "-o", default="scan_results.txt", help="Output file")
        parser.add_argument("--ports", "-p", help="Restrict the sweep to a port or range (e.g. 80, 1-1024)")
        parser.add_argument("--verbose", "-v", action="store_true", help="Echo every recorded result")
        parser.add_argument("--debug", action="store_true", help="Debug logging")
        parser.add_argument("--interactive", "-i", action="store_true", help="Prompt for scan settings")
        return parser

    def _config_from_args(self, args) -> ScanConfig:
        return ScanConfig(
            target=args.target,
            concurrency=args.concurrency,
            timeout=args.timeout,
            show_only_open=args.open_only,
            verbose=args.verbose,
            udp_enabled=args.udp,
            output_path=args.output,
            ports=parse_ports(args.ports) if args.ports else ALL_PORTS,
        )

    def _interactive_config(self, args) -> ScanConfig:
        """Collect settings with prompts; command line values are the defaults."""
        concurrency = self._ask_positive("Concurrency", args.concurrency)
        timeout = self._ask_positive("Timeout (in seconds)", args.timeout)
        return ScanConfig(
            target=args.target,
            concurrency=concurrency,
            timeout=timeout,
            show_only_open=Confirm.ask("Show only open ports?", default=args.open_only, console=self.console),
            verbose=Confirm.ask("Verbose output?", default=args.verbose, console=self.console),
            udp_enabled=Confirm.ask("Include UDP scan?", default=args.udp, console=self.console),
            output_path=Prompt.ask("Output filename", default=args.output, console=self.console),
            ports=parse_ports(args.ports) if args.ports else ALL_PORTS,
        )

    def _ask_positive(self, prompt: str, default: int) -> int:
        while True:
            value = IntPrompt.ask(prompt, default=default, console=self.console)
            if value > 0:
                return value
            self.console.print("Please enter a number greater than zero.", style="yellow")

    async def _run_scan(self, config: ScanConfig) -> ScanSummary:
        self.console.print(Panel.fit(f"Port sweep of {escape(config.target)}", style="bold blue"))

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        ) as progress:
            tasks = {}

            async def update_progress(protocol: Protocol, completed: int, total: int):
                if protocol not in tasks:
                    tasks[protocol] = progress.add_task(f"{protocol.value} scan", total=total)
                progress.update(tasks[protocol], completed=completed)

            scanner = PortScanner(config, console=self.console, progress_callback=update_progress)
            return await scanner.scan()

    def _display_summary(self, summary: ScanSummary):
        table = Table(title=f"Scan Results for {escape(summary.host)}")
        table.add_column("Status", style="bold")
        table.add_column("Count", style="magenta", justify="right")
        table.add_row("[green]OPEN[/green]", str(summary.open))
        table.add_row("[red]CLOSED[/red]", str(summary.closed))
        table.add_row("[yellow]TIMEOUT[/yellow]", str(summary.timeout))
        if Protocol.UDP in summary.phases:
            table.add_row("UDP OPEN", str(summary.udp_open))
        self.console.print(table)

        if summary.cancelled:
            self.console.print("Scan was cancelled before completion.", style="yellow")
        if summary.sink.write_errors:
            self.console.print(
                f"{summary.sink.write_errors} result lines could not be written.", style="red"
            )
        self.console.print(
            f"Scan complete in {summary.duration:.1f}s. Results saved to {escape(summary.output_path)}",
            style="green",
        )


def main(argv: Optional[List[str]] = None):
    """Main entry point for CLI."""
    cli = PortSweepCLI()
    sys.exit(cli.run(argv))


if __name__ == "__main__":
    main()
