#!/usr/bin/env -S python3 -B -u
"""
Text report for a reachability run.

Produces one line per evaluated path, a summary block per rules file and
a final cumulative summary block. Colour is applied with colorama when
enabled; the text is identical with colour off.
"""

import sys
from typing import List, Optional, TextIO

from colorama import Fore, Style

from .models import Counters, PathOutcome, SkippedLine


class ReportFormatter:
    """Renders report lines and summary blocks to a text stream."""

    SUMMARY_ROWS = (
        ("Hosts reachable", 'hosts_ok', True),
        ("Hosts unreachable", 'hosts_failed', False),
        ("Path tests passed", 'paths_ok', True),
        ("Path tests failed", 'paths_failed', False),
    )

    def __init__(self, stream: Optional[TextIO] = None, use_color: bool = True):
        """
        Args:
            stream: Output stream (defaults to sys.stdout)
            use_color: Emit ANSI colour codes
        """
        self.stream = stream or sys.stdout
        self.use_color = use_color

    def _paint(self, text: str, color: str) -> str:
        if not self.use_color:
            return text
        return f"{color}{text}{Style.RESET_ALL}"

    def format_path(self, outcome: PathOutcome) -> str:
        """Format the per-path line: ``tag source -> dest:port: outcome``."""
        path = outcome.path
        classification = outcome.classification
        prefix = f"{path.tag} " if path.tag else ""
        status = classification.describe()
        color = Fore.GREEN if classification.is_success else Fore.RED
        return f"{prefix}{path.label}: {self._paint(status, color)}"

    def format_skipped(self, skipped: SkippedLine, file_name: str = "") -> str:
        location = f"{file_name}:{skipped.line_number}" if file_name else f"line {skipped.line_number}"
        text = f"Skipping {location}: {skipped.message} [{skipped.line.strip()}]"
        return self._paint(text, Fore.YELLOW)

    def format_file_header(self, file_name: str) -> str:
        return self._paint(f"=== {file_name} ===", Style.BRIGHT)

    def _format_count(self, value: int, higher_is_better: bool) -> str:
        # Zero successes means everything failed; zero failures means all passed.
        if higher_is_better:
            color = Fore.GREEN if value > 0 else Fore.RED
        else:
            color = Fore.RED if value > 0 else Fore.GREEN
        return self._paint(str(value), color)

    def format_summary(self, title: str, counters: Counters) -> List[str]:
        """Format a four-row summary block."""
        lines = [self._paint(title, Style.BRIGHT)]
        for label, attribute, higher_is_better in self.SUMMARY_ROWS:
            value = getattr(counters, attribute)
            lines.append(f"  {label + ':':<20}{self._format_count(value, higher_is_better)}")
        return lines

    # Writers

    def write(self, text: str = ""):
        self.stream.write(text + "\n")
        self.stream.flush()

    def write_path(self, outcome: PathOutcome):
        self.write(self.format_path(outcome))
        for escalation in outcome.escalations:
            # Traceroute output is passed through as-is.
            self.stream.write(escalation.output)
            if escalation.output and not escalation.output.endswith("\n"):
                self.stream.write("\n")
        self.stream.flush()

    def write_skipped(self, skipped: SkippedLine, file_name: str = ""):
        self.write(self.format_skipped(skipped, file_name))

    def write_file_header(self, file_name: str):
        self.write(self.format_file_header(file_name))

    def write_summary(self, title: str, counters: Counters):
        self.write()
        for line in self.format_summary(title, counters):
            self.write(line)
        self.write()
