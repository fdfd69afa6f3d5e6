#!/usr/bin/env -S python3 -B -u
"""
Reachability run loop.

A RunContext owns everything that lives for exactly one run: the
reachability cache, the statistics and the probe/escalation helpers built
on one executor. It is passed explicitly to evaluate_path() instead of
being kept in module globals.

Processing order: every rules file is opened before any probing starts
(a missing file aborts the run), then files are processed one by one,
lines in order, expanded paths in order. With jobs > 1 the paths of one
file are probed in a thread pool, but outcomes are still consumed, counted
and printed in rule order.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .config_loader import ReachTestConfig
from .exceptions import RangeSyntaxError, RulesFileMissingError
from .models import Counters, ExpandedPath, PathOutcome, Rule, SkippedLine, SkipReason
from .range_expander import expand_rule
from .report import ReportFormatter
from .rule_parser import parse_lines
from .stats import StatsAggregator
from .structured_logging import get_logger
from ..executors.path_prober import PathProber
from ..executors.reachability_cache import ReachabilityCache
from ..executors.remote_executor import SSHExecutor
from ..executors.traceroute_escalator import EscalationFlags, TracerouteEscalator


class RunContext:
    """Run-scoped state shared by every path evaluation."""

    def __init__(self, executor, config: Optional[ReachTestConfig] = None,
                 flags: Optional[EscalationFlags] = None, verbose_level: Optional[int] = None):
        """
        Args:
            executor: SSHExecutor (or compatible) used for every remote command
            config: Loaded configuration (defaults when omitted)
            flags: Traceroute escalation switches
            verbose_level: Logging verbosity override
        """
        config = config or ReachTestConfig(load_files=False)
        self.executor = executor
        self.flags = flags or EscalationFlags()
        self.stats = StatsAggregator()
        self.cache = ReachabilityCache(
            executor,
            handshake_command=config.reachability_config.get('command', 'hostname'),
            timeout=config.reachability_config.get('timeout'),
            verbose_level=verbose_level,
        )
        self.prober = PathProber(executor, self.cache, config.probe_config, verbose_level=verbose_level)
        self.escalator = TracerouteEscalator(executor, config.traceroute_config, verbose_level=verbose_level)

    @classmethod
    def from_config(cls, config: ReachTestConfig, flags: Optional[EscalationFlags] = None,
                    verbose_level: Optional[int] = None) -> 'RunContext':
        """Build a context that executes over ssh as configured."""
        executor = SSHExecutor(config.ssh_config, verbose_level=verbose_level)
        return cls(executor, config, flags, verbose_level)


def evaluate_path(path: ExpandedPath, context: RunContext) -> PathOutcome:
    """Probe one path, escalate if warranted, and return its outcome."""
    result = context.prober.probe(path)
    source_reachable = context.cache.check_reachable(path.source_host)
    escalations = context.escalator.maybe_escalate(path, result.classification, context.flags)
    return PathOutcome(result=result, source_reachable=source_reachable, escalations=escalations)


def expand_rule_or_skip(rule: Rule) -> Union[SkippedLine, List[ExpandedPath]]:
    """Expand a rule; a bad range turns the whole rule into a SkippedLine."""
    try:
        return expand_rule(rule)
    except RangeSyntaxError as e:
        return SkippedLine(SkipReason.BAD_RANGE, rule.line, rule.line_number, e.message)


def evaluate_rule(rule: Rule, context: RunContext) -> Union[SkippedLine, List[PathOutcome]]:
    """Expand and evaluate one rule sequentially, or skip it on a bad range."""
    expanded = expand_rule_or_skip(rule)
    if isinstance(expanded, SkippedLine):
        return expanded
    return [evaluate_path(path, context) for path in expanded]


def read_rules_file(path: str) -> List[str]:
    """
    Read a rules file into lines.

    Raises:
        RulesFileMissingError: if the file cannot be opened or read
    """
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return f.read().splitlines()
    except OSError as e:
        raise RulesFileMissingError(path, cause=e)


@dataclass
class FileReport:
    """What happened to one rules file."""
    name: str
    outcomes: List[PathOutcome] = field(default_factory=list)
    skipped: List[SkippedLine] = field(default_factory=list)
    counters: Counters = field(default_factory=Counters)


@dataclass
class RunReport:
    """What happened during the whole run."""
    files: List[FileReport] = field(default_factory=list)
    totals: Counters = field(default_factory=Counters)

    @property
    def outcomes(self) -> List[PathOutcome]:
        return [outcome for report in self.files for outcome in report.outcomes]


class ReachabilityRunner:
    """Drives rules files through parsing, probing, stats and the report."""

    def __init__(self, context: RunContext, report: Optional[ReportFormatter] = None,
                 filter_string: str = "", jobs: int = 1, verbose_level: Optional[int] = None):
        """
        Args:
            context: Run-scoped context
            report: Report writer (plain stdout when omitted)
            filter_string: Only lines containing this substring are processed
            jobs: Number of paths probed concurrently within a file
            verbose_level: Logging verbosity override
        """
        self.context = context
        self.report = report or ReportFormatter(use_color=False)
        self.filter_string = filter_string or ""
        self.jobs = max(1, int(jobs))
        self.logger = get_logger(__name__, verbose_level)

    def run(self, files: Sequence[str]) -> RunReport:
        """
        Process every rules file and print the cumulative summary.

        Raises:
            RulesFileMissingError: before any probing, if a file cannot be read
        """
        contents: List[Tuple[str, List[str]]] = [(name, read_rules_file(name)) for name in files]

        run_report = RunReport()
        for name, lines in contents:
            run_report.files.append(self.run_file(name, lines))

        run_report.totals = replace(self.context.stats.run_totals)
        self.report.write_summary("Total for all rules files:", run_report.totals)
        return run_report

    def run_file(self, name: str, lines: Iterable[str]) -> FileReport:
        """Process the lines of one rules file."""
        stats = self.context.stats
        stats.start_file(name)
        self.report.write_file_header(name)
        file_report = FileReport(name=name)

        items = self._collect_items(lines)
        paths = [item for item in items if isinstance(item, ExpandedPath)]
        outcomes = self._evaluate(paths)
        hosts_seen = set()

        with self.logger.timer(f"rules file {name}"):
            for item in items:
                if isinstance(item, SkippedLine):
                    file_report.skipped.append(item)
                    if item.is_reportable:
                        self.logger.warning(f"Skipping line {item.line_number} of {name}: {item.message}")
                        self.report.write_skipped(item, name)
                    continue

                outcome = next(outcomes)
                if item.source_host not in hosts_seen:
                    hosts_seen.add(item.source_host)
                    stats.record_host_check(outcome.source_reachable)
                stats.record_path_result(outcome.classification)
                self.report.write_path(outcome)
                file_report.outcomes.append(outcome)

        file_report.counters = replace(stats.file_totals)
        self.report.write_summary(f"Summary for {name}:", file_report.counters)
        return file_report

    def _collect_items(self, lines: Iterable[str]) -> List[Union[SkippedLine, ExpandedPath]]:
        """Parse and expand lines into an ordered list of skips and paths."""
        items: List[Union[SkippedLine, ExpandedPath]] = []
        for entry in parse_lines(lines, self.filter_string):
            if isinstance(entry, SkippedLine):
                items.append(entry)
                continue
            expanded = expand_rule_or_skip(entry)
            if isinstance(expanded, SkippedLine):
                items.append(expanded)
            else:
                items.extend(expanded)
        return items

    def _evaluate(self, paths: List[ExpandedPath]) -> Iterator[PathOutcome]:
        """Yield outcomes in path order, lazily when sequential."""
        if self.jobs == 1 or len(paths) <= 1:
            for path in paths:
                yield evaluate_path(path, self.context)
            return

        with ThreadPoolExecutor(max_workers=self.jobs) as pool:
            yield from pool.map(lambda path: evaluate_path(path, self.context), paths)
