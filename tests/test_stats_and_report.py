#!/usr/bin/env -S python3 -B -u
"""
Test suite for the statistics aggregator and the text report.
"""

import io
import unittest

from colorama import Fore

from reachtest.core.models import (
    Classification, Counters, EscalationResult, ExpandedPath, PathOutcome,
    ProbeResult, ProbeType, SkippedLine, SkipReason,
)
from reachtest.core.report import ReportFormatter
from reachtest.core.stats import StatsAggregator


def outcome(classification, tag="", dest="db1", probe_type=None, escalations=None):
    path = ExpandedPath(tag=tag, source_host="web1", dest_host=dest,
                        probe_type=probe_type or ProbeType.tcp(3306))
    return PathOutcome(result=ProbeResult(path=path, classification=classification),
                       source_reachable=True, escalations=escalations or [])


class TestStatsAggregator(unittest.TestCase):

    def setUp(self):
        self.stats = StatsAggregator()
        self.stats.start_file("a.rules")

    def test_success_family(self):
        for classification in (Classification.ok(), Classification.ok_refused(), Classification.dns_ok("1.2.3.4")):
            self.stats.record_path_result(classification)
        self.assertEqual(self.stats.file_totals.paths_ok, 3)
        self.assertEqual(self.stats.file_totals.paths_failed, 0)

    def test_everything_else_fails(self):
        for classification in (Classification.timeout(), Classification.unknown("x"),
                               Classification.ssh_unreachable(), Classification.dns_fail_timeout(),
                               Classification.dns_fail_unknown()):
            self.stats.record_path_result(classification)
        self.assertEqual(self.stats.file_totals.paths_ok, 0)
        self.assertEqual(self.stats.file_totals.paths_failed, 5)

    def test_host_checks(self):
        self.stats.record_host_check(True)
        self.stats.record_host_check(False)
        self.stats.record_host_check(False)
        self.assertEqual(self.stats.file_totals.hosts_ok, 1)
        self.assertEqual(self.stats.file_totals.hosts_failed, 2)

    def test_file_scope_resets_and_total_accumulates(self):
        self.stats.record_path_result(Classification.ok())
        self.stats.start_file("b.rules")
        self.stats.record_path_result(Classification.timeout())

        self.assertEqual(self.stats.file_totals, Counters(paths_failed=1))
        self.assertEqual(self.stats.run_totals, Counters(paths_ok=1, paths_failed=1))
        self.assertEqual(self.stats.files_processed, 2)


class TestReportFormatter(unittest.TestCase):

    def setUp(self):
        self.stream = io.StringIO()
        self.report = ReportFormatter(self.stream, use_color=False)

    def test_path_line(self):
        line = self.report.format_path(outcome(Classification.ok_refused(), tag="mysql"))
        self.assertEqual(line, "mysql web1 -> db1:3306: OK (connection refused, host up)")

    def test_path_line_without_tag(self):
        line = self.report.format_path(outcome(Classification.timeout()))
        self.assertEqual(line, "web1 -> db1:3306: FAIL (timed out)")

    def test_dns_line_with_default_resolver(self):
        line = self.report.format_path(outcome(Classification.dns_ok("10.1.1.1"),
                                               dest="", probe_type=ProbeType.dns()))
        self.assertEqual(line, "web1 -> [default]:dns: OK (10.1.1.1)")

    def test_unknown_line_collapses_whitespace(self):
        line = self.report.format_path(outcome(Classification.unknown("bad\n  thing")))
        self.assertTrue(line.endswith("FAIL (unknown: bad thing)"))

    def test_summary_block(self):
        lines = self.report.format_summary("Summary for a.rules:", Counters(1, 2, 3, 4))
        self.assertEqual(lines, [
            "Summary for a.rules:",
            "  Hosts reachable:    1",
            "  Hosts unreachable:  2",
            "  Path tests passed:  3",
            "  Path tests failed:  4",
        ])

    def test_skipped_line(self):
        skipped = SkippedLine(SkipReason.MALFORMED, "web1:db1 ", 7, "Expected at least 3 fields")
        self.assertEqual(self.report.format_skipped(skipped, "a.rules"),
                         "Skipping a.rules:7: Expected at least 3 fields [web1:db1]")

    def test_escalation_output_written_after_path_line(self):
        escalation = EscalationResult(tool="traceroute", command="traceroute db1", output=" 1  gw1")
        self.report.write_path(outcome(Classification.timeout(), escalations=[escalation]))
        self.assertEqual(self.stream.getvalue(), "web1 -> db1:3306: FAIL (timed out)\n 1  gw1\n")


class TestReportColour(unittest.TestCase):

    def setUp(self):
        self.report = ReportFormatter(io.StringIO(), use_color=True)

    def test_success_green_failure_red(self):
        self.assertIn(Fore.GREEN, self.report.format_path(outcome(Classification.ok())))
        self.assertIn(Fore.RED, self.report.format_path(outcome(Classification.timeout())))

    def test_zero_highlighting(self):
        lines = self.report.format_summary("Total", Counters(0, 0, 5, 0))
        self.assertIn(Fore.RED + "0", lines[1])     # no reachable hosts
        self.assertIn(Fore.GREEN + "0", lines[2])   # no unreachable hosts
        self.assertIn(Fore.GREEN + "5", lines[3])
        self.assertIn(Fore.GREEN + "0", lines[4])

    def test_plain_text_matches_without_colour(self):
        plain = ReportFormatter(io.StringIO(), use_color=False)
        coloured = self.report.format_path(outcome(Classification.ok()))
        for code in (Fore.GREEN, "\x1b[0m"):
            coloured = coloured.replace(code, "")
        self.assertEqual(coloured, plain.format_path(outcome(Classification.ok())))


if __name__ == '__main__':
    unittest.main()
