#!/usr/bin/env -S python3 -B -u
"""
Path Prober - TCP and DNS Probes from a Source Host

Builds the diagnostic command for one expanded path, runs it on the
source host through ssh and classifies the result.

TCP probes use ``nc -z -v -w <timeout> <dest> <port>``. The interesting
text differs between netcat flavours, so classification only looks for
the stable fragments:

    OpenBSD nc:  "Connection to db1 3306 port [tcp/mysql] succeeded!"
    ncat:        "Ncat: Connected to 10.0.0.5:3306."
    both:        "... Connection refused", "... timed out ..."

DNS probes use ``dig +short +time=<timeout> +tries=1 [@server] <record>``.
dig exits 9 when no reply came back from the server, which is the only
exit status that means "timed out".

Author: Network Analysis Tool
License: MIT
"""

from typing import Any, Dict, Optional

from ..core.models import Classification, ExpandedPath, ProbeResult
from ..core.structured_logging import get_logger
from .remote_executor import CommandResult, quote_args


DIG_NO_REPLY_EXIT_STATUS = 9
DEFAULT_DNS_RECORD = 'www.google.com'


def classify_tcp(output: str) -> Classification:
    """Classify netcat output. Checks run in a fixed priority order."""
    if "succeeded" in output or "Connected" in output:
        return Classification.ok()
    if "refused" in output:
        return Classification.ok_refused()
    if "timed out" in output:
        return Classification.timeout()
    return Classification.unknown(output)


def classify_dns(exit_status: Optional[int], response: str) -> Classification:
    """Classify a dig run from its exit status and (short) response text."""
    if exit_status == 0:
        answer = ", ".join(line.strip() for line in response.splitlines() if line.strip())
        return Classification.dns_ok(answer or None)
    if exit_status == DIG_NO_REPLY_EXIT_STATUS:
        return Classification.dns_fail_timeout()
    return Classification.dns_fail_unknown()


class PathProber:
    """
    Runs the probe for one expanded path.

    The reachability cache gates every probe: a source host that does not
    answer ssh is reported as SSH_UNREACHABLE without running anything.
    """

    def __init__(self, executor, reachability_cache, probe_config: Optional[Dict[str, Any]] = None,
                 verbose_level: Optional[int] = None):
        """
        Args:
            executor: SSHExecutor (or compatible)
            reachability_cache: ReachabilityCache for the current run
            probe_config: probe section of the configuration
            verbose_level: Logging verbosity override
        """
        config = probe_config or {}
        self.executor = executor
        self.reachability_cache = reachability_cache
        self.tcp_timeout = int(config.get('tcp_timeout', 3))
        self.dns_timeout = int(config.get('dns_timeout', 2))
        self.dns_default_record = config.get('dns_default_record') or DEFAULT_DNS_RECORD
        self.command_timeout = config.get('command_timeout', 30)
        self.nc_command = config.get('nc_command', 'nc')
        self.dig_command = config.get('dig_command', 'dig')
        self.logger = get_logger(__name__, verbose_level)

    def build_tcp_command(self, path: ExpandedPath) -> str:
        return (f"{self.nc_command} -z -v -w {self.tcp_timeout} "
                f"{quote_args(path.dest_host, path.probe_type.port)}")

    def build_dns_command(self, path: ExpandedPath) -> str:
        parts = [self.dig_command, '+short', f'+time={self.dns_timeout}', '+tries=1']
        if path.dest_host:
            parts.append(quote_args(f"@{path.dest_host}"))
        parts.append(quote_args(path.extra or self.dns_default_record))
        return " ".join(parts)

    def build_command(self, path: ExpandedPath) -> str:
        if path.probe_type.is_dns:
            return self.build_dns_command(path)
        # stderr carries nc's verdict; fold it into stdout on the remote side.
        return f"{self.build_tcp_command(path)} 2>&1"

    def probe(self, path: ExpandedPath) -> ProbeResult:
        """Probe one path and classify the outcome."""
        if not self.reachability_cache.check_reachable(path.source_host):
            self.logger.debug(f"Skipping probe, {path.source_host} is unreachable", path=path.label)
            return ProbeResult(path=path, classification=Classification.ssh_unreachable())

        command = self.build_command(path)
        result = self.executor.run(path.source_host, command, timeout=self.command_timeout)
        classification = self.classify(path, result)
        self.logger.debug(f"Probe {path.label}: {classification.kind.value}",
                          exit_status=result.exit_status)

        return ProbeResult(
            path=path,
            classification=classification,
            raw_output=result.output,
            exit_status=result.exit_status,
        )

    def classify(self, path: ExpandedPath, result: CommandResult) -> Classification:
        if result.connection_failed:
            # ssh could not run the command this time, despite the cached check
            return Classification.unknown(result.output)
        if path.probe_type.is_dns:
            return classify_dns(result.exit_status, result.stdout)
        return classify_tcp(result.output)
