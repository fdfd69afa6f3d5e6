#!/usr/bin/env -S python3 -B -u
"""
Traceroute escalation for failed or forced paths.

After a probe, a layer-3 traceroute and/or a TCP traceroute to the probed
port can be run from the source host. Each runs when its "force" flag is
set, or when its plain flag is set and the probe timed out.

Escalation is best effort: output is passed through unmodified, failures
are logged and never retried, and nothing here touches the statistics.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..core.exceptions import ReachTestError
from ..core.models import Classification, ClassificationKind, EscalationResult, ExpandedPath
from ..core.structured_logging import get_logger
from .remote_executor import quote_args


@dataclass(frozen=True)
class EscalationFlags:
    """Command-line switches controlling escalation."""
    traceroute: bool = False
    traceroute_force: bool = False
    tcp_traceroute: bool = False
    tcp_traceroute_force: bool = False

    @property
    def any(self) -> bool:
        return self.traceroute or self.traceroute_force or self.tcp_traceroute or self.tcp_traceroute_force


class TracerouteEscalator:
    """Runs traceroute / tcptraceroute on the source host when warranted."""

    def __init__(self, executor, traceroute_config: Optional[Dict[str, Any]] = None,
                 verbose_level: Optional[int] = None):
        """
        Args:
            executor: SSHExecutor (or compatible)
            traceroute_config: traceroute section of the configuration
            verbose_level: Logging verbosity override
        """
        config = traceroute_config or {}
        self.executor = executor
        self.timeout = config.get('timeout', 90)
        self.max_hops = int(config.get('max_hops', 30))
        self.traceroute_command = config.get('traceroute_command', 'traceroute')
        self.tcptraceroute_command = config.get('tcptraceroute_command', 'tcptraceroute')
        self.logger = get_logger(__name__, verbose_level)

    @staticmethod
    def _wanted(force: bool, enabled: bool, classification: Classification) -> bool:
        return force or (enabled and classification.is_timeout)

    def build_traceroute_command(self, path: ExpandedPath) -> str:
        return f"{self.traceroute_command} -w 2 -q 1 -m {self.max_hops} {quote_args(path.dest_host)}"

    def build_tcptraceroute_command(self, path: ExpandedPath) -> str:
        return (f"{self.tcptraceroute_command} -w 2 -q 1 -m {self.max_hops} "
                f"{quote_args(path.dest_host, path.probe_type.target_port)}")

    def maybe_escalate(self, path: ExpandedPath, classification: Classification,
                       flags: EscalationFlags) -> List[EscalationResult]:
        """Run the escalations selected by ``flags`` for this outcome."""
        if not flags.any:
            return []
        if classification.kind is ClassificationKind.SSH_UNREACHABLE:
            return []
        if not path.dest_host:
            # DNS against the default resolver has no destination to trace
            return []

        commands = []
        if self._wanted(flags.traceroute_force, flags.traceroute, classification):
            commands.append(('traceroute', self.build_traceroute_command(path)))
        if self._wanted(flags.tcp_traceroute_force, flags.tcp_traceroute, classification):
            commands.append(('tcptraceroute', self.build_tcptraceroute_command(path)))

        return [self._run(path, tool, command) for tool, command in commands]

    def _run(self, path: ExpandedPath, tool: str, command: str) -> EscalationResult:
        self.logger.info(f"Running {tool} from {path.source_host} to {path.dest_host}")
        try:
            result = self.executor.run(path.source_host, f"{command} 2>&1", timeout=self.timeout)
        except (ReachTestError, OSError) as e:
            self.logger.warning(f"{tool} from {path.source_host} failed: {e}")
            return EscalationResult(tool=tool, command=command, output="")
        if not result.success:
            self.logger.warning(f"{tool} from {path.source_host} did not complete",
                                exit_status=result.exit_status)
        return EscalationResult(
            tool=tool,
            command=command,
            output=result.output,
            exit_status=result.exit_status,
        )
