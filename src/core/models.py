#!/usr/bin/env -S python3 -B -u
"""
Data Models for the Reachability Tester

Type-safe data structures shared by the parser, the probes, the stats
aggregator and the report.

Key Features:
- Rules and expanded paths as immutable dataclasses
- Closed Classification variant with success/timeout predicates
- Explicit per-path outcome (skipped or evaluated) instead of early exits
"""

from dataclasses import dataclass, field
from typing import List, Optional
from enum import Enum


DNS_PORT = 53


class ProbeKind(str, Enum):
    """Kind of diagnostic run for a path."""
    TCP = "tcp"
    DNS = "dns"


@dataclass(frozen=True)
class ProbeType:
    """
    Probe requested by a rule: a TCP connect to ``port`` or a DNS lookup.

    Use the ``tcp()`` and ``dns()`` constructors.
    """
    kind: ProbeKind
    port: Optional[int] = None

    @classmethod
    def tcp(cls, port: int) -> 'ProbeType':
        return cls(ProbeKind.TCP, port)

    @classmethod
    def dns(cls) -> 'ProbeType':
        return cls(ProbeKind.DNS)

    @property
    def is_dns(self) -> bool:
        return self.kind is ProbeKind.DNS

    @property
    def target_port(self) -> int:
        """Port a TCP traceroute should aim at."""
        return DNS_PORT if self.is_dns else self.port

    def __str__(self) -> str:
        return "dns" if self.is_dns else str(self.port)


@dataclass(frozen=True)
class Rule:
    """One parsed rules-file line."""
    tag: str
    source_spec: str
    dest_spec: str
    probe_type: ProbeType
    extra: Optional[str] = None
    line_number: int = 0
    line: str = ""


@dataclass(frozen=True)
class ExpandedPath:
    """One concrete source -> destination probe instance."""
    tag: str
    source_host: str
    dest_host: str
    probe_type: ProbeType
    extra: Optional[str] = None

    @property
    def label(self) -> str:
        """Path label as shown in the report, without the tag."""
        dest = self.dest_host or "[default]"
        return f"{self.source_host} -> {dest}:{self.probe_type}"


class ReachabilityStatus(str, Enum):
    """Tri-state ssh reachability of a source host."""
    UNKNOWN = "unknown"
    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"


class ClassificationKind(str, Enum):
    """Every possible outcome of a single path probe."""
    OK = "ok"
    OK_REFUSED = "ok_refused"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"
    SSH_UNREACHABLE = "ssh_unreachable"
    DNS_OK = "dns_ok"
    DNS_FAIL_TIMEOUT = "dns_fail_timeout"
    DNS_FAIL_UNKNOWN = "dns_fail_unknown"


SUCCESS_KINDS = frozenset({
    ClassificationKind.OK,
    ClassificationKind.OK_REFUSED,
    ClassificationKind.DNS_OK,
})

TIMEOUT_KINDS = frozenset({
    ClassificationKind.TIMEOUT,
    ClassificationKind.DNS_FAIL_TIMEOUT,
})


@dataclass(frozen=True)
class Classification:
    """
    Categorized outcome of a probe.

    ``detail`` carries the variant payload: the DNS response for DNS_OK,
    the raw output for UNKNOWN, optional extra text for OK.
    """
    kind: ClassificationKind
    detail: Optional[str] = None

    @classmethod
    def ok(cls, detail: Optional[str] = None) -> 'Classification':
        return cls(ClassificationKind.OK, detail)

    @classmethod
    def ok_refused(cls) -> 'Classification':
        return cls(ClassificationKind.OK_REFUSED)

    @classmethod
    def timeout(cls) -> 'Classification':
        return cls(ClassificationKind.TIMEOUT)

    @classmethod
    def unknown(cls, raw: str) -> 'Classification':
        return cls(ClassificationKind.UNKNOWN, raw)

    @classmethod
    def ssh_unreachable(cls) -> 'Classification':
        return cls(ClassificationKind.SSH_UNREACHABLE)

    @classmethod
    def dns_ok(cls, response: Optional[str] = None) -> 'Classification':
        return cls(ClassificationKind.DNS_OK, response)

    @classmethod
    def dns_fail_timeout(cls) -> 'Classification':
        return cls(ClassificationKind.DNS_FAIL_TIMEOUT)

    @classmethod
    def dns_fail_unknown(cls) -> 'Classification':
        return cls(ClassificationKind.DNS_FAIL_UNKNOWN)

    @property
    def is_success(self) -> bool:
        return self.kind in SUCCESS_KINDS

    @property
    def is_timeout(self) -> bool:
        return self.kind in TIMEOUT_KINDS

    def describe(self) -> str:
        """Human-readable outcome used in the report line."""
        kind = self.kind
        if kind is ClassificationKind.OK:
            return f"OK ({self.detail})" if self.detail else "OK"
        if kind is ClassificationKind.OK_REFUSED:
            return "OK (connection refused, host up)"
        if kind is ClassificationKind.TIMEOUT:
            return "FAIL (timed out)"
        if kind is ClassificationKind.SSH_UNREACHABLE:
            return "FAIL (ssh to source host failed)"
        if kind is ClassificationKind.DNS_OK:
            return f"OK ({self.detail})" if self.detail else "OK (empty response)"
        if kind is ClassificationKind.DNS_FAIL_TIMEOUT:
            return "FAIL (dns query timed out)"
        if kind is ClassificationKind.DNS_FAIL_UNKNOWN:
            return "FAIL (dns query failed)"
        raw = " ".join((self.detail or "").split())
        return f"FAIL (unknown: {raw})" if raw else "FAIL (unknown)"


@dataclass(frozen=True)
class ProbeResult:
    """Result of probing one expanded path."""
    path: ExpandedPath
    classification: Classification
    raw_output: str = ""
    exit_status: Optional[int] = None


@dataclass(frozen=True)
class EscalationResult:
    """Output of one traceroute escalation, passed through unmodified."""
    tool: str
    command: str
    output: str
    exit_status: Optional[int] = None


class SkipReason(str, Enum):
    """Why a line or rule produced no probe."""
    BLANK = "blank"
    COMMENT = "comment"
    FILTERED = "filtered"
    MALFORMED = "malformed"
    BAD_RANGE = "bad_range"


@dataclass(frozen=True)
class SkippedLine:
    """A rules-file line that was not turned into probes."""
    reason: SkipReason
    line: str = ""
    line_number: int = 0
    message: str = ""

    @property
    def is_reportable(self) -> bool:
        """Malformed input is reported; blanks, comments and filtered lines are not."""
        return self.reason in (SkipReason.MALFORMED, SkipReason.BAD_RANGE)


@dataclass
class PathOutcome:
    """
    Result of evaluating one expanded path.

    Rules that cannot be evaluated at all come back from the runner as
    SkippedLine; an unreachable source host is still an evaluated path.
    """
    result: ProbeResult
    source_reachable: bool = False
    escalations: List[EscalationResult] = field(default_factory=list)

    @property
    def path(self) -> ExpandedPath:
        return self.result.path

    @property
    def classification(self) -> Classification:
        return self.result.classification


@dataclass
class Counters:
    """The four counters kept for one stats scope."""
    hosts_ok: int = 0
    hosts_failed: int = 0
    paths_ok: int = 0
    paths_failed: int = 0
