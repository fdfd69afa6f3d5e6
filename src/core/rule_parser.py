#!/usr/bin/env -S python3 -B -u
"""
Rules-file line parser.

Grammar, one rule per line:

    [tag/]source:dest:port
    [tag/]source:[dnsServer]:dns:[recordName]

Blank lines and lines starting with ``#`` are ignored. A non-empty filter
string restricts parsing to lines that contain it.
"""

import re
from typing import Iterable, Iterator, Optional, Union

from .exceptions import RuleSyntaxError
from .models import Rule, ProbeType, SkippedLine, SkipReason


MAX_PORT = 65535
DNS_FIELD = 'dns'
PORT_PATTERN = re.compile(r'[0-9]+')


def parse_port(field: str, line: str = "") -> ProbeType:
    """
    Parse the third field of a rule into a probe type.

    Raises:
        RuleSyntaxError: empty, non-numeric or out-of-range port
    """
    value = field.strip()
    if value == DNS_FIELD:
        return ProbeType.dns()
    if not value:
        raise RuleSyntaxError("Missing port field", line=line)
    if not PORT_PATTERN.fullmatch(value):
        raise RuleSyntaxError(f"Port '{value}' is neither a number nor 'dns'", line=line)
    port = int(value)
    if port < 1 or port > MAX_PORT:
        raise RuleSyntaxError(f"Port {port} is outside 1-{MAX_PORT}", line=line)
    return ProbeType.tcp(port)


def parse_rule(line: str, line_number: int = 0) -> Rule:
    """
    Parse a rule line that is known to be neither blank nor a comment.

    Raises:
        RuleSyntaxError: if the line does not follow the grammar
    """
    text = line.strip()
    fields = text.split(':', 3)
    if len(fields) < 3:
        raise RuleSyntaxError(
            f"Expected at least 3 ':'-separated fields, found {len(fields)}", line=text
        )

    source_field, dest_field, port_field = (f.strip() for f in fields[:3])
    extra = fields[3].strip() if len(fields) > 3 and fields[3].strip() else None

    # The tag is split off before any range handling sees the source.
    tag = ""
    if '/' in source_field:
        tag, source_field = (part.strip() for part in source_field.split('/', 1))

    if not source_field:
        raise RuleSyntaxError("Missing source host", line=text)

    probe_type = parse_port(port_field, line=text)
    if not probe_type.is_dns and not dest_field:
        raise RuleSyntaxError("Missing destination host", line=text)

    return Rule(
        tag=tag,
        source_spec=source_field,
        dest_spec=dest_field,
        probe_type=probe_type,
        extra=extra,
        line_number=line_number,
        line=text,
    )


def parse_line(line: str, filter_string: Optional[str] = "",
               line_number: int = 0) -> Union[Rule, SkippedLine]:
    """
    Turn one rules-file line into a Rule, or a SkippedLine saying why not.

    Malformed rules are returned as SkippedLine(MALFORMED) so one bad line
    never stops the run.
    """
    raw = line.rstrip('\r\n')
    stripped = raw.strip()

    if not stripped:
        return SkippedLine(SkipReason.BLANK, raw, line_number)
    if stripped.startswith('#'):
        return SkippedLine(SkipReason.COMMENT, raw, line_number)
    if filter_string and filter_string not in raw:
        return SkippedLine(SkipReason.FILTERED, raw, line_number)

    try:
        return parse_rule(raw, line_number)
    except RuleSyntaxError as e:
        return SkippedLine(SkipReason.MALFORMED, raw, line_number, e.message)


def parse_lines(lines: Iterable[str],
                filter_string: Optional[str] = "") -> Iterator[Union[Rule, SkippedLine]]:
    """Parse a sequence of lines, numbering them from 1."""
    for line_number, line in enumerate(lines, start=1):
        yield parse_line(line, filter_string, line_number)
