#!/usr/bin/env -S python3 -B -u
"""
Host range expansion.

A source or destination field may embed one bracketed numeric range:

    web[01-12].dc1   ->  web01.dc1, web02.dc1, ... web12.dc1

Numbers are zero-padded to the width of the wider of the two literals, so
``[8-10]`` gives ``08, 09, 10`` and ``[1-3]`` gives ``1, 2, 3``.
"""

import re
from typing import List, Tuple

from .exceptions import RangeSyntaxError
from .models import Rule, ExpandedPath


RANGE_PATTERN = re.compile(r'^(?P<prefix>[^\[]*)\[(?P<start>[^\]\-]*)-(?P<end>[^\]\-]*)\](?P<suffix>.*)$')
BOUND_PATTERN = re.compile(r'[0-9]+')


def is_range(spec: str) -> bool:
    """Return True if ``spec`` contains a bracketed start-end pattern."""
    return bool(spec) and RANGE_PATTERN.match(spec) is not None


def split_range(spec: str) -> Tuple[str, str, str, str]:
    """
    Split a range spec into prefix, start literal, end literal and suffix.

    Raises:
        RangeSyntaxError: if ``spec`` has no bracketed range
    """
    match = RANGE_PATTERN.match(spec)
    if not match:
        raise RangeSyntaxError(spec, "no [start-end] range found")
    return match.group('prefix'), match.group('start'), match.group('end'), match.group('suffix')


def expand(spec: str) -> List[str]:
    """
    Expand a host specification into concrete hostnames.

    A spec without a range expands to itself.

    Raises:
        RangeSyntaxError: if a bound is not numeric or start > end
    """
    if not is_range(spec):
        return [spec]

    prefix, start_literal, end_literal, suffix = split_range(spec)

    if not BOUND_PATTERN.fullmatch(start_literal) or not BOUND_PATTERN.fullmatch(end_literal):
        raise RangeSyntaxError(spec, "range bounds must be non-negative integers")

    start, end = int(start_literal), int(end_literal)
    if start > end:
        raise RangeSyntaxError(spec, f"start {start} is greater than end {end}")

    width = max(len(start_literal), len(end_literal))
    return [f"{prefix}{index:0{width}d}{suffix}" for index in range(start, end + 1)]


def expand_rule(rule: Rule) -> List[ExpandedPath]:
    """
    Expand a rule into one path per concrete host combination.

    Only one side is expanded: the source when it is range-like, otherwise
    the destination. A destination range next to a source range is kept
    verbatim.

    Raises:
        RangeSyntaxError: propagated from expand()
    """
    if is_range(rule.source_spec):
        sources = expand(rule.source_spec)
        destinations = [rule.dest_spec]
    elif is_range(rule.dest_spec):
        sources = [rule.source_spec]
        destinations = expand(rule.dest_spec)
    else:
        sources = [rule.source_spec]
        destinations = [rule.dest_spec]

    return [
        ExpandedPath(
            tag=rule.tag,
            source_host=source,
            dest_host=dest,
            probe_type=rule.probe_type,
            extra=rule.extra,
        )
        for source in sources
        for dest in destinations
    ]
