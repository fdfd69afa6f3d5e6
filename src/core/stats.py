#!/usr/bin/env -S python3 -B -u
"""
Pass/fail statistics for a run.

Two scopes are kept: the rules file currently being processed and the
whole run. Every record_* call updates both.
"""

import logging
from typing import Optional

from .models import Classification, Counters


logger = logging.getLogger(__name__)


class StatsAggregator:
    """Accumulates host-reachability and path-test counters."""

    def __init__(self):
        self.file_name: Optional[str] = None
        self.file = Counters()
        self.total = Counters()
        self.files_processed = 0

    def start_file(self, file_name: str):
        """Reset the per-file scope for a new rules file."""
        self.file_name = file_name
        self.file = Counters()
        self.files_processed += 1

    def record_host_check(self, reachable: bool):
        """Count one source-host reachability check."""
        for counters in (self.file, self.total):
            if reachable:
                counters.hosts_ok += 1
            else:
                counters.hosts_failed += 1

    def record_path_result(self, classification: Classification):
        """Count one path test; only the OK/DNS_OK family is a success."""
        success = classification.is_success
        for counters in (self.file, self.total):
            if success:
                counters.paths_ok += 1
            else:
                counters.paths_failed += 1
        logger.debug(f"Recorded {classification.kind.value} "
                     f"({'success' if success else 'failure'}) for {self.file_name}")

    @property
    def file_totals(self) -> Counters:
        return self.file

    @property
    def run_totals(self) -> Counters:
        return self.total
