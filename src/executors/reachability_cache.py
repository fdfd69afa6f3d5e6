#!/usr/bin/env -S python3 -B -u
"""
Per-run cache of source-host ssh reachability.

The first check for a host runs a cheap remote handshake (``hostname`` by
default); every later check returns the recorded answer. Entries never
expire within a run.

Concurrent first checks for the same host share a single in-flight
handshake: the first caller performs it, the others wait on its Future.
"""

import threading
from concurrent.futures import Future
from typing import Dict, List, Optional

from ..core.exceptions import SSHConnectionError
from ..core.models import ReachabilityStatus
from ..core.structured_logging import get_logger


class ReachabilityCache:
    """Memoizes whether each source host accepts remote command execution."""

    def __init__(self, executor, handshake_command: str = 'hostname',
                 timeout: Optional[float] = None, verbose_level: Optional[int] = None):
        """
        Args:
            executor: SSHExecutor (or compatible) used for the handshake
            handshake_command: Remote command that must exit 0
            timeout: Local timeout for the handshake
            verbose_level: Logging verbosity override
        """
        self.executor = executor
        self.handshake_command = handshake_command
        self.timeout = timeout
        self.logger = get_logger(__name__, verbose_level)

        self._lock = threading.Lock()
        self._entries: Dict[str, Future] = {}
        self.handshake_count = 0

    def check_reachable(self, host: str) -> bool:
        """Return True if ``host`` answers ssh; at most one handshake per host."""
        with self._lock:
            future = self._entries.get(host)
            owner = future is None
            if owner:
                future = Future()
                self._entries[host] = future
                self.handshake_count += 1

        if not owner:
            return future.result()

        try:
            reachable = self._handshake(host)
        except Exception as e:
            future.set_exception(e)
            raise
        future.set_result(reachable)
        return reachable

    def _handshake(self, host: str) -> bool:
        try:
            remote_name = self.executor.check_connection(
                host, self.handshake_command, timeout=self.timeout
            )
        except SSHConnectionError as e:
            self.logger.info(f"Host {host} is not reachable via ssh",
                             error=e.details.get('ssh_error'))
            return False
        self.logger.debug(f"Host {host} is reachable", remote_hostname=remote_name)
        return True

    def status(self, host: str) -> ReachabilityStatus:
        """
        Tri-state view of a host; UNKNOWN until its check has finished.

        A handshake that ended in an exception reads as UNREACHABLE.
        """
        with self._lock:
            future = self._entries.get(host)
        if future is None or not future.done():
            return ReachabilityStatus.UNKNOWN
        if future.exception() is not None or not future.result():
            return ReachabilityStatus.UNREACHABLE
        return ReachabilityStatus.REACHABLE

    def checked_hosts(self) -> List[str]:
        """Hosts whose reachability has been determined, in check order."""
        with self._lock:
            return [host for host, future in self._entries.items() if future.done()]
