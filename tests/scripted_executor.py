"""
Scripted stand-in for SSHExecutor used by the test suites.

Hosts listed in ``reachable`` pass the handshake; every other host raises
SSHConnectionError. ``run()`` answers with the first scripted response whose
host matches and whose needle occurs in the remote command.
"""

import threading
from typing import Dict, List, Optional, Tuple

from reachtest.core.exceptions import SSHConnectionError
from reachtest.executors.remote_executor import CommandResult


class ScriptedExecutor:

    def __init__(self, reachable=(), responses: Optional[List[Tuple[str, str, int, str]]] = None):
        """
        Args:
            reachable: Hosts that answer the ssh handshake
            responses: (host, needle, exit_status, stdout) tuples
        """
        self.reachable = set(reachable)
        self.responses = list(responses or [])
        self.handshakes: List[str] = []
        self.commands: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def check_connection(self, host, remote_command='hostname', timeout=None):
        with self._lock:
            self.handshakes.append(host)
        if host not in self.reachable:
            raise SSHConnectionError(host, "Connection timed out during banner exchange")
        return host

    def run(self, host, remote_command, timeout=None):
        with self._lock:
            self.commands.append((host, remote_command))
        for r_host, needle, exit_status, stdout in self.responses:
            if r_host == host and needle in remote_command:
                return CommandResult(host=host, command=remote_command,
                                     exit_status=exit_status, stdout=stdout)
        return CommandResult(host=host, command=remote_command, exit_status=1, stdout="")

    def handshake_count(self, host) -> int:
        return self.handshakes.count(host)

    def commands_for(self, needle) -> List[Tuple[str, str]]:
        return [(h, c) for h, c in self.commands if needle in c]
