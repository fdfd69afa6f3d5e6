#!/usr/bin/env -S python3 -B -u
"""
Remote Command Executor - ssh Execution on Source Hosts

Every probe in reachtest runs on a source host through ssh. This module
builds the ssh command line from the ssh configuration (user, key,
options, connect timeout), runs it with a local timeout and returns a
CommandResult that callers inspect instead of catching exceptions.

ssh reserves exit status 255 for its own errors, so a 255 is treated as a
connection-level failure rather than the remote command's status.

Author: Network Analysis Tool
License: MIT
"""

import shlex
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional, Any

from ..core.exceptions import SSHConnectionError
from ..core.structured_logging import get_logger


SSH_ERROR_EXIT_STATUS = 255


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one remote command."""
    host: str
    command: str
    exit_status: Optional[int]
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        if self.stdout and self.stderr:
            return f"{self.stdout.rstrip()}\n{self.stderr}"
        return self.stdout or self.stderr

    @property
    def connection_failed(self) -> bool:
        """True when ssh itself failed or the local timeout expired."""
        return self.timed_out or self.exit_status == SSH_ERROR_EXIT_STATUS or self.exit_status is None

    @property
    def success(self) -> bool:
        return self.exit_status == 0


class SSHExecutor:
    """
    Executes commands on remote hosts via ssh.

    Attributes:
        ssh_user (str): Login name passed with -l (optional)
        ssh_key (str): Identity file passed with -i (optional)
        ssh_options (dict): Extra -o options
        connect_timeout (int): ssh ConnectTimeout in seconds
    """

    def __init__(self, ssh_config: Optional[Dict[str, Any]] = None, verbose_level: Optional[int] = None):
        """
        Initialize the executor.

        Args:
            ssh_config: ssh section of the configuration (user, key,
                options, connect_timeout)
            verbose_level: Logging verbosity override
        """
        self.ssh_config = ssh_config or {}
        self.ssh_user = self.ssh_config.get('user')
        self.ssh_key = self.ssh_config.get('key')
        self.ssh_options = dict(self.ssh_config.get('options') or {})
        self.connect_timeout = int(self.ssh_config.get('connect_timeout', 5))
        self.logger = get_logger(__name__, verbose_level)

    def build_command(self, host: str, remote_command: str) -> List[str]:
        """
        Build the ssh argv for running ``remote_command`` on ``host``.

        ConnectTimeout from the configuration always wins over a value in
        ``ssh_options``.
        """
        ssh_command = ['ssh']
        options = dict(self.ssh_options)
        options['ConnectTimeout'] = str(self.connect_timeout)
        for option, value in options.items():
            ssh_command.extend(['-o', f'{option}={value}'])

        if self.ssh_key:
            ssh_command.extend(['-i', self.ssh_key])
        if self.ssh_user:
            ssh_command.extend(['-l', self.ssh_user])

        ssh_command.extend([host, remote_command])
        return ssh_command

    def run(self, host: str, remote_command: str, timeout: Optional[float] = None) -> CommandResult:
        """
        Run ``remote_command`` on ``host`` and capture its output.

        Args:
            host: Source host to execute on
            remote_command: Shell command line for the remote side
            timeout: Local timeout for the whole ssh invocation

        Returns:
            CommandResult; never raises for remote or connection failures
        """
        argv = self.build_command(host, remote_command)
        self.logger.log_command_execution(argv, host=host, timeout=timeout)

        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=timeout,
                stdin=subprocess.DEVNULL,
            )
        except subprocess.TimeoutExpired as e:
            self.logger.warning(f"[{host}] command timed out after {timeout}s: {remote_command}")
            return CommandResult(
                host=host,
                command=remote_command,
                exit_status=None,
                stdout=_decode(e.stdout),
                stderr=_decode(e.stderr) or f"ssh: command timed out after {timeout}s",
                timed_out=True,
            )
        except OSError as e:
            # ssh binary missing or not executable
            self.logger.error(f"Cannot execute ssh: {e}")
            return CommandResult(host=host, command=remote_command, exit_status=None, stderr=str(e))

        result = CommandResult(
            host=host,
            command=remote_command,
            exit_status=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
        self.logger.log_command_execution(
            remote_command, host=host, success=result.success, exit_status=result.exit_status
        )
        if self.logger.verbose_level >= 3:
            self.logger.trace(f"[{host}] output", stdout=result.stdout, stderr=result.stderr)
        return result

    def check_connection(self, host: str, remote_command: str = 'hostname',
                         timeout: Optional[float] = None) -> str:
        """
        Run a lightweight handshake command and return its output.

        Raises:
            SSHConnectionError: if the command does not exit with status 0
        """
        result = self.run(host, remote_command, timeout=timeout)
        if not result.success:
            raise SSHConnectionError(host, result.output.strip() or f"exit status {result.exit_status}")
        return result.stdout.strip()


def quote_args(*args: Any) -> str:
    """Join arguments into a safely quoted remote command line."""
    return " ".join(shlex.quote(str(arg)) for arg in args)


def _decode(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode('utf-8', errors='replace')
    return data
