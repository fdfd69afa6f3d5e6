#!/usr/bin/env -S python3 -B -u
"""
Test suite for the ssh remote executor.

subprocess.run is patched throughout; no ssh process is started.
"""

import subprocess
import unittest
from unittest.mock import MagicMock, patch

from reachtest.core.exceptions import SSHConnectionError
from reachtest.executors.remote_executor import CommandResult, SSHExecutor, quote_args


def completed(returncode=0, stdout="", stderr=""):
    proc = MagicMock()
    proc.returncode = returncode
    proc.stdout = stdout
    proc.stderr = stderr
    return proc


class TestBuildCommand(unittest.TestCase):

    def test_defaults(self):
        argv = SSHExecutor().build_command("web1", "hostname")
        self.assertEqual(argv, ['ssh', '-o', 'ConnectTimeout=5', 'web1', 'hostname'])

    def test_user_key_and_options(self):
        executor = SSHExecutor({
            'user': 'probe',
            'key': '/etc/reachtest/id_ed25519',
            'connect_timeout': 3,
            'options': {'BatchMode': 'yes'},
        })
        argv = executor.build_command("web1", "nc -z db1 22")
        self.assertEqual(argv, [
            'ssh', '-o', 'BatchMode=yes', '-o', 'ConnectTimeout=3',
            '-i', '/etc/reachtest/id_ed25519', '-l', 'probe',
            'web1', 'nc -z db1 22',
        ])

    def test_connect_timeout_wins_over_options(self):
        executor = SSHExecutor({'connect_timeout': 2, 'options': {'ConnectTimeout': 60}})
        self.assertIn('ConnectTimeout=2', executor.build_command("web1", "true"))
        self.assertNotIn('ConnectTimeout=60', executor.build_command("web1", "true"))


class TestRun(unittest.TestCase):

    def setUp(self):
        self.executor = SSHExecutor({'user': 'probe'})

    @patch('reachtest.executors.remote_executor.subprocess.run')
    def test_success(self, mock_run):
        mock_run.return_value = completed(0, "web1\n")
        result = self.executor.run("web1", "hostname", timeout=10)

        self.assertTrue(result.success)
        self.assertFalse(result.connection_failed)
        self.assertEqual(result.stdout, "web1\n")
        self.assertEqual(mock_run.call_args.kwargs['timeout'], 10)
        self.assertEqual(mock_run.call_args.kwargs['stdin'], subprocess.DEVNULL)

    @patch('reachtest.executors.remote_executor.subprocess.run')
    def test_ssh_error_status(self, mock_run):
        mock_run.return_value = completed(255, stderr="ssh: Could not resolve hostname web9")
        result = self.executor.run("web9", "hostname")

        self.assertTrue(result.connection_failed)
        self.assertIn("Could not resolve", result.output)

    @patch('reachtest.executors.remote_executor.subprocess.run')
    def test_remote_failure_is_not_a_connection_failure(self, mock_run):
        mock_run.return_value = completed(1, stderr="nc: connect failed: Connection refused")
        result = self.executor.run("web1", "nc -z db1 22")

        self.assertFalse(result.success)
        self.assertFalse(result.connection_failed)

    @patch('reachtest.executors.remote_executor.subprocess.run')
    def test_local_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd=['ssh'], timeout=5)
        result = self.executor.run("web1", "sleep 60", timeout=5)

        self.assertTrue(result.timed_out)
        self.assertTrue(result.connection_failed)
        self.assertIsNone(result.exit_status)
        self.assertIn("timed out", result.output)

    @patch('reachtest.executors.remote_executor.subprocess.run')
    def test_missing_ssh_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError(2, "No such file or directory", "ssh")
        result = self.executor.run("web1", "hostname")

        self.assertIsNone(result.exit_status)
        self.assertTrue(result.connection_failed)


class TestCheckConnection(unittest.TestCase):

    @patch('reachtest.executors.remote_executor.subprocess.run')
    def test_returns_remote_hostname(self, mock_run):
        mock_run.return_value = completed(0, "web1.dc1\n")
        self.assertEqual(SSHExecutor().check_connection("web1"), "web1.dc1")

    @patch('reachtest.executors.remote_executor.subprocess.run')
    def test_failure_raises(self, mock_run):
        mock_run.return_value = completed(255, stderr="Permission denied (publickey).")
        with self.assertRaises(SSHConnectionError) as cm:
            SSHExecutor().check_connection("web1")
        self.assertEqual(cm.exception.details['host'], "web1")
        self.assertIn("Permission denied", cm.exception.details['ssh_error'])


class TestHelpers(unittest.TestCase):

    def test_quote_args(self):
        self.assertEqual(quote_args("db1", 3306), "db1 3306")
        self.assertEqual(quote_args("db 1"), "'db 1'")

    def test_output_combines_streams(self):
        result = CommandResult(host="h", command="c", exit_status=0, stdout="out\n", stderr="err")
        self.assertEqual(result.output, "out\nerr")


if __name__ == '__main__':
    unittest.main()
