#!/usr/bin/env -S python3 -B -u
"""
Structured Exception Hierarchy for the Reachability Tester

This module provides the exception hierarchy used across reachtest, with
user-facing messages, suggested actions and exit codes.

Only a handful of these are fatal (missing rules files, bad usage, broken
configuration). Rule and range syntax errors are raised by the parsers and
converted into skipped lines by the runner; probe outcomes are never
exceptions at all.
"""

import sys
import traceback
from typing import Optional, Dict, Any
from enum import IntEnum


class ErrorCode(IntEnum):
    """Standard exit codes for the application."""
    SUCCESS = 0
    USAGE_ERROR = 1
    FILE_NOT_FOUND = 1
    INVALID_INPUT = 10
    CONFIGURATION_ERROR = 11
    NETWORK_ERROR = 12
    INTERNAL_ERROR = 15


class ReachTestError(Exception):
    """
    Base exception class for all reachtest errors.

    Provides structured error information with user-friendly messages
    and suggested actions for resolution.
    """

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize error with structured information.

        Args:
            message: User-friendly error message
            suggestion: Suggested action to resolve the error
            error_code: Exit code for the error
            details: Additional error details (shown only in verbose mode)
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def format_error(self, verbose_level: int = 0) -> str:
        """
        Format error message based on verbosity level.

        Args:
            verbose_level: 0=basic, 1=verbose, 2=debug, 3=full details

        Returns:
            Formatted error message
        """
        lines = [f"Error: {self.message}"]

        if self.suggestion:
            lines.append(f"Suggestion: {self.suggestion}")

        if verbose_level >= 1 and self.details:
            lines.append("\nDetails:")
            for key, value in self.details.items():
                lines.append(f"  {key}: {value}")

        if verbose_level >= 2 and self.cause:
            lines.append(f"\nCaused by: {type(self.cause).__name__}: {str(self.cause)}")

        if verbose_level >= 3:
            lines.append("\nStack trace:")
            tb = traceback.format_exc()
            if tb and tb != 'NoneType: None\n':
                lines.append(tb)
            else:
                lines.append("(No active exception - stack trace not available)")

        return "\n".join(lines)


# Fatal errors

class UsageError(ReachTestError):
    """Raised when the command line is invalid."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            suggestion="Run with --help to see the available options.",
            error_code=ErrorCode.USAGE_ERROR,
            **kwargs
        )


class RulesFileMissingError(ReachTestError):
    """Raised when a rules file cannot be opened. Aborts the whole run."""

    def __init__(self, path: str, **kwargs):
        super().__init__(
            message=f"Cannot open rules file: {path}",
            suggestion="Check the file name and its read permissions.",
            error_code=ErrorCode.FILE_NOT_FOUND,
            details={"path": path},
            **kwargs
        )
        self.path = path


class ConfigurationError(ReachTestError):
    """Raised when there are configuration-related issues."""

    def __init__(self, message: str, config_file: Optional[str] = None, **kwargs):
        suggestion = "Check your configuration file format and values."
        if config_file:
            suggestion += f" Configuration file: {config_file}"
            kwargs['details'] = kwargs.get('details', {})
            kwargs['details']['config_file'] = config_file
        super().__init__(
            message=message,
            suggestion=suggestion,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            **kwargs
        )


# Skippable rule errors

class RuleError(ReachTestError):
    """Base class for errors in a single rules-file line."""

    def __init__(self, message: str, line: str = "", **kwargs):
        details = kwargs.pop('details', {})
        details['line'] = line
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_INPUT,
            details=details,
            **kwargs
        )
        self.line = line


class RuleSyntaxError(RuleError):
    """Raised for a malformed rule line. The line is skipped."""

    def __init__(self, message: str, line: str = "", **kwargs):
        super().__init__(message, line=line, **kwargs)
        self.suggestion = (
            "Rules look like [tag/]source:dest:port or "
            "[tag/]source:[dnsServer]:dns:[recordName]"
        )


class RangeSyntaxError(RuleError):
    """Raised for a malformed host range expression. The rule is skipped."""

    def __init__(self, spec: str, reason: str, **kwargs):
        super().__init__(f"Invalid host range '{spec}': {reason}", line=spec, **kwargs)
        self.spec = spec
        self.suggestion = "Ranges look like prefix[start-end]suffix with numeric start <= end"


# Execution errors

class ExecutionError(ReachTestError):
    """Base class for execution-related errors."""
    pass


class SSHConnectionError(ExecutionError):
    """Raised when an ssh connection to a source host fails."""

    def __init__(self, host: str, error: str, **kwargs):
        super().__init__(
            message=f"Failed to connect to {host} via SSH",
            suggestion=(
                "SSH connection failed. Please check:\n"
                "  1. SSH service is running on the target\n"
                "  2. Your SSH key is authorized (BatchMode is used)\n"
                "  3. Network connectivity to the host"
            ),
            error_code=ErrorCode.NETWORK_ERROR,
            details={"host": host, "ssh_error": error},
            **kwargs
        )


# Error Handler Utility

class ErrorHandler:
    """Utility class for consistent error handling across the application."""

    @staticmethod
    def handle_error(error: Exception, verbose_level: int = 0) -> int:
        """
        Handle an error and return appropriate exit code.

        Args:
            error: The exception to handle
            verbose_level: Verbosity level (0-3)

        Returns:
            Exit code for the application
        """
        if isinstance(error, ReachTestError):
            print(error.format_error(verbose_level), file=sys.stderr)
            return int(error.error_code)

        print("Error: An unexpected error occurred", file=sys.stderr)
        print("Suggestion: This might be a bug. Please report it with the full error output.",
              file=sys.stderr)

        if verbose_level >= 1:
            print(f"\nError type: {type(error).__name__}", file=sys.stderr)
            print(f"Error message: {str(error)}", file=sys.stderr)

        if verbose_level >= 3:
            print("\nStack trace:", file=sys.stderr)
            traceback.print_exc(file=sys.stderr)

        return int(ErrorCode.INTERNAL_ERROR)

    @staticmethod
    def wrap_main(main_func):
        """
        Decorator to wrap main functions with error handling.

        Usage:
            @ErrorHandler.wrap_main
            def main(argv=None):
                ...
        """
        def wrapper(*args, **kwargs):
            try:
                return main_func(*args, **kwargs)
            except KeyboardInterrupt:
                print("\nOperation cancelled by user", file=sys.stderr)
                return int(ErrorCode.INTERNAL_ERROR)
            except Exception as e:
                return ErrorHandler.handle_error(e, kwargs.get('verbose_level', 0))
        wrapper.__name__ = main_func.__name__
        wrapper.__doc__ = main_func.__doc__
        return wrapper
