"""
Exceptions raised by orca-jobs.

Every error is fatal to the current invocation: library code raises,
the CLI prints the message and exits with ``exit_code``.
"""

from __future__ import annotations


class OrcaJobsError(Exception):
    """Base class for all orca-jobs failures."""

    exit_code = 1


class UsageError(OrcaJobsError):
    """Missing or malformed command-line arguments."""


class InvalidInput(OrcaJobsError):
    """A value failed a format or enumerated-set check."""


class ResourceExceeded(OrcaJobsError):
    """A requested quantity exceeds a partition limit."""


class NotFound(OrcaJobsError):
    """An expected file or directory is absent."""


class InvalidFormat(OrcaJobsError):
    """Wrong file extension or unparseable structure."""


class MissingField(OrcaJobsError):
    """A required directive is absent from an input file."""


class EmptyInput(OrcaJobsError):
    """Aggregate structure file holds no complete record."""


class TooManyRecords(OrcaJobsError):
    """Aggregate structure file holds more records than can be numbered."""


class ConfirmationDeclined(OrcaJobsError):
    """The user explicitly declined an overwrite or aborted a prompt."""


class ConfigError(OrcaJobsError):
    """Configuration file or partition table is inconsistent."""
