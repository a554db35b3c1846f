"""Exception hierarchy for health checks.

These never leave a check: ``BaseCheck.run()`` turns them into failed
result envelopes.
"""

from __future__ import annotations


class CheckError(Exception):
    """Base exception for all check errors."""


class CheckConnectionError(CheckError):
    """Failed to reach the monitoring API (HTTP/IMAP)."""


class CheckParseError(CheckError):
    """Failed to parse a response from the monitoring API."""


class CheckConfigError(CheckError):
    """Required configuration for the check is missing."""
