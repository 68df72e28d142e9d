"""
Gap-recovering client for fixed-width tick record feeds.

This package retrieves a complete, sequence-ordered set of records from a
remote feed that offers two request types:
- Stream all records (may drop records in transit)
- Resend one record by sequence number

The RecoveryCoordinator drains the stream, computes the missing sequences
and requests each one individually before handing back a sorted result.
"""

from tickfetch.engine.coordinator import RecoveryCoordinator, RecoveryResult

__all__ = ["RecoveryCoordinator", "RecoveryResult"]
