"""
Data models for the feed client.
"""

from tickfetch.models.codec import CallType
from tickfetch.models.record import Record
from tickfetch.models.record_store import RecordStore

__all__ = [
    "CallType",
    "Record",
    "RecordStore",
]
