from tickfetch.engine.connection import TCPConnectionProvider
from tickfetch.engine.coordinator import (
    RecoveryCoordinator,
    RecoveryResult,
    RecoveryState,
    ResendFailure,
)
from tickfetch.engine.exporter import write_records_json
from tickfetch.engine.frame_reader import FrameReader

__all__ = [
    "FrameReader",
    "RecoveryCoordinator",
    "RecoveryResult",
    "RecoveryState",
    "ResendFailure",
    "TCPConnectionProvider",
    "write_records_json",
]
