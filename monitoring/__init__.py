"""Liveness tracking: the client registry and heartbeat verification."""

from monitoring.registry import AggregateStatus, ClientRecord, LivenessRegistry
from monitoring.verifier import HEARTBEAT_RECEIVED, HeartbeatVerifier

__all__ = [
    "AggregateStatus",
    "ClientRecord",
    "HEARTBEAT_RECEIVED",
    "HeartbeatVerifier",
    "LivenessRegistry",
]
