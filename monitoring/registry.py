"""Thread-safe registry of client heartbeats and the aggregate status."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum

from core.settings import OFFLINE_TIMEOUT, ZOMBIE_TIMEOUT

logger = logging.getLogger("liveness.registry")


class AggregateStatus(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


@dataclass
class ClientRecord:
    """Most recent accepted heartbeat for one client address."""

    identity: str
    last_seen: int


class LivenessRegistry:
    """Maps client identity to its last accepted heartbeat.

    A single lock guards the whole mapping. Heartbeats arrive tens of seconds
    apart per client, so contention is light.
    """

    def __init__(self, offline_timeout: int = OFFLINE_TIMEOUT, zombie_timeout: int = ZOMBIE_TIMEOUT):
        self.offline_timeout = int(offline_timeout)
        self.zombie_timeout = int(zombie_timeout)
        self._records: dict[str, ClientRecord] = {}
        self._lock = threading.Lock()

    def record(self, identity: str, now: int) -> None:
        """Upsert the record for ``identity`` with ``last_seen = now``."""
        with self._lock:
            existing = self._records.get(identity)
            if existing is None:
                self._records[identity] = ClientRecord(identity=identity, last_seen=now)
                logger.info("New client %s", identity)
            else:
                existing.last_seen = now

    def status(self, now: int) -> AggregateStatus:
        """Derive ONLINE/OFFLINE from the records as of ``now``.

        Zombie records are pruned only when the result is OFFLINE, so a dead
        client is kept for as long as any other client keeps the status ONLINE.
        """
        with self._lock:
            for record in self._records.values():
                if record.last_seen + self.offline_timeout >= now:
                    return AggregateStatus.ONLINE

            zombies = [
                identity
                for identity, record in self._records.items()
                if now - record.last_seen > self.zombie_timeout
            ]
            for identity in zombies:
                del self._records[identity]
        if zombies:
            logger.info("Pruned %d stale client(s): %s", len(zombies), ", ".join(sorted(zombies)))
        return AggregateStatus.OFFLINE

    def get(self, identity: str) -> ClientRecord | None:
        with self._lock:
            record = self._records.get(identity)
            return ClientRecord(record.identity, record.last_seen) if record else None

    def snapshot(self) -> list[ClientRecord]:
        """Copies of all records, ordered by identity."""
        with self._lock:
            return [
                ClientRecord(record.identity, record.last_seen)
                for _, record in sorted(self._records.items())
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
