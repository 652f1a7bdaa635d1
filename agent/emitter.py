"""
Heartbeat emitter (client role).

One round per interval, forever:
  - skip the round while the interactive session is locked
  - stamp the current epoch second, sign it when a key is configured
  - POST the assertion to the collector with a short per-request timeout

A failed round is logged and abandoned. The next scheduled tick is the only
retry: no backoff, no jitter, and delivery failures never stop the loop.
"""

import logging
import time

import requests

from core.errors import TransportError
from core.settings import HEARTBEAT_INTERVAL, TIMEOUT
from core.utils import epoch_seconds
from monitoring.verifier import HEARTBEAT_RECEIVED
from signing.codec import resolve_digest, sign_timestamp

logger = logging.getLogger("liveness.emitter")


def _never_locked():
    return False


class HeartbeatEmitter:
    def __init__(
        self,
        url,
        signing_key=None,
        digest="sha256",
        interval=HEARTBEAT_INTERVAL,
        timeout=TIMEOUT,
        session=None,
        clock=epoch_seconds,
        sleep=time.sleep,
        is_locked=None,
    ):
        self.url = url
        self.signing_key = signing_key
        self.digest = digest
        self.interval = interval
        self.timeout = timeout
        self.session = session or requests.Session()
        self._clock = clock
        self._sleep = sleep
        self._is_locked = is_locked or _never_locked
        if signing_key is not None:
            resolve_digest(digest)

    @classmethod
    def from_settings(cls, settings, signing_key=None, is_locked=None, **kwargs):
        return cls(
            settings.heartbeat_url,
            signing_key=signing_key,
            digest=settings.digest,
            interval=settings.heartbeat_interval,
            timeout=settings.timeout,
            is_locked=is_locked,
            **kwargs,
        )

    def build_assertion(self, timestamp=None):
        """Return the JSON body for one heartbeat."""
        timestamp = self._clock() if timestamp is None else int(timestamp)
        payload = {"timestamp": timestamp}
        if self.signing_key is not None:
            payload["signature"] = sign_timestamp(self.signing_key, timestamp, self.digest)
        return payload

    def deliver(self, payload):
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(str(e)) from e
        if not 200 <= response.status_code < 300:
            raise TransportError(f"{response.status_code} {response.reason or ''}".strip())
        if response.text != HEARTBEAT_RECEIVED:
            raise TransportError("invalid response")

    def send_once(self):
        """Run one heartbeat round. Returns True if the collector acknowledged it."""
        if self._is_locked():
            logger.debug("Session locked, skipping heartbeat")
            return False
        payload = self.build_assertion()
        try:
            self.deliver(payload)
        except TransportError as e:
            logger.error("Heartbeat failed: %s", e)
            return False
        logger.info("Heartbeat sent")
        return True

    def run_forever(self, max_rounds=None):
        """Send heartbeats every ``interval`` seconds.

        ``max_rounds`` bounds the loop; left as None the loop only ends with
        the process.
        """
        logger.info("Sending heartbeats to %s every %ss", self.url, self.interval)
        rounds = 0
        while max_rounds is None or rounds < max_rounds:
            self.send_once()
            rounds += 1
            self._sleep(self.interval)
        return rounds
