"""
Server-side acceptance of liveness assertions.

Order of checks:
  1. signature (only when a verification key is configured)
  2. freshness of the timestamp against the verifier clock
  3. registry update with the verifier's own "now"

Future timestamps: an assertion dated more than ``timeout`` seconds ahead of
the verifier clock is rejected like a stale one; smaller skew is accepted.
"""

import logging

from core.errors import AuthenticationError, ValidationError
from core.settings import TIMEOUT
from core.utils import epoch_seconds
from signing.codec import resolve_digest, verify_timestamp

logger = logging.getLogger("liveness.verifier")

HEARTBEAT_RECEIVED = "Heartbeat received"


class HeartbeatVerifier:
    def __init__(self, registry, public_key=None, digest="sha256", timeout=TIMEOUT, clock=epoch_seconds):
        self.registry = registry
        self.public_key = public_key
        self.digest = digest
        self.timeout = int(timeout)
        self._clock = clock
        # Fail at construction, not on the first heartbeat.
        resolve_digest(digest)

    @property
    def authenticated(self):
        return self.public_key is not None

    def check_signature(self, assertion):
        if self.public_key is None:
            return
        if assertion.signature is None:
            raise AuthenticationError("Heartbeat is not signed")
        verify_timestamp(self.public_key, assertion.timestamp, assertion.signature, self.digest)

    def check_freshness(self, timestamp, now):
        age = now - timestamp
        if age > self.timeout:
            raise ValidationError(f"Heartbeat timestamp is {age}s old (limit {self.timeout}s)")
        if -age > self.timeout:
            raise ValidationError(
                f"Heartbeat timestamp is {-age}s in the future (limit {self.timeout}s)"
            )

    def accept(self, assertion, identity):
        """Verify ``assertion`` from ``identity`` and record it.

        Returns the acknowledgement body; raises ``AuthenticationError`` or
        ``ValidationError`` on rejection without touching the registry.
        """
        try:
            self.check_signature(assertion)
            now = self._clock()
            self.check_freshness(assertion.timestamp, now)
        except (AuthenticationError, ValidationError) as e:
            logger.warning("Rejected heartbeat from %s: %s", identity, e)
            raise
        self.registry.record(identity, now)
        logger.debug("Heartbeat accepted from %s", identity)
        return HEARTBEAT_RECEIVED
