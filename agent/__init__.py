"""Client role: periodic signed heartbeats to a collector."""

from agent.emitter import HeartbeatEmitter
from agent.screen_lock import is_interactive_session_locked

__all__ = ["HeartbeatEmitter", "is_interactive_session_locked"]
