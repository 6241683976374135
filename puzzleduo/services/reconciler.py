import logging
from typing import Optional

from puzzleduo.broadcaster import EventBroadcaster
from puzzleduo.registry import Removal, SessionRegistry

logger = logging.getLogger(__name__)

PEER_LEFT_MESSAGE = 'The other player has left the room.'
SESSION_EXPIRED_MESSAGE = 'This session was closed after a period of inactivity.'


class DisconnectReconciler:
    """Reclaims session state when connections go away."""

    def __init__(self, registry: SessionRegistry, broadcaster: EventBroadcaster):
        self.registry = registry
        self.broadcaster = broadcaster

    def handle_disconnect(self, connection_id: str) -> Removal:
        removal = self.registry.remove_member(connection_id)
        for notice in removal.peer_notices:
            self.broadcaster.send_to(notice.connection_id, 'peerLeft', {'message': PEER_LEFT_MESSAGE})
        for session_id in removal.deleted:
            self.broadcaster.close_session(session_id)
        if not removal.empty:
            logger.info(
                f"[disconnect] sid={connection_id} notified={len(removal.peer_notices)} deleted={len(removal.deleted)}"
            )
        return removal

    def sweep_idle(self, max_idle: float, now: Optional[float] = None) -> int:
        """Tear down sessions with no activity for longer than ``max_idle`` seconds."""
        reclaimed = 0
        for session in self.registry.idle_sessions(max_idle, now):
            with session.lock:
                # activity may have landed between the snapshot and the lock
                if session.closed or not self.registry.is_idle(session, max_idle, now):
                    continue
                self.broadcaster.send_to_session(session.id, 'sessionExpired', {'message': SESSION_EXPIRED_MESSAGE})
                self.registry.destroy(session)
                self.broadcaster.close_session(session.id)
                reclaimed += 1
        if reclaimed:
            logger.info(f"[sweep] reclaimed={reclaimed}")
        return reclaimed

