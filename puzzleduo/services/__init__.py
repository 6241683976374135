"""Session domain services: state machines and reconciliation.

This package contains the session logic imported by HTTP routes and
socket handlers, keeping transport concerns separated from core game
mechanics. ``GameServices`` wires one registry and one broadcaster into
every state machine for a single application instance.
"""

from puzzleduo.broadcaster import EventBroadcaster
from puzzleduo.registry import SessionRegistry
from puzzleduo.services.cooperative import CooperativeSessionStateMachine
from puzzleduo.services.quiz import QuizSessionStateMachine
from puzzleduo.services.reconciler import DisconnectReconciler


class GameServices:
    def __init__(self, registry: SessionRegistry, broadcaster: EventBroadcaster):
        self.registry = registry
        self.broadcaster = broadcaster
        self.cooperative = CooperativeSessionStateMachine(registry, broadcaster)
        self.quiz = QuizSessionStateMachine(registry, broadcaster)
        self.reconciler = DisconnectReconciler(registry, broadcaster)
        self.closed = False

    def close(self) -> None:
        self.closed = True
        self.registry.close()
