"""
Side-effect events and their transactional outbox.
"""

from docvault.events.dispatcher import OutboxDispatcher
from docvault.events.events import (
    DocumentDeletedEvent,
    DomainEvent,
    FileDeletedEvent,
    PasswordLostEvent,
)
from docvault.events.handlers import build_default_handlers
from docvault.events.outbox import EventOutbox

__all__ = [
    "DomainEvent",
    "PasswordLostEvent",
    "DocumentDeletedEvent",
    "FileDeletedEvent",
    "EventOutbox",
    "OutboxDispatcher",
    "build_default_handlers",
]
