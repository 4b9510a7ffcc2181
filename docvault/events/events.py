"""
Typed side-effect events.

Events are plain pydantic models. They are serialized into the outbox as
``{"event_type": <class name>, "payload": model_dump()}`` and rebuilt from
the same pair by the dispatcher.
"""

from typing import Any

from pydantic import BaseModel, Field


class DomainEvent(BaseModel):
    """Base class of every outbox event."""

    @classmethod
    def event_type(cls) -> str:
        return cls.__name__


class PasswordLostEvent(DomainEvent):
    """A password recovery key was issued for a user."""

    user_id: str = Field(description="Id of the user who lost their password")
    username: str
    email: str
    recovery_key: str = Field(description="One-time key to put in the reset link")


class DocumentDeletedEvent(DomainEvent):
    """A document was deleted; its index entries must be retracted."""

    document_id: str
    user_id: str = Field(description="Id of the user who performed the deletion")


class FileDeletedEvent(DomainEvent):
    """A file was deleted; its stored content and quota usage must be released."""

    file_id: str
    user_id: str = Field(description="Id of the user who performed the deletion")
    size: int = Field(ge=0, description="Size of the file in bytes")


EVENT_TYPES: dict[str, type[DomainEvent]] = {
    event_class.event_type(): event_class
    for event_class in (PasswordLostEvent, DocumentDeletedEvent, FileDeletedEvent)
}


def load_event(event_type: str, payload: dict[str, Any]) -> DomainEvent:
    """
    Rebuild an event from its outbox representation.

    Raises:
        KeyError: If the event type is unknown
        pydantic.ValidationError: If the payload does not match the event
    """
    return EVENT_TYPES[event_type].model_validate(payload)
