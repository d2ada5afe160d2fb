"""Conversation state container.

The store is the single owner of all conversations and messages. Callers read
through the query properties, which hand out copies, and change state only
through the mutation methods. Every mutation of persisted state is followed by
a save; the transient ``is_streaming`` and ``error`` flags are never written.
Streaming updates are mutations too, so a file-backed store rewrites the whole
collection synchronously once per received frame.
"""

from typing import Callable, List, Optional

import structlog
from pydantic import ValidationError

from ..domain.models import Conversation, ConversationCollection, Message, Role, utcnow
from ..repositories.base import StateStorage
from ..repositories.memory import MemoryStorage
from ..utils.text import generate_conversation_title

logger = structlog.get_logger()

STORAGE_KEY = "k-exaone-chat-storage"

Listener = Callable[["ConversationStore"], None]


class ConversationStore:
    """Owns the conversation collection and its persistence."""

    def __init__(self, storage: Optional[StateStorage] = None) -> None:
        self._storage = storage if storage is not None else MemoryStorage()
        self._state = self._rehydrate()
        self._listeners: List[Listener] = []

    def _rehydrate(self) -> ConversationCollection:
        data = self._storage.get_json(STORAGE_KEY)
        if data is None:
            return ConversationCollection()
        try:
            state = ConversationCollection.model_validate(data)
        except ValidationError as e:
            logger.warning("conversation_state_corrupt", error=str(e))
            return ConversationCollection()
        logger.info("conversation_state_restored", conversations=len(state.conversations))
        return state

    def _save(self) -> None:
        self._storage.set_json(
            STORAGE_KEY,
            self._state.model_dump(mode="json", by_alias=True),
        )

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _commit(self) -> None:
        self._save()
        self._notify()

    def _find(self, conversation_id: str) -> Optional[Conversation]:
        for conversation in self._state.conversations:
            if conversation.id == conversation_id:
                return conversation
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener after every mutation; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Queries

    @property
    def conversations(self) -> List[Conversation]:
        return [c.model_copy(deep=True) for c in self._state.conversations]

    @property
    def active_conversation_id(self) -> Optional[str]:
        return self._state.active_conversation_id

    @property
    def active_conversation(self) -> Optional[Conversation]:
        if self._state.active_conversation_id is None:
            return None
        return self.get_conversation(self._state.active_conversation_id)

    @property
    def is_streaming(self) -> bool:
        return self._state.is_streaming

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        conversation = self._find(conversation_id)
        return conversation.model_copy(deep=True) if conversation else None

    # Mutations

    def create_conversation(self) -> str:
        """Create an empty conversation at the front of the list and activate it."""
        conversation = Conversation()
        self._state.conversations.insert(0, conversation)
        self._state.active_conversation_id = conversation.id
        logger.info("conversation_created", conversation_id=conversation.id)
        self._commit()
        return conversation.id

    def delete_conversation(self, conversation_id: str) -> None:
        """Remove a conversation, moving the active pointer if needed."""
        self._state.conversations = [
            c for c in self._state.conversations if c.id != conversation_id
        ]
        if self._state.active_conversation_id == conversation_id:
            remaining = self._state.conversations
            self._state.active_conversation_id = remaining[0].id if remaining else None
        logger.info("conversation_deleted", conversation_id=conversation_id)
        self._commit()

    def set_active_conversation(self, conversation_id: str) -> None:
        self._state.active_conversation_id = conversation_id
        self._commit()

    def add_message(
        self,
        conversation_id: str,
        role: Role,
        content: str = "",
        reasoning_content: Optional[str] = None,
        is_streaming: bool = False,
    ) -> str:
        """Append a message and return its id.

        The first user message of a conversation also sets its title.
        """
        conversation = self._find(conversation_id)
        if conversation is None:
            logger.error("conversation_not_found_for_message", conversation_id=conversation_id)
            raise ValueError(f"Conversation {conversation_id} not found")

        message = Message(
            role=role,
            content=content,
            reasoning_content=reasoning_content,
            is_streaming=is_streaming,
        )
        if role == "user" and not any(m.role == "user" for m in conversation.messages):
            conversation.title = generate_conversation_title(content)

        conversation.messages.append(message)
        conversation.updated_at = utcnow()
        logger.debug(
            "message_added",
            conversation_id=conversation_id,
            message_id=message.id,
            message_role=role,
        )
        self._commit()
        return message.id

    def update_message(self, conversation_id: str, message_id: str, **updates) -> None:
        """Merge fields into an existing message; unknown ids are ignored."""
        conversation = self._find(conversation_id)
        if conversation is None:
            return
        for message in conversation.messages:
            if message.id == message_id:
                for name, value in updates.items():
                    setattr(message, name, value)
                conversation.updated_at = utcnow()
                self._commit()
                return

    def set_streaming(self, is_streaming: bool) -> None:
        self._state.is_streaming = is_streaming
        self._notify()

    def set_error(self, error: Optional[str]) -> None:
        self._state.error = error
        self._notify()

    def clear_error(self) -> None:
        self.set_error(None)
