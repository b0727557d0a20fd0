from __future__ import annotations

import logging
from typing import Optional

from core.state import Role
from realtime_console.conversation.models import ConversationEntry, EntryFlags

logger = logging.getLogger("realtime_console.transcript")


class Transcript:
    """
    Ordered conversation entries for ONE session.

    The assistant stream and the partial user transcription are tracked by
    explicit handles, set when the stream starts and cleared when it ends.
    At most one streaming assistant entry exists at any time.
    """

    def __init__(self):
        self.entries: list[ConversationEntry] = []
        self._by_id: dict[str, ConversationEntry] = {}
        self.streaming_entry: Optional[ConversationEntry] = None
        self.partial_entry: Optional[ConversationEntry] = None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(list(self.entries))

    # -------------------------
    # APPEND / LOOKUP
    # -------------------------

    def append(self, role: Role, content: str, image_data: Optional[str] = None, image_name: Optional[str] = None, **flags) -> ConversationEntry:
        entry = ConversationEntry(
            role=Role(role),
            content=str(content or ""),
            flags=EntryFlags(**flags),
            image_data=image_data,
            image_name=image_name,
        )
        self.entries.append(entry)
        self._by_id[entry.id] = entry
        return entry

    def get(self, entry_id: str) -> Optional[ConversationEntry]:
        return self._by_id.get(entry_id)

    def update(self, entry_id: str, content: Optional[str] = None, **flags) -> Optional[ConversationEntry]:
        entry = self._by_id.get(entry_id)
        if entry is None:
            return None
        if content is not None:
            entry.content = str(content)
        for name, value in flags.items():
            setattr(entry.flags, name, bool(value))
        return entry

    def remove(self, entry_id: str) -> bool:
        entry = self._by_id.pop(entry_id, None)
        if entry is None:
            return False
        self.entries = [item for item in self.entries if item.id != entry_id]
        if self.streaming_entry is entry:
            self.streaming_entry = None
        if self.partial_entry is entry:
            self.partial_entry = None
        return True

    def clear(self) -> None:
        self.entries = []
        self._by_id = {}
        self.streaming_entry = None
        self.partial_entry = None

    # -------------------------
    # ASSISTANT STREAM
    # -------------------------

    def append_stream_delta(self, delta: str, is_voice: bool = True) -> ConversationEntry:
        if self.streaming_entry is None:
            self.streaming_entry = self.append(Role.ASSISTANT, "", is_voice=is_voice, is_streaming=True)
        self.streaming_entry.content += str(delta or "")
        return self.streaming_entry

    def finish_stream(self) -> Optional[ConversationEntry]:
        entry = self.streaming_entry
        if entry is None:
            return None
        entry.flags.is_streaming = False
        self.streaming_entry = None
        return entry

    def complete_response(self, text: str) -> ConversationEntry:
        """
        Final message content from a completed response. Replaces the content
        of a still-open stream, otherwise appends a fresh assistant entry.
        """
        if self.streaming_entry is not None:
            entry = self.streaming_entry
            entry.content = str(text or "")
            self.finish_stream()
            return entry
        return self.append(Role.ASSISTANT, text, is_voice=True)

    # -------------------------
    # PARTIAL USER TRANSCRIPTION
    # -------------------------

    def update_partial(self, text: str) -> ConversationEntry:
        if self.partial_entry is None:
            self.partial_entry = self.append(Role.USER, text, is_voice=True, is_partial=True)
        else:
            self.partial_entry.content = str(text or "")
        return self.partial_entry

    def finalize_voice(self, text: str) -> ConversationEntry:
        """
        Commit a completed voice transcription. An open partial entry is
        frozen in place with the final text instead of duplicated.
        """
        entry = self.partial_entry
        if entry is None:
            return self.append(Role.USER, text, is_voice=True)
        entry.content = str(text or "")
        entry.flags.is_partial = False
        self.partial_entry = None
        return entry

    def discard_partial(self) -> None:
        if self.partial_entry is not None:
            self.remove(self.partial_entry.id)

    # -------------------------
    # VIEWS
    # -------------------------

    def voice_user_entries(self, limit: int = 10) -> list[ConversationEntry]:
        items = [
            entry for entry in self.entries
            if entry.role == Role.USER and entry.flags.is_voice and not entry.flags.is_partial
        ]
        return items[-limit:] if limit else items

    def text_history(self) -> list[dict]:
        """Prior conversation without image entries, for the image-analysis request."""
        return [
            {"type": entry.role.value, "content": entry.content}
            for entry in self.entries
            if not entry.flags.has_image and not entry.flags.is_system_prompt and not entry.flags.is_loading
        ]

    def snapshot(self) -> list[dict]:
        return [entry.to_dict() for entry in self.entries]
