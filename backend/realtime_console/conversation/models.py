from __future__ import annotations

import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Optional

from core.state import Role


@dataclass
class EntryFlags:
    is_voice: bool = False
    is_partial: bool = False
    is_streaming: bool = False
    is_clipboard: bool = False
    is_advice_request: bool = False
    has_image: bool = False
    is_error: bool = False
    is_system_prompt: bool = False
    is_loading: bool = False


@dataclass
class ConversationEntry:
    role: Role
    content: str = ""
    flags: EntryFlags = field(default_factory=EntryFlags)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: float = field(default_factory=time.time)
    image_data: Optional[str] = None
    image_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": Role(self.role).value,
            "content": self.content,
            "created_at": self.created_at,
            "flags": asdict(self.flags),
            "image_name": self.image_name,
        }
