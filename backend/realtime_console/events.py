from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


SHORTCUT_ACTIONS = ("session_toggle", "pause_toggle", "clipboard_send")


@dataclass(frozen=True)
class ClipboardText:
    text: str


@dataclass(frozen=True)
class ScreenshotCaptured:
    data: str  # base64 payload without the data-URI prefix
    media_type: str = "image/png"
    file_name: Optional[str] = None
    text: Optional[str] = None


@dataclass(frozen=True)
class ShortcutPressed:
    action: str
    text: Optional[str] = None  # clipboard contents for clipboard_send

    def __post_init__(self):
        action = str(self.action or "").strip().lower()
        if action not in SHORTCUT_ACTIONS:
            raise ValueError(f"unknown shortcut action: {self.action!r}")
        object.__setattr__(self, "action", action)


ExternalEvent = Union[ClipboardText, ScreenshotCaptured, ShortcutPressed]
