from realtime_console.conversation.models import ConversationEntry, EntryFlags
from realtime_console.conversation.transcript import Transcript

__all__ = ["ConversationEntry", "EntryFlags", "Transcript"]
