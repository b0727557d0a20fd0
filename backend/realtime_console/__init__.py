from realtime_console.console import RealtimeConsole
from realtime_console.settings import ConsoleSettings

__all__ = ["ConsoleSettings", "RealtimeConsole"]
