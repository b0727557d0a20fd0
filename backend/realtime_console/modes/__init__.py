from realtime_console.modes.controller import ModeController, build_session_update, instructions_for

__all__ = ["ModeController", "build_session_update", "instructions_for"]
