from core.state import Mode
from realtime_console.modes.controller import ModeController, build_session_update, instructions_for
from realtime_console.prompts import ADVISOR_INSTRUCTIONS, BASE_INSTRUCTIONS, INTERVIEW_INSTRUCTIONS


def test_modes_are_mutually_exclusive():
    modes = ModeController()
    assert modes.is_normal

    assert modes.toggle_interview() == Mode.INTERVIEW
    assert modes.toggle_advisor() == Mode.ADVISOR
    assert not modes.is_interview

    assert modes.toggle_advisor() == Mode.NORMAL
    assert modes.toggle_interview() == Mode.INTERVIEW
    assert modes.toggle_interview() == Mode.NORMAL


def test_listeners_only_fire_on_real_change():
    modes = ModeController()
    seen = []
    modes.subscribe(lambda previous, current: seen.append((previous, current)))

    assert modes.set_mode(Mode.NORMAL) is False
    assert modes.set_mode(Mode.ADVISOR) is True
    assert seen == [(Mode.NORMAL, Mode.ADVISOR)]


def test_instructions_per_mode():
    assert instructions_for(Mode.NORMAL) == BASE_INSTRUCTIONS
    assert instructions_for(Mode.INTERVIEW).endswith(INTERVIEW_INSTRUCTIONS)
    assert instructions_for(Mode.ADVISOR) == f"{BASE_INSTRUCTIONS} \n{ADVISOR_INSTRUCTIONS}"


def test_session_update_payload():
    event = build_session_update(Mode.INTERVIEW, transcription_model="whisper-1")

    assert event["type"] == "session.update"
    session = event["session"]
    assert session["modalities"] == ["text", "audio"]
    assert session["input_audio_transcription"] == {"model": "whisper-1"}
    assert session["turn_detection"] == {
        "type": "server_vad",
        "threshold": 0.5,
        "prefix_padding_ms": 300,
        "silence_duration_ms": 500,
    }
    assert INTERVIEW_INSTRUCTIONS in session["instructions"]
