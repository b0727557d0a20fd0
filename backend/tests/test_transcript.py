from core.state import Role
from realtime_console.conversation.transcript import Transcript


def test_stream_deltas_accumulate_into_one_entry():
    transcript = Transcript()
    transcript.append_stream_delta("Hel")
    entry = transcript.append_stream_delta("lo")

    assert len(transcript) == 1
    assert entry.content == "Hello"
    assert entry.flags.is_streaming is True

    transcript.finish_stream()
    assert entry.flags.is_streaming is False
    assert transcript.streaming_entry is None

    transcript.append_stream_delta("Next")
    assert len(transcript) == 2


def test_complete_response_replaces_open_stream_or_appends():
    transcript = Transcript()
    transcript.append_stream_delta("Hel")
    entry = transcript.complete_response("Hello there")
    assert len(transcript) == 1
    assert entry.content == "Hello there"
    assert entry.flags.is_streaming is False

    transcript.complete_response("Second")
    assert [item.content for item in transcript] == ["Hello there", "Second"]


def test_partial_transcription_is_finalized_in_place():
    transcript = Transcript()
    partial = transcript.update_partial("what is")
    transcript.update_partial("what is your")
    final = transcript.finalize_voice("What is your name?")

    assert final.id == partial.id
    assert len(transcript) == 1
    assert final.flags.is_partial is False
    assert final.flags.is_voice is True
    assert transcript.partial_entry is None


def test_discard_partial_removes_entry():
    transcript = Transcript()
    transcript.update_partial("uh")
    transcript.discard_partial()
    assert len(transcript) == 0
    assert transcript.partial_entry is None


def test_update_and_remove_by_id():
    transcript = Transcript()
    entry = transcript.append(Role.ASSISTANT, "Thinking...", is_loading=True)

    transcript.update(entry.id, "Done", is_loading=False, is_error=True)
    assert entry.content == "Done"
    assert entry.flags.is_error is True
    assert transcript.update("missing", "x") is None

    assert transcript.remove(entry.id) is True
    assert transcript.get(entry.id) is None


def test_history_views_skip_images_and_system_prompts():
    transcript = Transcript()
    transcript.append(Role.USER, "typed question")
    transcript.append(Role.USER, "spoken one", is_voice=True)
    transcript.append(Role.USER, "look [Image uploaded: a.png]", has_image=True)
    transcript.append(Role.SYSTEM, "analyze images", is_system_prompt=True)
    transcript.append(Role.ASSISTANT, "answer")
    transcript.update_partial("still talking")

    assert transcript.text_history() == [
        {"type": "user", "content": "typed question"},
        {"type": "user", "content": "spoken one"},
        {"type": "assistant", "content": "answer"},
        {"type": "user", "content": "still talking"},
    ]
    assert [entry.content for entry in transcript.voice_user_entries()] == ["spoken one"]
    assert transcript.snapshot()[0]["role"] == "user"
