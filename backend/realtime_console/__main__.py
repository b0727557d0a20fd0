import argparse
import asyncio
import logging

from core.config import CONSOLE_BASE_URL, REALTIME_MODEL
from core.logger import configure_logging
from core.state import Mode
from realtime_console.channel.websocket import WebSocketNegotiator
from realtime_console.console import RealtimeConsole
from realtime_console.errors import SessionSetupError
from realtime_console.session.collaborators import HttpTokenProvider, NullAudioCapture

COMMANDS = {
    "/interview": "toggle interview mode",
    "/advisor": "toggle advisor mode",
    "/advice <request>": "ask for advice on the conversation so far",
    "/pause": "pause or resume voice listening",
    "/cost": "print the session cost summary",
    "/unblock": "allow automatic responses again after a limit was hit",
    "/quit": "stop the session and exit",
}


def _print_new_entries(console: RealtimeConsole, seen: int) -> int:
    entries = list(console.transcript)
    for entry in entries[seen:]:
        if entry.flags.is_system_prompt or entry.flags.is_streaming or entry.flags.is_partial:
            continue
        print(f"[{entry.role.value}] {entry.content}")
    return len(entries)


async def _read_line(prompt: str) -> str:
    return await asyncio.get_running_loop().run_in_executor(None, input, prompt)


async def run(base_url: str, model: str, mode: Mode) -> None:
    console = RealtimeConsole(
        token_provider=HttpTokenProvider(base_url),
        negotiator=WebSocketNegotiator(model=model),
        audio_capture=NullAudioCapture(),
        notify=lambda message: print(f"! {message}"),
    )
    console.set_mode(mode)
    try:
        await console.start()
    except SessionSetupError:
        return
    print("Session active. Commands: " + ", ".join(COMMANDS))

    seen = 0
    try:
        while True:
            try:
                line = (await _read_line("> ")).strip()
            except EOFError:
                break

            if line == "/quit":
                break
            if line == "/interview":
                print(f"mode: {console.toggle_interview().value}")
            elif line == "/advisor":
                print(f"mode: {console.toggle_advisor().value}")
            elif line.startswith("/advice "):
                await console.send_advice_message(line[len("/advice "):])
            elif line == "/pause":
                print("paused" if console.toggle_pause() else "listening")
            elif line == "/cost":
                summary = console.cost_summary()
                print(f"total: {summary['formatted_cost']} | responses: {summary['response_count']} | blocked: {summary['blocked']}")
            elif line == "/unblock":
                console.unblock_responses()
            elif line:
                await console.send_text_message(line)

            # give streamed events a moment to land before printing
            await asyncio.sleep(0.5)
            seen = _print_new_entries(console, seen)
    finally:
        await console.stop()


def main() -> None:
    parser = argparse.ArgumentParser(prog="realtime_console", description="Text console for a realtime assistant session")
    parser.add_argument("--base-url", default=CONSOLE_BASE_URL, help="relay base url serving /token")
    parser.add_argument("--model", default=REALTIME_MODEL)
    parser.add_argument("--mode", choices=[mode.value for mode in Mode], default=Mode.NORMAL.value)
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    configure_logging(logging.DEBUG if args.debug else logging.INFO)
    asyncio.run(run(args.base_url, args.model, Mode(args.mode)))


if __name__ == "__main__":
    main()
