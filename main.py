from __future__ import annotations
import argparse
import logging
import os
import random
import sys
import time
from typing import Optional

from dotenv import load_dotenv
load_dotenv()

from display import format_feedback, format_question, format_result, option_letter
from errors import QuizError
from models import Phase, QuizFilters
from quiz import DEFAULT_AMOUNT, QuizEngine
from relay_client import DEFAULT_BASE_URL, RelayClient

# -----------------------------
# Play helpers
# -----------------------------
def _wait_for_feedback(engine: QuizEngine) -> None:
    while engine.state.phase is Phase.FEEDBACK:
        time.sleep(0.05)

def _read_choice(n_options: int) -> Optional[int]:
    letters = [option_letter(i) for i in range(n_options)]
    while True:
        raw = input(f"Your answer ({'/'.join(letters)}, q to quit): ").strip().upper()
        if raw == "Q":
            return None
        if raw in letters:
            return letters.index(raw)
        print("Please pick one of the listed letters.")

def _ask_yes(prompt: str) -> bool:
    return input(f"{prompt} [y/N]: ").strip().lower() in ("y", "yes")

def play(engine: QuizEngine, auto_demo: bool = False) -> None:
    engine.start()
    try:
        while True:
            st = engine.state
            if st.phase is Phase.ANSWERING:
                print("\n" + format_question(st))
                options = st.current_question.shuffled_answers
                if auto_demo:
                    idx = random.randrange(len(options))
                    print(f"Your answer: {option_letter(idx)}")
                else:
                    idx = _read_choice(len(options))
                    if idx is None:
                        print("Bye!")
                        return
                engine.select_answer(options[idx])
                print(format_feedback(engine.state))
                _wait_for_feedback(engine)
            elif st.phase is Phase.RESULT:
                print(format_result(st))
                if auto_demo or not _ask_yes("Play again?"):
                    return
                engine.restart()
            elif st.phase is Phase.ERROR:
                print(f"\n❌ Something went wrong: {st.error_message}")
                if auto_demo or not st.recoverable or not _ask_yes("Restart the quiz?"):
                    return
                engine.restart()
            else:
                time.sleep(0.05)
    finally:
        engine.close()

# -----------------------------
# Run server (programmatically)
# -----------------------------
def run_server(port: int, host: str = "127.0.0.1", reload: bool = True) -> None:
    try:
        import uvicorn
    except ImportError:
        print("❌ uvicorn not installed. Run: pip install -e .")
        sys.exit(1)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    uvicorn.run("api:app", host=host, port=port, reload=reload)

# -----------------------------
# Health checker
# -----------------------------
def health_check(base_url: str) -> None:
    print(f"🔎 Checking relay at {base_url} ...")
    client = RelayClient(base_url)
    try:
        print(f"✅ {client.ping().get('message', 'relay reachable')}")
        session = client.issue_token()
        print(f"✅ Session API ok (sessionId={session.session_id})")
    except QuizError as e:
        print(f"❌ Health check failed: {e}")
        sys.exit(1)

# -----------------------------
# CLI
# -----------------------------
def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Trivia quiz: relay server + terminal client in one file")

    sub = p.add_subparsers(dest="cmd", required=True)

    ps = sub.add_parser("serve", help="Start the relay API (uvicorn)")
    ps.add_argument("--port", type=int, default=int(os.getenv("PORT", "5000")), help="Port to bind")
    ps.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind")
    ps.add_argument("--no-reload", action="store_true", help="Disable auto-reload")

    pp = sub.add_parser("play", help="Play a quiz in the terminal (interactive or auto)")
    pp.add_argument("--base-url", type=str, default=DEFAULT_BASE_URL, help="Relay base URL")
    pp.add_argument("--amount", type=int, default=DEFAULT_AMOUNT, help="Questions per quiz")
    pp.add_argument("--category", type=int, default=None, help="Open Trivia DB category id")
    pp.add_argument("--difficulty", choices=["easy", "medium", "hard"], default=None)
    pp.add_argument("--type", choices=["multiple", "boolean"], default=None)
    pp.add_argument("--auto-demo", action="store_true", help="Answer randomly instead of prompting")

    ph = sub.add_parser("health", help="Check relay availability")
    ph.add_argument("--base-url", type=str, default=DEFAULT_BASE_URL, help="Relay base URL")

    return p.parse_args()

def main() -> None:
    args = parse_args()

    if args.cmd == "serve":
        run_server(port=args.port, host=args.host, reload=(not args.no_reload))
        return

    if args.cmd == "play":
        client = RelayClient(args.base_url)
        try:
            client.ping()
        except QuizError:
            print("⚠️  Could not reach the relay. Is it running?\n"
                  "    Start it in another terminal:\n"
                  "    python main.py serve")
            sys.exit(1)

        filters = QuizFilters(category=args.category, difficulty=args.difficulty, type=args.type)
        play(QuizEngine(client, amount=args.amount, filters=filters), auto_demo=args.auto_demo)
        return

    if args.cmd == "health":
        health_check(args.base_url)
        return

    print("Unknown command. Try: python main.py --help")
    sys.exit(2)

if __name__ == "__main__":
    main()
