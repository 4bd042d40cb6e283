"""Interactive temperature sweep over the OpenAI Responses API.

Each prompt is sent at temperature 0, 0.7 and 1.2, then the same model is
asked to compare its three answers.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Mapping, Optional

from dotenv import load_dotenv

from responses_client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS, ResponsesClient
from sweep import TemperatureResult, TurnOutcome, run_turn

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4.1-mini"
DEFAULT_LOG_LEVEL = "WARNING"
EXIT_COMMAND = "exit"
INPUT_PROMPT = "Запрос > "


@dataclass
class SessionConfig:
    api_key: str
    model: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    parallel: bool = False
    log_dir: Optional[Path] = None


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Send each prompt at temperature 0, 0.7 and 1.2 and compare the answers."
    )
    parser.add_argument("--model", help="Model id (default: $OPENAI_MODEL or %s)." % DEFAULT_MODEL)
    parser.add_argument("--base-url", help="API base URL (default: $OPENAI_BASE_URL or %s)." % DEFAULT_BASE_URL)
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds.")
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Issue the three sweep requests concurrently.",
    )
    parser.add_argument("--log-dir", type=Path, help="Write a JSON transcript of every turn here.")
    parser.add_argument("--log-level", help="Diagnostic log level (default: $LOG_LEVEL or WARNING).")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace, environ: Mapping[str, str] = os.environ) -> SessionConfig:
    api_key = environ.get("OPENAI_API_KEY")
    if not api_key:
        raise SystemExit("Set OPENAI_API_KEY environment variable")
    timeout = args.timeout
    if timeout is None:
        raw_timeout = environ.get("OPENAI_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT_SECONDS
        except ValueError:
            raise SystemExit(f"OPENAI_TIMEOUT must be a number of seconds, got {raw_timeout!r}")
    return SessionConfig(
        api_key=api_key,
        model=args.model or environ.get("OPENAI_MODEL") or DEFAULT_MODEL,
        base_url=args.base_url or environ.get("OPENAI_BASE_URL") or DEFAULT_BASE_URL,
        timeout=timeout,
        parallel=bool(args.parallel),
        log_dir=args.log_dir,
    )


def configure_logging(level: Optional[str]) -> None:
    name = (level or DEFAULT_LOG_LEVEL).strip().upper()
    if not isinstance(logging.getLevelName(name), int):
        raise SystemExit(f"Unknown log level {level!r}; use DEBUG, INFO, WARNING, ERROR or CRITICAL")
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(name)


def print_banner(model: str) -> None:
    print("День 4: температура в OpenAI Responses API")
    print(f"Модель: {model}")
    print("Введи один и тот же запрос, а приложение выполнит его с temperature=0, 0.7 и 1.2.")
    print(f"Для выхода введи '{EXIT_COMMAND}'.")
    print()


def print_prompt_echo(prompt: str) -> None:
    print()
    print("=== Исходный запрос ===")
    print(prompt)
    print(flush=True)


def print_unsupported_temperature(model: str) -> None:
    print(f"Ошибка: модель '{model}' не поддерживает temperature.")
    print("Установи модель, которая поддерживает temperature, например:")
    print(f'export OPENAI_MODEL="{DEFAULT_MODEL}"')
    print(flush=True)


def print_temperature_responses(results: List[TemperatureResult]) -> None:
    for index, result in enumerate(results, start=1):
        print(f"=== Ответ {index}: temperature={result.temperature} ===")
        print(result.response)
        print(flush=True)


def ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def write_turn_log(log_dir: Path, outcome: TurnOutcome, model: str) -> Path:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    log_path = log_dir / f"turn_{timestamp}.json"
    ensure_parent(log_path)
    payload = {
        "metadata": {"model": model, "finished_at": datetime.now(timezone.utc).isoformat()},
        "prompt": outcome.prompt,
        "results": [asdict(r) for r in outcome.results],
        "unsupported_temperature": outcome.unsupported_temperature,
        "analysis": outcome.analysis,
    }
    log_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return log_path


def handle_prompt(config: SessionConfig, client: ResponsesClient, prompt: str) -> TurnOutcome:
    print_prompt_echo(prompt)
    outcome = run_turn(client, prompt, parallel=config.parallel, on_results=print_temperature_responses)
    if outcome.unsupported_temperature:
        print_unsupported_temperature(config.model)
    else:
        print(outcome.analysis)
        print(flush=True)
    if config.log_dir is not None:
        log_path = write_turn_log(config.log_dir, outcome, config.model)
        logger.info("Saved turn transcript to %s", log_path)
    return outcome


def run_session(
    config: SessionConfig,
    client: ResponsesClient,
    read_line: Callable[[str], str] = input,
) -> int:
    """Read prompts until ``exit`` or end of input; returns the number of turns run.

    The client is closed on every way out of the loop.
    """
    turns = 0
    try:
        print_banner(config.model)
        while True:
            try:
                prompt = read_line(INPUT_PROMPT).strip()
            except EOFError:
                print()
                break
            if prompt.lower() == EXIT_COMMAND:
                break
            if not prompt:
                continue
            handle_prompt(config, client, prompt)
            turns += 1
    except KeyboardInterrupt:
        print()
    finally:
        client.close()
    return turns


def main() -> None:
    load_dotenv()
    args = parse_args()
    configure_logging(args.log_level or os.environ.get("LOG_LEVEL"))
    config = load_config(args)
    client = ResponsesClient(
        api_key=config.api_key,
        model=config.model,
        base_url=config.base_url,
        timeout=config.timeout,
    )
    turns = run_session(config, client)
    logger.info("Session finished after %d turns", turns)


if __name__ == "__main__":
    main()
