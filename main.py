"""Entrypoint: inspect prompts, render them, or follow an event stream."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from wizard_prompts.config import load_settings
from wizard_prompts.llm.providers.openai_provider import OpenAIProvider
from wizard_prompts.prompting.types import PromptError
from wizard_prompts.runner import build_prompt_manager, consume_stream, start_prompt_manager
from wizard_prompts.streaming.producer import stream_prompt_events


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Prompt templates and streaming events for the recipe wizard")
    parser.add_argument("--settings", default="config/settings.yaml", help="Path to settings.yaml")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("list", help="List available prompt configurations")
    subparsers.add_parser("preload", help="Load and validate every prompt configuration")

    render = subparsers.add_parser("render", help="Render a prompt with variables")
    render.add_argument("name")
    render.add_argument("--vars", help="JSON file with template variables")

    generate = subparsers.add_parser("generate", help="Render a prompt and stream the model output as SSE")
    generate.add_argument("name")
    generate.add_argument("--vars", help="JSON file with template variables")

    stream = subparsers.add_parser("stream", help="Follow an event stream until completion")
    stream.add_argument("url")
    stream.add_argument("--max-retries", type=int, help="Override streaming.max_retries")
    return parser


def _load_vars(path: str | None) -> dict:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def main() -> None:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args()
    command = args.command or "list"

    config = load_settings(args.settings)
    log_cfg = config["logging"]
    logging.basicConfig(level=log_cfg["level"], format=log_cfg["format"])

    manager = build_prompt_manager(config)

    try:
        if command == "list":
            for name in manager.available_prompts():
                print(name)
            return

        if command == "preload":
            names = manager.preload_all()
            print(f"Loaded {len(names)} prompt configuration(s)")
            return

        if command == "render":
            manager = start_prompt_manager(config)
            processed = manager.get_processed_prompt(args.name, _load_vars(args.vars))
            print(f"# {processed.config.name} v{processed.config.version} ({processed.config.model})")
            print(processed.prompt)
            return

        if command == "generate":
            manager = start_prompt_manager(config)
            processed = manager.get_processed_prompt(args.name, _load_vars(args.vars))
            timeout = int(config["llm"]["timeout_seconds"])
            for frame in stream_prompt_events(OpenAIProvider(), processed, timeout_seconds=timeout):
                sys.stdout.write(frame)
                sys.stdout.flush()
            return
    except PromptError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.max_retries is not None:
        config["streaming"]["max_retries"] = args.max_retries

    def _print_event(event) -> None:
        print(json.dumps(event.to_dict(), ensure_ascii=False))

    result = consume_stream(args.url, config, on_event=_print_event)
    if not result["ok"]:
        print(f"error: {result['error']}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
