"""
Command-line interface for the document-intelligence pipeline.

Usage:
    python -m docintel process PATH [--format json|text] [--offline]
    python -m docintel models
"""

import argparse
import asyncio
import json
import os
import sys

from pydantic import ValidationError

from docintel.config import get_settings
from docintel.exceptions import InputError
from docintel.models.candidates import Task
from docintel.models.processing import ProcessingResult
from docintel.services.document_processor import build_document_processor
from docintel.utils.logging import configure_logging
from docintel.utils.normalizers import clean_text

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_INPUT_ERROR = 2


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="docintel",
        description="Document intelligence CLI - summarize a document and generate MCQs"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Process command
    process_parser = subparsers.add_parser(
        "process",
        help="Summarize a text file and generate five MCQs"
    )
    process_parser.add_argument(
        "path",
        type=str,
        help="Path to a UTF-8 text file with the extracted document text"
    )
    process_parser.add_argument(
        "--format",
        "-f",
        choices=["json", "text"],
        default="json",
        help="Output format (default: json)"
    )
    process_parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip all model calls and use the deterministic fallbacks only"
    )

    # Models command
    subparsers.add_parser(
        "models",
        help="Print the configured model candidates per task"
    )

    return parser


def render_text(result: ProcessingResult) -> str:
    """Render a result for reading in a terminal."""
    lines = ["SUMMARY", "", result.summary, "", "QUESTIONS"]
    for number, mcq in enumerate(result.mcqs, start=1):
        lines.append("")
        lines.append(f"{number}. {mcq.question}")
        for letter, option in zip("ABCD", mcq.options):
            marker = "*" if option == mcq.answer else " "
            lines.append(f"  {marker} {letter}) {option}")
    return "\n".join(lines)


async def process_command(args: argparse.Namespace) -> int:
    """
    Execute the process command.

    Args:
        args: Parsed command-line arguments

    Returns:
        int: Exit code (0 for success, 1 for configuration errors, 2 for bad input)
    """
    # Load settings
    try:
        settings = get_settings()
    except (ValidationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        print("\nMake sure you have a .env file with:", file=sys.stderr)
        print("  HF_API_KEY=your_api_key", file=sys.stderr)
        print("  (or INFERENCE_PROVIDER=gemini and GEMINI_API_KEY=your_api_key)", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    # stdout carries the result
    configure_logging(settings.log_level, stream=sys.stderr)

    if not os.path.isfile(args.path):
        print(f"Error: File not found: {args.path}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    try:
        with open(args.path, encoding="utf-8") as f:
            raw_text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Could not read {args.path}: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    try:
        text = clean_text(raw_text, min_chars=settings.min_input_chars)
    except InputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    try:
        processor = build_document_processor(settings, offline=args.offline)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        result = await processor.process_document(text)
    except InputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    finally:
        await processor.aclose()

    if args.format == "text":
        print(render_text(result))
    else:
        print(json.dumps(result.model_dump(), indent=2))
    return EXIT_OK


def models_command(args: argparse.Namespace) -> int:
    """Print the candidate list for each task, in cascade order."""
    try:
        settings = get_settings()
    except (ValidationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    print(f"Provider: {settings.inference_provider}")
    for task in Task:
        print(f"\n{task.value}:")
        for position, candidate in enumerate(settings.candidates(task), start=1):
            print(f"  {position}. {candidate.name} ({candidate.prompt_style.value})")
    return EXIT_OK


def main() -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    # Route to command handler
    if args.command == "process":
        return asyncio.run(process_command(args))
    elif args.command == "models":
        return models_command(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
