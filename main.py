#!/usr/bin/env python3
"""
Repository Converter -- CLI Runner
==================================
Clones a Git repository and has an AI service rewrite it, one file (or one
Angular component) at a time.

Usage:
    python main.py convert <repository-url> <target-language> [OPTIONS]
    python main.py convert-framework <repository-url> [OPTIONS]

Examples:
    # Translate every recognised source file to JavaScript
    python main.py convert https://github.com/user/py-project.git JavaScript

    # Angular -> React (components, support files, package.json)
    python main.py convert-framework https://github.com/user/angular-app.git

    # Use a local Ollama model instead of Gemini
    python main.py convert https://github.com/user/repo.git Go --llm-provider ollama --llm-model llama3.2

    # Shallow clone, shorter cooldown, give up after 5 rate-limit waits
    python main.py convert https://github.com/user/repo.git Rust --clone-depth 1 --cooldown 30 --max-retries 5

    # Settings from a YAML file (CLI flags still win)
    python main.py convert-framework https://github.com/user/angular-app.git --config settings.yaml

    # Dry-run (AI calls are made, nothing is written to the output tree)
    python main.py convert https://github.com/user/repo.git Java --dry-run

The installed console scripts ``convert`` and ``convert-framework`` take the
same arguments without the sub-command name.
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

from repo_converter.llm import PROVIDERS, LLMRouter
from repo_converter.pipeline import (
    NotAngularProjectError,
    PipelineError,
    PipelineResult,
    run_framework_conversion,
    run_repo_conversion,
)
from repo_converter.settings import (
    RunSettings,
    SettingsValidationError,
    apply_cli_overrides,
    fill_llm_args,
    load_settings,
)

COMMAND_CONVERT   = "convert"
COMMAND_FRAMEWORK = "convert-framework"

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    fmt   = "%(asctime)s [%(levelname)-8s] %(name)s -- %(message)s"
    logging.basicConfig(level=level, format=fmt, datefmt="%Y-%m-%d %H:%M:%S")
    # Silence noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)

logger = logging.getLogger("repo-converter")

# ---------------------------------------------------------------------------
# Settings & LLM Router construction
# ---------------------------------------------------------------------------

def build_settings(args: argparse.Namespace) -> RunSettings:
    """Defaults, then the optional --config file, then CLI flags."""
    settings = load_settings(args.config)
    fill_llm_args(settings, args)
    return apply_cli_overrides(settings, args)


def build_llm_router(args: argparse.Namespace) -> LLMRouter:
    """
    Build an LLMRouter from CLI arguments.

    Delegates to LLMRouter.from_cli_args(), which starts from env-var
    auto-detection and lets explicit --llm-* flags win.
    """
    router = LLMRouter.from_cli_args(args)
    if not router.is_available:
        logger.warning(
            "LLM provider '%s' is not available (missing API key or unreachable server). "
            "The first conversion request will fail. "
            "Set GEMINI_API_KEY / ANTHROPIC_API_KEY / OPENAI_API_KEY / OLLAMA_MODEL "
            "or use --llm-provider.",
            router.describe(),
        )
    return router

# ---------------------------------------------------------------------------
# Pipeline dispatch
# ---------------------------------------------------------------------------

def run_command(args: argparse.Namespace) -> int:
    try:
        settings = build_settings(args)
    except (FileNotFoundError, SettingsValidationError) as exc:
        logger.error("Settings could not be loaded: %s", exc)
        return 1

    try:
        llm_router = build_llm_router(args)
    except ValueError as exc:
        logger.error("LLM provider could not be configured: %s", exc)
        return 1

    if args.command == COMMAND_FRAMEWORK:
        print_banner("Angular -> React Conversion")
        target = "React"
    else:
        print_banner(f"Repository Conversion -> {args.target_language}")
        target = args.target_language
    print(f"  Repository: {args.repo_url}")
    print(f"  Target:     {target}")
    print(f"  Output:     {settings.output_dir}")
    print(f"  LLM:        {llm_router.describe()}")
    print(f"  Dry-run:    {settings.dry_run}")
    print()

    try:
        if args.command == COMMAND_FRAMEWORK:
            result = run_framework_conversion(args.repo_url, settings, llm_router)
        else:
            result = run_repo_conversion(args.repo_url, args.target_language, settings, llm_router)
    except NotAngularProjectError:
        print("This doesn't appear to be an Angular project.")
        return 1
    except PipelineError as exc:
        logger.error("Conversion failed (%s): %s", exc.state.value, exc)
        if exc.__cause__ is not None:
            logger.debug("Underlying error", exc_info=exc.__cause__)
        return 1
    except Exception as exc:
        logger.exception("Unexpected error during conversion: %s", exc)
        return 1

    print_summary(result)
    return 0


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------

def print_banner(title: str) -> None:
    width = 60
    print(f"\n{'='*width}")
    print(f"  {title}")
    print(f"{'='*width}")


def print_summary(result: PipelineResult) -> None:
    print_banner("Conversion Complete")
    print(f"  Files converted:   {result.converted}")
    if result.collisions:
        print(f"  Skipped (output path taken): {len(result.collisions)}")
    if result.rate_limit_waits:
        print(f"  Rate-limit waits:  {result.rate_limit_waits}")
    if result.manifest_path:
        print(f"  Manifest:          {result.manifest_path}")
    print(f"  Output directory:  {result.output_root}")
    if result.log_path:
        print(f"  Conversion log:    {result.log_path}")
    print()


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit with status 1."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _add_run_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="YAML settings file (validated against schemas/settings-schema.json).",
    )
    parser.add_argument(
        "--temp-dir",
        type=str,
        default=None,
        help="Scratch directory for the clone; deleted at the end of the run (default: temp-repo).",
    )
    parser.add_argument(
        "--output-dir", "-o",
        type=str,
        default=None,
        help="Output tree; deleted and recreated at the start of every run (default: converted-code).",
    )
    parser.add_argument(
        "--logs-dir",
        type=str,
        default=None,
        help="Where the per-run conversion log is written (default: logs).",
    )
    parser.add_argument(
        "--no-log",
        action="store_true",
        help="Do not write the JSON / Markdown conversion log.",
    )
    parser.add_argument(
        "--cooldown",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Wait after a rate-limit response before retrying (default: 60).",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=None,
        metavar="N",
        help="Give up after N rate-limit waits per unit; -1 = never give up (default: unbounded).",
    )
    parser.add_argument(
        "--pacing",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Pause after each converted unit (default: 2).",
    )
    parser.add_argument(
        "--clone-depth",
        type=int,
        default=None,
        metavar="N",
        help="Shallow-clone with --depth N (default: full history).",
    )
    parser.add_argument(
        "--clone-timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Abort git clone after this many seconds (default: no timeout).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Call the AI service but do NOT write converted files to disk.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable DEBUG-level logging.",
    )

    # ---- LLM provider selection ----
    llm_group = parser.add_argument_group(
        "LLM provider",
        "Configure which AI service converts the code.\n"
        "If none of these flags are given, the tool auto-detects from environment\n"
        "variables (GEMINI_API_KEY, ANTHROPIC_API_KEY, OPENAI_API_KEY, OLLAMA_MODEL, ...).",
    )
    llm_group.add_argument(
        "--llm-provider",
        type=str,
        default=None,
        choices=list(PROVIDERS),
        metavar="PROVIDER",
        help=(
            f"LLM provider to use. Choices: {', '.join(PROVIDERS)}. "
            "Auto-detected from env vars when omitted (default: gemini)."
        ),
    )
    llm_group.add_argument(
        "--llm-model",
        type=str,
        default=None,
        metavar="MODEL",
        help=(
            "Model name / ID to use. Examples: "
            "gemini-2.5-flash (Gemini), "
            "claude-sonnet-4-5 (Anthropic), "
            "gpt-4o (OpenAI), "
            "llama3.2 (Ollama)."
        ),
    )
    llm_group.add_argument(
        "--llm-base-url",
        type=str,
        default=None,
        metavar="URL",
        help=(
            "Base URL for OpenAI-compatible servers. "
            "Examples: http://localhost:1234/v1 (LM Studio), "
            "http://localhost:8000/v1 (vLLM)."
        ),
    )
    llm_group.add_argument(
        "--ollama-host",
        type=str,
        default=None,
        metavar="HOST",
        help="Ollama server URL (default: http://localhost:11434).",
    )
    llm_group.add_argument(
        "--llm-max-tokens",
        type=int,
        default=None,
        metavar="N",
        help="Maximum tokens to generate per LLM call (default: 8192).",
    )
    llm_group.add_argument(
        "--llm-temperature",
        type=float,
        default=None,
        metavar="T",
        help="Sampling temperature for the LLM (default: 0.2).",
    )
    llm_group.add_argument(
        "--llm-timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Per-request timeout for the LLM call (default: 120).",
    )


def _add_convert_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("repo_url", metavar="repository-url", help="Git URL of the source repository.")
    parser.add_argument(
        "target_language",
        metavar="target-language",
        help="Target language name, e.g. JavaScript, Python, Go (unknown names produce .txt files).",
    )
    _add_run_options(parser)


def _add_framework_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("repo_url", metavar="repository-url", help="Git URL of the Angular repository.")
    _add_run_options(parser)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        description="Repository Converter -- AI-driven language and Angular -> React conversion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    commands = parser.add_subparsers(dest="command", metavar="command")
    commands.required = True

    _add_convert_arguments(commands.add_parser(
        COMMAND_CONVERT,
        help="Convert every recognised source file to another language.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    ))
    _add_framework_arguments(commands.add_parser(
        COMMAND_FRAMEWORK,
        help="Convert an Angular project to React.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    ))
    return parser


def build_command_parser(command: str) -> argparse.ArgumentParser:
    """Stand-alone parser for the ``convert`` / ``convert-framework`` scripts."""
    parser = _ArgumentParser(prog=command, formatter_class=argparse.RawDescriptionHelpFormatter)
    if command == COMMAND_FRAMEWORK:
        parser.description = "Convert an Angular project to React."
        _add_framework_arguments(parser)
    else:
        parser.description = "Convert every recognised source file to another language."
        _add_convert_arguments(parser)
    parser.set_defaults(command=command)
    return parser


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def _run(args: argparse.Namespace) -> int:
    load_dotenv()
    configure_logging(verbose=args.verbose)
    try:
        return run_command(args)
    except KeyboardInterrupt:
        logger.error("Interrupted.")
        return 1


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    return _run(args)


def convert_main(argv: list[str] | None = None) -> int:
    return _run(build_command_parser(COMMAND_CONVERT).parse_args(argv))


def convert_framework_main(argv: list[str] | None = None) -> int:
    return _run(build_command_parser(COMMAND_FRAMEWORK).parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
