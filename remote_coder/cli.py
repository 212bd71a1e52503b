"""
CLI entry point — runs a single turn against a GitHub repository.
"""

import argparse
import logging
import sys

from .cli_display import render_turn, setup_logger
from .config import Config
from .llm.anthropic_client import create_client
from .llm.base import LLMError
from .repo.github import GitHubAccessor
from .turn import TurnRunner

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MODEL_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="remotecoder — edit a GitHub repository by asking for changes")
    parser.add_argument("request", help="What you want changed or explained")
    parser.add_argument("--repo", default=None,
                        help="Repository as owner/name (default: from config)")
    parser.add_argument("--branch", default=None,
                        help="Branch to read and write (default: from config)")
    parser.add_argument("--model", default=None,
                        help="Model name (default: from config)")
    parser.add_argument("--depth", type=int, default=None,
                        help="Import expansion depth (default: from config)")
    parser.add_argument("--seed", action="append", default=None, metavar="PATH",
                        help="Seed file path; repeat to add more. Skips keyword search")
    parser.add_argument("--config", default=None,
                        help="Path to .remotecoder.yaml config file")
    parser.add_argument("--no-color", action="store_true",
                        help="Disable ANSI colors in diffs")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # ── 0. Load config ──
    cfg = Config.load(args.config)
    if args.repo:
        cfg.REPO = args.repo
    branch = args.branch or cfg.BRANCH
    depth = args.depth if args.depth is not None else cfg.MAX_IMPORT_DEPTH

    setup_logger(cfg.LOG_DIR)

    # ── 1. Credentials and repo ──
    repo = cfg.repo_owner_and_name
    if repo is None:
        print("\n  [ERROR] No repository selected. Pass --repo owner/name "
              "or set REPO / `repo:` in .remotecoder.yaml.\n")
        return EXIT_USAGE
    if not cfg.ANTHROPIC_API_KEY:
        print("\n  [ERROR] Anthropic API key required.\n"
              "  Set ANTHROPIC_API_KEY env var or add it to .remotecoder.yaml.\n")
        return EXIT_USAGE
    if not cfg.GITHUB_TOKEN:
        print("\n  [ERROR] GitHub token required.\n"
              "  Set GITHUB_TOKEN env var or add it to .remotecoder.yaml.\n")
        return EXIT_USAGE

    # ── 2. Clients ──
    owner, name = repo
    accessor = GitHubAccessor(cfg.GITHUB_TOKEN, owner, name,
                              api_url=cfg.GITHUB_API_URL, timeout=cfg.REMOTE_TIMEOUT)
    model = create_client(cfg, args.model)
    runner = TurnRunner(
        model, accessor,
        branch=branch,
        max_depth=depth,
        max_context_chars=cfg.MAX_CONTEXT_CHARS,
        deterministic_context=cfg.DETERMINISTIC_CONTEXT,
        fetch_workers=cfg.FETCH_WORKERS,
        max_keywords=cfg.MAX_KEYWORDS,
        max_seeds=cfg.MAX_SEED_FILES,
    )
    logger.info(f"Repo: {owner}/{name}@{branch}, model {model.model}, depth {depth}")

    # ── 3. Run the turn ──
    try:
        result = runner.run_turn(args.request, seeds=args.seed)
    except LLMError as exc:
        logger.error(f"Turn failed: {exc}")
        print(f"\n  [ERROR] Model request failed: {exc}\n")
        return EXIT_MODEL_FAILURE

    print(render_turn(result, model.usage.snapshot(), color=not args.no_color))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
