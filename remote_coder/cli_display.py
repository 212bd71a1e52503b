import logging
import os
from datetime import datetime

from .usage import UsageLedger

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
_RUN_HANDLER_NAME = "remote_coder.run_file"

_RESET = "\033[0m"
# First matching prefix wins
_DIFF_STYLES = (
    ("+++", "\033[1m"),
    ("---", "\033[1m"),
    ("@@", "\033[36m"),
    ("+", "\033[32m"),
    ("-", "\033[31m"),
)


def setup_logger(log_dir: str = ".remotecoder/logs") -> logging.Logger:
    """Route all ``remote_coder`` logging to a fresh per-run file in *log_dir*.

    A file handler left by an earlier call in the same process is closed
    and replaced, so each run logs to exactly one file.
    """
    os.makedirs(log_dir, exist_ok=True)
    run_file = os.path.join(log_dir, datetime.now().strftime("turn_%Y%m%d_%H%M%S.log"))

    logger = logging.getLogger("remote_coder")
    for old in [h for h in logger.handlers if h.get_name() == _RUN_HANDLER_NAME]:
        logger.removeHandler(old)
        old.close()

    handler = logging.FileHandler(run_file, encoding="utf-8")
    handler.set_name(_RUN_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return logger


def _style_diff_line(line: str) -> str:
    for prefix, style in _DIFF_STYLES:
        if line.startswith(prefix):
            return f"{style}{line}{_RESET}"
    return line


def format_colored_diff(diff_text: str) -> str:
    """ANSI-colored unified diff: bold headers, cyan hunks, green/red lines."""
    return "\n".join(_style_diff_line(line) for line in diff_text.splitlines())


def format_changes(changes, color: bool = True) -> str:
    """List file changes, with the diff under each edit."""
    icons = {"create": "+", "edit": "~", "delete": "-"}
    lines: list[str] = []
    for change in changes:
        lines.append(f"  [{icons.get(change.action, '?')}] {change.path} ({change.action})")
        if change.diff:
            diff = format_colored_diff(change.diff) if color else change.diff
            lines.extend("      " + line for line in diff.splitlines())
    return "\n".join(lines)


def format_ledger(ledger: UsageLedger) -> str:
    t = ledger.tokens
    return (
        f"  Cost: session ${ledger.session_cost:.4f} | "
        f"today ${ledger.daily_cost:.4f} | month ${ledger.monthly_cost:.4f}\n"
        f"  Tokens: in {t.input:,} | out {t.output:,} | "
        f"cache read {t.cache_read:,} | cache write {t.cache_write:,}"
    )


def render_turn(result, ledger: UsageLedger, color: bool = True) -> str:
    """Terminal rendering of a :class:`~remote_coder.turn.TurnResult`."""
    parts = [result.text.strip() or "(no response text)", ""]
    if result.changes:
        parts.append(f"Files changed ({len(result.changes)}):")
        parts.append(format_changes(result.changes, color=color))
        parts.append("")
    failed = [r for r in result.tool_results if not r.success]
    if failed:
        parts.append(f"{len(failed)} tool call(s) failed:")
        parts.extend(f"  - {r.error}" for r in failed)
        parts.append("")
    if result.cancelled:
        parts.append("Turn cancelled before all tool calls ran.")
        parts.append("")
    parts.append(f"  This turn: {result.rounds} round(s), ${result.usage.cost:.4f}")
    parts.append(format_ledger(ledger))
    return "\n".join(parts)
