"""
Turn driver — one user request through at most two model rounds.

::

    INITIAL -> MODEL_ROUND_1 -> DONE                        (no tool calls)
    INITIAL -> MODEL_ROUND_1 -> TOOL_EXECUTION -> MODEL_ROUND_2 -> DONE
    INITIAL -> MODEL_ROUND_1 -> TOOL_EXECUTION -> DONE      (cancelled)

:func:`advance` is the whole transition table; :class:`TurnRunner` does the
work for each state.  Tool calls run one at a time in the order the model
emitted them, since a later call may read what an earlier one wrote.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .context.loader import ContextLoader, DEFAULT_MAX_DEPTH
from .context.relevance import RelevanceSelector
from .llm.base import ModelClient, ModelResponse, ToolCall
from .prompts import CODING_SYSTEM_PROMPT, build_code_context, format_tool_summary
from .repo.base import RepositoryAccessor
from .tools.dispatcher import FileChange, ToolDispatcher, ToolResult
from .tools.schema import TOOL_SCHEMA
from .usage import Usage

logger = logging.getLogger(__name__)

# The Messages API rejects empty text content
_EMPTY_ASSISTANT_TEXT = "(tool calls only)"


class TurnState(str, Enum):
    INITIAL = "initial"
    MODEL_ROUND_1 = "model_round_1"
    TOOL_EXECUTION = "tool_execution"
    MODEL_ROUND_2 = "model_round_2"
    DONE = "done"


def advance(state: TurnState, has_tool_calls: bool = False,
            cancelled: bool = False) -> TurnState:
    """Next state of a turn.

    *has_tool_calls* is only consulted after round one, *cancelled* only
    after tool execution.  Advancing past ``DONE`` is a programming error.
    """
    if state is TurnState.INITIAL:
        return TurnState.MODEL_ROUND_1
    if state is TurnState.MODEL_ROUND_1:
        return TurnState.TOOL_EXECUTION if has_tool_calls else TurnState.DONE
    if state is TurnState.TOOL_EXECUTION:
        return TurnState.DONE if cancelled else TurnState.MODEL_ROUND_2
    if state is TurnState.MODEL_ROUND_2:
        return TurnState.DONE
    raise ValueError(f"No transition out of {state.value}")


def summarize_tool_results(calls: list[ToolCall], results: list[ToolResult]) -> list[str]:
    """One human-readable line per tool call."""
    lines = []
    for call, result in zip(calls, results):
        if result.success:
            lines.append(f"Tool {call.name}: Success")
        else:
            lines.append(f"Tool {call.name}: Failed - {result.error}")
    return lines


@dataclass
class TurnResult:
    """What a turn hands back to the caller."""
    text: str
    changes: list[FileChange] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)
    tool_results: list[ToolResult] = field(default_factory=list)
    rounds: int = 0
    cancelled: bool = False


@dataclass
class _Turn:
    """Mutable working state of one turn."""
    request: str
    messages: list[dict]
    context: str = ""
    first: Optional[ModelResponse] = None
    final_text: str = ""
    results: list[ToolResult] = field(default_factory=list)
    changes: list[FileChange] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)
    rounds: int = 0
    cancelled: bool = False


class TurnRunner:
    """Drives turns against one model client and one repository branch.

    Parameters
    ----------
    model:
        Model conversation capability; owns the usage ledger.
    accessor:
        Repository capability.
    branch:
        Branch that reads and writes target.
    max_depth:
        Import expansion depth for context loading.
    max_context_chars:
        Size cap on the rendered code context (``None`` for no cap).
    deterministic_context:
        Order loaded files by path instead of fetch completion order.
    """

    def __init__(
        self,
        model: ModelClient,
        accessor: RepositoryAccessor,
        branch: str = "main",
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_context_chars: Optional[int] = None,
        deterministic_context: bool = True,
        fetch_workers: int = 8,
        max_keywords: int = 3,
        max_seeds: int = 5,
        system_prompt: str = CODING_SYSTEM_PROMPT,
    ) -> None:
        self._model = model
        self._selector = RelevanceSelector(accessor, max_keywords=max_keywords,
                                           max_seeds=max_seeds)
        self._loader = ContextLoader(accessor, branch, max_workers=fetch_workers,
                                     max_depth=max_depth)
        self._dispatcher = ToolDispatcher(accessor, branch)
        self._max_context_chars = max_context_chars
        self._deterministic = deterministic_context
        self._system_prompt = system_prompt

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def assemble_context(self, request: str, seeds: Optional[list[str]] = None) -> str:
        """Pick seed files (unless given), load their imports, render context."""
        if seeds is None:
            seeds = self._selector.select_seeds(request)
        loaded = self._loader.load(seeds)
        files = loaded.sorted_files() if self._deterministic else loaded.files
        return build_code_context(loaded.tree, files, self._max_context_chars)

    def run_turn(
        self,
        request: str,
        history: Optional[list[dict]] = None,
        seeds: Optional[list[str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> TurnResult:
        """Run one request to completion.

        *history* is the prior conversation as ``{"role", "content"}`` dicts.
        *seeds* overrides relevance selection.  If *cancel_event* is set
        while tools are running, no further tools are dispatched and the
        follow-up round is skipped.

        Raises :class:`~remote_coder.llm.base.LLMError` if the model cannot
        be reached; every other failure is reported inside the result.
        """
        turn = _Turn(
            request=request,
            messages=list(history or []) + [{"role": "user", "content": request}],
        )
        state = TurnState.INITIAL

        while state is not TurnState.DONE:
            if state is TurnState.INITIAL:
                turn.context = self.assemble_context(request, seeds)
                state = advance(state)

            elif state is TurnState.MODEL_ROUND_1:
                turn.first = self._round(turn, turn.messages)
                turn.final_text = turn.first.text
                state = advance(state, has_tool_calls=bool(turn.first.tool_calls))

            elif state is TurnState.TOOL_EXECUTION:
                self._execute_tools(turn, turn.first.tool_calls, cancel_event)
                state = advance(state, cancelled=turn.cancelled)

            elif state is TurnState.MODEL_ROUND_2:
                followup = self._round(turn, self._followup_messages(turn))
                if followup.tool_calls:
                    logger.info("[Turn] Ignoring %d tool call(s) from the follow-up round",
                                len(followup.tool_calls))
                turn.final_text = followup.text
                state = advance(state)

        logger.info("[Turn] Done: %d round(s), %d change(s), cost %s",
                    turn.rounds, len(turn.changes), turn.usage.cost)
        return TurnResult(
            text=turn.final_text,
            changes=turn.changes,
            usage=turn.usage,
            tool_results=turn.results,
            rounds=turn.rounds,
            cancelled=turn.cancelled,
        )

    # ------------------------------------------------------------------
    # State work
    # ------------------------------------------------------------------

    def _round(self, turn: _Turn, messages: list[dict]) -> ModelResponse:
        response = self._model.send(messages, self._system_prompt, turn.context, TOOL_SCHEMA)
        turn.rounds += 1
        turn.usage = turn.usage + response.usage
        logger.info("[Turn] Round %d: %d tool call(s)", turn.rounds, len(response.tool_calls))
        return response

    def _execute_tools(self, turn: _Turn, calls: list[ToolCall],
                       cancel_event: Optional[threading.Event]) -> None:
        for call in calls:
            if cancel_event is not None and cancel_event.is_set():
                turn.cancelled = True
                logger.info("[Turn] Cancelled; %d tool call(s) not dispatched",
                            len(calls) - len(turn.results))
                break
            result, change = self._dispatcher.execute(call)
            turn.results.append(result)
            if change is not None:
                turn.changes.append(change)

        # Keep results positionally aligned with calls
        while len(turn.results) < len(calls):
            turn.results.append(ToolResult(False, error="Cancelled before dispatch"))

    @staticmethod
    def _followup_messages(turn: _Turn) -> list[dict]:
        summary = format_tool_summary(
            summarize_tool_results(turn.first.tool_calls, turn.results))
        return turn.messages + [
            {"role": "assistant", "content": turn.first.text or _EMPTY_ASSISTANT_TEXT},
            {"role": "user", "content": summary},
        ]


def run_turn(
    model: ModelClient,
    accessor: RepositoryAccessor,
    request: str,
    history: Optional[list[dict]] = None,
    seeds: Optional[list[str]] = None,
    branch: str = "main",
    **kwargs,
) -> TurnResult:
    """One-shot convenience wrapper around :class:`TurnRunner`."""
    runner = TurnRunner(model, accessor, branch=branch, **kwargs)
    return runner.run_turn(request, history, seeds)
