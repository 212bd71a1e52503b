"""
Usage accounting — per-round token usage and the running cost ledger.

Every completed model round is recorded exactly once.  Costs are kept as
:class:`~decimal.Decimal` so that recording two rounds separately and
recording their sum produce identical ledgers.
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from decimal import Decimal

logger = logging.getLogger(__name__)

_PER_MILLION = Decimal(1_000_000)

# Pricing per million tokens
PRICING: dict[str, dict[str, str]] = {
    "claude-sonnet-4-5-20250929": {
        "input": "3.00",
        "output": "15.00",
        "cache_write": "3.75",
        "cache_read": "0.30",
    },
    "claude-opus-4-5-20251101": {
        "input": "15.00",
        "output": "75.00",
        "cache_write": "18.75",
        "cache_read": "1.50",
    },
}

_RATE_KEYS = ("input", "output", "cache_write", "cache_read")


@dataclass
class Usage:
    """Token counts for one or more model rounds, plus their cost."""
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_write_tokens: int = 0
    cost: Decimal = Decimal(0)

    def __add__(self, other: "Usage") -> "Usage":
        if not isinstance(other, Usage):
            return NotImplemented
        return Usage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            cache_read_tokens=self.cache_read_tokens + other.cache_read_tokens,
            cache_write_tokens=self.cache_write_tokens + other.cache_write_tokens,
            cost=self.cost + other.cost,
        )

    @property
    def total_tokens(self) -> int:
        return (self.input_tokens + self.output_tokens
                + self.cache_read_tokens + self.cache_write_tokens)

    @classmethod
    def from_api(cls, usage: dict | None) -> "Usage":
        """Build from an Anthropic ``usage`` object; missing fields count as 0."""
        usage = usage or {}

        def _int(key: str) -> int:
            value = usage.get(key)
            return value if isinstance(value, int) else 0

        return cls(
            input_tokens=_int("input_tokens"),
            output_tokens=_int("output_tokens"),
            cache_read_tokens=_int("cache_read_input_tokens"),
            cache_write_tokens=_int("cache_creation_input_tokens"),
        )


@dataclass
class TokenCounters:
    input: int = 0
    output: int = 0
    cache_read: int = 0
    cache_write: int = 0


@dataclass
class UsageLedger:
    """Running totals for one model-client instance."""
    session_cost: Decimal = Decimal(0)
    daily_cost: Decimal = Decimal(0)
    monthly_cost: Decimal = Decimal(0)
    tokens: TokenCounters = field(default_factory=TokenCounters)


class UsageAccumulator:
    """Merges per-round usage into a :class:`UsageLedger`.

    Parameters
    ----------
    model:
        Model name used to look up per-million-token rates.
    pricing:
        Optional overrides, ``{model: {input, output, cache_write, cache_read}}``.
        Merged over the built-in :data:`PRICING` table.
    """

    def __init__(self, model: str, pricing: dict | None = None) -> None:
        self.model = model
        self._rates = self._resolve_rates(model, pricing or {})
        self._ledger = UsageLedger()
        self._lock = threading.Lock()

    @staticmethod
    def _resolve_rates(model: str, overrides: dict) -> dict[str, Decimal]:
        table = dict(PRICING)
        table.update(overrides)
        entry = table.get(model)
        if entry is None:
            logger.warning("[Usage] No pricing for model %s; costs will read as 0", model)
            return {key: Decimal(0) for key in _RATE_KEYS}
        return {key: Decimal(str(entry.get(key, 0))) for key in _RATE_KEYS}

    def cost_of(self, usage: Usage) -> Decimal:
        """Cost of *usage* at this model's rates."""
        rates = self._rates
        return (
            usage.input_tokens * rates["input"]
            + usage.output_tokens * rates["output"]
            + usage.cache_write_tokens * rates["cache_write"]
            + usage.cache_read_tokens * rates["cache_read"]
        ) / _PER_MILLION

    def record(self, usage: Usage) -> Usage:
        """Add one round's usage to the ledger; returns it with ``cost`` set."""
        cost = self.cost_of(usage)
        priced = Usage(
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            cache_read_tokens=usage.cache_read_tokens,
            cache_write_tokens=usage.cache_write_tokens,
            cost=cost,
        )
        with self._lock:
            ledger = self._ledger
            ledger.session_cost += cost
            ledger.daily_cost += cost
            ledger.monthly_cost += cost
            ledger.tokens.input += usage.input_tokens
            ledger.tokens.output += usage.output_tokens
            ledger.tokens.cache_read += usage.cache_read_tokens
            ledger.tokens.cache_write += usage.cache_write_tokens
        logger.debug("[Usage] %s: in=%d out=%d cache_r=%d cache_w=%d cost=%s",
                     self.model, usage.input_tokens, usage.output_tokens,
                     usage.cache_read_tokens, usage.cache_write_tokens, cost)
        return priced

    def snapshot(self) -> UsageLedger:
        with self._lock:
            return copy.deepcopy(self._ledger)

    def reset_session(self) -> None:
        """Zero the session cost and token counters; daily/monthly are kept."""
        with self._lock:
            self._ledger.session_cost = Decimal(0)
            self._ledger.tokens = TokenCounters()
