"""
karmabot.engine.events — Grant Requests, Results & Fallback Offers
===================================================================

The shapes that cross the boundary between the Discord layer and the
transfer engine.  A reply starting with ``+`` or ``-`` becomes a
:class:`GrantRequest`; the engine answers with a :class:`GrantResult`.

When the giver's daily quota is exhausted the engine answers with an
*offer*: the giver may confirm later (via a button) and spend their own
karma instead.  The offer travels through Discord as a button custom id,
see :class:`FallbackOffer`.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

__all__ = [
    "CUSTOM_ID_TEMPLATE",
    "FallbackOffer",
    "FundingSource",
    "GrantOutcome",
    "GrantRequest",
    "GrantResult",
    "Karma",
]


class Karma(enum.StrEnum):
    """Polarity of a grant."""

    UP = "+"
    DOWN = "-"

    @classmethod
    def from_text(cls, text: str | None) -> Karma | None:
        """Polarity signalled by the first character of *text*, if any."""
        if not text:
            return None
        if text.startswith("+"):
            return cls.UP
        if text.startswith("-"):
            return cls.DOWN
        return None

    @property
    def delta(self) -> int:
        return 1 if self is Karma.UP else -1


class GrantOutcome(enum.StrEnum):
    """Every way a grant or fallback confirmation can resolve."""

    DIRECT = "direct"
    OFFERED_FALLBACK = "offered_fallback"
    FALLBACK = "fallback"
    INSUFFICIENT_KARMA = "insufficient_karma"
    REJECTED = "rejected"


class FundingSource(enum.StrEnum):
    """What paid for a confirmed fallback grant."""

    QUOTA = "points"
    KARMA = "karma"


@dataclass(frozen=True, slots=True)
class GrantRequest:
    """A resolved karma transfer from *giver_id* to *receiver_id*."""

    giver_id: str
    receiver_id: str
    polarity: Karma
    group_id: str | None = None
    giver_is_bot: bool = False
    receiver_is_bot: bool = False

    @property
    def is_valid(self) -> bool:
        """Distinct, human giver and receiver."""
        return (
            self.giver_id != self.receiver_id
            and not self.giver_is_bot
            and not self.receiver_is_bot
        )


@dataclass(frozen=True, slots=True)
class GrantResult:
    """Output of the transfer engine."""

    outcome: GrantOutcome
    polarity: Karma
    receiver_id: str
    karma: int | None = None          # receiver balance after the grant
    giver_karma: int | None = None    # giver balance after the grant
    source: FundingSource | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome in (GrantOutcome.DIRECT, GrantOutcome.FALLBACK)


# Button custom ids are capped at 100 characters by Discord.
CUSTOM_ID_TEMPLATE = r"karma:fallback:(?P<polarity>[+-]):(?P<receiver>[0-9]+)"
_CUSTOM_ID_RE = re.compile(f"^{CUSTOM_ID_TEMPLATE}$")


@dataclass(frozen=True, slots=True)
class FallbackOffer:
    """Deferred "spend my karma" choice offered when the quota runs out."""

    polarity: Karma
    receiver_id: str

    def to_custom_id(self) -> str:
        return f"karma:fallback:{self.polarity.value}:{self.receiver_id}"

    @classmethod
    def from_custom_id(cls, custom_id: str) -> FallbackOffer | None:
        """Parse a button custom id; ``None`` if it isn't a fallback offer."""
        match = _CUSTOM_ID_RE.match(custom_id)
        if match is None:
            return None
        return cls(Karma(match["polarity"]), match["receiver"])

    @classmethod
    def from_result(cls, result: GrantResult) -> FallbackOffer:
        return cls(result.polarity, result.receiver_id)
