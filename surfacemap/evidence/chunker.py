"""Priority-ordered, token-budgeted evidence selection."""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence

from ..config import (
    DEFAULT_CHARS_PER_TOKEN,
    DEFAULT_MIN_REMAINING_TOKENS,
    DEFAULT_TOKEN_BUDGET,
    SurfaceMapConfig,
)
from ..logging import get_logger
from ..models import EvidenceDocument

CHARS_PER_TOKEN = DEFAULT_CHARS_PER_TOKEN
MAX_EVIDENCE_TOKENS = DEFAULT_TOKEN_BUDGET
MAX_EVIDENCE_TOKENS_TIER2 = 80_000
MIN_REMAINING_TOKENS = DEFAULT_MIN_REMAINING_TOKENS

# Higher numbers are kept first; types missing from the table rank 0.
EVIDENCE_PRIORITY: Dict[str, int] = {
    "uploaded_brief": 10,
    "repo_readme": 10,
    "package_metadata": 9,
    "repo_docs": 8,
    "code_summary": 7,
    "config_file": 5,
    "component_analysis": 4,
    "test_file": 3,
    "code_patterns": 2,
    "auth_patterns": 2,
}


def estimate_tokens(text: str, chars_per_token: float = CHARS_PER_TOKEN) -> int:
    """Approximate the token cost of ``text`` from its character count."""
    return math.ceil(len(text) / chars_per_token)


def budget_for_mode(mode: str) -> int:
    """Return the default evidence budget for a collection mode."""
    return MAX_EVIDENCE_TOKENS_TIER2 if mode == "tier2" else MAX_EVIDENCE_TOKENS


def truncation_marker(removed_chars: int) -> str:
    return f"\n\n[Content truncated - {math.ceil(removed_chars / 1024)}KB remaining]"


def truncate_text(text: str, max_tokens: int, chars_per_token: float = CHARS_PER_TOKEN) -> str:
    """Cut ``text`` so that it, marker included, costs at most ``max_tokens``.

    The marker is reserved inside the character allowance. When the allowance
    is too small to hold the marker the bare prefix is returned.
    """
    max_chars = max(math.floor(max_tokens * chars_per_token), 0)
    if len(text) <= max_chars:
        return text

    kept = max_chars
    while True:
        marker = truncation_marker(len(text) - kept)
        candidate = max(max_chars - len(marker), 0)
        if candidate >= kept:
            break
        kept = candidate

    if kept + len(marker) > max_chars:
        return text[:max_chars]
    return text[:kept] + marker


class EvidenceChunker:
    """Greedy priority-then-fill packer; stops at the first document that overflows."""

    def __init__(
        self,
        token_budget: int = MAX_EVIDENCE_TOKENS,
        priorities: Optional[Mapping[str, int]] = None,
        chars_per_token: float = CHARS_PER_TOKEN,
        min_remaining_tokens: int = MIN_REMAINING_TOKENS,
    ) -> None:
        self.token_budget = token_budget
        self.priorities: Dict[str, int] = {**EVIDENCE_PRIORITY, **(priorities or {})}
        self.chars_per_token = chars_per_token
        self.min_remaining_tokens = min_remaining_tokens
        self.logger = get_logger("evidence.chunker")

    @classmethod
    def from_config(cls, config: SurfaceMapConfig) -> "EvidenceChunker":
        settings = config.evidence
        return cls(
            token_budget=settings.token_budget,
            priorities=settings.priorities,
            chars_per_token=settings.chars_per_token,
            min_remaining_tokens=settings.min_remaining_tokens,
        )

    def priority(self, document: EvidenceDocument) -> int:
        return self.priorities.get(document.type, 0)

    def chunk(
        self,
        evidence: Sequence[EvidenceDocument],
        token_budget: Optional[int] = None,
    ) -> List[EvidenceDocument]:
        """Return the highest-priority prefix of ``evidence`` that fits the budget."""
        budget = self.token_budget if token_budget is None else token_budget
        ranked = sorted(evidence, key=self.priority, reverse=True)

        kept: List[EvidenceDocument] = []
        total = 0
        for document in ranked:
            cost = estimate_tokens(document.content, self.chars_per_token)
            if total + cost <= budget:
                kept.append(document)
                total += cost
                continue

            remaining = budget - total
            if remaining > self.min_remaining_tokens:
                content = truncate_text(document.content, remaining, self.chars_per_token)
                kept.append(replace(document, content=content))
                total += estimate_tokens(content, self.chars_per_token)
            break

        self.logger.info(
            "Chunked %d/%d documents, ~%d tokens (limit: %d)", len(kept), len(evidence), total, budget
        )
        return kept


def chunk_evidence(
    evidence: Sequence[EvidenceDocument],
    token_budget: int = MAX_EVIDENCE_TOKENS,
    priorities: Optional[Mapping[str, int]] = None,
) -> List[EvidenceDocument]:
    """Chunk ``evidence`` with the default token ratio and threshold."""
    return EvidenceChunker(token_budget=token_budget, priorities=priorities).chunk(evidence)


__all__ = [
    "CHARS_PER_TOKEN",
    "EVIDENCE_PRIORITY",
    "EvidenceChunker",
    "MAX_EVIDENCE_TOKENS",
    "MAX_EVIDENCE_TOKENS_TIER2",
    "MIN_REMAINING_TOKENS",
    "budget_for_mode",
    "chunk_evidence",
    "estimate_tokens",
    "truncate_text",
    "truncation_marker",
]
