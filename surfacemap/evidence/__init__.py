"""Evidence collection and token-budgeted chunking."""

from __future__ import annotations

from .chunker import (
    CHARS_PER_TOKEN,
    EVIDENCE_PRIORITY,
    MAX_EVIDENCE_TOKENS,
    MAX_EVIDENCE_TOKENS_TIER2,
    EvidenceChunker,
    budget_for_mode,
    chunk_evidence,
    estimate_tokens,
    truncate_text,
)
from .collector import EVIDENCE_MODES, EvidenceCollector, collect_evidence

__all__ = [
    "CHARS_PER_TOKEN",
    "EVIDENCE_MODES",
    "EVIDENCE_PRIORITY",
    "EvidenceChunker",
    "EvidenceCollector",
    "MAX_EVIDENCE_TOKENS",
    "MAX_EVIDENCE_TOKENS_TIER2",
    "budget_for_mode",
    "chunk_evidence",
    "collect_evidence",
    "estimate_tokens",
    "truncate_text",
]
