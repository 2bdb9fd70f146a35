"""Subtask suggestions from an external provider (e.g. an LLM)."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol

from core.log import get_logger
from models.task import TaskDraft


logger = get_logger(__name__)

EMPTY_DESCRIPTION = "Task description cannot be empty."
PROVIDER_FAILED = "Failed to generate subtasks. Please try again."


class SubtaskSuggester(Protocol):
    def suggest(self, description: str) -> Iterable[str]:
        ...


@dataclass(frozen=True)
class SuggestionResult:
    subtasks: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _clean_titles(raw: Iterable[str]) -> List[str]:
    titles: List[str] = []
    for item in raw or []:
        if not isinstance(item, str):
            continue
        cleaned = item.strip()
        if cleaned and cleaned not in titles:
            titles.append(cleaned)
    return titles


def request_subtask_suggestions(provider: SubtaskSuggester, description: str | None) -> SuggestionResult:
    """Ask ``provider`` for subtask titles; failures come back as ``error``."""

    text = (description or "").strip()
    if not text:
        return SuggestionResult(error=EMPTY_DESCRIPTION)
    try:
        titles = _clean_titles(provider.suggest(text))
    except Exception as exc:
        logger.error("Subtask suggestion failed: %s", exc, exc_info=True)
        return SuggestionResult(error=PROVIDER_FAILED)
    if not titles:
        logger.warning("Subtask provider returned no usable titles")
        return SuggestionResult(error=PROVIDER_FAILED)
    logger.info("Received %d subtask suggestions", len(titles))
    return SuggestionResult(subtasks=titles)


def merge_suggestions(draft: TaskDraft, result: SuggestionResult) -> int:
    """Append suggested titles to the draft's subtask list; returns how many."""

    if not result.ok:
        return 0
    return sum(1 for title in result.subtasks if draft.add_subtask(title))


__all__ = [
    "EMPTY_DESCRIPTION",
    "PROVIDER_FAILED",
    "SubtaskSuggester",
    "SuggestionResult",
    "merge_suggestions",
    "request_subtask_suggestions",
]
