# src/weekly_report/report/generator.py

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.ports import RewriteClient
from ..errors import ExternalCallError
from ..tasks.task_models import TaskBuckets
from .renderer import count_sections, render_fallback

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GeneratedReport:
    text: str
    used_fallback: bool
    draft: str


def build_rewrite_prompt(member_name: str, draft: str) -> str:
    return (
        f"Weekly report draft for {member_name}. "
        "Polish the wording and return it in the same layout.\n\n"
        f"{draft}"
    )


def generate_report(
    buckets: TaskBuckets,
    member_name: str,
    rewriter: RewriteClient | None = None,
) -> GeneratedReport:
    """
    Render the deterministic draft, then optionally let the rewrite step polish it.

    A missing rewriter, a failed call or an unusable answer all yield the draft.
    """
    draft = render_fallback(buckets)
    if rewriter is None:
        return GeneratedReport(text=draft, used_fallback=True, draft=draft)

    try:
        text = rewriter.rewrite(build_rewrite_prompt(member_name, draft))
    except ExternalCallError as e:
        logger.warning("Rewrite failed for member=%s, using fallback: %s", member_name, e)
        return GeneratedReport(text=draft, used_fallback=True, draft=draft)

    text = (text or "").strip()
    if not text or count_sections(text) == 0:
        logger.warning("Rewrite for member=%s returned no sections, using fallback.", member_name)
        return GeneratedReport(text=draft, used_fallback=True, draft=draft)

    return GeneratedReport(text=text + "\n", used_fallback=False, draft=draft)
