from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from meeting_actions.services.extraction_types import (
    AggregatedExtraction,
    ChunkExtraction,
    ExtractedTask,
)

TaskKey = Tuple[str, str, str, str, str]


def task_identity(task: ExtractedTask) -> TaskKey:
    # Name is compared trimmed only; the other fields ignore case.
    return (
        (task.name or "").strip(),
        (task.assignee_email or "").lower(),
        task.due_date or "",
        (task.company_slug or "").lower(),
        (task.company_name or "").lower(),
    )


def dedupe_tasks(tasks: Iterable[ExtractedTask]) -> List[ExtractedTask]:
    """Keep the first task per identity, then drop tasks without a name."""
    seen: set[TaskKey] = set()
    kept: List[ExtractedTask] = []
    for task in tasks:
        key = task_identity(task)
        if key in seen:
            continue
        seen.add(key)
        kept.append(task)
    return [t for t in kept if t.name.strip()]


def aggregate(results: Sequence[ChunkExtraction]) -> AggregatedExtraction:
    summaries: List[str] = []
    decisions: List[str] = []
    tasks: List[ExtractedTask] = []
    for res in results:
        if res.summary.strip():
            summaries.append(res.summary.strip())
        decisions.extend(res.decisions)
        tasks.extend(res.tasks)
    return AggregatedExtraction(
        summary="\n\n".join(summaries),
        decisions=decisions,
        tasks=dedupe_tasks(tasks),
    )
