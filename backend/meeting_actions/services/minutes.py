from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import List, Optional, Sequence


@dataclass
class MinutesTask:
    name: str
    priority: Optional[str] = None
    assignee: Optional[str] = None
    company: Optional[str] = None
    due_date: Optional[str] = None
    description: Optional[str] = None


_STYLE = """
  body{font-family:ui-sans-serif,system-ui,-apple-system,Segoe UI,Roboto,Helvetica,Arial;line-height:1.45;color:#111;padding:24px;max-width:860px;margin:0 auto;background:#fff}
  h1{font-size:24px;margin:0 0 2px}
  .meta{color:#666;font-size:13px;margin-bottom:18px}
  h2{font-size:16px;margin:18px 0 8px}
  .card{border:1px solid #e5e7eb;border-radius:12px;padding:16px;margin:12px 0;background:#fff}
  .task{margin:8px 0}
  .task-desc{color:#475569;margin-top:4px;white-space:pre-wrap}
  .muted{color:#6b7280}
  .badge{display:inline-block;background:#f3f4f6;border:1px solid #e5e7eb;border-radius:999px;padding:2px 8px;font-size:11px;color:#374151}
"""


def split_decisions(decisions_text: str) -> List[str]:
    return [line.strip() for line in (decisions_text or "").split("\n") if line.strip()]


def _render_task(task: MinutesTask) -> str:
    bits = [f"<strong>{escape(task.name)}</strong>"]
    if task.priority:
        bits.append(f"Priority: {escape(task.priority)}")
    if task.assignee:
        bits.append(f"Assignee: {escape(task.assignee)}")
    if task.company:
        bits.append(f"Company: {escape(task.company)}")
    if task.due_date:
        bits.append(f"Due: {escape(task.due_date)}")
    desc = f'<div class="task-desc">{escape(task.description)}</div>' if task.description else ""
    return f'<li class="task">{" &middot; ".join(bits)}{desc}</li>'


def render_minutes_html(
    *,
    title: Optional[str],
    held_at: datetime,
    company_name: Optional[str],
    summary: str,
    decisions_text: str,
    tasks: Sequence[MinutesTask],
) -> str:
    """Render the fallback minutes document used when no HTML is supplied."""
    page_title = escape(title or "Meeting")
    when = held_at.strftime("%b %d, %Y, %I:%M %p")
    company_badge = (
        f'<span class="badge" style="margin-left:6px;">{escape(company_name)}</span>' if company_name else ""
    )

    if summary.strip():
        summary_html = "<br/>".join(escape(line) for line in summary.split("\n"))
    else:
        summary_html = "<span class='muted'>No summary</span>"

    decisions = split_decisions(decisions_text)
    if decisions:
        decisions_html = "<ul>" + "".join(f"<li>{escape(d)}</li>" for d in decisions) + "</ul>"
    else:
        decisions_html = "<p><em>No explicit decisions recorded.</em></p>"

    if tasks:
        tasks_html = "<ol>" + "".join(_render_task(t) for t in tasks) + "</ol>"
    else:
        tasks_html = "<p class='muted'>No tasks.</p>"

    return f"""<!doctype html>
<html>
<head>
<meta charset="utf-8" />
<title>{page_title} - Minutes</title>
<style>{_STYLE}</style>
</head>
<body>
  <h1>Meeting Minutes</h1>
  <div class="meta">
    <span class="badge">{escape(when)}</span>
    {company_badge}
  </div>

  <div class="card">
    <h2>Summary</h2>
    <div>{summary_html}</div>
  </div>

  <div class="card">
    <h2>Decisions</h2>
    {decisions_html}
  </div>

  <div class="card">
    <h2>Action Items</h2>
    {tasks_html}
  </div>
</body>
</html>"""
