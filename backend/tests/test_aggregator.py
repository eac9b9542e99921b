from __future__ import annotations

from meeting_actions.services.aggregator import aggregate, dedupe_tasks, task_identity
from meeting_actions.services.extraction_types import ChunkExtraction, ExtractedTask


def chunk(summary="", decisions=(), tasks=()):
    return ChunkExtraction(summary=summary, decisions=list(decisions), tasks=list(tasks))


def test_identity_ignores_case_except_for_name():
    a = ExtractedTask(name=" Send deck ", assignee_email="Bob@X.com", company_slug="ACME", company_name="Acme")
    b = ExtractedTask(name="Send deck", assignee_email="bob@x.com", company_slug="acme", company_name="ACME")
    c = ExtractedTask(name="send deck", assignee_email="bob@x.com", company_slug="acme", company_name="acme")
    assert task_identity(a) == task_identity(b)
    assert task_identity(a) != task_identity(c)


def test_dedupe_keeps_first_occurrence():
    first = ExtractedTask(name="Send deck", description="first", due_date="2024-07-01")
    second = ExtractedTask(name="Send deck", description="second", due_date="2024-07-01")
    other_date = ExtractedTask(name="Send deck", due_date="2024-07-02")

    kept = dedupe_tasks([first, second, other_date])

    assert kept == [first, other_date]


def test_dedupe_drops_blank_names():
    kept = dedupe_tasks([ExtractedTask(name="   "), ExtractedTask(name=""), ExtractedTask(name="Real")])
    assert [t.name for t in kept] == ["Real"]


def test_aggregate_merges_chunks_in_order():
    results = [
        chunk(" Kickoff. ", ["Use vendor A"], [ExtractedTask(name="Email Bob")]),
        chunk("   ", [], [ExtractedTask(name="Email Bob")]),
        chunk("Budget agreed.", ["Budget 10k", "Use vendor A"], [ExtractedTask(name="Draft budget")]),
    ]

    agg = aggregate(results)

    assert agg.summary == "Kickoff.\n\nBudget agreed."
    # decisions are concatenated without dedupe
    assert agg.decisions == ["Use vendor A", "Budget 10k", "Use vendor A"]
    assert agg.decisions_text == "Use vendor A\nBudget 10k\nUse vendor A"
    assert [t.name for t in agg.tasks] == ["Email Bob", "Draft budget"]


def test_aggregate_of_nothing_is_empty():
    agg = aggregate([])
    assert agg.summary == ""
    assert agg.decisions == []
    assert agg.tasks == []
