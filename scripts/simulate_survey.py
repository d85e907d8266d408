#!/usr/bin/env python3
"""Simulate a survey end-to-end with random answers.

Loads a survey definition, walks every step, answers each visible
question with a random value of the right shape, and prints a rich audit
of what was asked, what was answered and which conditional questions
appeared or disappeared.  Finishes by submitting to an in-memory sink
and printing the rendered summary.

Usage::

    # Default run against the bundled example survey
    python scripts/simulate_survey.py

    # Another definition, fixed seed, skipping some optional questions
    python scripts/simulate_survey.py surveys/other.yaml --seed 7 --skip-rate 0.3

    # Only print the condition dependency map
    python scripts/simulate_survey.py --deps-only
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "src"))

from survey_engine import (  # noqa: E402
    FileTransport,
    Question,
    QuestionKind,
    StaticIdentityProvider,
    SubmissionPayload,
    SubmissionSink,
    SummaryRenderer,
    SurveyEngine,
)

_DEFAULT_SOURCE = _REPO_ROOT / "surveys" / "example_survey.json"
_LOREM = ["looks good", "needs work", "more pairing", "fewer meetings", "ship it"]


class MemorySink(SubmissionSink):
    """Keeps submitted payloads in a list."""

    def __init__(self) -> None:
        self.payloads: list[SubmissionPayload] = []

    async def save(self, payload: SubmissionPayload) -> Any:
        self.payloads.append(payload)
        return {"id": f"sim-{len(self.payloads)}"}


# ---------------------------------------------------------------------------
# Random answers (canonical shape per kind)
# ---------------------------------------------------------------------------

def _option_values(question: Question) -> list[str]:
    options = question.config.get("options") or []
    return [o.get("value", o.get("id")) for o in options if isinstance(o, dict)]


def _slider_ids(question: Question, key: str) -> list[str]:
    cfg = question.config.get(key) or {}
    return [o["id"] for o in cfg.get("options", []) if "id" in o]


def random_answer(question: Question, rng: random.Random) -> Any:
    kind = question.kind
    if kind in (QuestionKind.SHORT_TEXT, QuestionKind.LONG_TEXT) or kind is None:
        return rng.choice(_LOREM)
    if kind == QuestionKind.RADIO:
        options = [o for o in question.config.get("options", []) if isinstance(o, dict)]
        choice = rng.choice(options)
        if choice.get("isOther"):
            return {"isOther": True, "otherValue": rng.choice(_LOREM)}
        return choice["value"]
    if kind == QuestionKind.CHECKBOX:
        values = _option_values(question)
        return rng.sample(values, k=rng.randint(1, len(values)))
    if kind == QuestionKind.TAGS:
        tags = question.config.get("tagOptions") or _LOREM
        return rng.sample(tags, k=rng.randint(1, len(tags)))
    if kind == QuestionKind.RANGE_SLIDER:
        cfg = question.config.get("rangeSlider") or {}
        return rng.randint(int(cfg.get("min", 0)), int(cfg.get("max", 100)))
    if kind == QuestionKind.LIKERT:
        scale = question.config.get("likertScale") or [1, 2, 3, 4, 5]
        return {"rating": rng.choice(scale)}
    if kind == QuestionKind.MATRIX_2D:
        matrix = question.config.get("matrix") or {}
        columns = matrix.get("columns") or ["x"]
        return {row: rng.choice(columns) for row in matrix.get("rows", [])}
    if kind == QuestionKind.RANK_OPTIONS:
        ids = [o["id"] for o in question.config.get("rankOptions", [])]
        rng.shuffle(ids)
        return [{"id": oid, "rank": i + 1} for i, oid in enumerate(ids)]
    if kind == QuestionKind.MULTI_VALUE_SLIDER:
        return {oid: rng.randint(0, 100) for oid in _slider_ids(question, "multiValueSlider")}
    if kind == QuestionKind.RADAR:
        return {oid: rng.randint(0, 100) for oid in _slider_ids(question, "radar")}
    return rng.choice(_LOREM)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def print_dependency_map(console: Console, engine: SurveyEngine) -> None:
    table = Table(title="Condition dependencies", show_lines=False)
    table.add_column("Answer to", style="cyan")
    table.add_column("Drives visibility of")
    deps = engine.dependency_map
    for ref, dependents in deps.items():
        table.add_row(ref, ", ".join(dependents))
    if not deps:
        console.print("[dim]No conditional questions.[/]")
        return
    console.print(table)


def _short(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


async def run_simulation(
    source: str, *, seed: int | None, skip_rate: float, deps_only: bool,
) -> int:
    console = Console()
    rng = random.Random(seed)
    sink = MemorySink()
    engine = SurveyEngine(
        transport=FileTransport(),
        sink=sink,
        identity=StaticIdentityProvider({"preferredName": "sim_user"}),
    )
    definition = await engine.load_survey(source)
    console.rule(f"[bold]{definition.title or definition.id}")
    print_dependency_map(console, engine)
    if deps_only:
        return 0

    while True:
        view = engine.get_step_view()
        step = view.step
        table = Table(
            title=f"Step {view.index + 1}/{view.total_steps}: {step.title or step.id}",
            show_lines=True,
        )
        table.add_column("Question", min_width=24)
        table.add_column("Kind", width=16)
        table.add_column("Answer", min_width=20)
        table.add_column("Shown", style="green")
        table.add_column("Hidden", style="yellow")

        # Visibility can change while answering, so re-read after each save
        answered: set[str] = set()
        while True:
            pending = [q for q in engine.visible_questions(step) if q.id not in answered]
            if not pending:
                break
            q = pending[0]
            answered.add(q.id)
            if not q.required and rng.random() < skip_rate:
                table.add_row(q.title or q.id, q.type, "[dim]skipped[/]", "", "")
                continue
            comment = rng.choice(_LOREM) if q.allow_comment and rng.random() < 0.5 else None
            value = random_answer(q, rng)
            result = engine.submit_answer(q.id, value, comment)
            table.add_row(
                q.title or q.id, q.type, _short(value),
                ", ".join(result.shown), ", ".join(result.hidden),
            )
        console.print(table)

        if view.is_last_step:
            break
        if not engine.next_step():
            issues = engine.validate_step()
            console.print(f"[red]Blocked on step {view.index}[/]: {[i.question_id for i in issues]}")
            return 1

    progress = engine.get_progress()
    console.print(f"Progress: {progress.percent:.0f}%")

    result = await engine.submit_survey()
    console.rule("[bold]Submission")
    console.print(f"Receipt: {result.receipt}")
    console.print(SummaryRenderer().render_submission(definition, result.payload, "txt"))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Simulate a survey end-to-end with random answers.",
    )
    parser.add_argument(
        "source",
        nargs="?",
        default=str(_DEFAULT_SOURCE),
        help="Path to a survey definition (.json/.yaml). Default: bundled example.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--skip-rate",
        type=float,
        default=0.0,
        help="Probability of leaving an optional question unanswered (default: 0)",
    )
    parser.add_argument(
        "--deps-only",
        action="store_true",
        help="Print the condition dependency map and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    sys.exit(asyncio.run(run_simulation(
        args.source, seed=args.seed, skip_rate=args.skip_rate, deps_only=args.deps_only,
    )))


if __name__ == "__main__":
    main()
