"""SurveyEngine — the renderer-facing façade for one survey session.

Each instance owns its definition, response store, navigation state and
resume slots, so any number of sessions can run side by side in one
process (one engine per user/session in the HTTP server, one per test).

The engine composes five collaborators:
    DefinitionLoader        — fetch + hold the immutable schema
    ResponseStore           — question id -> Response
    ConditionEvaluator      — stateless visibility rules
    NavigationStateMachine  — current step index
    SubmissionCoordinator   — payload assembly + delivery to a sink

Lifecycle::

    engine = SurveyEngine(storage=FileResumeStorage("/var/lib/survey"))
    await engine.load_survey("surveys/onboarding.json")   # restores state
    engine.submit_answer("q1", "yes")
    if not engine.next_step():
        issues = engine.validate_step()                    # per-question errors
    result = await engine.submit_survey()

Every response save and every step change is persisted to the resume
storage.  Navigation and validation never raise: they return booleans or
lists of issues.  Only loading and submitting raise.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from survey_engine.constants import (
    DEFAULT_DEBOUNCE_SECONDS,
    REQUIRED_MESSAGE,
    STORAGE_KEY_CURRENT_STEP,
    STORAGE_KEY_RESPONSES,
)
from survey_engine.debounce import Debouncer
from survey_engine.errors import StorageCorruption
from survey_engine.evaluator import ConditionEvaluator, build_dependency_map
from survey_engine.interfaces import (
    DefinitionTransport,
    IdentityProvider,
    ResumeStorage,
    SubmissionSink,
)
from survey_engine.loader import DefinitionLoader
from survey_engine.models.definition import Step, SurveyDefinition
from survey_engine.models.question import Question
from survey_engine.models.response import Response, SubmissionResult
from survey_engine.models.session import (
    AnswerResult,
    ProgressInfo,
    StepProgress,
    StepView,
    ValidationIssue,
)
from survey_engine.navigation import NavigationStateMachine
from survey_engine.storage import InMemoryResumeStorage
from survey_engine.store import ResponseStore
from survey_engine.submission import SubmissionCoordinator

logger = logging.getLogger(__name__)


class SurveyEngine:
    """Holds and drives one survey session.

    Args:
        transport: how :meth:`load_survey` fetches definitions
            (default: local files).
        storage: resume-state slots (default: in-memory).
        sink: where :meth:`submit_survey` delivers payloads.
        identity: default source of submitter claims.
        evaluator: condition evaluator (default: :class:`ConditionEvaluator`).
        key_prefix: extra namespace prepended to both resume-slot keys,
            so several surveys can share one storage backend.
    """

    def __init__(
        self,
        *,
        transport: DefinitionTransport | None = None,
        storage: ResumeStorage | None = None,
        sink: SubmissionSink | None = None,
        identity: IdentityProvider | None = None,
        evaluator: ConditionEvaluator | None = None,
        key_prefix: str = "",
    ) -> None:
        self._loader = DefinitionLoader(transport)
        self._storage = storage if storage is not None else InMemoryResumeStorage()
        self._store = ResponseStore()
        self._evaluator = evaluator or ConditionEvaluator()
        self._nav = NavigationStateMachine()
        self._coordinator = SubmissionCoordinator(sink, identity)
        self._deps: dict[str, list[str]] = {}
        self._step_key = f"{key_prefix}{STORAGE_KEY_CURRENT_STEP}"
        self._responses_key = f"{key_prefix}{STORAGE_KEY_RESPONSES}"

    # ==================================================================
    # Loading
    # ==================================================================

    async def load_survey(self, source: str) -> SurveyDefinition:
        """Fetch the definition at ``source`` and start (or resume) the session.

        Raises:
            LoadError: the previous definition and state stay untouched.
        """
        definition = await self._loader.load(source)
        self._on_loaded(definition)
        return definition

    def load_definition(self, data: SurveyDefinition | dict) -> SurveyDefinition:
        """Synchronous variant of :meth:`load_survey` for in-memory definitions."""
        definition = self._loader.load_definition(data)
        self._on_loaded(definition)
        return definition

    def _on_loaded(self, definition: SurveyDefinition) -> None:
        self._deps = build_dependency_map(definition)
        self._nav.reset(len(definition.steps))
        self._store.clear()
        self._restore()

    @property
    def is_loaded(self) -> bool:
        return self._loader.is_loaded

    @property
    def definition(self) -> SurveyDefinition | None:
        return self._loader.definition

    @property
    def storage(self) -> ResumeStorage:
        return self._storage

    @property
    def dependency_map(self) -> dict[str, list[str]]:
        return {k: list(v) for k, v in self._deps.items()}

    # ==================================================================
    # Step lookups
    # ==================================================================

    def get_all_steps(self) -> list[Step]:
        if self.definition is None:
            return []
        return list(self.definition.steps)

    def get_step_by_index(self, index: int) -> Step | None:
        steps = self.get_all_steps()
        if 0 <= index < len(steps):
            return steps[index]
        return None

    def get_step_by_id(self, step_id: str) -> Step | None:
        for step in self.get_all_steps():
            if step.id == step_id:
                return step
        return None

    def get_current_step(self) -> Step | None:
        return self.get_step_by_index(self._nav.current_index)

    @property
    def current_step_index(self) -> int:
        return self._nav.current_index

    @property
    def total_steps(self) -> int:
        return self._nav.total_steps

    # ==================================================================
    # Navigation
    # ==================================================================

    def go_to_step(self, index: int) -> bool:
        """Jump to ``index`` without validating.  False (no change) if out of range."""
        if not self.is_loaded:
            return False
        moved = self._nav.go_to_step(index)
        if moved:
            self._persist()
        return moved

    def next_step(self) -> bool:
        """Advance one step if the current step validates.

        The gate only considers required questions that are visible
        under current conditions.  Callers surface the failures through
        :meth:`validate_step`.
        """
        if not self.is_loaded or not self._nav.has_next():
            return False
        issues = self.validate_step()
        if issues:
            logger.debug(
                "Blocked advance from step %d: %d unanswered required question(s)",
                self._nav.current_index, len(issues),
            )
            return False
        return self.go_to_step(self._nav.current_index + 1)

    def prev_step(self) -> bool:
        return self.go_to_step(self._nav.current_index - 1)

    def has_next_step(self) -> bool:
        return self.is_loaded and self._nav.has_next()

    def has_prev_step(self) -> bool:
        return self.is_loaded and self._nav.has_prev()

    def has_visited_step(self, index: int) -> bool:
        return self.is_loaded and self._nav.has_visited(index)

    def step_index_for_fraction(self, fraction: float) -> int | None:
        """Map a progress-bar click position (0..1) to a step index."""
        return self._nav.step_index_for_fraction(fraction)

    # ==================================================================
    # Responses
    # ==================================================================

    def save_response(self, question_id: str, value: Any, comment: str | None = None) -> bool:
        """Record an answer.  Returns False (nothing saved) if no survey is loaded.

        Overwrites both value and comment: omitting ``comment`` drops any
        comment saved earlier for this question.
        """
        if not self.is_loaded:
            logger.warning("Cannot save response for %s: no survey loaded", question_id)
            return False
        self._store.save(question_id, value, comment)
        self._persist()
        return True

    def submit_answer(
        self, question_id: str, value: Any, comment: str | None = None,
    ) -> AnswerResult:
        """Save an answer and report which dependent questions changed visibility."""
        dependents = [
            q for q in (self._find_question(qid) for qid in self._deps.get(question_id, []))
            if q is not None
        ]
        before = {q.id: self.should_show_question(q) for q in dependents}

        saved = self.save_response(question_id, value, comment)

        shown: list[str] = []
        hidden: list[str] = []
        if saved:
            for q in dependents:
                now_visible = self.should_show_question(q)
                if now_visible and not before[q.id]:
                    shown.append(q.id)
                elif before[q.id] and not now_visible:
                    hidden.append(q.id)
        return AnswerResult(question_id=question_id, saved=saved, shown=shown, hidden=hidden)

    def get_response(self, question_id: str) -> Response | None:
        return self._store.get(question_id)

    def get_all_responses(self) -> Mapping[str, Response]:
        """Read-only snapshot; later saves do not show through."""
        return self._store.snapshot()

    def clear_responses(self) -> None:
        """Start over: empty the store, return to step 0 and persist."""
        self._store.clear()
        self._nav.reset(self._nav.total_steps)
        if self.is_loaded:
            self._persist()

    def debounced_saver(
        self, question_id: str, wait: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> Debouncer:
        """Debouncer whose ``push(value, comment=None)`` saves ``question_id``."""
        def _save(value: Any, comment: str | None = None) -> None:
            self.save_response(question_id, value, comment)

        return Debouncer(_save, wait)

    # ==================================================================
    # Conditions & validation
    # ==================================================================

    def should_show_question(self, question: Question) -> bool:
        return self._evaluator.should_show(question, self._store.snapshot())

    def visible_questions(self, step: Step) -> list[Question]:
        snapshot = self._store.snapshot()
        return [q for q in step.questions if self._evaluator.should_show(q, snapshot)]

    def are_all_required_questions_answered(self, step_id: str) -> bool:
        """Required check for ``step_id`` (no visibility filter).

        An unknown step id has nothing to check and returns True.
        """
        step = self.get_step_by_id(step_id)
        if step is None:
            return True
        return self._store.all_answered(step.questions)

    def validate_step(self, step_id: str | None = None) -> list[ValidationIssue]:
        """Unanswered required questions visible on the step (default: current)."""
        step = self.get_step_by_id(step_id) if step_id is not None else self.get_current_step()
        if step is None:
            return []
        visible = self.visible_questions(step)
        return [
            ValidationIssue(question_id=q.id, message=REQUIRED_MESSAGE)
            for q in visible
            if q.required and not self._store.all_answered([q])
        ]

    # ==================================================================
    # Views
    # ==================================================================

    def get_step_view(self) -> StepView | None:
        step = self.get_current_step()
        if step is None:
            return None
        return StepView(
            index=self._nav.current_index,
            total_steps=self._nav.total_steps,
            step=step,
            visible_questions=self.visible_questions(step),
            has_next=self._nav.has_next(),
            has_prev=self._nav.has_prev(),
            is_last_step=self._nav.is_last_step(),
        )

    def get_progress(self) -> ProgressInfo:
        steps = []
        for i, step in enumerate(self.get_all_steps()):
            visited = self._nav.has_visited(i)
            steps.append(StepProgress(
                index=i,
                step_id=step.id,
                title=step.title,
                active=i == self._nav.current_index,
                visited=visited,
                complete=visited and not self.validate_step(step.id),
            ))
        return ProgressInfo(
            current_index=self._nav.current_index,
            total_steps=self._nav.total_steps,
            percent=self._nav.progress_percent(),
            steps=steps,
        )

    # ==================================================================
    # Submission
    # ==================================================================

    async def submit_survey(
        self, identity: Mapping[str, Any] | None = None,
    ) -> SubmissionResult:
        """Deliver every recorded response to the submission sink.

        Does not validate and does not clear state; callers decide both.

        Args:
            identity: claims overriding the engine's identity provider.

        Raises:
            EmptySubmission: no survey loaded or no responses.
            SubmitError: the sink failed (original exception on ``cause``).
        """
        return await self._coordinator.submit(
            self.definition, self._store.snapshot(), identity,
        )

    # ==================================================================
    # Resume state
    # ==================================================================

    def clear_resume_state(self) -> None:
        """Delete both resume slots (the in-memory session is untouched)."""
        self._storage.delete(self._step_key)
        self._storage.delete(self._responses_key)

    def _persist(self) -> None:
        try:
            self._storage.set(self._step_key, str(self._nav.current_index))
            self._storage.set(self._responses_key, self._store.to_json())
        except Exception:
            logger.exception("Failed to persist survey state")

    def _restore(self) -> None:
        """Resume from storage.  Corrupt or out-of-range state means a fresh start."""
        try:
            raw_responses = self._storage.get(self._responses_key)
            raw_step = self._storage.get(self._step_key)
        except Exception:
            logger.exception("Failed to read persisted survey state")
            return

        if raw_responses is not None:
            try:
                self._store.replace(ResponseStore.parse_json(raw_responses))
            except StorageCorruption as exc:
                logger.warning("Discarding corrupt persisted responses: %s", exc)
                self._store.clear()
                return

        if raw_step is not None:
            try:
                index = int(raw_step)
            except ValueError:
                logger.warning("Discarding corrupt persisted step index %r", raw_step)
                return
            self._nav.restore(index)

        if raw_responses is not None or raw_step is not None:
            logger.info(
                "Restored survey state: step %d, %d responses",
                self._nav.current_index, len(self._store),
            )

    def _find_question(self, question_id: str) -> Question | None:
        if self.definition is None:
            return None
        return self.definition.find_question(question_id)
