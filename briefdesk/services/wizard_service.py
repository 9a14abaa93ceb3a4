"""
Brief wizard
category -> industry -> result, one generation in flight at a time
"""
import threading
from typing import List, Optional

from briefdesk.errors import GenerationError, GenerationInProgress, WizardStateError
from briefdesk.models import (
    RANDOM_INDUSTRY,
    Brief,
    DesignCategory,
    Difficulty,
    WizardState,
    WizardStep,
    industries_for,
)
from briefdesk.services.ai_service import DesignAIService
from briefdesk.utils.log import get_logger

logger = get_logger(__name__)


class BriefWizard:
    """
    Transient selection state for generating a brief

    reset() bumps a generation counter. A generation that finishes after
    its counter value was superseded drops its result instead of
    committing it.
    """

    def __init__(self, ai: DesignAIService):
        self.ai = ai
        self._state = WizardState()
        self._generation = 0
        self._state_lock = threading.RLock()
        self._inflight = threading.Lock()

    def snapshot(self) -> WizardState:
        with self._state_lock:
            return self._state.model_copy(deep=True)

    @property
    def brief(self) -> Optional[Brief]:
        return self._state.brief

    def accepted_brief(self) -> Brief:
        """
        The brief on display, for turning into a project

        Raises:
            WizardStateError: the wizard is not showing a result
            GenerationInProgress: a regeneration is running
        """
        with self._state_lock:
            self._require_step(WizardStep.RESULT)
            self._require_idle()
            return self._state.brief

    def _require_step(self, *steps: WizardStep) -> None:
        if self._state.step not in steps:
            allowed = ", ".join(s.value for s in steps)
            raise WizardStateError(f"not allowed in step '{self._state.step.value}' (expected {allowed})")

    def _require_idle(self) -> None:
        if self._state.loading:
            raise GenerationInProgress("a brief is already being generated")

    # =========================
    # Selection
    # =========================
    def set_difficulty(self, difficulty: Difficulty) -> WizardState:
        with self._state_lock:
            self._require_step(WizardStep.CATEGORY)
            self._state.difficulty = difficulty
            return self.snapshot()

    def select_category(self, category: DesignCategory) -> List[str]:
        """
        Pick the design category and move to the industry step

        Returns:
            preset industries for the category
        """
        with self._state_lock:
            self._require_step(WizardStep.CATEGORY)
            self._state.category = category
            self._state.step = WizardStep.INDUSTRY
        return industries_for(category)

    def back(self) -> WizardState:
        """Industry step back to category selection."""
        with self._state_lock:
            self._require_step(WizardStep.INDUSTRY)
            self._require_idle()
            self._state.step = WizardStep.CATEGORY
            self._state.error = None
            return self.snapshot()

    def reset(self) -> WizardState:
        """Start over: clear brief, selections and error."""
        with self._state_lock:
            self._generation += 1
            difficulty = self._state.difficulty
            self._state = WizardState(difficulty=difficulty)
            return self.snapshot()

    # =========================
    # Generation
    # =========================
    def generate(self, industry: str) -> Optional[Brief]:
        """
        Generate a brief for the selected category

        Args:
            industry: a preset, the RANDOM_INDUSTRY sentinel, or free text

        Returns:
            the brief, or None when the wizard was reset while generating

        Raises:
            GenerationInProgress: another generation is running
            GenerationError: the AI call failed; the wizard stays on the industry step
        """
        industry = (industry or "").strip()
        if not industry:
            raise ValueError("industry must not be empty")
        with self._state_lock:
            self._require_step(WizardStep.INDUSTRY)
        return self._run(industry)

    def regenerate(self) -> Optional[Brief]:
        """Generate again with the same category, industry and difficulty."""
        with self._state_lock:
            self._require_step(WizardStep.RESULT)
            industry = self._state.industry
        return self._run(industry)

    def _run(self, industry: str) -> Optional[Brief]:
        if not self._inflight.acquire(blocking=False):
            raise GenerationInProgress("a brief is already being generated")
        try:
            with self._state_lock:
                category = self._state.category
                difficulty = self._state.difficulty
                generation = self._generation
                self._state.loading = True
                self._state.error = None
                self._state.industry = industry

            hint = None if industry.lower() == RANDOM_INDUSTRY else industry
            try:
                brief = self.ai.generate_brief(category, difficulty, hint)
            except GenerationError as e:
                with self._state_lock:
                    if generation == self._generation:
                        self._state.error = e.user_message
                        self._state.brief = None
                        self._state.step = WizardStep.INDUSTRY
                raise

            with self._state_lock:
                if generation != self._generation:
                    logger.info("wizard.stale_result_dropped", brief_id=brief.id)
                    return None
                self._state.brief = brief
                self._state.step = WizardStep.RESULT
            return brief
        finally:
            with self._state_lock:
                if generation == self._generation:
                    self._state.loading = False
            self._inflight.release()
