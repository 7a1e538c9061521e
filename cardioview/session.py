"""
Explore selection and quiz round state machine.
"""
import logging
import random
from typing import Callable, List, Optional, Sequence

from .clinical import MedicalData, get_clinical_context, get_quiz_question
from .text_service import TextServiceProto
from .types import AnatomicalPart, AppMode, QuizStatus

logger = logging.getLogger(__name__)

StatusListener = Callable[[QuizStatus, QuizStatus], None]


class RequestToken:
    """Marks interest in one in-flight text request; cancelled when it goes stale."""

    def __init__(self, label: str):
        self.label = label
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class StudySession:
    """
    Turns resolved targets into explore-detail or quiz-evaluation transitions.

    Features:
    - One quiz target at a time, fully replaced on every round
    - Stale text responses dropped via request tokens
    - Explore selection overwritten unconditionally
    """

    def __init__(self, catalog: Sequence[AnatomicalPart], text_service: TextServiceProto,
                 rng: Optional[random.Random] = None):
        """
        Initialize the session.

        Args:
            catalog: Parts a quiz round may pick from
            text_service: Backend for vignettes and clinical notes
            rng: Random source for picking quiz targets
        """
        if not catalog:
            raise ValueError("Catalog must contain at least one part")

        self.catalog = list(catalog)
        self.text_service = text_service
        self.rng = rng or random.Random()

        self.mode = AppMode.EXPLORE
        self.selected_part: Optional[AnatomicalPart] = None

        self.quiz_status = QuizStatus.IDLE
        self.quiz_target: Optional[AnatomicalPart] = None
        self.quiz_question: Optional[str] = None

        self.clinical: Optional[MedicalData] = None
        self.clinical_loading = False

        self._round_token: Optional[RequestToken] = None
        self._context_token: Optional[RequestToken] = None
        self._listeners: List[StatusListener] = []

    def subscribe(self, listener: StatusListener) -> None:
        """Register a callback for quiz status changes (old, new)."""
        self._listeners.append(listener)

    def _set_status(self, status: QuizStatus) -> None:
        old = self.quiz_status
        self.quiz_status = status
        if old is status:
            return
        logger.info("Quiz status %s -> %s", old.value, status.value)
        for listener in self._listeners:
            listener(old, status)

    async def set_mode(self, mode: AppMode) -> None:
        """Switch study mode; entering quiz starts a round, leaving it resets."""
        if mode is self.mode:
            return

        previous = self.mode
        self.mode = mode
        logger.info("Mode %s -> %s", previous.value, mode.value)

        if mode is AppMode.QUIZ:
            self._cancel_context()
            await self.start_round()
        else:
            self._reset_quiz()

    def _reset_quiz(self) -> None:
        if self._round_token is not None:
            self._round_token.cancel()
            self._round_token = None
        self.quiz_target = None
        self.quiz_question = None
        self.selected_part = None
        self._set_status(QuizStatus.IDLE)

    async def start_round(self) -> None:
        """Pick a random target and wait for its vignette."""
        if self._round_token is not None:
            self._round_token.cancel()

        target = self.catalog[self.rng.randrange(len(self.catalog))]
        token = RequestToken(target.id)
        self._round_token = token

        # Replace everything before any new input is accepted
        self.quiz_question = None
        self.selected_part = None
        self.quiz_target = target
        self._set_status(QuizStatus.LOADING)

        question = await get_quiz_question(self.text_service, target.label)

        if token.cancelled or self.mode is not AppMode.QUIZ:
            logger.info("Discarding stale vignette for %s", target.label)
            return

        self.quiz_question = question
        self._set_status(QuizStatus.WAITING_FOR_USER)

    async def next_case(self) -> bool:
        """Restart the round; only valid after a correct answer."""
        if self.mode is not AppMode.QUIZ or self.quiz_status is not QuizStatus.CORRECT:
            logger.debug("Next case ignored in status %s", self.quiz_status.value)
            return False
        await self.start_round()
        return True

    def resolve(self, part: AnatomicalPart) -> None:
        """
        Handle a resolved subject from a click, hotspot or voice match.

        In explore mode the selection is overwritten. In quiz mode the part is
        scored against the current target, but only while an answer is expected.
        """
        if self.mode is AppMode.EXPLORE:
            if self.selected_part is None or self.selected_part.id != part.id:
                self._cancel_context()
                self.clinical = None
            self.selected_part = part
            return

        if self.quiz_status not in (QuizStatus.WAITING_FOR_USER, QuizStatus.INCORRECT):
            return

        if self.quiz_target is not None and part.id == self.quiz_target.id:
            self.selected_part = part
            self._set_status(QuizStatus.CORRECT)
        else:
            # Selection stays untouched so the detail panel keeps its context
            self._set_status(QuizStatus.INCORRECT)

    def close_panel(self) -> None:
        """Clear the selection and drop any pending clinical context."""
        self._cancel_context()
        self.selected_part = None
        self.clinical = None

    def _cancel_context(self) -> None:
        if self._context_token is not None:
            self._context_token.cancel()
            self._context_token = None
        self.clinical_loading = False

    async def load_clinical_context(self) -> Optional[MedicalData]:
        """
        Fetch clinical notes for the current explore selection.

        Returns:
            The applied data, or None if nothing was selected or the
            response arrived after the user moved on
        """
        part = self.selected_part
        if self.mode is not AppMode.EXPLORE or part is None:
            return None

        self._cancel_context()
        token = RequestToken(part.id)
        self._context_token = token
        self.clinical = None
        self.clinical_loading = True

        data = await get_clinical_context(self.text_service, part.label)

        stale = (token.cancelled or self.mode is not AppMode.EXPLORE or
                 self.selected_part is None or self.selected_part.id != part.id)
        if stale:
            logger.info("Discarding stale clinical context for %s", part.label)
            return None

        self.clinical = data
        self.clinical_loading = False
        self._context_token = None
        return data
