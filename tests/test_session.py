"""
Test cases for the explore selection and quiz state machine.
"""
import asyncio
import random
import unittest
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from cardioview.catalog import ANATOMY_DATA
from cardioview.clinical import QUIZ_FALLBACK
from cardioview.session import RequestToken, StudySession
from cardioview.types import AppMode, QuizStatus

from fake_services import CLINICAL_DATA, VIGNETTE, FakeTextService

SEED = 7


class TestQuizRound(unittest.IsolatedAsyncioTestCase):
    """Test quiz transitions."""

    def setUp(self):
        self.service = FakeTextService()
        self.session = StudySession(ANATOMY_DATA, self.service, rng=random.Random(SEED))
        self.transitions = []
        self.session.subscribe(lambda old, new: self.transitions.append((old, new)))

    def _expected_target(self):
        return ANATOMY_DATA[random.Random(SEED).randrange(len(ANATOMY_DATA))]

    def _wrong_part(self):
        return next(part for part in ANATOMY_DATA if part.id != self.session.quiz_target.id)

    async def test_entering_quiz_starts_round(self):
        await self.session.set_mode(AppMode.QUIZ)

        self.assertEqual(self.session.quiz_target, self._expected_target())
        self.assertEqual(self.session.quiz_question, VIGNETTE)
        self.assertEqual(self.session.quiz_status, QuizStatus.WAITING_FOR_USER)
        self.assertEqual(self.transitions, [
            (QuizStatus.IDLE, QuizStatus.LOADING),
            (QuizStatus.LOADING, QuizStatus.WAITING_FOR_USER),
        ])

    async def test_vignette_prompt_does_not_force_json(self):
        await self.session.set_mode(AppMode.QUIZ)

        request = self.service.requests[-1]
        self.assertFalse(request.force_json)
        self.assertIn(self.session.quiz_target.label, request.prompt)

    async def test_correct_answer(self):
        await self.session.set_mode(AppMode.QUIZ)
        target = self.session.quiz_target

        self.session.resolve(target)

        self.assertEqual(self.session.quiz_status, QuizStatus.CORRECT)
        self.assertIs(self.session.selected_part, target)

    async def test_incorrect_then_correct(self):
        await self.session.set_mode(AppMode.QUIZ)
        wrong = self._wrong_part()

        self.session.resolve(wrong)
        self.assertEqual(self.session.quiz_status, QuizStatus.INCORRECT)
        self.assertIsNone(self.session.selected_part)

        self.session.resolve(wrong)
        self.assertEqual(self.session.quiz_status, QuizStatus.INCORRECT)
        # Repeated INCORRECT is not a change
        self.assertEqual(self.transitions[-1], (QuizStatus.WAITING_FOR_USER, QuizStatus.INCORRECT))

        self.session.resolve(self.session.quiz_target)
        self.assertEqual(self.session.quiz_status, QuizStatus.CORRECT)

    async def test_input_ignored_after_correct(self):
        await self.session.set_mode(AppMode.QUIZ)
        target = self.session.quiz_target
        self.session.resolve(target)

        self.session.resolve(self._wrong_part())

        self.assertEqual(self.session.quiz_status, QuizStatus.CORRECT)
        self.assertIs(self.session.selected_part, target)

    async def test_input_ignored_while_loading(self):
        self.service.gate = asyncio.Event()
        task = asyncio.create_task(self.session.set_mode(AppMode.QUIZ))
        await asyncio.sleep(0)

        self.assertEqual(self.session.quiz_status, QuizStatus.LOADING)
        self.session.resolve(self.session.quiz_target)
        self.assertEqual(self.session.quiz_status, QuizStatus.LOADING)
        self.assertIsNone(self.session.selected_part)

        self.service.gate.set()
        await task
        self.assertEqual(self.session.quiz_status, QuizStatus.WAITING_FOR_USER)

    async def test_next_case_only_after_correct(self):
        await self.session.set_mode(AppMode.QUIZ)
        self.assertFalse(await self.session.next_case())

        self.session.resolve(self.session.quiz_target)
        self.assertTrue(await self.session.next_case())

        self.assertEqual(self.session.quiz_status, QuizStatus.WAITING_FOR_USER)
        self.assertIsNone(self.session.selected_part)
        self.assertEqual(len(self.service.requests), 2)

    async def test_leaving_quiz_resets(self):
        await self.session.set_mode(AppMode.QUIZ)
        self.session.resolve(self.session.quiz_target)

        await self.session.set_mode(AppMode.EXPLORE)

        self.assertEqual(self.session.quiz_status, QuizStatus.IDLE)
        self.assertIsNone(self.session.quiz_target)
        self.assertIsNone(self.session.quiz_question)
        self.assertIsNone(self.session.selected_part)

    async def test_stale_vignette_discarded(self):
        self.service.gate = asyncio.Event()
        task = asyncio.create_task(self.session.set_mode(AppMode.QUIZ))
        await asyncio.sleep(0)

        await self.session.set_mode(AppMode.EXPLORE)
        self.service.gate.set()
        await task

        self.assertEqual(self.session.quiz_status, QuizStatus.IDLE)
        self.assertIsNone(self.session.quiz_question)

    async def test_same_mode_is_noop(self):
        await self.session.set_mode(AppMode.EXPLORE)

        self.assertEqual(self.transitions, [])
        self.assertEqual(self.service.requests, [])

    async def test_failed_vignette_uses_fallback(self):
        self.service.success = False
        await self.session.set_mode(AppMode.QUIZ)

        self.assertEqual(self.session.quiz_question, QUIZ_FALLBACK)
        self.assertEqual(self.session.quiz_status, QuizStatus.WAITING_FOR_USER)


class TestExploreSelection(unittest.IsolatedAsyncioTestCase):
    """Test explore selection and clinical context loading."""

    def setUp(self):
        self.service = FakeTextService()
        self.session = StudySession(ANATOMY_DATA, self.service)

    async def test_selection_overwritten(self):
        self.session.resolve(ANATOMY_DATA[0])
        self.session.resolve(ANATOMY_DATA[1])

        self.assertIs(self.session.selected_part, ANATOMY_DATA[1])
        self.assertEqual(self.session.quiz_status, QuizStatus.IDLE)

    async def test_load_clinical_context(self):
        self.session.resolve(ANATOMY_DATA[0])

        data = await self.session.load_clinical_context()

        self.assertEqual(data.pathology, CLINICAL_DATA["pathology"])
        self.assertIs(self.session.clinical, data)
        self.assertFalse(self.session.clinical_loading)
        self.assertTrue(self.service.requests[-1].force_json)

    async def test_no_selection_no_request(self):
        self.assertIsNone(await self.session.load_clinical_context())
        self.assertEqual(self.service.requests, [])

    async def test_stale_context_discarded(self):
        self.service.gate = asyncio.Event()
        self.session.resolve(ANATOMY_DATA[0])
        task = asyncio.create_task(self.session.load_clinical_context())
        await asyncio.sleep(0)
        self.assertTrue(self.session.clinical_loading)

        self.session.resolve(ANATOMY_DATA[1])
        self.service.gate.set()

        self.assertIsNone(await task)
        self.assertIsNone(self.session.clinical)
        self.assertFalse(self.session.clinical_loading)

    async def test_close_panel(self):
        self.session.resolve(ANATOMY_DATA[0])
        await self.session.load_clinical_context()

        self.session.close_panel()

        self.assertIsNone(self.session.selected_part)
        self.assertIsNone(self.session.clinical)


class TestStudySession(unittest.TestCase):

    def test_empty_catalog_rejected(self):
        with self.assertRaises(ValueError):
            StudySession([], FakeTextService())

    def test_request_token(self):
        token = RequestToken("hotspot-2")
        self.assertFalse(token.cancelled)
        token.cancel()
        self.assertTrue(token.cancelled)


if __name__ == '__main__':
    unittest.main()
