import json
import unittest

from agents.errors import UpstreamOutputFormatError, UpstreamOutputParseError
from agents.scorer import SYSTEM_INSTRUCTION, EssayScoringAgent, build_prompt
from api.models import GradingRequest
from tests.helpers import essay_payload, make_client


class TestBuildPrompt(unittest.TestCase):
    def test_prompt_embeds_request_fields(self):
        request = GradingRequest.model_validate(essay_payload())
        prompt = build_prompt(request, "- 5 (weight: 5): Explains X")

        self.assertIn(request.question, prompt)
        self.assertIn(request.student_answer, prompt)
        self.assertIn(request.correct_answer, prompt)
        self.assertIn("- 5 (weight: 5): Explains X", prompt)
        self.assertIn("150-250 characters", prompt)
        self.assertIn('"score"', prompt)
        self.assertIn('"feedback"', prompt)

    def test_missing_reference_answer(self):
        request = GradingRequest.model_validate(essay_payload(correctAnswer=None))
        self.assertIn("Model Answer (Reference): Not provided", build_prompt(request, ""))

    def test_braces_in_answer_are_not_formatted(self):
        request = GradingRequest.model_validate(essay_payload(studentAnswer="f(x) = {x | x > 0}"))
        self.assertIn("{x | x > 0}", build_prompt(request, ""))


class TestEssayScoringAgent(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.request = GradingRequest.model_validate(essay_payload())

    async def test_grade_success(self):
        client = make_client(json.dumps({"score": 4, "feedback": "Good answer, addresses rubric point 1."}))
        agent = EssayScoringAgent(client, model="gemini-2.5-flash-lite")

        result = await agent.grade(self.request)

        self.assertEqual(result.score, 4)
        self.assertEqual(result.feedback, "Good answer, addresses rubric point 1.")

        client.aio.models.generate_content.assert_awaited_once()
        kwargs = client.aio.models.generate_content.await_args.kwargs
        self.assertEqual(kwargs["model"], "gemini-2.5-flash-lite")
        self.assertEqual(kwargs["config"].response_mime_type, "application/json")
        self.assertEqual(kwargs["config"].system_instruction, SYSTEM_INSTRUCTION)
        self.assertIn("- 5 (weight: 5):", kwargs["contents"][0].parts[0].text)

    async def test_fenced_json_is_accepted(self):
        client = make_client('```json\n{"score": 3.5, "feedback": "OK"}\n```')
        result = await EssayScoringAgent(client).grade(self.request)
        self.assertEqual(result.score, 3.5)

    async def test_non_json_raises_parse_error(self):
        client = make_client("I think this deserves a 4.")
        with self.assertRaises(UpstreamOutputParseError):
            await EssayScoringAgent(client).grade(self.request)

    async def test_empty_payload_raises_parse_error(self):
        with self.assertRaises(UpstreamOutputParseError):
            await EssayScoringAgent(make_client(None)).grade(self.request)

    async def test_non_standard_constants_raise_parse_error(self):
        for text in [
            '{"score": NaN, "feedback": "x"}',
            '{"score": Infinity, "feedback": "x"}',
            '{"score": -Infinity, "feedback": "x"}',
        ]:
            with self.subTest(text=text):
                with self.assertRaises(UpstreamOutputParseError):
                    await EssayScoringAgent(make_client(text)).grade(self.request)

    async def test_overflowing_score_raises_format_error(self):
        client = make_client('{"score": 1e999, "feedback": "x"}')
        with self.assertRaises(UpstreamOutputFormatError):
            await EssayScoringAgent(client).grade(self.request)

    async def test_wrong_field_types_raise_format_error(self):
        bad_payloads = [
            {"score": "4", "feedback": "Good"},
            {"score": 4, "feedback": ["Good"]},
            {"score": True, "feedback": "Good"},
            {"feedback": "Good"},
            [4, "Good"],
        ]
        for payload in bad_payloads:
            with self.subTest(payload=payload):
                client = make_client(json.dumps(payload))
                with self.assertRaises(UpstreamOutputFormatError):
                    await EssayScoringAgent(client).grade(self.request)


if __name__ == "__main__":
    unittest.main()
