"""Tests for the AI client and flows."""
import json
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from ilearn.ai import (
    AIClient, Difficulty, GenerateQuizQuestionsInput, GenerateQuizQuestionsOutput, ScoreAnswerInput,
    generate_quiz_questions, score_answer,
)
from ilearn.errors import AIServiceError

QUESTIONS = {
    "questions": [
        {"question": "What is 2 + 2?", "options": ["3", "4", "5", "6"], "correct_answer": "4"},
    ]
}


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def ai_client():
    """AIClient with the OpenAI client replaced by a mock."""
    client = AIClient(model_name="test-model", api_key="test-key", temperature=0.2)
    mock_openai = MagicMock()
    mock_openai.chat.completions.create = AsyncMock()
    client._client = mock_openai
    return client


class TestAIClient:
    @pytest.mark.asyncio
    async def test_complete_json_requests_json_output(self, ai_client):
        ai_client.client.chat.completions.create.return_value = completion('{"ok": true}')

        content = await ai_client.complete_json("system", "user")

        assert content == '{"ok": true}'
        kwargs = ai_client.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["temperature"] == 0.2
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self, ai_client):
        ai_client.client.chat.completions.create.side_effect = ConnectionError("boom")
        with pytest.raises(AIServiceError, match="AI request failed"):
            await ai_client.complete_json("system", "user")

    @pytest.mark.asyncio
    async def test_empty_choices(self, ai_client):
        ai_client.client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        with pytest.raises(AIServiceError, match="No choices"):
            await ai_client.complete_json("system", "user")

    @pytest.mark.asyncio
    async def test_empty_content(self, ai_client):
        ai_client.client.chat.completions.create.return_value = completion("   ")
        with pytest.raises(AIServiceError, match="Empty content"):
            await ai_client.complete_json("system", "user")

    @pytest.mark.asyncio
    async def test_generate_rejects_bad_json(self, ai_client):
        ai_client.client.chat.completions.create.return_value = completion("not json")
        with pytest.raises(AIServiceError, match="parse JSON"):
            await ai_client.generate("system", "user", GenerateQuizQuestionsOutput)

    @pytest.mark.asyncio
    async def test_generate_rejects_wrong_shape(self, ai_client):
        ai_client.client.chat.completions.create.return_value = completion('{"questions": [{"question": "x"}]}')
        with pytest.raises(AIServiceError, match="expected format"):
            await ai_client.generate("system", "user", GenerateQuizQuestionsOutput)

    def test_local_endpoint_gets_dummy_key(self):
        client = AIClient(base_url="http://localhost:11434/v1", api_key="")
        client.api_key = None
        assert client.client.api_key == "dummy-key"


class TestFlows:
    @pytest.mark.asyncio
    async def test_generate_quiz_questions(self, ai_client):
        ai_client.client.chat.completions.create.return_value = completion(json.dumps(QUESTIONS))

        result = await generate_quiz_questions(
            ai_client,
            GenerateQuizQuestionsInput(topic="Arithmetic", difficulty=Difficulty.hard, number_of_questions=1),
        )

        assert result.questions[0].correct_answer == "4"
        prompt = ai_client.client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert '"Arithmetic"' in prompt
        assert '"hard"' in prompt
        assert "Generate 1 questions" in prompt

    @pytest.mark.asyncio
    async def test_short_answer_from_model_is_logged(self, ai_client, caplog):
        ai_client.client.chat.completions.create.return_value = completion(json.dumps(QUESTIONS))

        with caplog.at_level(logging.WARNING, logger="ilearn.ai.flows"):
            result = await generate_quiz_questions(
                ai_client, GenerateQuizQuestionsInput(topic="Arithmetic", number_of_questions=3)
            )

        assert len(result.questions) == 1
        assert "Asked for 3 questions" in caplog.text

    @pytest.mark.asyncio
    async def test_correct_answer_must_be_an_option(self, ai_client):
        bad = {"questions": [{"question": "Q", "options": ["a", "b", "c", "d"], "correct_answer": "e"}]}
        ai_client.client.chat.completions.create.return_value = completion(json.dumps(bad))

        with pytest.raises(AIServiceError):
            await generate_quiz_questions(ai_client, GenerateQuizQuestionsInput(topic="Letters"))

    @pytest.mark.asyncio
    async def test_score_answer(self, ai_client):
        ai_client.client.chat.completions.create.return_value = completion('{"score": 7, "feedback": "Good"}')

        result = await score_answer(
            ai_client,
            ScoreAnswerInput(
                question="Define recursion",
                correct_answer="A function calling itself",
                student_answer="Self-calling function",
                rubric="Mention self reference",
            ),
        )

        assert result.score == 7
        prompt = ai_client.client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert "Self-calling function" in prompt
        assert "Mention self reference" in prompt

    def test_input_defaults(self):
        request = GenerateQuizQuestionsInput(topic="Cells")
        assert request.difficulty == Difficulty.medium
        assert request.number_of_questions == 5

    def test_question_needs_four_options(self):
        with pytest.raises(ValueError):
            GenerateQuizQuestionsOutput.model_validate(
                {"questions": [{"question": "Q", "options": ["a", "b"], "correct_answer": "a"}]}
            )
