"""AI flows: quiz-question generation and open-ended answer scoring."""

import logging
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from .client import AIClient
from .prompts import (
    QUIZ_GENERATOR_SYSTEM,
    QUIZ_GENERATOR_TEMPLATE,
    SCORING_ASSISTANT_SYSTEM,
    SCORING_ASSISTANT_TEMPLATE,
)

logger = logging.getLogger(__name__)


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class QuizQuestion(BaseModel):
    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=4, max_length=4)
    correct_answer: str

    @model_validator(mode="after")
    def correct_answer_is_an_option(self):
        if self.correct_answer not in self.options:
            raise ValueError("correct_answer must be one of the options")
        return self


class GenerateQuizQuestionsInput(BaseModel):
    topic: str = Field(..., min_length=3)
    difficulty: Difficulty = Difficulty.medium
    number_of_questions: int = Field(5, ge=1, le=10)


class GenerateQuizQuestionsOutput(BaseModel):
    questions: list[QuizQuestion]


class ScoreAnswerInput(BaseModel):
    question: str
    correct_answer: str
    student_answer: str
    rubric: str


class ScoreAnswerOutput(BaseModel):
    score: float
    feedback: str


async def generate_quiz_questions(
    client: AIClient, request: GenerateQuizQuestionsInput
) -> GenerateQuizQuestionsOutput:
    prompt = QUIZ_GENERATOR_TEMPLATE.format(
        topic=request.topic,
        difficulty=request.difficulty.value,
        number_of_questions=request.number_of_questions,
    )
    result = await client.generate(QUIZ_GENERATOR_SYSTEM, prompt, GenerateQuizQuestionsOutput)
    if len(result.questions) != request.number_of_questions:
        logger.warning(
            f"Asked for {request.number_of_questions} questions on '{request.topic}', "
            f"got {len(result.questions)}"
        )
    else:
        logger.info(f"Generated {len(result.questions)} questions on '{request.topic}'")
    return result


async def score_answer(client: AIClient, request: ScoreAnswerInput) -> ScoreAnswerOutput:
    prompt = SCORING_ASSISTANT_TEMPLATE.format(**request.model_dump())
    return await client.generate(SCORING_ASSISTANT_SYSTEM, prompt, ScoreAnswerOutput)
