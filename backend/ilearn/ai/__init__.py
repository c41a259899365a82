"""Text-generation helpers used by quizzes and grading."""
from .client import AIClient, get_ai_client
from .flows import (
    Difficulty,
    QuizQuestion,
    GenerateQuizQuestionsInput,
    GenerateQuizQuestionsOutput,
    ScoreAnswerInput,
    ScoreAnswerOutput,
    generate_quiz_questions,
    score_answer,
)

__all__ = [
    "AIClient",
    "get_ai_client",
    "Difficulty",
    "QuizQuestion",
    "GenerateQuizQuestionsInput",
    "GenerateQuizQuestionsOutput",
    "ScoreAnswerInput",
    "ScoreAnswerOutput",
    "generate_quiz_questions",
    "score_answer",
]
