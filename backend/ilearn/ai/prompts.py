"""Prompt templates for the AI flows."""

QUIZ_GENERATOR_SYSTEM = (
    "You are a quiz generator that creates quizzes on a given topic and difficulty. "
    "Respond with JSON only."
)

QUIZ_GENERATOR_TEMPLATE = """Generate a quiz about the topic "{topic}" with difficulty "{difficulty}". Generate {number_of_questions} questions.

Each question should have 4 possible answers, one of which is correct. The "correct_answer" should be the actual string of the correct answer, and MUST be present as one of the options.

Here's an example of the output format:
{{
  "questions": [
    {{
      "question": "What is the capital of France?",
      "options": ["London", "Paris", "Berlin", "Rome"],
      "correct_answer": "Paris"
    }},
    {{
      "question": "What is the highest mountain in the world?",
      "options": ["K2", "Kangchenjunga", "Mount Everest", "Lhotse"],
      "correct_answer": "Mount Everest"
    }}
  ]
}}

Make sure that all questions are related to the specified topic, are the correct difficulty, and follow the output format exactly."""

SCORING_ASSISTANT_SYSTEM = (
    "You are an AI scoring assistant that helps teachers grade open-ended questions. "
    "Respond with JSON only."
)

SCORING_ASSISTANT_TEMPLATE = """You will be provided with the student's answer, the correct answer, the rubric to use for grading, and the question that was asked.

Based on this information, determine the score that the student should receive and provide feedback for the student.

Question: {question}
Correct Answer: {correct_answer}
Student Answer: {student_answer}
Rubric: {rubric}

Respond as {{"score": <number>, "feedback": "<feedback for the student>"}}."""
