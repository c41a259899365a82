"""Rubrics, grading policies, submissions and the speed grader."""
