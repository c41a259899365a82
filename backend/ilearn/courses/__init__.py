"""Courses, blocks and course content."""
