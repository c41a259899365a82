"""Joining blocks with a code."""
