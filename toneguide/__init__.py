"""Tone of voice style guide content pipeline."""
