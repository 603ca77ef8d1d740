"""LLM chains that produce guide section content."""
