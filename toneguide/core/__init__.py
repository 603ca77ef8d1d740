"""Schemas, validation, rendering and parsing for style guides."""
