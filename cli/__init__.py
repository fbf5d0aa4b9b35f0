"""Developer command wrappers (test, lint, format)."""
