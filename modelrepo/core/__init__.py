"""Configuration, errors, database sessions and observability."""
