"""
Repository layer for data access operations.

This package contains the repository base classes, the query builders they
hand out, and the operation registry that maps synthesized method names to
terminal operations.
"""
