"""Unit tests for individual components in isolation.

Ensures fast execution with minimal dependencies.

Coverage:
    - completion/: Configuration and response heuristics
    - parsing/: Attachment validation, thumbnails and PDF extraction
    - store/: Session mutations, statistics and persistence
    - search/ and analytics/: Derived views

Follows single responsibility per test function. Leverages pytest-check
for multiple assertions per test.
"""
