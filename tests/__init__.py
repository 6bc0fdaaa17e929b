"""Test package for Cerebras Chat.

Provides test coverage for all components with unit tests for isolated
logic and integration tests for the send flow.

Structure:
    - unit/: Individual function and class tests
    - integration/: Client and controller workflows over a mock transport

Leverages pytest with pytest-check for soft assertions.
"""
