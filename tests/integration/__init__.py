"""Integration tests for the completion client and the chat controller.

HTTP goes through httpx.MockTransport serving canned buffered and streamed
responses, so the full wire path runs without network access.
"""
