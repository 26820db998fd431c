"""
Services layer for chat data access.

This layer handles:
- Input validation for messages and typing indicators
- Delegation to the configured chat store
"""
