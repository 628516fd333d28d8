"""
Tests package - Test suite for the Pocket ID operator.

Contains:
- unit/: Unit tests for individual components, run against in-memory fakes
"""
