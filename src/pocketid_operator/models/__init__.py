"""
Models package - Pydantic models for type-safe resource handling.

Defines data models for:
- PocketIDClient specification and status
- Pocket ID API request/response payloads
"""
