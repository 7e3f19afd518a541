"""
Pydantic schema definitions for API payloads.

Schemas are kept apart from the stored documents so that the wire
representation can differ from the persisted one.
"""
