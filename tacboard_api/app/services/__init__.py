"""
Service layer.

Repositories here own the mapping between API models and stored
documents; handlers never talk to the store directly.
"""
