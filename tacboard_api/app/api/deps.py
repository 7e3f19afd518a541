"""FastAPI dependencies shared by the endpoint modules."""

from fastapi import Request

from tacboard_api.app.services.combo_service import ComboRepository


def get_combo_repository(request: Request) -> ComboRepository:
    """Build a repository around the store attached to the running app."""
    return ComboRepository(request.app.state.store)
