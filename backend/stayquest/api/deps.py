"""
Request-scoped dependencies for objects owned by the application lifespan.
"""

from fastapi import Request

from stayquest.services.session_events import SessionEvents


def get_session_events(request: Request) -> SessionEvents:
    return request.app.state.session_events
