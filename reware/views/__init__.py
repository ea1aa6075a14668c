"""Session-layer views: gate, router, live synchronizers, dispatcher and pages."""

from reware.views.app_session import AppSession
from reware.views.session import SessionGate, SessionState

__all__ = ["AppSession", "SessionGate", "SessionState"]
