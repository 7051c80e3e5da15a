"""
FastAPI dependencies for injected collaborators

Notification providers are created once at start-up and kept on app.state;
tests override these dependencies with recording fakes.
"""
from fastapi import Request

from .services.email_provider import EmailProvider
from .services.push_provider import PushProvider


def get_email_provider(request: Request) -> EmailProvider:
    return request.app.state.email_provider


def get_push_provider(request: Request) -> PushProvider:
    return request.app.state.push_provider
