"""
Push Provider Service
Adapter pattern for mobile push notifications (dev logging vs Expo push API)
"""
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List

import httpx

logger = logging.getLogger(__name__)

EXPO_TOKEN_PREFIX = "ExponentPushToken"


def is_expo_token(token: str) -> bool:
    return bool(token) and token.startswith(EXPO_TOKEN_PREFIX)


class PushProvider(ABC):
    """Abstract push provider interface"""

    @abstractmethod
    def send(self, tokens: Iterable[str], title: str, body: str) -> int:
        """
        Send a notification to every deliverable token

        Returns:
            Number of messages accepted for delivery
        """


class DevPushProvider(PushProvider):
    """Development push provider - logs notifications instead of sending"""

    def send(self, tokens: Iterable[str], title: str, body: str) -> int:
        deliverable = [t for t in tokens if is_expo_token(t)]
        for token in deliverable:
            logger.info(f"[DEV] Push to {token[:24]}...: {title} - {body}")
        return len(deliverable)


class ExpoPushProvider(PushProvider):
    """Sends notifications through the Expo push HTTP API"""

    def __init__(self, push_url: str, timeout: float = 10.0):
        self.push_url = push_url
        self.timeout = timeout

    def send(self, tokens: Iterable[str], title: str, body: str) -> int:
        messages: List[dict] = [
            {"to": token, "title": title, "body": body, "sound": "default"}
            for token in tokens
            if is_expo_token(token)
        ]
        if not messages:
            return 0

        try:
            response = httpx.post(self.push_url, json=messages, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.error(f"Push send error: {type(e).__name__}: {e}")
            return 0

        if response.status_code >= 400:
            logger.error(f"Expo push error ({response.status_code}): {response.text[:200]}")
            return 0
        return len(messages)


def build_push_provider(config) -> PushProvider:
    if config.ENABLE_PUSH:
        logger.info("Push provider: Expo")
        return ExpoPushProvider(config.EXPO_PUSH_URL)
    logger.info("Push provider: DevPushProvider (push disabled, notifications are logged only)")
    return DevPushProvider()
