"""Inbound webhook authentication."""

import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from src.automation.core.config import get_settings


async def verify_webhook_secret(
    x_webhook_secret: Annotated[str | None, Header()] = None,
) -> None:
    """Check X-Webhook-Secret when RUNNER_CALLBACK_SECRET is configured."""
    expected = get_settings().runner_callback_secret
    if expected is None:
        return
    if x_webhook_secret is None or not secrets.compare_digest(x_webhook_secret, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing webhook secret",
        )


WebhookAuth = Depends(verify_webhook_secret)
