import functools
import os
from dataclasses import dataclass, field
from typing import Optional, Union

from order_sms.utils.logger import get_logger
from order_sms.utils.templates import DEFAULT_TEMPLATE

logger = get_logger("config")

DEFAULT_GATEWAY_URL = "http://bulksmsbd.net/api/smsapi"


@dataclass(frozen=True)
class HmacMode:
    """Verify X-Shopify-Hmac-Sha256 against this shared secret."""

    secret: str = field(repr=False)


@dataclass(frozen=True)
class TokenMode:
    """Require ?token=<token> on the webhook URL."""

    token: str = field(repr=False)


@dataclass(frozen=True)
class Unconfigured:
    """Neither secret is set: every webhook is rejected."""


AuthMode = Union[HmacMode, TokenMode, Unconfigured]


def select_auth_mode(webhook_secret: Optional[str], webhook_token: Optional[str]) -> AuthMode:
    # HMAC wins when both are configured.
    if webhook_secret:
        return HmacMode(webhook_secret)
    if webhook_token:
        return TokenMode(webhook_token)
    return Unconfigured()


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str]
    sender_id: Optional[str]
    auth_mode: AuthMode
    gateway_url: str = DEFAULT_GATEWAY_URL
    gateway_timeout: Optional[float] = None
    template: str = DEFAULT_TEMPLATE

    @property
    def gateway_configured(self) -> bool:
        return bool(self.api_key and self.sender_id)

    def __repr__(self) -> str:
        # Credentials stay out of logs and tracebacks.
        return (
            f"Settings(gateway_url={self.gateway_url!r}, "
            f"gateway_configured={self.gateway_configured}, "
            f"auth_mode={type(self.auth_mode).__name__}, "
            f"gateway_timeout={self.gateway_timeout!r})"
        )


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    if raw is None or raw.strip() == "":
        return None
    try:
        timeout = float(raw)
    except ValueError:
        timeout = -1.0
    if timeout <= 0:
        msg = (
            f"Invalid SMS_GATEWAY_TIMEOUT='{raw}'. "
            "Must be a positive number of seconds."
        )
        logger.error(msg)
        raise RuntimeError(msg)
    return timeout


def load_settings(environ=None) -> Settings:
    """
    Build Settings from environment variables.

    BULKSMS_API_KEY / BULKSMS_SENDER_ID: gateway credentials
    SHOPIFY_WEBHOOK_SECRET: enables HMAC verification (takes precedence)
    ORDER_WEBHOOK_TOKEN: enables ?token= verification
    SMS_GATEWAY_URL / SMS_GATEWAY_TIMEOUT / SMS_TEMPLATE: gateway tuning
    SMS_SECRET_NAME: optional Secrets Manager secret; its values override
                     the matching environment variables

    Missing gateway credentials are not an error here; the handler reports
    them per request as `missing_sms_env`.
    """
    env = os.environ if environ is None else environ

    values = {
        "api_key": env.get("BULKSMS_API_KEY") or None,
        "sender_id": env.get("BULKSMS_SENDER_ID") or None,
        "webhook_secret": env.get("SHOPIFY_WEBHOOK_SECRET") or None,
        "webhook_token": env.get("ORDER_WEBHOOK_TOKEN") or None,
    }

    secret_name = env.get("SMS_SECRET_NAME")
    if secret_name:
        # Imported lazily so boto3 is only touched when a secret is configured.
        from order_sms.utils.secrets import get_gateway_secrets

        values.update(get_gateway_secrets(secret_name, env.get("AWS_REGION")))

    settings = Settings(
        api_key=values["api_key"],
        sender_id=values["sender_id"],
        auth_mode=select_auth_mode(values["webhook_secret"], values["webhook_token"]),
        gateway_url=env.get("SMS_GATEWAY_URL") or DEFAULT_GATEWAY_URL,
        gateway_timeout=_parse_timeout(env.get("SMS_GATEWAY_TIMEOUT")),
        template=env.get("SMS_TEMPLATE") or DEFAULT_TEMPLATE,
    )

    logger.info(
        "config.loaded",
        extra={
            "auth_mode": type(settings.auth_mode).__name__,
            "gateway_configured": settings.gateway_configured,
            "gateway_url": settings.gateway_url,
            "from_secrets_manager": bool(secret_name),
        },
    )
    return settings


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for this container, loaded on first use."""
    return load_settings()
