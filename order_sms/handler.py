import base64
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from order_sms.config import Settings, get_settings
from order_sms.order import Order
from order_sms.utils.auth import SHOPIFY_HMAC_HEADER, authenticate
from order_sms.utils.bulksms_client import BulkSmsClient, get_client
from order_sms.utils.logger import get_logger, mask_phone
from order_sms.utils.phone import is_valid_bd_mobile, normalize_bd
from order_sms.utils.templates import render_message

logger = get_logger("webhook")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": f"Content-Type, {SHOPIFY_HMAC_HEADER}",
}

SKIPPED_INVALID_PHONE = "missing_or_invalid_phone"


@dataclass
class WebhookRequest:
    method: str
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_event(cls, event: dict) -> "WebhookRequest":
        """
        Build a request from an API Gateway proxy event.

        Handles HTTP API (payload 2.0) and REST API (1.0) shapes. Header names
        are lower-cased; the body is kept as raw bytes for HMAC verification.
        """
        method = (
            event.get("requestContext", {}).get("http", {}).get("method")
            or event.get("httpMethod")
            or ""
        )

        raw = event.get("body") or ""
        if event.get("isBase64Encoded"):
            body = base64.b64decode(raw)
        else:
            body = raw.encode("utf-8") if isinstance(raw, str) else bytes(raw)

        headers = {str(k).lower(): v for k, v in (event.get("headers") or {}).items()}
        query = dict(event.get("queryStringParameters") or {})

        return cls(method=method.upper(), body=body, headers=headers, query=query)


@dataclass
class WebhookResponse:
    status_code: int
    body: Optional[Dict[str, Any]] = None

    def to_lambda(self) -> dict:
        headers = dict(CORS_HEADERS)
        if self.body is None:
            return {"statusCode": self.status_code, "headers": headers, "body": ""}
        headers["Content-Type"] = "application/json"
        return {
            "statusCode": self.status_code,
            "headers": headers,
            "body": json.dumps(self.body),
        }


def _ok(body: Dict[str, Any]) -> WebhookResponse:
    return WebhookResponse(200, body)


def _bad(status_code: int, error: str) -> WebhookResponse:
    return WebhookResponse(status_code, {"success": False, "error": error})


def handle_request(
    request: WebhookRequest,
    settings_loader: Optional[Callable[[], Settings]] = None,
    client_factory: Optional[Callable[[Settings], BulkSmsClient]] = None,
) -> WebhookResponse:
    """
    Process one Shopify order webhook.

    Steps, in order: preflight, method check, gateway config check,
    authentication, phone extraction/validation, render and send. Every
    step either returns a response or falls through to the next one.
    """
    settings_loader = settings_loader or get_settings
    client_factory = client_factory or get_client

    if request.method == "OPTIONS":
        return WebhookResponse(204)
    if request.method != "POST":
        logger.info("webhook.method_not_allowed", extra={"method": request.method})
        return _bad(405, "method_not_allowed")

    try:
        settings = settings_loader()

        if not settings.gateway_configured:
            logger.error("webhook.missing_sms_env: BULKSMS_API_KEY or BULKSMS_SENDER_ID not set")
            return _bad(500, "missing_sms_env")

        if not authenticate(settings.auth_mode, request.body, request.headers, request.query):
            logger.warning(
                "webhook.unauthorized",
                extra={
                    "auth_mode": type(settings.auth_mode).__name__,
                    "hmac_header_present": SHOPIFY_HMAC_HEADER.lower() in request.headers,
                    "token_present": "token" in request.query,
                },
            )
            return _bad(401, "unauthorized")

        # A body that is not JSON falls through to server_error below.
        order = Order.from_payload(json.loads(request.body or b"{}"))

        number = normalize_bd(order.phone)
        if not is_valid_bd_mobile(number):
            logger.info(
                "webhook.skipped",
                extra={"reason": SKIPPED_INVALID_PHONE, "order_no": order.order_no},
            )
            return _ok({"success": True, "skipped": SKIPPED_INVALID_PHONE})

        text = render_message(
            name=order.display_name,
            order_no=order.order_no,
            total=order.total,
            status_url=order.status_url,
            template=settings.template,
        )

        result = client_factory(settings).send(number, text)
        logger.info(
            "webhook.sms_sent" if result.ok else "webhook.sms_failed",
            extra={"order_no": order.order_no, "to": mask_phone(number)},
        )
        return _ok({"success": result.ok, "provider_response": result.body})

    except Exception:
        logger.exception("webhook.server_error")
        return _bad(500, "server_error")


def lambda_handler(event, context):
    logger.info(
        "webhook.lambda_start",
        extra={"request_id": getattr(context, "aws_request_id", None)},
    )
    try:
        request = WebhookRequest.from_event(event or {})
    except Exception:
        # Undecodable base64 body or a malformed event.
        logger.exception("webhook.bad_event")
        return _bad(500, "server_error").to_lambda()

    return handle_request(request).to_lambda()
