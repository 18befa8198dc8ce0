import functools
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, urlencode

import requests

from order_sms.config import Settings
from order_sms.utils.logger import get_logger, mask_phone

logger = get_logger("bulksms_client")

# Same unreserved set as JavaScript's encodeURIComponent; spaces become %20.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _quote_component(value, safe, encoding=None, errors=None):
    return quote(value, safe=_URI_COMPONENT_SAFE, encoding=encoding, errors=errors)


@dataclass(frozen=True)
class SendResult:
    ok: bool
    body: str


class BulkSmsClient:
    """
    BulkSMSBD HTTP API client.

    One GET per message, no retries: a failed send is reported back to the
    webhook caller and Shopify's redelivery is the only retry mechanism.
    """

    def __init__(
        self,
        api_key: str,
        sender_id: str,
        base_url: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.sender_id = sender_id
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def build_url(self, number: str, text: str) -> str:
        query = urlencode(
            [
                ("api_key", self.api_key),
                ("type", "text"),
                ("number", number),
                ("senderid", self.sender_id),
                ("message", text),
            ],
            quote_via=_quote_component,
        )
        return f"{self.base_url}?{query}"

    def send(self, number: str, text: str) -> SendResult:
        """
        Send `text` to `number`.

        `ok` is True iff the gateway answered 2xx. The body is best-effort:
        if reading or decoding it fails, the result carries an empty body
        instead of an error, since the send outcome is already known from the
        status line. Connection errors and timeouts propagate.
        """
        with self.session.get(self.build_url(number, text), timeout=self.timeout, stream=True) as resp:
            ok = 200 <= resp.status_code < 300
            try:
                body = resp.text
            except (requests.RequestException, UnicodeDecodeError) as e:
                logger.warning(
                    "bulksms.body_read_failed",
                    extra={"error": str(e), "status_code": resp.status_code},
                )
                body = ""

        logger.info(
            "bulksms.sent" if ok else "bulksms.rejected",
            extra={"to": mask_phone(number), "status_code": resp.status_code},
        )
        return SendResult(ok=ok, body=body)


def build_client(settings: Settings) -> BulkSmsClient:
    """Build a gateway client from settings; credentials must already be present."""
    if not settings.gateway_configured:
        raise RuntimeError("Missing BulkSMS credentials: api_key and sender_id are required")
    return BulkSmsClient(
        api_key=settings.api_key,
        sender_id=settings.sender_id,
        base_url=settings.gateway_url,
        timeout=settings.gateway_timeout,
    )


@functools.lru_cache(maxsize=1)
def get_client(settings: Settings) -> BulkSmsClient:
    """Gateway client for this container; one session is reused across invocations."""
    return build_client(settings)
