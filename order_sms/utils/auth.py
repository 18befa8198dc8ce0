import base64
import hashlib
import hmac
from typing import Mapping, Optional, Union

from order_sms.config import AuthMode, HmacMode, TokenMode
from order_sms.utils.logger import get_logger

logger = get_logger("auth")

SHOPIFY_HMAC_HEADER = "X-Shopify-Hmac-Sha256"


def verify_hmac(raw_body: Union[bytes, str], hmac_header: Optional[str], secret: Optional[str]) -> bool:
    """
    Verify a Shopify webhook signature.

    The expected value is base64(HMAC-SHA256(secret, raw_body)). `raw_body`
    must be the body exactly as received; a re-serialized JSON document will
    not match. Fails closed on a missing header or secret and never raises.
    """
    if not hmac_header or not secret:
        return False

    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")

    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    computed = base64.b64encode(digest)

    try:
        claimed = hmac_header.encode("ascii")
    except (AttributeError, UnicodeEncodeError):
        # Non-string or non-ASCII header can never be a base64 digest.
        return False

    return hmac.compare_digest(computed, claimed)


def verify_token(query: Optional[Mapping[str, str]], token: Optional[str]) -> bool:
    if not token or not query:
        return False
    supplied = query.get("token")
    if not isinstance(supplied, str):
        return False
    return hmac.compare_digest(supplied.encode("utf-8"), token.encode("utf-8"))


def authenticate(
    mode: AuthMode,
    raw_body: Union[bytes, str],
    headers: Mapping[str, str],
    query: Optional[Mapping[str, str]],
) -> bool:
    """
    Check an inbound webhook against the deployment's auth mode.

    `headers` is expected to have lower-cased keys.
    """
    if isinstance(mode, HmacMode):
        return verify_hmac(raw_body, headers.get(SHOPIFY_HMAC_HEADER.lower()), mode.secret)
    if isinstance(mode, TokenMode):
        return verify_token(query, mode.token)

    logger.warning("auth.unconfigured: no webhook secret or token set, rejecting request")
    return False
