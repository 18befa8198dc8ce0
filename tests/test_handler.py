import base64
import hashlib
import hmac
import json
import os

from order_sms import handler
from order_sms.config import HmacMode, Settings, TokenMode, Unconfigured
from order_sms.handler import WebhookRequest, handle_request
from order_sms.utils.bulksms_client import SendResult

# Target under test: order_sms/handler.lambda_handler and handle_request
# We inject:
#  - a Settings object instead of reading the environment
#  - a stub gateway client instead of BulkSmsClient

EVENTS_DIR = os.path.join(os.path.dirname(__file__), "events")
SECRET = "shpss_test_secret"


class StubGatewayClient:
    def __init__(self, ok=True, body="SMS Submitted Successfully"):
        self.sent = []
        self._result = SendResult(ok=ok, body=body)

    def send(self, number, text):
        self.sent.append({"number": number, "text": text})
        return self._result


def _load_event(name):
    with open(os.path.join(EVENTS_DIR, name), "r", encoding="utf-8") as f:
        return json.load(f)


def _sign(body, secret=SECRET):
    if isinstance(body, str):
        body = body.encode("utf-8")
    return base64.b64encode(hmac.new(secret.encode(), body, hashlib.sha256).digest()).decode()


def _settings(auth_mode=None, api_key="test-api-key", sender_id="8809600000000"):
    return Settings(
        api_key=api_key,
        sender_id=sender_id,
        auth_mode=auth_mode or HmacMode(SECRET),
    )


def _signed_event(name):
    event = _load_event(name)
    event["headers"]["x-shopify-hmac-sha256"] = _sign(event["body"])
    return event


def _patch(monkeypatch, settings, client):
    monkeypatch.setattr("order_sms.handler.get_settings", lambda: settings, raising=True)
    monkeypatch.setattr("order_sms.handler.get_client", lambda s: client, raising=True)


def test_order_created_sends_sms(monkeypatch):
    stub = StubGatewayClient()
    _patch(monkeypatch, _settings(), stub)

    resp = handler.lambda_handler(_signed_event("api_order_created.json"), None)

    assert resp["statusCode"] == 200
    assert json.loads(resp["body"]) == {
        "success": True,
        "provider_response": "SMS Submitted Successfully",
    }
    assert len(stub.sent) == 1
    sent = stub.sent[0]
    assert sent["number"] == "8801712345678"
    for part in ("Rahim", "#1001", "500.00", "https://x/y", "ধন্যবাদ"):
        assert part in sent["text"]


def test_gateway_failure_is_reported_in_body(monkeypatch):
    stub = StubGatewayClient(ok=False, body='{"response_code":1007,"error_message":"Balance Insufficient"}')
    _patch(monkeypatch, _settings(), stub)

    resp = handler.lambda_handler(_signed_event("api_order_created.json"), None)

    assert resp["statusCode"] == 200
    body = json.loads(resp["body"])
    assert body["success"] is False
    assert "Balance Insufficient" in body["provider_response"]


def test_order_without_phone_is_skipped(monkeypatch):
    stub = StubGatewayClient()
    _patch(monkeypatch, _settings(), stub)

    resp = handler.lambda_handler(_signed_event("api_order_no_phone.json"), None)

    assert resp["statusCode"] == 200
    assert json.loads(resp["body"]) == {"success": True, "skipped": "missing_or_invalid_phone"}
    assert stub.sent == []


def test_invalid_operator_digit_is_skipped():
    stub = StubGatewayClient()
    body = json.dumps({"customer": {"phone": "880299999999"}, "name": "#7"}).encode()
    request = WebhookRequest(
        method="POST",
        body=body,
        headers={"x-shopify-hmac-sha256": _sign(body)},
    )

    resp = handle_request(request, lambda: _settings(), lambda s: stub)

    assert resp.status_code == 200
    assert resp.body["skipped"] == "missing_or_invalid_phone"
    assert stub.sent == []


def test_bad_hmac_is_unauthorized(monkeypatch):
    stub = StubGatewayClient()
    _patch(monkeypatch, _settings(), stub)
    event = _load_event("api_order_created.json")
    event["headers"]["x-shopify-hmac-sha256"] = _sign(event["body"], secret="wrong-secret")

    resp = handler.lambda_handler(event, None)

    assert resp["statusCode"] == 401
    assert json.loads(resp["body"]) == {"success": False, "error": "unauthorized"}
    assert stub.sent == []


def test_missing_hmac_header_is_unauthorized(monkeypatch):
    stub = StubGatewayClient()
    _patch(monkeypatch, _settings(), stub)

    resp = handler.lambda_handler(_load_event("api_order_created.json"), None)

    assert resp["statusCode"] == 401
    assert stub.sent == []


def test_hmac_is_computed_over_raw_body(monkeypatch):
    # Same JSON document, different bytes: the signature of the compact form
    # must not validate the pretty-printed one.
    stub = StubGatewayClient()
    _patch(monkeypatch, _settings(), stub)
    event = _load_event("api_order_created.json")
    event["headers"]["x-shopify-hmac-sha256"] = _sign(event["body"])
    event["body"] = json.dumps(json.loads(event["body"]), indent=2)

    resp = handler.lambda_handler(event, None)

    assert resp["statusCode"] == 401


def test_token_mode(monkeypatch):
    stub = StubGatewayClient()
    _patch(monkeypatch, _settings(auth_mode=TokenMode("s3cret-token")), stub)

    event = _load_event("api_order_created.json")
    event["queryStringParameters"] = {"token": "s3cret-token"}
    resp = handler.lambda_handler(event, None)
    assert resp["statusCode"] == 200
    assert len(stub.sent) == 1

    event["queryStringParameters"] = {"token": "S3CRET-TOKEN"}
    resp = handler.lambda_handler(event, None)
    assert resp["statusCode"] == 401
    assert len(stub.sent) == 1


def test_unconfigured_auth_rejects_everything(monkeypatch):
    stub = StubGatewayClient()
    _patch(monkeypatch, _settings(auth_mode=Unconfigured()), stub)

    resp = handler.lambda_handler(_signed_event("api_order_created.json"), None)

    assert resp["statusCode"] == 401
    assert stub.sent == []


def test_base64_encoded_body(monkeypatch):
    stub = StubGatewayClient()
    _patch(monkeypatch, _settings(), stub)
    event = _signed_event("api_order_created.json")
    event["body"] = base64.b64encode(event["body"].encode("utf-8")).decode()
    event["isBase64Encoded"] = True

    resp = handler.lambda_handler(event, None)

    assert resp["statusCode"] == 200
    assert stub.sent[0]["number"] == "8801712345678"


def test_preflight_returns_204_with_cors(monkeypatch):
    def fail_settings():
        raise AssertionError("settings must not be loaded for preflight")

    monkeypatch.setattr("order_sms.handler.get_settings", fail_settings, raising=True)

    resp = handler.lambda_handler(_load_event("api_preflight.json"), None)

    assert resp["statusCode"] == 204
    assert resp["body"] == ""
    headers = resp["headers"]
    assert headers["Access-Control-Allow-Origin"] == "*"
    assert headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
    assert "X-Shopify-Hmac-Sha256" in headers["Access-Control-Allow-Headers"]


def test_get_is_method_not_allowed(monkeypatch):
    _patch(monkeypatch, _settings(), StubGatewayClient())
    event = _load_event("api_preflight.json")
    event["requestContext"]["http"]["method"] = "GET"

    resp = handler.lambda_handler(event, None)

    assert resp["statusCode"] == 405
    assert json.loads(resp["body"]) == {"success": False, "error": "method_not_allowed"}
    assert resp["headers"]["Access-Control-Allow-Origin"] == "*"


def test_rest_api_event_shape(monkeypatch):
    stub = StubGatewayClient()
    _patch(monkeypatch, _settings(), stub)
    v2 = _signed_event("api_order_created.json")
    event = {
        "httpMethod": "POST",
        "headers": {"X-Shopify-Hmac-Sha256": v2["headers"]["x-shopify-hmac-sha256"]},
        "queryStringParameters": None,
        "body": v2["body"],
        "isBase64Encoded": False,
    }

    resp = handler.lambda_handler(event, None)

    assert resp["statusCode"] == 200
    assert len(stub.sent) == 1


def test_missing_sms_env(monkeypatch):
    stub = StubGatewayClient()
    _patch(monkeypatch, _settings(api_key=None), stub)

    resp = handler.lambda_handler(_signed_event("api_order_created.json"), None)

    assert resp["statusCode"] == 500
    assert json.loads(resp["body"]) == {"success": False, "error": "missing_sms_env"}
    assert stub.sent == []


def test_malformed_json_after_auth_is_server_error():
    stub = StubGatewayClient()
    body = b"{not json"
    request = WebhookRequest(method="POST", body=body, headers={"x-shopify-hmac-sha256": _sign(body)})

    resp = handle_request(request, lambda: _settings(), lambda s: stub)

    assert resp.status_code == 500
    assert resp.body == {"success": False, "error": "server_error"}
    assert stub.sent == []


def test_gateway_exception_is_server_error(monkeypatch):
    class ExplodingClient:
        def send(self, number, text):
            raise ConnectionError("gateway unreachable")

    _patch(monkeypatch, _settings(), ExplodingClient())

    resp = handler.lambda_handler(_signed_event("api_order_created.json"), None)

    assert resp["statusCode"] == 500
    body = json.loads(resp["body"])
    assert body == {"success": False, "error": "server_error"}
    assert "gateway unreachable" not in resp["body"]


def test_settings_failure_is_server_error():
    def broken_settings():
        raise RuntimeError("Invalid SMS_GATEWAY_TIMEOUT='abc'")

    request = WebhookRequest(method="POST", body=b"{}")
    resp = handle_request(request, broken_settings, lambda s: StubGatewayClient())

    assert resp.status_code == 500
    assert resp.body["error"] == "server_error"


def test_custom_template_is_used():
    stub = StubGatewayClient()
    settings = Settings(
        api_key="k",
        sender_id="s",
        auth_mode=TokenMode("t"),
        template="Hi {name}, order {order_no} ({total}) {status_url}",
    )
    body = json.dumps({"billing_address": {"phone": "+8801912345678"}, "order_number": 55}).encode()
    request = WebhookRequest(method="POST", body=body, query={"token": "t"})

    resp = handle_request(request, lambda: settings, lambda s: stub)

    assert resp.status_code == 200
    assert stub.sent == [{"number": "8801912345678", "text": "Hi Customer, order #55 () "}]
