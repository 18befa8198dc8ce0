import json

from order_sms import __version__
from order_sms.utils.logger import log


def lambda_handler(event, context):
    log(
        "health.check",
        path=(event or {}).get("rawPath", "/health"),
        method=(event or {}).get("requestContext", {}).get("http", {}).get("method", "GET"),
    )
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"status": "ok", "version": __version__}),
    }
