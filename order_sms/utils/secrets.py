import json
import os
from typing import Optional

import boto3

from order_sms.utils.logger import get_logger

logger = get_logger("secrets")

# Keys we read from the secret; anything else is ignored.
SECRET_FIELDS = ("api_key", "sender_id", "webhook_secret", "webhook_token")


def get_gateway_secrets(secret_name: str, region_name: Optional[str] = None) -> dict:
    """
    Fetch gateway/webhook credentials from AWS Secrets Manager.

    Expects the secret value to be a JSON object with any of:

        {
          "api_key": "...",
          "sender_id": "...",
          "webhook_secret": "...",
          "webhook_token": "..."
        }

    Raises RuntimeError if the secret has no string payload and
    json.JSONDecodeError if it is not JSON.
    """
    region_name = region_name or os.getenv("AWS_REGION", "us-east-1")

    logger.info(
        "Fetching gateway secrets from Secrets Manager",
        extra={"secret_name": secret_name, "region": region_name},
    )

    client = boto3.client("secretsmanager", region_name=region_name)

    resp = client.get_secret_value(SecretId=secret_name)
    secret_str = resp.get("SecretString")

    if not secret_str:
        msg = f"Secret '{secret_name}' has no SecretString payload"
        logger.error(msg)
        raise RuntimeError(msg)

    try:
        data = json.loads(secret_str)
    except json.JSONDecodeError as e:
        logger.error(
            "SecretString is not valid JSON",
            extra={"secret_name": secret_name, "error": str(e)},
        )
        raise

    if not isinstance(data, dict):
        msg = f"Secret '{secret_name}' must be a JSON object"
        logger.error(msg)
        raise RuntimeError(msg)

    found = {k: data[k] for k in SECRET_FIELDS if data.get(k)}
    logger.info(
        "Gateway secrets loaded",
        extra={"secret_name": secret_name, "fields": sorted(found)},
    )
    return found
