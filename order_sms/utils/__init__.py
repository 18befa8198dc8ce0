"""
Order SMS Utilities
===================

Shared helper modules for the order-confirmation SMS service:

- logger.py          → structured JSON logging
- secrets.py         → AWS Secrets Manager integration
- auth.py            → Shopify HMAC / shared-token webhook verification
- phone.py           → Bangladeshi mobile number normalization and validation
- templates.py       → confirmation message template
- bulksms_client.py  → BulkSMSBD gateway client

All functions in this package are stateless and thread-safe, suitable for
AWS Lambda execution.
"""

from order_sms.utils.logger import get_logger

__all__ = [
    "get_logger",
]
