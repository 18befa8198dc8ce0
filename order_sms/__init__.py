"""
Order SMS Webhook
=================

Root package for the Shopify order-confirmation SMS service. A Shopify
`orders/create` (or `orders/paid`) webhook is verified, the customer's
Bangladeshi mobile number is pulled from the order, and a confirmation text
is sent through the BulkSMSBD HTTP gateway. Deployed as AWS Lambda behind
API Gateway.

Modules under this package:
- handler.py  → webhook endpoint (POST/OPTIONS), one SMS per delivery
- health.py   → health and version check
- config.py   → Settings and auth mode, loaded once per container
- order.py    → tolerant view over the Shopify order payload
- utils/      → logging, secrets, auth, phone rules, templates, gateway client

Environment variables expected:
  • BULKSMS_API_KEY            - gateway API key
  • BULKSMS_SENDER_ID          - gateway sender ID
  • SHOPIFY_WEBHOOK_SECRET     - HMAC secret (preferred auth mode)
  • ORDER_WEBHOOK_TOKEN        - ?token= shared token (fallback auth mode)
  • SMS_GATEWAY_URL            - gateway endpoint (optional)
  • SMS_GATEWAY_TIMEOUT        - gateway timeout in seconds (optional)
  • SMS_TEMPLATE               - message template (optional)
  • SMS_SECRET_NAME            - Secrets Manager secret with credentials (optional)
  • LOG_LEVEL                  - Log verbosity (default: INFO)

All handlers in this package are stateless and Lambda-optimized.
"""

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = ["__version__"]
