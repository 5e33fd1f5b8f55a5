import hashlib
import hmac
import logging

from config import load_settings

logger = logging.getLogger(__name__)


def verify_github_signature(request) -> bool:
    """Verifies that a webhook delivery genuinely came from GitHub."""
    secret    = load_settings().webhook_secret
    signature = request.headers.get("X-Hub-Signature-256", "")

    if not secret:
        logger.warning("GITHUB_WEBHOOK_SECRET is not set, rejecting delivery")
        return False

    expected = "sha256=" + hmac.new(
        secret.encode(),
        request.get_data(),
        hashlib.sha256
    ).hexdigest()

    return hmac.compare_digest(expected, signature)
