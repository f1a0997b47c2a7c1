"""
Signature Verifier — authenticates Razorpay checkout completions.

The gateway signs ``order_id + "|" + payment_id`` with the key secret. That
message layout is the gateway's contract and must stay byte-for-byte.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from topup.errors import MISSING_PAYMENT_DETAILS, SIGNATURE_MISMATCH
from topup.utils.hashing import constant_time_equals, hmac_sha256_hex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    verified: bool
    order_id: Optional[str] = None
    payment_id: Optional[str] = None
    reason: Optional[str] = None


def expected_signature(secret: str, order_id: str, payment_id: str) -> str:
    return hmac_sha256_hex(secret, order_id + "|" + payment_id)


class SignatureVerifier:
    """Pure function of its inputs: verifying twice gives the same answer."""

    def __init__(self, secret: str):
        self._secret = secret

    def verify(self, order_id: Optional[str], payment_id: Optional[str],
               signature: Optional[str]) -> VerificationResult:
        if not (order_id and payment_id and signature):
            return VerificationResult(False, order_id, payment_id, MISSING_PAYMENT_DETAILS)

        expected = expected_signature(self._secret, order_id, payment_id)
        if constant_time_equals(expected, signature):
            logger.info("Payment verified: order=%s payment=%s", order_id, payment_id)
            return VerificationResult(True, order_id, payment_id)

        logger.warning("Signature mismatch: order=%s payment=%s received=%s", order_id, payment_id, signature)
        return VerificationResult(False, order_id, payment_id, SIGNATURE_MISMATCH)
