"""
Cryptographic Hashing Utilities — gateway HMAC signatures and audit-chain hashing.
"""
import hashlib
import hmac
import json


def hmac_sha256_hex(secret: str, message: str) -> str:
    """Hex-encoded HMAC-SHA256 of ``message`` keyed by ``secret``."""
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def constant_time_equals(expected: str, received: str) -> bool:
    """Compare two strings without leaking the mismatch position through timing."""
    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))


def payload_digest(data: dict) -> str:
    """SHA-256 of a dictionary (deterministic, sorted keys)."""
    canonical = json.dumps(data, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(canonical).hexdigest()


def chain_digest(current_data: dict, previous_hash: str = "") -> str:
    """SHA-256(previous_hash + payload_digest(current_data)), linking audit entries."""
    chain_input = f"{previous_hash}{payload_digest(current_data)}".encode("utf-8")
    return hashlib.sha256(chain_input).hexdigest()
