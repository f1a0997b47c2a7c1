from topup.utils.hashing import hmac_sha256_hex, constant_time_equals, payload_digest, chain_digest
from topup.utils.money import RupeeAmount, PaiseAmount, rupees_to_paise, paise_to_rupees, format_inr

__all__ = [
    "hmac_sha256_hex", "constant_time_equals", "payload_digest", "chain_digest",
    "RupeeAmount", "PaiseAmount", "rupees_to_paise", "paise_to_rupees", "format_inr",
]
