"""
Client-side helpers
"""

from .call_signer import create_call, keypair_from_seed, sign_call

__all__ = [
    "create_call",
    "keypair_from_seed",
    "sign_call",
]
