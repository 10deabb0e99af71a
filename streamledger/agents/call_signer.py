"""
Engine call creation and signing for clients.
"""

from dataclasses import replace
from typing import Any, Dict, Optional, Tuple

from py_ecc.bls import G2Basic

from ..core.types import Action
from ..integration.auth import SignedCall, call_message_hash


def keypair_from_seed(seed: bytes) -> Tuple[int, str]:
    """
    Derive a BLS12-381 keypair.

    Args:
        seed: At least 32 bytes of key material

    Returns:
        (secret key, 0x-prefixed public key hex)
    """
    if len(seed) < 32:
        raise ValueError("seed must be at least 32 bytes")
    sk = G2Basic.KeyGen(seed)
    return sk, "0x" + G2Basic.SkToPk(sk).hex()


def create_call(
    action: Action,
    caller_pubkey: str,
    nonce: int,
    args: Optional[Dict[str, Any]] = None,
) -> SignedCall:
    """Build an unsigned call; `args` must be canonical-JSON encodable (no floats)."""
    if nonce <= 0:
        raise ValueError("nonce must be positive")
    return SignedCall(action=action, caller=caller_pubkey.lower(), nonce=nonce, args=dict(args or {}))


def sign_call(call: SignedCall, secret_key: int, chain_id: str) -> SignedCall:
    """
    Sign a call with BLS12-381 (G2Basic).

    Returns:
        Copy of `call` carrying the signature
    """
    signature = G2Basic.Sign(secret_key, call_message_hash(call, chain_id))
    return replace(call, signature="0x" + signature.hex())
