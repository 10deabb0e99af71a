"""
Caller authentication.

Two pieces:

- `IdentityAuthOracle`: the `AuthOracle` the engine calls. It compares the
  `VerifiedCaller` handed in by the host with the identity an operation needs
  (sender, recipient or admin) and aborts on mismatch.
- `CallAuthenticator`: turns a `SignedCall` into a `VerifiedCaller`. The caller
  identity is a BLS12-381 public key (48-byte hex); the signature (G2Basic) is
  over SHA256(domain_sep("call_sig:<chain_id>") || canonical_json(call)).
  Nonces are strictly sequential per caller to stop replays.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from py_ecc.bls import G2Basic

from ..core.errors import AuthenticationError
from ..core.types import Action
from ..state.canonical import canonical_json_bytes, domain_sep_bytes, hex_to_bytes_allow_0x
from ..state.nonces import NonceTable
from ..state.store import KeyValueStore
from .collaborators import VerifiedCaller

log = logging.getLogger(__name__)

PUBKEY_NBYTES = 48
SIGNATURE_NBYTES = 96


class IdentityAuthOracle:
    """Accepts exactly the identity carried by the verified caller."""

    def require_caller_is(self, caller: VerifiedCaller, identity: str) -> None:
        if not isinstance(caller, VerifiedCaller):
            raise AuthenticationError("caller must be a VerifiedCaller")
        if caller.identity != identity:
            log.info("auth rejected: caller=%s claimed=%s", caller.identity, identity)
            raise AuthenticationError(f"caller {caller.identity} is not {identity}")


@dataclass(frozen=True)
class SignedCall:
    """An engine call as submitted by a client."""

    action: Action
    caller: str  # 0x-prefixed BLS public key
    nonce: int
    args: Mapping[str, Any] = field(default_factory=dict)
    signature: str = ""


def call_signing_dict(call: SignedCall) -> Dict[str, Any]:
    return {
        "action": call.action.value,
        "caller": call.caller.lower(),
        "nonce": call.nonce,
        "args": dict(call.args),
    }


def call_message_hash(call: SignedCall, chain_id: str) -> bytes:
    payload = canonical_json_bytes(call_signing_dict(call))
    return hashlib.sha256(domain_sep_bytes(f"call_sig:{chain_id}", version=1) + payload).digest()


def verify_call_signature(call: SignedCall, chain_id: str) -> bool:
    try:
        pubkey = hex_to_bytes_allow_0x(call.caller, name="caller", expected_nbytes=PUBKEY_NBYTES)
        sig = hex_to_bytes_allow_0x(call.signature, name="signature", expected_nbytes=SIGNATURE_NBYTES)
    except (TypeError, ValueError) as exc:
        log.debug("malformed signed call: %s", exc)
        return False
    try:
        return bool(G2Basic.Verify(pubkey, call_message_hash(call, chain_id), sig))
    except Exception as exc:  # py_ecc raises assorted errors on invalid points
        log.debug("signature verification error: %s", exc)
        return False


class CallAuthenticator:
    """Verifies signed calls and consumes their nonces."""

    def __init__(self, store: KeyValueStore, chain_id: str) -> None:
        if not isinstance(chain_id, str) or not chain_id:
            raise ValueError("chain_id must be a non-empty str")
        self.chain_id = chain_id
        self.nonces = NonceTable(store)

    def authenticate(self, call: SignedCall) -> VerifiedCaller:
        """Return the verified caller or raise `AuthenticationError`.

        The nonce is consumed even if the operation later fails.
        """
        if not isinstance(call.nonce, int) or isinstance(call.nonce, bool):
            raise AuthenticationError("nonce must be an int")
        if not verify_call_signature(call, self.chain_id):
            raise AuthenticationError("invalid call signature")
        identity = call.caller.lower()
        expected = self.nonces.get_last(identity) + 1
        if call.nonce != expected:
            raise AuthenticationError(f"bad nonce: expected {expected}, got {call.nonce}")
        self.nonces.set_last(identity, call.nonce)
        return VerifiedCaller(identity=identity)
