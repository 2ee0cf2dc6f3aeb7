"""Signature Authority Protocol.

The ledger depends on this small interface only, so its state machine can be
exercised with a deterministic fake. The production implementation lives in
signing/authority.py (secp256k1 recovery via eth_keys).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SignatureAuthority(Protocol):
    """Verifies and recovers signers of 32-byte digests."""

    def recover(self, digest: bytes, signature: bytes) -> str:
        """Return the checksummed address that produced ``signature`` over ``digest``.

        Raises:
            MalformedSignatureError: If the digest or signature has the wrong shape.
            BadSignatureError: If no signer can be recovered.
        """
        ...

    def verify(self, digest: bytes, signature: bytes, claimed_signer: str) -> bool:
        """Return True only if ``signature`` over ``digest`` recovers to ``claimed_signer``."""
        ...
