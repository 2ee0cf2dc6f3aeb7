"""secp256k1 signature authority.

Recovers 20-byte account addresses from 65-byte ``r || s || v`` signatures
over 32-byte digests, the same scheme wallets use for typed-data signing.
Both Ethereum-style (27/28) and raw (0/1) recovery ids are accepted.
"""

from __future__ import annotations

from eth_keys import keys

from agreement_clearinghouse.domain.exceptions import (
    AgreementError,
    BadSignatureError,
    MalformedSignatureError,
)
from agreement_clearinghouse.logging_config import get_logger
from agreement_clearinghouse.schemas.offer import to_address

logger = get_logger(__name__)

SIGNATURE_LENGTH = 65
DIGEST_LENGTH = 32


def split_signature(signature: bytes) -> tuple[int, int, int]:
    """Split a 65-byte signature into ``(v, r, s)`` with ``v`` normalized to 0/1."""
    if len(signature) != SIGNATURE_LENGTH:
        raise MalformedSignatureError(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )
    r = int.from_bytes(signature[0:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    v = signature[64]
    if v in (27, 28):
        v -= 27
    if v not in (0, 1):
        raise MalformedSignatureError(f"Invalid recovery id: {signature[64]}")
    return v, r, s


class EcdsaSignatureAuthority:
    """SignatureAuthority backed by eth_keys public key recovery."""

    def recover(self, digest: bytes, signature: bytes) -> str:
        if len(digest) != DIGEST_LENGTH:
            raise MalformedSignatureError(
                f"Digest must be {DIGEST_LENGTH} bytes, got {len(digest)}"
            )
        v, r, s = split_signature(bytes(signature))
        try:
            public_key = keys.Signature(vrs=(v, r, s)).recover_public_key_from_msg_hash(digest)
        except Exception as exc:
            raise BadSignatureError(f"Signer recovery failed: {exc}") from exc
        return public_key.to_checksum_address()

    def verify(self, digest: bytes, signature: bytes, claimed_signer: str) -> bool:
        try:
            recovered = self.recover(digest, signature)
            expected = to_address(claimed_signer)
        except (AgreementError, ValueError) as exc:
            logger.debug("signature.verify_failed", error=str(exc))
            return False
        return recovered == expected
