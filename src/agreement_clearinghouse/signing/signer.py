"""Local key signer for tests, simulations and tooling.

Produces the same 65-byte signatures a wallet returns from typed-data
signing: ``r || s || v`` with ``v`` in {27, 28}.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from eth_account import Account
from eth_keys import keys

from agreement_clearinghouse.signing.typed_data import build_signing_digest

if TYPE_CHECKING:
    from eth_account.signers.local import LocalAccount

    from agreement_clearinghouse.schemas.offer import OfferTerms
    from agreement_clearinghouse.signing.typed_data import DomainParameters


class LocalSigner:
    """Signs digests with an in-process private key."""

    def __init__(self, account: LocalAccount) -> None:
        self._account = account
        self._key = keys.PrivateKey(bytes(account.key))

    @classmethod
    def create(cls) -> LocalSigner:
        """Generate a fresh random key."""
        return cls(Account.create())

    @classmethod
    def from_key(cls, private_key: str | bytes) -> LocalSigner:
        return cls(Account.from_key(private_key))

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def private_key(self) -> bytes:
        return bytes(self._account.key)

    def sign_digest(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest directly (no message prefix)."""
        signature = self._key.sign_msg_hash(digest)
        return (
            signature.r.to_bytes(32, "big")
            + signature.s.to_bytes(32, "big")
            + bytes([signature.v + 27])
        )

    def sign_offer(self, terms: OfferTerms, domain: DomainParameters) -> bytes:
        """Sign the EIP-712 digest of ``terms`` under ``domain``."""
        return self.sign_digest(build_signing_digest(terms, domain))

    def __repr__(self) -> str:
        return f"<LocalSigner address={self.address}>"
