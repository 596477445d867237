"""Wallet signature checks for client-originated ledger writes."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from eth_account import Account
from eth_account.messages import encode_defunct

from .exceptions import AuthenticationFailed

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class AuthProof:
    """A challenge message and the wallet's personal_sign signature over it."""

    message: str
    signature: str


class SignatureGateway:
    """Verify that a claimed address signed a tagged challenge message.

    Messages lacking ``message_prefix`` are refused before any signature
    recovery is attempted. Recovery uses EIP-191 ``personal_sign`` semantics,
    matching what browser wallets produce. Failures never escape as raw
    exceptions: :meth:`verify` answers ``False`` and :meth:`authenticate`
    raises :class:`AuthenticationFailed`.
    """

    def __init__(self, message_prefix: str = "Flip Royale:") -> None:
        if not message_prefix:
            raise ValueError("message_prefix must be non-empty")
        self._prefix = message_prefix

    @property
    def message_prefix(self) -> str:
        return self._prefix

    def has_prefix(self, message: object) -> bool:
        return isinstance(message, str) and message.startswith(self._prefix)

    def verify(self, claimed_address: str, message: str, signature: str) -> bool:
        if not self.has_prefix(message):
            logger.warning("Rejected message without '%s' tag for %s", self._prefix, claimed_address)
            return False
        if not claimed_address or not signature:
            return False
        try:
            recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
        except Exception as exc:  # malformed hex, bad length, invalid curve point
            logger.warning("Signature recovery failed for %s: %s", claimed_address, exc)
            return False
        if recovered.lower() != claimed_address.strip().lower():
            logger.warning(
                "Signature for %s was produced by %s", claimed_address, recovered.lower()
            )
            return False
        return True

    def authenticate(self, claimed_address: str, proof: AuthProof | None) -> None:
        if proof is None:
            raise AuthenticationFailed("Signature required")
        if not self.has_prefix(proof.message):
            raise AuthenticationFailed("Invalid message format")
        if not self.verify(claimed_address, proof.message, proof.signature):
            raise AuthenticationFailed("Invalid signature for this account")
