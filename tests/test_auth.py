import pytest
from eth_account import Account
from eth_account.messages import encode_defunct

from flipledger.domain.auth import AuthProof, SignatureGateway
from flipledger.domain.exceptions import AuthenticationFailed
from flipledger.testing import LocalSigner


@pytest.fixture()
def gateway():
    return SignatureGateway("Flip Royale:")


def test_verify_accepts_own_signature(gateway, signer):
    proof = signer.sign("Save Picks")
    assert gateway.verify(signer.address, proof.message, proof.signature)


def test_verify_ignores_address_case(gateway, signer):
    proof = signer.sign("Lock Card")
    assert gateway.verify(signer.address.lower(), proof.message, proof.signature)
    assert gateway.verify(signer.address.upper().replace("0X", "0x"), proof.message, proof.signature)


def test_verify_rejects_other_wallet(gateway, signer):
    other = LocalSigner()
    proof = other.sign("Save Picks")
    assert not gateway.verify(signer.address, proof.message, proof.signature)


def test_verify_rejects_tampered_message(gateway, signer):
    proof = signer.sign("Save Picks")
    assert not gateway.verify(signer.address, "Flip Royale: Lock Card", proof.signature)


def test_verify_rejects_untagged_message_before_recovery(gateway, signer, monkeypatch):
    message = "Hello from somewhere else"
    signed = signer.account.sign_message(encode_defunct(text=message))
    signature = "0x" + bytes(signed.signature).hex()
    assert Account.recover_message(encode_defunct(text=message), signature=signature) == signer.address

    calls = []

    def recover(*args, **kwargs):
        calls.append(args)
        raise AssertionError("recovery must not run for untagged messages")

    monkeypatch.setattr("flipledger.domain.auth.Account.recover_message", recover)
    assert not gateway.verify(signer.address, message, signature)
    with pytest.raises(AuthenticationFailed, match="message format"):
        gateway.authenticate(signer.address, AuthProof(message=message, signature=signature))
    assert calls == []


@pytest.mark.parametrize("signature", ["", "0x", "0x1234", "not-hex", "0x" + "00" * 65])
def test_verify_returns_false_for_malformed_signatures(gateway, signer, signature):
    assert not gateway.verify(signer.address, "Flip Royale: Save Picks", signature)


def test_authenticate_requires_proof(gateway, signer):
    with pytest.raises(AuthenticationFailed, match="Signature required"):
        gateway.authenticate(signer.address, None)


def test_authenticate_rejects_bad_prefix(gateway, signer):
    with pytest.raises(AuthenticationFailed, match="message format"):
        gateway.authenticate(signer.address, AuthProof(message="Save Picks", signature="0x00"))


def test_authenticate_accepts_valid_proof(gateway, signer):
    gateway.authenticate(signer.address, signer.sign("Open Pack"))


def test_custom_prefix():
    gateway = SignatureGateway("Other Game:")
    signer = LocalSigner(prefix="Flip Royale:")
    proof = signer.sign()
    assert not gateway.verify(signer.address, proof.message, proof.signature)
    with pytest.raises(ValueError):
        SignatureGateway("")
