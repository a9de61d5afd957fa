"""
secp256k1 keys, and signing of 32-byte messages such as template hashes
"""
import hashlib
import logging

from ecdsa import BadSignatureError, SECP256k1, SigningKey, VerifyingKey
from ecdsa.keys import MalformedPointError
from ecdsa.util import sigdecode_der, sigencode_der_canonize

from ctv.bips.bip119 import DefaultCheckTemplateVerifyHash

log = logging.getLogger(__name__)

MESSAGE_SIZE = 32


def _message_bytes(message: bytes) -> bytes:
    if isinstance(message, DefaultCheckTemplateVerifyHash):
        message = message.message()
    if len(message) != MESSAGE_SIZE:
        raise ValueError(f"message must be {MESSAGE_SIZE} bytes, got {len(message)}")
    return message


def _signing_key(privkey: bytes) -> SigningKey:
    try:
        return SigningKey.from_string(privkey, curve=SECP256k1)
    except MalformedPointError as err:
        raise ValueError(f"invalid private key: {err}") from err


def key() -> bytes:
    """
    Generate a private key
    """
    return SigningKey.generate(curve=SECP256k1).to_string()


def pub(privkey: bytes, compressed: bool = True) -> bytes:
    """
    Calculate public point and return SEC1 pubkey
    Args:
        privkey: bytes, private key
        compressed: bool, compressed pubkey
    """
    signing_key = _signing_key(privkey)
    return signing_key.get_verifying_key().to_string(
        "compressed" if compressed else "uncompressed"
    )


def sign_message(privkey: bytes, message: bytes) -> bytes:
    """
    Deterministic (RFC 6979), low-S, DER encoded signature of a 32-byte message

    The message is signed as-is, it is not hashed again.

    Args:
        privkey: bytes, private key
        message: bytes, 32-byte message, e.g. DefaultCheckTemplateVerifyHash
    Returns:
        bytes, DER encoded signature
    """
    signing_key = _signing_key(privkey)
    return signing_key.sign_digest_deterministic(
        _message_bytes(message),
        hashfunc=hashlib.sha256,
        sigencode=sigencode_der_canonize,
    )


def verify_message(pubkey: bytes, message: bytes, signature: bytes) -> bool:
    """
    Verify DER encoded signature of a 32-byte message against SEC1 pubkey
    Returns:
        bool, True if valid
    """
    message = _message_bytes(message)
    try:
        verifying_key = VerifyingKey.from_string(pubkey, curve=SECP256k1)
    except MalformedPointError as err:
        raise ValueError(f"invalid pubkey: {err}") from err
    try:
        return verifying_key.verify_digest(signature, message, sigdecode=sigdecode_der)
    except BadSignatureError:
        log.debug("signature verification failed")
        return False
