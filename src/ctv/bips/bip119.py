"""
https://github.com/bitcoin/bips/blob/master/bip-0119.mediawiki

Default template hash, SHA256 of the serialization of:
1. nVersion of the transaction (4-byte little endian)
2. nLockTime of the transaction (4-byte little endian)
3. scriptSigs hash (32-byte hash), only if any scriptSig is non-empty
4. number of inputs (4-byte little endian)
5. sequences hash (32-byte hash)
6. number of outputs (4-byte little endian)
7. outputs hash (32-byte hash)
8. input index (4-byte little endian)
"""
import hashlib
import logging
from typing import List, Tuple, Union

import ctv.constants
from ctv.tx import Tx, int32_le

log = logging.getLogger(__name__)


class DefaultCheckTemplateVerifyHash(bytes):
    """
    Default CHECKTEMPLATEVERIFY hash of a transaction, 32 bytes

    Serialized as the raw 32 bytes, no length prefix. Hex is in the same
    (non-reversed) byte order.

    >>> h = DefaultCheckTemplateVerifyHash.fromhex("00" * 31 + "01")
    >>> h.serialize() == bytes(31) + b"\\x01"
    True
    >>> DefaultCheckTemplateVerifyHash.deserialize(h.serialize()) == h
    True
    """

    def __new__(cls, data: bytes):
        if len(data) != ctv.constants.CTV_HASH_SIZE:
            raise ValueError(
                f"{cls.__name__} must be {ctv.constants.CTV_HASH_SIZE} bytes, got {len(data)}"
            )
        return super().__new__(cls, data)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}('{self.hex()}')"

    def __str__(self) -> str:
        return self.hex()

    @classmethod
    def fromhex(cls, string: str) -> "DefaultCheckTemplateVerifyHash":
        return cls(bytes.fromhex(string))

    def serialize(self) -> bytes:
        return bytes(self)

    @classmethod
    def from_bytestream(
        cls, bytestream: bytes
    ) -> Tuple["DefaultCheckTemplateVerifyHash", bytes]:
        """
        Decode hash from the beginning of bytestream
        Returns:
            tuple[DefaultCheckTemplateVerifyHash, bytes], hash, leftover bytes
        """
        size = ctv.constants.CTV_HASH_SIZE
        if len(bytestream) < size:
            raise ValueError(
                f"expected {size} bytes for {cls.__name__}, got {len(bytestream)}"
            )
        return cls(bytestream[:size]), bytestream[size:]

    @classmethod
    def deserialize(cls, data: bytes) -> "DefaultCheckTemplateVerifyHash":
        hash_, leftover = cls.from_bytestream(data)
        if leftover:
            raise ValueError(f"leftover data after {cls.__name__}: {leftover.hex()}")
        return hash_

    def message(self) -> bytes:
        """
        32-byte message for signing, the hash bytes unchanged
        """
        return bytes(self)


def _tx_dict(tx_: Union[bytes, dict]) -> Tx:
    # dicts go through tx_ser, so optional fields take their defaults
    if isinstance(tx_, Tx):
        return tx_
    return Tx(tx_)



def template_hash_preimage(tx_: Union[bytes, dict], input_index: int) -> bytes:
    """
    Serialization hashed for the default template hash

    Args:
        tx_: bytes | dict, transaction
        input_index: int, index of the input expected to spend the CTV output,
            not checked against the number of inputs
    Returns:
        bytes, preimage
    """
    tx_ = _tx_dict(tx_)
    txins = tx_["txins"]
    txouts = tx_["txouts"]

    preimage = int32_le(tx_["version"]) + tx_["locktime"].to_bytes(4, "little")

    scriptsigs = [bytes.fromhex(txin_["scriptsig"]) for txin_ in txins]
    if any(scriptsigs):
        scriptsigs_hash = hashlib.sha256()
        for scriptsig in scriptsigs:
            scriptsigs_hash.update(ctv.compact_size_uint(len(scriptsig)) + scriptsig)
        preimage += scriptsigs_hash.digest()

    preimage += len(txins).to_bytes(4, "little")

    sequences_hash = hashlib.sha256()
    for txin_ in txins:
        sequences_hash.update(txin_["sequence"].to_bytes(4, "little"))
    preimage += sequences_hash.digest()

    preimage += len(txouts).to_bytes(4, "little")

    outputs_hash = hashlib.sha256()
    for txout_ in txouts:
        # TxOut bytes are the serialization itself
        outputs_hash.update(txout_)
    preimage += outputs_hash.digest()

    preimage += input_index.to_bytes(4, "little")
    return preimage


def default_template_hash(
    tx_: Union[bytes, dict], input_index: int
) -> DefaultCheckTemplateVerifyHash:
    """
    BIP 119 default template hash of tx for the input at input_index

    Args:
        tx_: bytes | dict, raw transaction, Tx, or tx dict
        input_index: int, index of the input expected to spend the CTV output
    Returns:
        DefaultCheckTemplateVerifyHash

    >>> default_template_hash(bytes.fromhex("01000000000000000000"), 0).hex()
    '2a73dc5dea9b33458bd11d5c6a7db02a9f1d20d94ae19f3f8096b46e26c2ca56'
    """
    template_hash = DefaultCheckTemplateVerifyHash(
        hashlib.sha256(template_hash_preimage(tx_, input_index)).digest()
    )
    log.trace(f"default template hash for input {input_index}: {template_hash.hex()}")
    return template_hash


def default_template_hashes(
    tx_: Union[bytes, dict]
) -> List[DefaultCheckTemplateVerifyHash]:
    """
    Default template hash for every input index of tx
    """
    tx_ = _tx_dict(tx_)
    return [default_template_hash(tx_, index) for index in range(len(tx_["txins"]))]
