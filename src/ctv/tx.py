"""
Utilities for transactions

https://developer.bitcoin.org/reference/transactions.html
"""
import logging
from typing import List, Optional, Tuple

import ctv.constants
import ctv.crypto
import ctv.script
from ctv import Bytes

log = logging.getLogger(__name__)


class TxDecodeError(ValueError):
    pass


def _take(payload: bytes, length: int, field: str) -> Tuple[bytes, bytes]:
    if len(payload) < length:
        raise TxDecodeError(
            f"truncated {field}: expected {length} bytes, got {len(payload)}"
        )
    return payload[:length], payload[length:]


def _take_compact_size(payload: bytes, field: str) -> Tuple[int, bytes]:
    try:
        return ctv.parse_compact_size_uint(payload)
    except ValueError as err:
        raise TxDecodeError(f"{field}: {err}") from err


def int32_le(integer: int) -> bytes:
    """
    4 byte little endian, two's complement if negative

    >>> int32_le(-1).hex()
    'ffffffff'
    """
    return integer.to_bytes(4, "little", signed=integer < 0)


def outpoint(txid_: bytes, index: int) -> bytes:
    """
    # https://developer.bitcoin.org/reference/transactions.html#outpoint-the-specific-part-of-a-specific-output

    Args:
        txid_: bytes, txid (little endian)
        index: int, output index
    """
    return txid_ + index.to_bytes(4, "little")


def txin(
    prev_outpoint: bytes,
    script_sig: bytes,
    sequence: bytes = b"\xff\xff\xff\xff",
) -> bytes:
    """
    Tx input serialization
    Args:
        prev_outpoint: bytes
        script_sig: bytes
        sequence: bytes, sequence (little endian byte order)
    """
    return (
        prev_outpoint + ctv.compact_size_uint(len(script_sig)) + script_sig + sequence
    )


def txin_ser(txin_: dict) -> bytes:
    return txin(
        outpoint(bytes.fromhex(txin_["txid"])[::-1], txin_["vout"]),
        bytes.fromhex(txin_.get("scriptsig", "")),
        sequence=txin_.get("sequence", ctv.constants.SEQUENCE_FINAL).to_bytes(
            4, "little"
        ),
    )


def txin_deser(txin_: bytes, **kwargs) -> Tuple[dict, bytes]:
    txid_, txin_ = _take(txin_, 32, "txin prev txid")
    vout, txin_ = _take(txin_, 4, "txin prev vout")
    scriptsig_len, txin_ = _take_compact_size(txin_, "txin scriptsig length")
    scriptsig, txin_ = _take(txin_, scriptsig_len, "txin scriptsig")
    sequence, txin_ = _take(txin_, 4, "txin sequence")
    return {
        "txid": txid_[::-1].hex(),  # rpc byte order
        "vout": int.from_bytes(vout, "little"),
        "scriptsig": scriptsig.hex(),
        "sequence": int.from_bytes(sequence, "little"),
    }, txin_


def txout(value: int, script_pubkey: bytes) -> bytes:
    """
    Serialize txout
    Args:
        value: int, value in satoshis
        script_pubkey: bytes, scriptpubkey (big endian)
    Returns:
        bytes, serialized txout
    """
    return (
        value.to_bytes(8, "little", signed=value < 0)
        + ctv.compact_size_uint(len(script_pubkey))
        + script_pubkey
    )


def txout_ser(txout_: dict) -> bytes:
    return txout(
        txout_["value"],
        bytes.fromhex(txout_["scriptpubkey"]),
    )


def txout_deser(txout_: bytes, **kwargs) -> Tuple[dict, bytes]:
    value, txout_ = _take(txout_, 8, "txout value")
    scriptpubkey_len, txout_ = _take_compact_size(txout_, "txout scriptpubkey length")
    scriptpubkey, txout_ = _take(txout_, scriptpubkey_len, "txout scriptpubkey")
    return {
        "value": int.from_bytes(value, "little", signed=True),
        "scriptpubkey": scriptpubkey.hex(),
    }, txout_


def tx(
    txins: List[bytes],
    txouts: List[bytes],
    version: int = 1,
    locktime: int = 0,
    script_witnesses: Optional[List[bytes]] = None,
) -> bytes:
    """
    Transaction serialization, optional SegWit per BIP 141

    Args:
        txins: list[bytes], serialized inputs
        txouts: list[bytes], serialized outputs
        version: int, tx version
        locktime: int, tx locktime
        script_witnesses: list[bytes], serialized witness stack per input,
            extended serialization is used only if any stack is non-empty
    """
    script_witnesses = script_witnesses or []
    if any(witness != b"\x00" for witness in script_witnesses):
        if len(script_witnesses) != len(txins):
            raise ValueError("number of witness stacks must equal number of txins")
        marker = ctv.constants.SEGWIT_MARKER.to_bytes(1, "little")
        flag = ctv.constants.SEGWIT_FLAG.to_bytes(1, "little")
        return (
            int32_le(version)
            + marker
            + flag
            + ctv.compact_size_uint(len(txins))
            + b"".join(txins)
            + ctv.compact_size_uint(len(txouts))
            + b"".join(txouts)
            + b"".join(script_witnesses)
            + locktime.to_bytes(4, "little")
        )
    return (
        int32_le(version)
        + ctv.compact_size_uint(len(txins))
        + b"".join(txins)
        + ctv.compact_size_uint(len(txouts))
        + b"".join(txouts)
        + locktime.to_bytes(4, "little")
    )


def txid(tx_: bytes) -> str:
    """
    Returns txid from tx bytes in big endian byte order
    """
    return ctv.crypto.hash256(tx_)[::-1].hex()


def tx_ser(tx_: dict) -> bytes:
    """
    Serialize tx bytes from tx dict

    txins / txouts may be dicts or already serialized TxIn / TxOut bytes
    """
    return tx(
        [
            txin_ if isinstance(txin_, bytes) else txin_ser(txin_)
            for txin_ in tx_["txins"]
        ],
        [
            txout_ if isinstance(txout_, bytes) else txout_ser(txout_)
            for txout_ in tx_["txouts"]
        ],
        version=tx_.get("version", 1),
        locktime=tx_.get("locktime", 0),
        script_witnesses=[
            ctv.script.witness_ser(
                [
                    elem if isinstance(elem, bytes) else bytes.fromhex(elem)
                    for elem in witness_stack
                ]
            )
            for witness_stack in tx_.get("witnesses", [])
        ],
    )


def tx_deser(tx_: bytes, json_serializable: bool = False) -> Tuple[dict, bytes]:
    """
    Deserialize tx data

    Args:
        tx_: bytes, tx data
        json_serializable: bool, set True to return txin and txouts as dicts instead of TxIn and TxOut objects, respectively
    Returns:
        tuple[dict, bytes], deserialized tx, leftover bytes
    Raises:
        TxDecodeError: if tx data is malformed
    """
    deserialized_tx = {}
    is_segwit = False
    version, tx_prime = _take(tx_, 4, "tx version")
    deserialized_tx["version"] = int.from_bytes(version, "little")

    number_of_inputs, tx_prime = _take_compact_size(tx_prime, "txin count")
    if number_of_inputs == 0:
        # BIP 141 marker, next byte is flag
        flag, tx_prime = _take(tx_prime, 1, "segwit flag")
        if flag[0] == ctv.constants.SEGWIT_FLAG:
            is_segwit = True
            number_of_inputs, tx_prime = _take_compact_size(tx_prime, "txin count")
        elif flag[0] != 0:
            raise TxDecodeError(f"unknown segwit flag: {flag[0]}")
    txins = []
    if not is_segwit and number_of_inputs == 0:
        # empty vin followed by empty vout, already consumed above
        number_of_outputs = 0
    else:
        for _ in range(number_of_inputs):
            txin_, tx_prime = TxIn.from_bytestream(tx_prime)
            if json_serializable:
                txin_ = txin_.dict()
            txins.append(txin_)
        number_of_outputs, tx_prime = _take_compact_size(tx_prime, "txout count")
    deserialized_tx["txins"] = txins

    txouts = []
    for _ in range(number_of_outputs):
        txout_, tx_prime = TxOut.from_bytestream(tx_prime)
        if json_serializable:
            txout_ = txout_.dict()
        txouts.append(txout_)
    deserialized_tx["txouts"] = txouts

    if is_segwit:
        deserialized_tx["witnesses"] = []
        for _ in range(len(txins)):
            try:
                txin_witness_stack, tx_prime = ctv.script.parse_witness(tx_prime)
            except ValueError as err:
                raise TxDecodeError(f"witness: {err}") from err
            if json_serializable:
                txin_witness_stack = [elem.hex() for elem in txin_witness_stack]
            deserialized_tx["witnesses"].append(txin_witness_stack)

    locktime, tx_prime = _take(tx_prime, 4, "tx locktime")
    deserialized_tx["locktime"] = int.from_bytes(locktime, "little")
    tx_ = tx_[: len(tx_) - len(tx_prime)]

    # re-serialize without witness for txid
    legacy_tx = tx_ser(
        {key: value for key, value in deserialized_tx.items() if key != "witnesses"}
    )
    tx_dict = {"txid": txid(legacy_tx), "wtxid": txid(tx_)}
    tx_dict.update(deserialized_tx)
    return tx_dict, tx_prime


def _tx_deser_strict(data: bytes, **kwargs) -> dict:
    tx_dict, leftover = tx_deser(data, **kwargs)
    if leftover:
        raise TxDecodeError(f"leftover tx data after deserialization: {leftover.hex()}")
    return tx_dict


class Tx(Bytes):
    """
    Transaction bytes with dict view

    >>> Tx({"version": 2, "txins": [], "txouts": [], "locktime": 0}).hex()
    '02000000000000000000'
    >>> Tx(bytes.fromhex("02000000000000000000"))["version"]
    2
    """

    def __new__(cls, data, **kwargs):
        cls._deserializer_fun = _tx_deser_strict
        cls._serializer_fun = tx_ser
        return super().__new__(cls, data, **kwargs)


class TxIn(Bytes):
    def __new__(cls, data, **kwargs):
        cls._deserializer_fun = lambda data: txin_deser(data)[0]
        cls._serializer_fun = txin_ser
        return super().__new__(cls, data, **kwargs)

    def __getitem__(self, key: str):
        if key == "outpoint":
            return outpoint(bytes.fromhex(self["txid"])[::-1], self["vout"])
        return super().__getitem__(key)

    @classmethod
    def from_bytestream(cls, bytestream: bytes) -> Tuple["TxIn", bytes]:
        txin_dict, leftover = txin_deser(bytestream)
        txin_ = bytestream[: len(bytestream) - len(leftover)]
        new_class = cls(txin_)
        new_class._dict = txin_dict
        return new_class, leftover


class TxOut(Bytes):
    def __new__(cls, data, **kwargs):
        cls._deserializer_fun = lambda data: txout_deser(data)[0]
        cls._serializer_fun = txout_ser
        return super().__new__(cls, data, **kwargs)

    @classmethod
    def from_bytestream(cls, bytestream: bytes) -> Tuple["TxOut", bytes]:
        txout_dict, leftover = txout_deser(bytestream)
        txout_ = bytestream[: len(bytestream) - len(leftover)]
        new_class = cls(txout_)
        new_class._dict = txout_dict
        return new_class, leftover
