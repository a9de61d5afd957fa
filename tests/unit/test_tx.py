import pytest

import ctv
from ctv.tx import Tx, TxDecodeError, TxIn, TxOut, tx_deser, tx_ser, txin, txout

LEGACY_TX = bytes.fromhex(
    "0100000002bbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb010000000151feffffffcccccccccccccccccccccccccccccccccccccccccccccccccccccccccccccccc0200000000050000000250c30000000000001976a914222222222222222222222222222222222222222288ac0000000000000000066a040102030420a10700"
)
SEGWIT_TX = bytes.fromhex(
    "02000000000101dddddddddddddddddddddddddddddddddddddddddddddddddddddddddddddddd00000000000000000001e80300000000000022002033333333333333333333333333333333333333333333333333333333333333330203010203015110000000"
)


def test_legacy_tx_deser():
    tx_ = Tx(LEGACY_TX)
    assert tx_["version"] == 1
    assert tx_["locktime"] == 500000
    assert len(tx_["txins"]) == 2
    assert tx_["txins"][0]["txid"] == "bb" * 32
    assert tx_["txins"][0]["vout"] == 1
    assert tx_["txins"][0]["scriptsig"] == "51"
    assert tx_["txins"][0]["sequence"] == 0xFFFFFFFE
    assert tx_["txins"][1]["scriptsig"] == ""
    assert tx_["txins"][1]["sequence"] == 5
    assert tx_["txins"][1]["outpoint"] == bytes.fromhex("cc" * 32 + "02000000")
    assert tx_["txouts"][0]["value"] == 50000
    assert tx_["txouts"][1]["scriptpubkey"] == "6a0401020304"
    assert "witnesses" not in tx_.dict()
    assert tx_["txid"] == tx_["wtxid"]


def test_txout_bytes_are_serialization():
    tx_ = Tx(LEGACY_TX)
    assert isinstance(tx_["txouts"][1], TxOut)
    assert tx_["txouts"][1] == bytes.fromhex("0000000000000000066a0401020304")
    assert isinstance(tx_["txins"][1], TxIn)


def test_segwit_tx_deser():
    tx_ = Tx(SEGWIT_TX)
    assert tx_["version"] == 2
    assert tx_["locktime"] == 16
    assert tx_["witnesses"] == [[bytes.fromhex("010203"), b"\x51"]]
    assert (
        tx_["txid"]
        == "b3122f25a37b95a2e63e767ed4c1dd5649a6b214bd72d9e927a4b1aeff4409ef"
    )
    assert (
        tx_["wtxid"]
        == "2334256237c9e4348af9de34bf4720744df964670da410eda0cdd27dd6e9873e"
    )


def test_txid():
    tx_ = Tx(
        bytes.fromhex(
            "0200000001aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa0000000000ffffffff0100e1f50500000000160014111111111111111111111111111111111111111100000000"
        )
    )
    assert (
        tx_["txid"]
        == "2f67b97b03fd301d122c610182bc4e07bde4f913e2b1f1e84dfea4bd8a536aea"
    )


@pytest.mark.parametrize("raw_tx", (LEGACY_TX, SEGWIT_TX))
def test_tx_ser_round_trip(raw_tx: bytes):
    tx_dict, leftover = tx_deser(raw_tx, json_serializable=True)
    assert leftover == b""
    assert tx_ser(tx_dict) == raw_tx
    assert Tx(tx_dict) == raw_tx


def test_tx_from_objects():
    txins = [txin(bytes(32) + bytes(4), b"")]
    txouts = [txout(1000, bytes.fromhex("51"))]
    tx_ = Tx({"version": 2, "locktime": 0, "txins": txins, "txouts": txouts})
    assert tx_["txins"][0]["sequence"] == 0xFFFFFFFF
    assert tx_["txouts"][0]["value"] == 1000


def test_tx_witnesses_optional():
    txins = [txin(bytes(32) + bytes(4), b"")]
    txouts = [txout(1000, bytes.fromhex("51"))]
    legacy = ctv.tx.tx(txins, txouts, version=2)
    assert legacy == ctv.tx.tx(txins, txouts, version=2, script_witnesses=[b"\x00"])
    assert legacy[4] == 1, "unexpected segwit marker"
    segwit = ctv.tx.tx(txins, txouts, version=2, script_witnesses=[b"\x01\x51"])
    assert segwit[4:6] == b"\x00\x01"
    assert ctv.tx.tx(txins, txouts, version=2) == legacy


def test_empty_tx():
    tx_ = Tx({"version": 1, "locktime": 0, "txins": [], "txouts": []})
    assert tx_.hex() == "01000000000000000000"
    assert tx_["txins"] == []
    assert tx_["txouts"] == []


def test_json():
    tx_ = Tx(SEGWIT_TX)
    assert '"scriptsig": ""' in tx_.json()
    assert '"010203"' in tx_.json()


def test_leftover_bytes():
    tx_dict, leftover = tx_deser(LEGACY_TX + b"\xab")
    assert leftover == b"\xab"
    with pytest.raises(TxDecodeError):
        Tx(LEGACY_TX + b"\xab").dict()


@pytest.mark.parametrize(
    "raw_tx",
    (
        b"",
        LEGACY_TX[:3],
        LEGACY_TX[:-1],
        LEGACY_TX[:40],
        SEGWIT_TX[:-6],
        # unknown segwit flag
        bytes.fromhex("020000000002"),
        # scriptsig length beyond data
        bytes.fromhex("0100000001" + "00" * 36 + "fd0001"),
    ),
)
def test_malformed_tx(raw_tx: bytes):
    with pytest.raises(TxDecodeError):
        tx_deser(raw_tx)


def test_decode_error_is_value_error():
    assert issubclass(TxDecodeError, ValueError)


@pytest.mark.parametrize(
    "integer,encoded",
    (
        (0, "00"),
        (252, "fc"),
        (253, "fdfd00"),
        (0xFFFF, "fdffff"),
        (0x10000, "fe00000100"),
        (0x100000000, "ff0000000001000000"),
    ),
)
def test_compact_size_uint(integer: int, encoded: str):
    assert ctv.compact_size_uint(integer).hex() == encoded
    assert ctv.parse_compact_size_uint(bytes.fromhex(encoded) + b"\x01") == (
        integer,
        b"\x01",
    )


@pytest.mark.parametrize("payload", (b"", b"\xfd\x01", b"\xfe\x00\x00", b"\xff"))
def test_parse_compact_size_uint_truncated(payload: bytes):
    with pytest.raises(ValueError):
        ctv.parse_compact_size_uint(payload)


def test_compact_size_uint_negative():
    with pytest.raises(ValueError):
        ctv.compact_size_uint(-1)
