"""
BIP 119 test vectors

https://github.com/bitcoin/bips/blob/master/bip-0119/vectors/ctvhash.json

JSON array of documentation strings and test vector objects with keys
hex_tx, spend_index, and result (parallel to spend_index). Other keys are ignored.
"""
import json
import logging
import os
import typing

from ctv.bips.bip119 import DefaultCheckTemplateVerifyHash, default_template_hash
from ctv.constants import UINT32_MAX
from ctv.tx import Tx, TxDecodeError

log = logging.getLogger(__name__)


class VectorError(ValueError):
    pass


def parse_vector(entry: dict, position: int = 0) -> dict:
    """
    Parse and validate a single test vector object
    Args:
        entry: dict, test vector
        position: int, position of entry in fixture, for error messages and reports
    Returns:
        dict, {"entry": int, "tx": Tx, "spend_index": list[int], "result": list[DefaultCheckTemplateVerifyHash]}
    """
    for key in ["hex_tx", "spend_index", "result"]:
        if key not in entry:
            raise VectorError(f"entry {position}: missing key '{key}'")
    spend_index = entry["spend_index"]
    result = entry["result"]
    if not isinstance(spend_index, list) or not isinstance(result, list):
        raise VectorError(f"entry {position}: spend_index and result must be arrays")
    if len(spend_index) != len(result):
        raise VectorError(
            f"entry {position}: {len(spend_index)} spend indices but {len(result)} results"
        )
    for index in spend_index:
        if type(index) is not int or not 0 <= index <= UINT32_MAX:
            raise VectorError(f"entry {position}: invalid spend index {index!r}")

    try:
        tx_ = Tx(bytes.fromhex(entry["hex_tx"]))
        tx_.dict()
    except TxDecodeError as err:
        raise VectorError(f"entry {position}: invalid transaction: {err}") from err
    except (TypeError, ValueError) as err:
        raise VectorError(f"entry {position}: invalid hex_tx: {err}") from err

    try:
        result = [DefaultCheckTemplateVerifyHash.fromhex(res) for res in result]
    except (TypeError, ValueError) as err:
        raise VectorError(f"entry {position}: invalid result: {err}") from err
    return {
        "entry": position,
        "tx": tx_,
        "spend_index": spend_index,
        "result": result,
    }


def load_vectors(
    fixture: typing.Union[str, os.PathLike, typing.IO]
) -> typing.List[dict]:
    """
    Load test vectors from a fixture file path or file object, skipping
    documentation strings
    """
    try:
        if isinstance(fixture, (str, os.PathLike)):
            with open(fixture) as fixture_file:
                entries = json.load(fixture_file)
        else:
            entries = json.load(fixture)
    except json.JSONDecodeError as err:
        raise VectorError(f"malformed fixture json: {err}") from err
    if not isinstance(entries, list):
        raise VectorError("fixture must be a json array")

    vectors = []
    for position, entry in enumerate(entries):
        if isinstance(entry, str):
            continue
        elif isinstance(entry, dict):
            vectors.append(parse_vector(entry, position=position))
        else:
            raise VectorError(
                f"entry {position}: expected string or object, got {type(entry).__name__}"
            )
    log.debug(f"loaded {len(vectors)} test vectors")
    return vectors


def iter_cases(
    vectors: typing.List[dict],
) -> typing.Iterator[typing.Tuple[Tx, int, DefaultCheckTemplateVerifyHash]]:
    """
    Yield (tx, spend_index, expected) for each spend index of each vector
    """
    for vector in vectors:
        for spend_index, expected in zip(vector["spend_index"], vector["result"]):
            yield vector["tx"], spend_index, expected


def check_vectors(vectors: typing.List[dict]) -> typing.List[dict]:
    """
    Compute default template hash for every case
    Returns:
        list[dict], mismatches, empty if all cases pass
    """
    mismatches = []
    for vector in vectors:
        for tx_, spend_index, expected in iter_cases([vector]):
            computed = default_template_hash(tx_, spend_index)
            log.debug(f"txid {tx_['txid']} input {spend_index}: {computed.hex()}")
            if computed != expected:
                log.error(
                    f"entry {vector['entry']} txid {tx_['txid']} input {spend_index}: "
                    + f"expected {expected.hex()}, computed {computed.hex()}"
                )
                mismatches.append(
                    {
                        "entry": vector["entry"],
                        "txid": tx_["txid"],
                        "spend_index": spend_index,
                        "expected": expected.hex(),
                        "computed": computed.hex(),
                    }
                )
    return mismatches
