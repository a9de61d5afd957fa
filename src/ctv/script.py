"""
Script assembly, witness stacks, and BIP 119 locking scripts
"""
import typing

import ctv
import ctv.constants
import ctv.crypto


def script(args: typing.List[str], witness: bool = False) -> bytes:
    """
    Generic script
    Args:
        args: list, script ops / data
        witness: bool, wether witness script
    >>> script(["OP_2", "024c9b21035e4823d6f09d5a948201d14086d854dfa5bba828c06f5131d9cfe14f", "03fe0b5ca0ab60705b21a00cbd9900026f282c7188427123e87e0dc344ce742eb0", "02528e776c2bf0be68f4503151fd036c9cb720c4977f6f5b0248d5472c654aebe4", "OP_3", "OP_CHECKMULTISIG"]).hex()
    '5221024c9b21035e4823d6f09d5a948201d14086d854dfa5bba828c06f5131d9cfe14f2103fe0b5ca0ab60705b21a00cbd9900026f282c7188427123e87e0dc344ce742eb02102528e776c2bf0be68f4503151fd036c9cb720c4977f6f5b0248d5472c654aebe453ae'
    """
    if witness:
        return witness_ser([bytes.fromhex(arg) for arg in args])
    scriptbytes = b""
    for arg in args:
        # arg is either OP or data
        if arg.startswith("OP_"):
            op = getattr(ctv.constants, arg, None)
            if op is None:
                raise ValueError(f"unrecognized op: {arg}")
            scriptbytes += op.to_bytes(1, "big")
        else:
            data = bytes.fromhex(arg)
            data_len = len(data)
            if data_len == 0:
                continue
            if data_len > 0x4B:
                if data_len <= 0xFF:
                    no_bytes = 1
                    op_push = ctv.constants.OP_PUSHDATA1.to_bytes(1, "little")
                elif data_len <= 0xFFFF:
                    no_bytes = 2
                    op_push = ctv.constants.OP_PUSHDATA2.to_bytes(1, "little")
                elif data_len <= 0xFFFFFFFF:
                    no_bytes = 4
                    op_push = ctv.constants.OP_PUSHDATA4.to_bytes(1, "little")
                else:
                    raise ValueError("too much data to push!")
                op_push += data_len.to_bytes(no_bytes, "little")
            else:
                op_push = data_len.to_bytes(1, "little")
            scriptbytes += op_push
            scriptbytes += data
    return scriptbytes


OP_INT_MAP = {
    op: getattr(ctv.constants, op)
    for op in dir(ctv.constants)
    if op.startswith("OP_")
}
# aliases, e.g. OP_NOP4, OP_TRUE, decode to their preferred name
OP_ALIASES = {"OP_FALSE", "OP_TRUE", "OP_NOP2", "OP_NOP3", "OP_NOP4"}
INT_OP_MAP = {
    value: key for key, value in OP_INT_MAP.items() if key not in OP_ALIASES
}


def decode_script(scriptbytes: bytes) -> typing.List[str]:
    """
    Decode script to list of op names and hex data pushes

    >>> decode_script(bytes.fromhex("5221024c9b21035e4823d6f09d5a948201d14086d854dfa5bba828c06f5131d9cfe14f51ae"))
    ['OP_2', '024c9b21035e4823d6f09d5a948201d14086d854dfa5bba828c06f5131d9cfe14f', 'OP_1', 'OP_CHECKMULTISIG']
    """
    decoded = []
    while scriptbytes:
        op_int = scriptbytes[0]
        scriptbytes = scriptbytes[1:]
        if op_int in range(1, 0x4C):
            push = op_int
        elif op_int == ctv.constants.OP_PUSHDATA1:
            push = int.from_bytes(scriptbytes[:1], "little")
            scriptbytes = scriptbytes[1:]
        elif op_int == ctv.constants.OP_PUSHDATA2:
            push = int.from_bytes(scriptbytes[:2], "little")
            scriptbytes = scriptbytes[2:]
        elif op_int == ctv.constants.OP_PUSHDATA4:
            push = int.from_bytes(scriptbytes[:4], "little")
            scriptbytes = scriptbytes[4:]
        else:
            decoded.append(INT_OP_MAP.get(op_int, f"OP_UNKNOWN_{op_int:02x}"))
            continue
        if len(scriptbytes) < push:
            raise ValueError(f"push of {push} bytes exceeds script length")
        decoded.append(scriptbytes[:push].hex())
        scriptbytes = scriptbytes[push:]
    return decoded


def witness_ser(witness_stack: typing.List[bytes]) -> bytes:
    """
    Serialize witness stack for a single txin, per BIP 141

    >>> witness_ser([bytes.fromhex("010203"), b"Q"]).hex()
    '02030102030151'
    """
    return ctv.compact_size_uint(len(witness_stack)) + b"".join(
        [ctv.compact_size_uint(len(elem)) + elem for elem in witness_stack]
    )


def parse_witness(payload: bytes) -> typing.Tuple[typing.List[bytes], bytes]:
    """
    Parse witness stack for a single txin from the beginning of payload

    Returns:
        tuple[list[bytes], bytes], witness stack items, leftover payload
    """
    witness_stack_len, payload = ctv.parse_compact_size_uint(payload)
    witness_stack = []
    for _ in range(witness_stack_len):
        elem_len, payload = ctv.parse_compact_size_uint(payload)
        if len(payload) < elem_len:
            raise ValueError(
                f"truncated witness element: expected {elem_len} bytes, got {len(payload)}"
            )
        witness_stack.append(payload[:elem_len])
        payload = payload[elem_len:]
    return witness_stack, payload


def _assert_template_hash(template_hash: bytes):
    if len(template_hash) != ctv.constants.CTV_HASH_SIZE:
        raise ValueError(
            f"template hash must be {ctv.constants.CTV_HASH_SIZE} bytes, got {len(template_hash)}"
        )


def ctv_script_pubkey(template_hash: bytes) -> bytes:
    """
    Bare CTV scriptpubkey
    <32-byte template hash> OP_CHECKTEMPLATEVERIFY

    https://github.com/bitcoin/bips/blob/master/bip-0119.mediawiki#specification

    >>> ctv_script_pubkey(bytes(32)).hex()
    '200000000000000000000000000000000000000000000000000000000000000000b3'
    """
    _assert_template_hash(template_hash)
    return script([bytes(template_hash).hex(), "OP_CHECKTEMPLATEVERIFY"])


def ctv_witness_script(template_hash: bytes) -> bytes:
    """
    Witness script for a P2WSH CTV output, same as the bare scriptpubkey
    """
    return ctv_script_pubkey(template_hash)


def p2wsh_script_pubkey(witness_scripthash_: bytes, witness_version: int = 0) -> bytes:
    """
    OP_0 <32-byte sha256(witness_script)>
    """
    if len(witness_scripthash_) != 32:
        raise ValueError("witness script hash must be 32 bytes")
    return script([f"OP_{witness_version}", witness_scripthash_.hex()])


def p2wsh_ctv_script_pubkey(template_hash: bytes) -> bytes:
    """
    P2WSH scriptpubkey committing to <template_hash> OP_CHECKTEMPLATEVERIFY

    Spent with the witness stack [ctv_witness_script(template_hash)]
    """
    return p2wsh_script_pubkey(ctv.crypto.sha256(ctv_witness_script(template_hash)))
