__version__ = "0.1.0"

import json
import logging
import os
import sys
import typing

logging.TRACE = logging.DEBUG - 1
logging.addLevelName(logging.TRACE, "TRACE")


class Logger(logging.getLoggerClass()):
    def trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(logging.TRACE):
            self._log(logging.TRACE, msg, args, **kwargs)


logging.setLoggerClass(Logger)


def init_logging(log_level: str):
    """
    Initialize logging with a StreamHandler set to log_level
    Args:
        log_level: str, log level
    """
    log = logging.getLogger(__name__)
    log.setLevel(logging.TRACE)  # set root logger to lowest level
    formatter = logging.Formatter("[%(asctime)s] %(levelname)s [%(name)s] %(message)s")
    sh = logging.StreamHandler()
    sh.setFormatter(formatter)
    sh.setLevel(getattr(logging, log_level.upper()))
    log.addHandler(sh)
    return log


def read_bytes(
    file_: typing.Optional[typing.IO] = None, input_format: str = "raw"
) -> bytes:
    """
    Read from optional file or stdin and convert to bytes

    Any newlines will be stripped from beginning / end for hex and bin, only.
    Raw is read without any additional processing.

    Furthermore, hex and bin will be left-zero-padded to the nearest byte, if they are
    not provided in 8-bit multiples.

    Args:
        file_: Optional[IO], optional file object - otherwise stdin is used
        input_format: str, "raw", "hex", or "bin"
    Returns:
        data as bytes
    """
    if input_format == "raw":
        data = file_.buffer.read() if file_ else sys.stdin.buffer.read()
    elif input_format == "hex":
        data = file_.read().strip() if file_ else sys.stdin.read().strip()
        if len(data) % 2:
            data = "0" + data
        data = bytes.fromhex(data)
    elif input_format == "bin":
        data = file_.read().strip() if file_ else sys.stdin.read().strip()
        if not data:
            return b""
        if len(data) % 8:
            data = "0" * (8 - len(data) % 8) + data
        data = int(data, 2).to_bytes(len(data) // 8, "big")
    else:
        raise ValueError(f"unrecognized input format: {input_format}")
    return data


def write_bytes(
    data: bytes,
    file_: typing.Optional[typing.IO] = None,
    output_format: str = "raw",
):
    """
    Write bytes to file_ or stdout. bin/hex output format will have newline appended
    Args:
        data: bytes, bytes to print
        file_: Optional[IO], file object to write to, if None uses stdout
        output_format: str, 'raw', 'bin', or 'hex'
    """
    if not data:
        return
    if output_format == "raw":
        if file_ is not None:
            file_.buffer.write(data)
        else:
            sys.stdout.buffer.write(data)
    elif output_format == "bin" or output_format == "hex":
        format_spec = (
            f"0{len(data) * 2}x" if output_format == "hex" else f"0{len(data) * 8}b"
        )
        formatted_data = format(int.from_bytes(data, "big"), format_spec)
        formatted_data += os.linesep
        if file_ is not None:
            file_.write(formatted_data)
        else:
            sys.stdout.write(formatted_data)
    else:
        raise ValueError(f"unrecognized output format: {output_format}")


def compact_size_uint(integer: int) -> bytes:
    """
    https://developer.bitcoin.org/reference/transactions.html#compactsize-unsigned-integers

    >>> compact_size_uint(252).hex()
    'fc'
    >>> compact_size_uint(253).hex()
    'fdfd00'
    >>> compact_size_uint(0x10000).hex()
    'fe00000100'
    """
    if integer < 0:
        raise ValueError("signed integer")
    elif integer >= 0 and integer <= 252:
        return integer.to_bytes(1, "little")
    elif integer >= 253 and integer <= 0xFFFF:
        return b"\xfd" + integer.to_bytes(2, "little")
    elif integer >= 0x10000 and integer <= 0xFFFFFFFF:
        return b"\xfe" + integer.to_bytes(4, "little")
    elif integer >= 0x100000000 and integer <= 0xFFFFFFFFFFFFFFFF:
        return b"\xff" + integer.to_bytes(8, "little")
    raise ValueError(f"integer too large for compact size: {integer}")


def parse_compact_size_uint(payload: bytes) -> typing.Tuple[int, bytes]:
    """
    This function expects a compact size uint at the beginning of payload.
    Since compact size uints are variable in size, this function
    will observe the first byte, parse the necessary subsequent bytes,
    and return, as a tuple, the parsed integer followed by the rest of the
    payload (i.e. the remaining unparsed payload)

    >>> parse_compact_size_uint(bytes.fromhex("fdfd00ff"))
    (253, b'\\xff')
    """
    if not payload:
        raise ValueError("empty payload, expected compact size uint")
    first_byte = payload[0]
    if first_byte == 255:
        width = 8
    elif first_byte == 254:
        width = 4
    elif first_byte == 253:
        width = 2
    else:
        return first_byte, payload[1:]
    if len(payload) < 1 + width:
        raise ValueError("truncated compact size uint")
    integer = int.from_bytes(payload[1 : 1 + width], "little")
    return integer, payload[1 + width :]


class Bytes(bytes):
    """
    bytes with a lazily deserialized dict view

    Subclasses set _deserializer_fun (bytes -> dict) and _serializer_fun
    (dict -> bytes). String keys index the dict view, ints and slices index the
    underlying bytes.
    """

    def __new__(cls, data, **kwargs):
        _deserializer_fun = getattr(cls, "_deserializer_fun", None)
        _serializer_fun = getattr(cls, "_serializer_fun", None)
        if isinstance(data, dict):
            bytes_data = _serializer_fun(data)
            obj = super().__new__(cls, bytes_data, **kwargs)
        else:
            obj = super().__new__(cls, data, **kwargs)
        # always deserialize from bytes, so the dict view is canonical
        obj._dict = None
        obj._deserializer_fun = _deserializer_fun
        obj._serializer_fun = _serializer_fun
        return obj

    def __getitem__(self, key: str):
        if isinstance(key, (int, slice)):  # normal bytes behavior
            return super().__getitem__(key)
        return self.dict()[key]

    def __getattr__(self, attr: str):
        if attr.startswith("_"):
            raise AttributeError(
                f"'{self.__class__.__name__}' object has no attribute '{attr}'"
            )
        try:
            return self.dict()[attr]
        except KeyError:
            raise AttributeError(
                f"'{self.__class__.__name__}' object has no attribute '{attr}'"
            )

    def bin(self) -> str:
        if bytes(self) == b"":
            return ""
        return format(int.from_bytes(self, "big"), f"0{len(self) * 8}b")

    def dict(self, refresh: bool = False) -> dict:
        if self._dict is None or refresh:
            if self._deserializer_fun is None:
                raise RuntimeError(
                    "Cannot deserialize. _deserializer_fun is not defined"
                )
            self._dict = self._deserializer_fun(self)
        return self._dict

    def json(self, indent: int = None) -> str:
        return json.dumps(self.dict(), indent=indent, default=_json_default)


def _json_default(obj):
    if isinstance(obj, Bytes):
        return obj.dict()
    elif isinstance(obj, bytes):
        return obj.hex()
    raise TypeError(f"Object of type {obj.__class__.__name__} is not JSON serializable")
