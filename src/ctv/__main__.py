"""
ctv cli
"""
import argparse
import json
import logging
import os
import sys

import ctv
import ctv.keys
import ctv.script
import ctv.tx
import ctv.vectors
from ctv import __version__
from ctv.bips import bip119
from ctv.config import Config
from ctv.constants import UINT32_MAX

log = logging.getLogger("ctv.cli")


class RawDescriptionDefaultsHelpFormatter(
    argparse.RawDescriptionHelpFormatter, argparse.ArgumentDefaultsHelpFormatter
):
    pass


class ExplicitOption(argparse.Action):
    """
    Custom Action used for checking whether an option has been set explicitly
    (rather than by default)
    """

    def __call__(self, parser, namespace, values, option_string=None):
        setattr(namespace, self.dest, values)
        setattr(namespace, self.dest + "__explicit", True)


def uint32(value: str) -> int:
    """
    Cast to int and ensure int is within bounds [0, 2**32 - 1]
    """
    integer = int(value)
    if integer < 0 or integer > UINT32_MAX:
        raise argparse.ArgumentTypeError(f"{value} not in range [0, 2**32 - 1]")
    return integer


def add_common_arguments(
    parser: argparse.ArgumentParser,
    include_log_level: bool = True,
):
    parser.add_argument(
        "--config-dir",
        type=str,
        action=ExplicitOption,
        help="Directory to look for optional config file (config.toml or config.json). "
        + "TOML will take precedence over JSON if both files are defined, "
        + "but TOML is only available for python 3.11+ ",
        default=os.path.join(os.path.expanduser("~"), ".ctv"),
    )
    if include_log_level:
        parser.add_argument(
            "-L",
            "--log-level",
            default="error",
            action=ExplicitOption,
            metavar="LOG_LEVEL",
            choices=["trace", "debug", "info", "warning", "error"],
            help="log level, e.g. 'trace', 'debug', 'info', 'warning', or 'error'",
        )


def format_option(o):
    format_map = {
        "b": "bin",
        "x": "hex",
        "raw": "raw",
        "bin": "bin",
        "hex": "hex",
    }
    return format_map[o]


def add_input_arguments(
    parser: argparse.ArgumentParser,
    in_file_help: str = "input data file",
):
    parser.add_argument(
        "--in-file",
        "-in",
        "-i",
        default="-",
        type=argparse.FileType("r"),
        # https://github.com/python/cpython/issues/58364
        help=in_file_help,
    )
    parser.add_argument(
        "-1",
        "--input-format",
        metavar="INPUT_FORMAT",
        nargs="?",
        default="hex",
        const="raw",
        action=ExplicitOption,
        type=format_option,
        help="raw binary (-1), binary string (-1b), or hexadecimal string (-1x)",
    )


def add_output_arguments(
    parser: argparse.ArgumentParser,
    out_file_help: str = "output data file",
):
    parser.add_argument(
        "--out-file",
        "-out",
        "-o",
        default="-",
        type=argparse.FileType("w"),
        help=out_file_help,
    )
    parser.add_argument(
        "-0",
        "--output-format",
        metavar="OUTPUT_FORMAT",
        default="hex",
        const="raw",
        nargs="?",
        action=ExplicitOption,
        type=format_option,
        help="raw binary (-0), binary string (-0b), or hexadecimal string (-0x)",
    )


def setup_parser() -> argparse.ArgumentParser:
    """
    Setup argument parser
    Returns:
        argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="ctv",
        description="""ctv is a cli tool and pure Python library for BIP 119
OP_CHECKTEMPLATEVERIFY default template hashes.

Examples:
    $ echo <rawtx> | ctv hash --index 0

    $ echo <rawtx> | ctv hash | ctv script --p2wsh

    $ ctv vectors ctvhash.json

""",
        formatter_class=RawDescriptionDefaultsHelpFormatter,
    )
    parser.add_argument("-v", "-V", "--version", action="version", version=__version__)
    add_common_arguments(parser)

    sub_parser = parser.add_subparsers(
        dest="subcommand",
        metavar="[subcommand]",
        description="""
Use ctv <subcommand> -h for help on each command""",
    )

    hash_parser = sub_parser.add_parser(
        "hash",
        help="calculate default template hash",
        formatter_class=RawDescriptionDefaultsHelpFormatter,
        description="""
Calculate the BIP 119 default template hash of a raw transaction, for the input index
expected to spend the CHECKTEMPLATEVERIFY output. The index is not checked against the
number of inputs.""",
    )
    hash_parser.add_argument(
        "-n", "--index", type=uint32, default=0, help="input index"
    )
    hash_parser.add_argument(
        "--all",
        action="store_true",
        help="print JSON list of the template hash for every input index",
    )
    hash_parser.add_argument(
        "--preimage",
        action="store_true",
        help="output the serialization that is hashed, instead of the hash",
    )
    add_common_arguments(hash_parser)
    add_input_arguments(hash_parser)
    add_output_arguments(hash_parser)

    tx_parser = sub_parser.add_parser(
        "tx",
        help="create or decode raw transactions",
        formatter_class=RawDescriptionDefaultsHelpFormatter,
        description="""
Create or decode transactions.

Examples:

    1. Create raw transaction

        $ ctv tx -txin '{"txid": "<txid>", "vout": <vout>, "sequence": <sequence>}' -txout '{"value": <satoshis>, "scriptpubkey": "<scriptpubkey>"}'

    2. Decode raw transaction

        $ echo <rawtx> | ctv tx --decode
""",
    )
    tx_parser.add_argument(
        "-txin",
        "--txin",
        dest="txins",
        type=json.loads,
        action="append",
        default=[],
        help="Transaction input data provided as a dictionary with the following keys: "
        + "txid, vout, and optionally scriptsig, sequence",
    )
    tx_parser.add_argument(
        "-txout",
        "--txout",
        dest="txouts",
        type=json.loads,
        action="append",
        default=[],
        help="Transaction output data provided as a dictionary with the following keys: value, scriptpubkey",
    )
    tx_parser.add_argument(
        "-v", "--version", type=int, default=2, help="transaction version"
    )
    tx_parser.add_argument(
        "-l", "--locktime", type=uint32, default=0, help="transaction locktime"
    )
    tx_parser.add_argument(
        "--decode", action="store_true", help="decode raw tx to JSON from input file"
    )
    add_common_arguments(tx_parser)
    add_input_arguments(tx_parser)
    add_output_arguments(tx_parser)

    script_parser = sub_parser.add_parser(
        "script",
        help="create CHECKTEMPLATEVERIFY scripts",
        formatter_class=RawDescriptionDefaultsHelpFormatter,
        description="""
Create the locking script <template hash> OP_CHECKTEMPLATEVERIFY from a 32-byte
template hash, or the P2WSH scriptpubkey committing to it with --p2wsh.

Use --decode to decode a script to JSON instead.""",
    )
    script_parser.add_argument(
        "--p2wsh", action="store_true", help="output P2WSH scriptpubkey"
    )
    script_parser.add_argument(
        "--decode", action="store_true", help="decode script from input to JSON"
    )
    add_common_arguments(script_parser)
    add_input_arguments(script_parser)
    add_output_arguments(script_parser)

    vectors_parser = sub_parser.add_parser(
        "vectors",
        help="verify BIP 119 test vectors",
        formatter_class=RawDescriptionDefaultsHelpFormatter,
        description="""
Verify a BIP 119 test vector file (e.g. bip-0119/vectors/ctvhash.json). Prints a JSON
summary and exits non-zero if any case does not match.""",
    )
    vectors_parser.add_argument("fixture", type=str, help="test vector json file")
    add_common_arguments(vectors_parser)

    key_parser = sub_parser.add_parser("key", help="generate private key")
    add_common_arguments(key_parser)
    add_output_arguments(key_parser)

    pubkey_parser = sub_parser.add_parser(
        "pubkey", help="calculate public key from private key"
    )
    pubkey_parser.add_argument(
        "-X", "--compressed", action="store_true", help="output compressed pubkey"
    )
    add_common_arguments(pubkey_parser)
    add_input_arguments(pubkey_parser)
    add_output_arguments(pubkey_parser)

    sig_parser = sub_parser.add_parser(
        "sig",
        help="sign or verify a template hash",
        formatter_class=RawDescriptionDefaultsHelpFormatter,
        description="""
Sign a 32-byte message (e.g. a template hash) with a private key read from input, or with
--verify, verify --signature against a public key read from input.""",
    )
    sig_parser.add_argument(
        "--msg", type=bytes.fromhex, required=True, help="32-byte message, hex"
    )
    sig_parser.add_argument(
        "--verify", action="store_true", help="verify signature against pubkey"
    )
    sig_parser.add_argument(
        "--signature", type=bytes.fromhex, help="DER encoded signature, hex"
    )
    add_common_arguments(sig_parser)
    add_input_arguments(sig_parser)
    add_output_arguments(sig_parser)
    return parser


def run(args: argparse.Namespace, config: Config) -> int:
    if args.subcommand == "hash":
        tx_ = ctv.tx.Tx(ctv.read_bytes(args.in_file, input_format=config.input_format))
        if args.all:
            print(json.dumps([h.hex() for h in bip119.default_template_hashes(tx_)]))
            return 0
        if args.index >= len(tx_["txins"]):
            log.warning(
                f"input index {args.index} out of range for tx with {len(tx_['txins'])} inputs"
            )
        if args.preimage:
            data = bip119.template_hash_preimage(tx_, args.index)
        else:
            data = bip119.default_template_hash(tx_, args.index)
        ctv.write_bytes(data, args.out_file, output_format=config.output_format)
    elif args.subcommand == "tx":
        if args.txins or args.txouts:
            tx_ = ctv.tx.tx_ser(
                {
                    "version": args.version,
                    "locktime": args.locktime,
                    "txins": args.txins,
                    "txouts": args.txouts,
                }
            )
        else:
            tx_ = ctv.read_bytes(args.in_file, input_format=config.input_format)
        if args.decode:
            decoded_tx, tx_prime = ctv.tx.tx_deser(tx_, json_serializable=True)
            if tx_prime:
                log.warning(f"leftover tx data after deserialization: {tx_prime.hex()}")
            print(json.dumps(decoded_tx))
            return 0
        ctv.write_bytes(tx_, args.out_file, output_format=config.output_format)
    elif args.subcommand == "script":
        data = ctv.read_bytes(args.in_file, input_format=config.input_format)
        if args.decode:
            print(json.dumps(ctv.script.decode_script(data)))
            return 0
        template_hash = bip119.DefaultCheckTemplateVerifyHash.deserialize(data)
        if args.p2wsh:
            script_ = ctv.script.p2wsh_ctv_script_pubkey(template_hash)
        else:
            script_ = ctv.script.ctv_script_pubkey(template_hash)
        ctv.write_bytes(script_, args.out_file, output_format=config.output_format)
    elif args.subcommand == "vectors":
        vectors = ctv.vectors.load_vectors(args.fixture)
        mismatches = ctv.vectors.check_vectors(vectors)
        print(
            json.dumps(
                {
                    "vectors": len(vectors),
                    "cases": len(list(ctv.vectors.iter_cases(vectors))),
                    "mismatches": mismatches,
                }
            )
        )
        return 1 if mismatches else 0
    elif args.subcommand == "key":
        ctv.write_bytes(
            ctv.keys.key(), args.out_file, output_format=config.output_format
        )
    elif args.subcommand == "pubkey":
        privkey = ctv.read_bytes(args.in_file, input_format=config.input_format)
        ctv.write_bytes(
            ctv.keys.pub(privkey, compressed=args.compressed),
            args.out_file,
            output_format=config.output_format,
        )
    elif args.subcommand == "sig":
        data = ctv.read_bytes(args.in_file, input_format=config.input_format)
        if args.verify:
            if not args.signature:
                raise ValueError(
                    "--verify flag present without signature provided via --signature"
                )
            if ctv.keys.verify_message(data, args.msg, args.signature):
                print("OK")
                return 0
            print("signature verification failed")
            return 1
        ctv.write_bytes(
            ctv.keys.sign_message(data, args.msg),
            args.out_file,
            output_format=config.output_format,
        )
    else:
        raise ValueError("command not recognized")
    return 0


def main():
    parser = setup_parser()
    args = parser.parse_args()

    explicit_options = {
        option: value
        for option, value in vars(args).items()
        if getattr(args, option + "__explicit", False)
    }
    try:
        config = Config(**vars(args))
        config.load_config(config_dir=args.config_dir)
        config.update(**explicit_options)
    except (OSError, ValueError) as err:
        log.error(f"config: {err}")
        return 1
    ctv.init_logging(config.log_level)

    if not args.subcommand:
        parser.print_help()
        return 0
    try:
        return run(args, config)
    except (OSError, ValueError) as err:
        # TxDecodeError and VectorError are ValueErrors
        log.error(err)
        return 1


if __name__ == "__main__":
    sys.exit(main())
