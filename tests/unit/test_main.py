"""
Test __main__ cli entrypoints / functions
"""
import json
import os
import sys
from subprocess import PIPE
from subprocess import Popen

FIXTURE = os.path.join(os.path.dirname(__file__), "bip119", "ctvhash.json")
SIMPLE_TX = "0200000001aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa0000000000ffffffff0100e1f50500000000160014111111111111111111111111111111111111111100000000"
SIMPLE_TX_HASHES = {
    0: "3d313bfcd0e9ff1c0ff292e58867dbffbf83a3266de31835674c552f8d00308f",
    1: "076241b9e6eaef0f6f570e71c5b7cb223e51323d4dd229a641866e29f70f08da",
}
CTV = [sys.executable, "-m", "ctv"]


def test_help():
    with Popen(CTV + ["-h"], stdout=PIPE) as proc:
        proc.communicate()
        assert proc.returncode == 0, "retcode non-zero"


def test_hash():
    with Popen(CTV + ["hash"], stdin=PIPE, stdout=PIPE) as proc:
        stdout, _ = proc.communicate(SIMPLE_TX.encode("utf8"))
        assert stdout.decode("utf8").strip() == SIMPLE_TX_HASHES[0], "stdout unexpected"
        assert proc.returncode == 0, "retcode non-zero"

    with Popen(CTV + ["hash", "--index", "1"], stdin=PIPE, stdout=PIPE) as proc:
        stdout, _ = proc.communicate(SIMPLE_TX.encode("utf8"))
        assert stdout.decode("utf8").strip() == SIMPLE_TX_HASHES[1], "stdout unexpected"
        assert proc.returncode == 0, "retcode non-zero"

    with Popen(CTV + ["hash", "-1", "-0"], stdin=PIPE, stdout=PIPE) as proc:
        stdout, _ = proc.communicate(bytes.fromhex(SIMPLE_TX))
        assert stdout == bytes.fromhex(SIMPLE_TX_HASHES[0]), "stdout unexpected"
        assert proc.returncode == 0, "retcode non-zero"


def test_hash_all():
    with Popen(CTV + ["hash", "--all"], stdin=PIPE, stdout=PIPE) as proc:
        stdout, _ = proc.communicate(SIMPLE_TX.encode("utf8"))
        assert json.loads(stdout) == [SIMPLE_TX_HASHES[0]], "stdout unexpected"
        assert proc.returncode == 0, "retcode non-zero"


def test_hash_malformed_tx():
    with Popen(CTV + ["hash"], stdin=PIPE, stdout=PIPE, stderr=PIPE) as proc:
        stdout, stderr = proc.communicate(SIMPLE_TX[:-2].encode("utf8"))
        assert proc.returncode == 1, "expected non-zero retcode"
        assert b"truncated tx locktime" in stderr


def test_script():
    with Popen(CTV + ["script"], stdin=PIPE, stdout=PIPE) as proc:
        stdout, _ = proc.communicate(SIMPLE_TX_HASHES[0].encode("utf8"))
        assert stdout.decode("utf8").strip() == "20" + SIMPLE_TX_HASHES[0] + "b3"
        assert proc.returncode == 0, "retcode non-zero"

    with Popen(CTV + ["script", "--p2wsh"], stdin=PIPE, stdout=PIPE) as proc:
        stdout, _ = proc.communicate(SIMPLE_TX_HASHES[0].encode("utf8"))
        assert stdout.decode("utf8").strip().startswith("0020")
        assert proc.returncode == 0, "retcode non-zero"


def test_vectors():
    with Popen(CTV + ["vectors", FIXTURE], stdout=PIPE) as proc:
        stdout, _ = proc.communicate()
        summary = json.loads(stdout)
        assert summary["vectors"] == 3
        assert summary["cases"] == 7
        assert summary["mismatches"] == []
        assert proc.returncode == 0, "retcode non-zero"


def test_sig():
    privkey = (1).to_bytes(32, "big").hex()
    with Popen(
        CTV + ["sig", "--msg", SIMPLE_TX_HASHES[0]], stdin=PIPE, stdout=PIPE
    ) as proc:
        stdout, _ = proc.communicate(privkey.encode("utf8"))
        signature = stdout.decode("utf8").strip()
        assert proc.returncode == 0, "retcode non-zero"

    with Popen(CTV + ["pubkey", "-X"], stdin=PIPE, stdout=PIPE) as proc:
        stdout, _ = proc.communicate(privkey.encode("utf8"))
        pubkey = stdout.decode("utf8").strip()
        assert proc.returncode == 0, "retcode non-zero"

    with Popen(
        CTV
        + ["sig", "--verify", "--msg", SIMPLE_TX_HASHES[0], "--signature", signature],
        stdin=PIPE,
        stdout=PIPE,
    ) as proc:
        stdout, _ = proc.communicate(pubkey.encode("utf8"))
        assert stdout.decode("utf8").strip() == "OK"
        assert proc.returncode == 0, "retcode non-zero"


def test_invalid_config(tmp_path):
    with open(tmp_path / "config.json", "w") as config_file:
        json.dump({"output_format": "base64"}, config_file)
    with Popen(
        CTV + ["hash", "--config-dir", str(tmp_path)], stdin=PIPE, stdout=PIPE, stderr=PIPE
    ) as proc:
        _, stderr = proc.communicate(SIMPLE_TX.encode("utf8"))
        assert proc.returncode == 1, "expected non-zero retcode"
        assert b"output_format" in stderr
