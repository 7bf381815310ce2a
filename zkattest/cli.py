#!/usr/bin/env python3
"""
zkattest Command Line Interface

Usage:
    zkattest attest --kind <kind> --input <file> [--fetch-price] [--output <file>]
    zkattest decode --kind <kind> --hex <0x...>
    zkattest prove --kind <kind> --input <file> [--seed <hex>] [--fixture-dir <dir>]
    zkattest hash --value <identity>
    zkattest price
    zkattest kinds
"""

import argparse
import json
import sys
from typing import Any, Dict

from . import config
from .assembler import AttestationAssembler
from .commitments import hash_identity
from .encoding import decode, layout_size, record_to_dict
from .errors import AttestationError, DecodeError
from .feeds import fetch_btc_price
from .fixtures import create_proof_fixture, write_proof_fixture
from .logging_config import configure_logging
from .prover import SignedCommitmentBackend, ensure_committed
from .records import METRIC_KINDS, AttestationKind
from .validation import InputValidator

KIND_CHOICES = [k.value for k in AttestationKind]


def load_json(path: str) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def save_json(data: Dict[str, Any], path: str) -> None:
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, sort_keys=True)


def _emit(data: Any, output: str = None) -> None:
    if output:
        save_json(data, output)
        print(f"Saved to: {output}", file=sys.stderr)
    else:
        print(json.dumps(data, indent=2, sort_keys=True))


def _parse_hex(value: str) -> bytes:
    text = value[2:] if value.startswith(("0x", "0X")) else value
    try:
        return bytes.fromhex(text)
    except ValueError as exc:
        raise DecodeError("Input is not valid hex") from exc


def _assembler(args) -> AttestationAssembler:
    recipients = config.load_recipient_config(args.recipients)
    return AttestationAssembler(InputValidator(recipients))


def _load_input(args) -> Dict[str, Any]:
    raw = load_json(args.input)
    kind = AttestationKind(args.kind)
    if kind in METRIC_KINDS and "price_units" not in raw and args.fetch_price:
        raw["price_units"] = fetch_btc_price()
    return raw


def cmd_attest(args) -> int:
    attestation = _assembler(args).attest(args.kind, _load_input(args))
    _emit(attestation.to_dict(), args.output)
    return 0


def cmd_decode(args) -> int:
    record = decode(args.kind, _parse_hex(args.hex))
    _emit(record_to_dict(record))
    return 0


def cmd_prove(args) -> int:
    """Attest, prove with the signed-commitment backend, verify, and emit a fixture."""
    raw = _load_input(args)
    attestation = _assembler(args).attest(args.kind, raw)

    backend = SignedCommitmentBackend()
    seed = _parse_hex(args.seed) if args.seed else None
    proving_key, verifying_key = backend.setup(args.program.encode('utf-8'), seed=seed)

    proof = backend.prove(proving_key, attestation.committed_bytes)
    ensure_committed(proof, attestation.committed_bytes)
    if not backend.verify(proof, verifying_key):
        print("Proof failed verification", file=sys.stderr)
        return 1
    print("Successfully generated and verified proof", file=sys.stderr)

    inputs = {"price_units": raw["price_units"]} if "price_units" in raw else None
    fixture = create_proof_fixture(attestation.kind, proof, verifying_key, inputs=inputs)
    if args.fixture_dir:
        path = write_proof_fixture(fixture, args.fixture_dir)
        print(f"Fixture saved to: {path}", file=sys.stderr)
    else:
        _emit(fixture)
    return 0


def cmd_hash(args) -> int:
    print("0x" + hash_identity(args.value).hex())
    return 0


def cmd_price(args) -> int:
    print(fetch_btc_price())
    return 0


def cmd_kinds(args) -> int:
    for kind in AttestationKind:
        size, fixed = layout_size(kind)
        print(f"{kind.value:<20} {size:>4} bytes{'' if fixed else ' + address'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="zkattest: canonical financial attestations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  zkattest attest -k btc_holdings -i holdings.json
  zkattest attest -k loan_health -i loan.json --fetch-price
  zkattest decode -k liquidation --hex 0x00002710
  zkattest prove -k doge_transaction -i tx.json --fixture-dir fixtures/
  zkattest hash --value org-42
        """
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level")
    parser.add_argument("--recipients", help="JSON file of expected recipients per kind")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    attest_parser = subparsers.add_parser("attest", help="Validate, assemble and encode")
    attest_parser.add_argument("-k", "--kind", required=True, choices=KIND_CHOICES)
    attest_parser.add_argument("-i", "--input", required=True, help="Input JSON file")
    attest_parser.add_argument("--fetch-price", action="store_true", help="Fetch price_units when absent")
    attest_parser.add_argument("-o", "--output", help="Output file for the attestation")

    decode_parser = subparsers.add_parser("decode", help="Decode committed bytes")
    decode_parser.add_argument("-k", "--kind", required=True, choices=KIND_CHOICES)
    decode_parser.add_argument("--hex", required=True, help="Committed bytes as hex")

    prove_parser = subparsers.add_parser("prove", help="Attest and produce a signed-commitment proof")
    prove_parser.add_argument("-k", "--kind", required=True, choices=KIND_CHOICES)
    prove_parser.add_argument("-i", "--input", required=True, help="Input JSON file")
    prove_parser.add_argument("--fetch-price", action="store_true", help="Fetch price_units when absent")
    prove_parser.add_argument("--program", default=config.PROGRAM_ID, help="Program identifier")
    prove_parser.add_argument("--seed", help="32-byte hex seed for a reproducible key")
    prove_parser.add_argument("--fixture-dir", help="Directory to write the proof fixture")

    hash_parser = subparsers.add_parser("hash", help="Commit to an identity")
    hash_parser.add_argument("--value", required=True, help="Identity string")

    subparsers.add_parser("price", help="Fetch the current BTC price")
    subparsers.add_parser("kinds", help="List attestation kinds and layout sizes")

    return parser


COMMANDS = {
    "attest": cmd_attest,
    "decode": cmd_decode,
    "prove": cmd_prove,
    "hash": cmd_hash,
    "price": cmd_price,
    "kinds": cmd_kinds,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command not in COMMANDS:
        parser.print_help()
        return 2

    configure_logging(args.log_level, json_format=config.LOG_JSON)

    try:
        return COMMANDS[args.command](args)
    except AttestationError as exc:
        print(json.dumps(exc.to_dict(), indent=2), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
