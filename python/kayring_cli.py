#!/usr/bin/env python3
"""
Kayring CLI: store private keys in password-encrypted kaystore files.

Usage:
  kayring set <name> [--value 0x...] [-p <pwd>] [-f] [-s] [--echo]
  kayring get <name> [-p <pwd>] [-s]
  kayring list
  kayring clone <from> <to> [-f]

Options (also read from the environment or a .env file):
  --dir <path>                 KAYRING_DIR (default: ~/.kayring)
  -p, --password <pwd>         KAYRING_PASSWORD
  --value <0x...>              KAYRING_VALUE
  -d, --derivation-rounds <n>  KAYRING_DERIVATION_ROUNDS (default: 100000)
"""
import argparse
import getpass
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

# Allow running from repo root or from python/
sys.path.insert(0, str(Path(__file__).resolve().parent))

from dotenv import find_dotenv, load_dotenv

from kayring import (
    DEFAULT_ITERATIONS,
    AlreadyExists,
    InvalidParameter,
    KeyringError,
    KeyringService,
    default_dir,
)
from kayring.logger import set_level


def _prompt(msg: str) -> str:
    return getpass.getpass(f"{msg.strip()} ")


def _parse_hex(value: str) -> bytes:
    if not value.startswith("0x"):
        raise InvalidParameter("Value must be a hex string starting with '0x'")
    try:
        return bytes.fromhex(value[2:])
    except ValueError:
        raise InvalidParameter("Value must be a valid hex string") from None


def _resolve_password(password: Optional[str], silent: bool, confirm: bool = False) -> str:
    if password is not None:
        return password
    if silent:
        return ""
    pw = _prompt("Enter password:")
    if confirm and pw != _prompt("Confirm password:"):
        raise InvalidParameter("Passwords do not match")
    return pw


def _add_dir(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--dir",
        default=default_dir(),
        help="Path to the directory where the kaystores are saved",
    )


def _add_rounds(p: argparse.ArgumentParser, help_text: str) -> None:
    p.add_argument(
        "-d",
        "--derivation-rounds",
        type=int,
        default=os.environ.get("KAYRING_DERIVATION_ROUNDS", str(DEFAULT_ITERATIONS)),
        help=help_text,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kayring",
        description="Kayring - encrypted local keyring for private keys",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  set <name>          Encrypt and store a private key
  get <name>          Decrypt and print a private key
  list                List stored names
  clone <from> <to>   Copy a kaystore without decrypting it
        """,
    )
    sub = parser.add_subparsers(dest="command")

    p_set = sub.add_parser("set", help="Encrypt and store a private key")
    p_set.add_argument("name", help="Name of the key. Fails if it exists unless --force")
    p_set.add_argument(
        "--value",
        default=os.environ.get("KAYRING_VALUE"),
        help="Private key as 0x-prefixed hex. Prompted for if omitted; required with --silent",
    )
    p_set.add_argument("-p", "--password", default=os.environ.get("KAYRING_PASSWORD"), help="Encryption password")
    p_set.add_argument("-s", "--silent", action="store_true", help="No logs, no prompts")
    p_set.add_argument("-f", "--force", action="store_true", help="Overwrite the key if it exists")
    p_set.add_argument("--echo", action="store_true", help="Print the stored value back")
    _add_dir(p_set)
    _add_rounds(p_set, "Key derivation rounds, stored with the kaystore")

    p_get = sub.add_parser("get", help="Decrypt and print a private key")
    p_get.add_argument("name", help="Name of the key")
    p_get.add_argument(
        "-p",
        "--password",
        default=os.environ.get("KAYRING_PASSWORD"),
        help="Encryption password. Empty when omitted with --silent",
    )
    p_get.add_argument("-s", "--silent", action="store_true", help="No logs, no prompts")
    _add_dir(p_get)
    _add_rounds(p_get, "Key derivation rounds for version 1 kaystores that do not store them")

    p_list = sub.add_parser("list", help="List stored names")
    _add_dir(p_list)

    p_clone = sub.add_parser("clone", help="Copy a kaystore without decrypting it")
    p_clone.add_argument("src", metavar="from", help="Name of the key to clone")
    p_clone.add_argument("dst", metavar="to", help="Name of the cloned key")
    p_clone.add_argument("-f", "--force", action="store_true", help="Overwrite the target if it exists")
    _add_dir(p_clone)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv(find_dotenv(usecwd=True))
    parser = build_parser()
    parsed = parser.parse_args(argv)

    cmd = parsed.command
    if not cmd:
        parser.print_help()
        sys.exit(0)

    silent = getattr(parsed, "silent", False)
    set_level(logging.WARNING if silent else logging.INFO)

    try:
        rounds = getattr(parsed, "derivation_rounds", DEFAULT_ITERATIONS)
        service = KeyringService(dir_path=parsed.dir, iterations=rounds)

        if cmd == "set":
            if not parsed.force and service.directory.exists(parsed.name):
                # Fail before prompting for anything.
                raise AlreadyExists(parsed.name)
            password = _resolve_password(parsed.password, silent, confirm=True)
            privkey = parsed.value
            if privkey is None and not silent:
                privkey = _prompt("Enter value:")
            value = _parse_hex(privkey) if privkey is not None else None
            if not silent:
                print("Encrypting...")
            service.set(parsed.name, value, password, force=parsed.force)
            if parsed.echo:
                print(privkey)

        elif cmd == "get":
            password = _resolve_password(parsed.password, silent)
            print("0x" + service.get(parsed.name, password).hex())

        elif cmd == "list":
            print(", ".join(service.list()))

        elif cmd == "clone":
            service.clone(parsed.src, parsed.dst, force=parsed.force)

    except KeyringError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
