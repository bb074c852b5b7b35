"""Management CLI for Token Vault."""

import argparse
import logging
import sys
import time
from typing import List, Optional

from .config import get_config
from .errors import DuplicateNameError, NotFoundError
from .secret import looks_like_secret
from .storage.base import SafeTokenRecord
from .sync_store import SyncTokenStore


def _format_expiration(expiration: int) -> str:
    if expiration == 0:
        return "never"
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(expiration))


def _format_token(token: SafeTokenRecord) -> str:
    rights = ",".join(sorted(token.rights)) or "-"
    return f"{token.name}\t{_format_expiration(token.expiration)}\t{rights}"


def cmd_generate(store: SyncTokenStore, args: argparse.Namespace) -> int:
    expiration = 0
    if args.expires_in is not None:
        expiration = int(time.time()) + args.expires_in
    elif args.expiration is not None:
        expiration = args.expiration

    try:
        token = store.generate_token(args.name, rights=args.right, expiration=expiration)
    except DuplicateNameError as e:
        print(e, file=sys.stderr)
        return 1

    # The secret is only ever shown here
    print(token.secret)
    return 0


def cmd_list(store: SyncTokenStore, _: argparse.Namespace) -> int:
    for token in store.list_tokens():
        print(_format_token(token))
    return 0


def cmd_show(store: SyncTokenStore, args: argparse.Namespace) -> int:
    try:
        token = store.get_token(args.name)
    except NotFoundError as e:
        print(e, file=sys.stderr)
        return 1
    print(_format_token(token))
    return 0


def cmd_delete(store: SyncTokenStore, args: argparse.Namespace) -> int:
    if not store.delete_token(args.name):
        print(f'Token "{args.name}" does not exist.', file=sys.stderr)
        return 1
    print(f"Deleted {args.name}")
    return 0


def cmd_verify(store: SyncTokenStore, args: argparse.Namespace) -> int:
    if not looks_like_secret(args.secret):
        print("Not a token secret", file=sys.stderr)
        return 1

    if not store.verify_token_validity(args.secret):
        print("INVALID")
        return 1
    if args.right is not None and not store.verify_token_right(args.secret, args.right):
        print(f"MISSING RIGHT: {args.right}")
        return 1

    print("VALID")
    return 0


def _non_negative(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError("must be a non-negative integer")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="token-vault", description="Bearer token store CLI")
    parser.add_argument("--db", help="Database path (default: TOKEN_VAULT_DATABASE_PATH)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_gen = sub.add_parser("generate", help="Create a token and print its secret")
    p_gen.add_argument("name")
    p_gen.add_argument("--right", action="append", default=[], help="Grant a right (repeatable)")
    p_exp = p_gen.add_mutually_exclusive_group()
    p_exp.add_argument("--expires-in", type=_non_negative, help="Seconds from now until expiry")
    p_exp.add_argument("--expiration", type=_non_negative, help="Absolute expiry as unix seconds")
    p_gen.set_defaults(func=cmd_generate)

    sub.add_parser("list", help="List tokens").set_defaults(func=cmd_list)

    p_show = sub.add_parser("show", help="Show one token")
    p_show.add_argument("name")
    p_show.set_defaults(func=cmd_show)

    p_del = sub.add_parser("delete", help="Delete a token and its rights")
    p_del.add_argument("name")
    p_del.set_defaults(func=cmd_delete)

    p_ver = sub.add_parser("verify", help="Check a secret is valid, and optionally holds a right")
    p_ver.add_argument("secret")
    p_ver.add_argument("--right")
    p_ver.set_defaults(func=cmd_verify)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    config = get_config()
    logging.basicConfig(
        level=config.log_level_number,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    with SyncTokenStore(args.db or config.storage.database_path) as store:
        return int(args.func(store, args))


if __name__ == "__main__":
    raise SystemExit(main())
