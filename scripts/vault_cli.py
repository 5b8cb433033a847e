#!/usr/bin/env python3
"""Small command line front end for a BookVault GraphQL server.

Usage
-----
Point the client at a server and run one of the subcommands::

    export VAULT_ENDPOINT="http://localhost:4000/graphql"
    python scripts/vault_cli.py list
    python scripts/vault_cli.py add "Dune" "Frank Herbert" --genre Sci-Fi --year 1965
    python scripts/vault_cli.py delete 3

Options::

    --json           Output as machine-readable JSON
    --verbose, -v    Enable debug logging (set VAULT_API_TRACE_ENABLED=1 for payloads)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pybookvault import Book, VaultClient, VaultConfig, VaultError  # noqa: E402


def _print_books(books: list[Book], *, json_mode: bool) -> None:
    if json_mode:
        print(json.dumps([book.model_dump(by_alias=True) for book in books], indent=2, ensure_ascii=False))
        return
    if not books:
        print("(no books)")
        return
    for book in books:
        extra = ", ".join(str(part) for part in (book.genre, book.published_year) if part is not None)
        suffix = f" ({extra})" if extra else ""
        print(f"  {book.id:>6}  {book.title} by {book.author}{suffix}")


async def main() -> int:
    parser = argparse.ArgumentParser(description="List, add and delete books on a BookVault server.")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List every book")

    add = sub.add_parser("add", help="Add a book")
    add.add_argument("title")
    add.add_argument("author")
    add.add_argument("--genre")
    add.add_argument("--year", type=int, dest="published_year")

    delete = sub.add_parser("delete", help="Delete a book by id")
    delete.add_argument("book_id")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = VaultConfig.from_env()

    try:
        async with VaultClient(config) as client:
            await client.fetch_books()
            if args.command == "add":
                book = await client.add_book(
                    args.title,
                    args.author,
                    genre=args.genre,
                    published_year=args.published_year,
                )
                print(f"Added {book.title!r} as id {book.id}", file=sys.stderr)
            elif args.command == "delete":
                if not await client.delete_book(args.book_id):
                    print(f"No book with id {args.book_id}", file=sys.stderr)
                    return 1
                print(f"Deleted {args.book_id}", file=sys.stderr)
            _print_books(client.books, json_mode=args.json_mode)
    except VaultError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
