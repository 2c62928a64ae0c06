"""
Quiz Reward CLI: operate a durable reward ledger from the shell.

Commands:
    quizreward init --owner ADDR              Create the collection and register its owner
    quizreward mint RECIPIENT --origin ADDR   Mint a badge (origin must be the owner)
    quizreward preview ID                     Print the data URI an identifier renders to
    quizreward supply                         Print the total supply
    quizreward owner-of ID                    Print the owner of a badge
"""

import argparse
import logging
import sys

from quizreward.config import RewardConfig
from quizreward.reward.adapters.db_manager import DatabaseManager
from quizreward.reward.adapters.sqlite_ledger import SQLiteSupplyLedger
from quizreward.reward.application.issuer import RewardIssuer
from quizreward.reward.domain.artwork import ArtworkGenerator
from quizreward.reward.domain.errors import RewardError
from quizreward.reward.domain.models import AuthorizationContext
from quizreward.shared.observability import configure_observability
from quizreward.shared.telemetry import Telemetry


def _open_ledger(args: argparse.Namespace) -> tuple[DatabaseManager, SQLiteSupplyLedger]:
    db = DatabaseManager(args.db)
    return db, SQLiteSupplyLedger(db)


def cmd_init(args: argparse.Namespace) -> int:
    db, ledger = _open_ledger(args)
    try:
        if ledger.registered_owner() is not None:
            print(f"Ledger already initialized (owner {ledger.registered_owner()})")
            return 1
        issuer = RewardIssuer(
            ledger,
            AuthorizationContext.direct(args.owner),
            name=args.name,
            symbol=args.symbol,
        )
        print(f"Initialized '{issuer.name}' ({issuer.symbol}) owned by {args.owner}")
        return 0
    finally:
        db.close()


def cmd_mint(args: argparse.Namespace) -> int:
    db, ledger = _open_ledger(args)
    try:
        if ledger.registered_owner() is None:
            print("Ledger not initialized. Run 'quizreward init' first.")
            return 1
        context = AuthorizationContext(
            caller=args.caller or args.origin, originator=args.origin
        )
        issuer = RewardIssuer(ledger, context)
        try:
            token_id = issuer.mint(args.recipient, context, args.artwork)
        except RewardError as e:
            print(f"Mint reverted: {e}")
            return 1
        print(token_id)
        return 0
    finally:
        db.close()


def cmd_preview(args: argparse.Namespace) -> int:
    try:
        print(ArtworkGenerator().render(args.token_id))
    except RewardError as e:
        print(str(e))
        return 1
    return 0


def cmd_supply(args: argparse.Namespace) -> int:
    db, ledger = _open_ledger(args)
    try:
        print(ledger.total_supply())
        return 0
    finally:
        db.close()


def cmd_owner_of(args: argparse.Namespace) -> int:
    db, ledger = _open_ledger(args)
    try:
        owner = ledger.owner_of(args.token_id)
        if owner is None:
            print(f"No badge with identifier {args.token_id}")
            return 1
        print(owner)
        return 0
    finally:
        db.close()


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quizreward",
        description="Quiz reward badge ledger",
    )
    parser.add_argument(
        "--db", default=RewardConfig.REWARD_DB_PATH, help="SQLite ledger path"
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=0,
        help="Expose Prometheus metrics on this port (0 disables)",
    )
    subparsers = parser.add_subparsers(dest="command")

    init_parser = subparsers.add_parser("init", help="Create the reward collection")
    init_parser.add_argument("--owner", required=True)
    init_parser.add_argument("--name", default=RewardConfig.COLLECTION_NAME)
    init_parser.add_argument("--symbol", default=RewardConfig.COLLECTION_SYMBOL)
    init_parser.set_defaults(func=cmd_init)

    mint_parser = subparsers.add_parser("mint", help="Mint a badge")
    mint_parser.add_argument("recipient")
    mint_parser.add_argument("--origin", required=True, help="Transaction originator")
    mint_parser.add_argument("--caller", help="Immediate caller (defaults to origin)")
    mint_parser.add_argument("--artwork", help="Explicit SVG data URI")
    mint_parser.set_defaults(func=cmd_mint)

    preview_parser = subparsers.add_parser("preview", help="Render a badge")
    preview_parser.add_argument("token_id", type=int)
    preview_parser.set_defaults(func=cmd_preview)

    supply_parser = subparsers.add_parser("supply", help="Show total supply")
    supply_parser.set_defaults(func=cmd_supply)

    owner_parser = subparsers.add_parser("owner-of", help="Show a badge's owner")
    owner_parser.add_argument("token_id", type=int)
    owner_parser.set_defaults(func=cmd_owner_of)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s"
    )
    configure_observability(args.metrics_port)
    Telemetry.start_trace()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
