#!/usr/bin/env python3
"""
Run the Market Simulation Headless

Drives a game through N day cycles (start trading, fast-forward the day,
advance) without a UI, saves it to its profile and prints a report for each
day.

Usage:
    # New game, 5 days
    python scripts/run_simulation.py --seed test-1 --days 5

    # Continue a saved profile for 10 more days
    python scripts/run_simulation.py --profile alice --load --days 10

    # Show a saved profile and exit
    python scripts/run_simulation.py --profile alice --status

    # Dev mode (risk events x5) with verbose output
    python scripts/run_simulation.py --seed demo --dev-mode --verbose

Environment Variables:
    SAVE_DIR - Directory for saved games (default: data/saves)
    TICKS_PER_DAY - Simulated ticks per day (default: 1800)
    DEV_MODE - "true" to multiply risk-event rates
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.engine import Game, SimulationStatus
from src.engine.vibe import describe_vibe
from src.storage import JsonSaveStore, StorageError
from src.config import DEV_MODE, LOGS_DIR, SAVE_DIR


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the simulation run."""
    level = logging.DEBUG if verbose else logging.INFO

    console_format = "%(asctime)s [%(levelname)s] %(message)s"
    file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(console_format, datefmt="%H:%M:%S"))

    # File handler
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOGS_DIR / f"simulation_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(file_format))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # Reduce noise from external libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    print(f"Logs will be written to: {log_file}")


def print_day_report(game: Game, closed_day: int) -> None:
    """Print prices, events and news after a day advance."""
    state = game.state

    print("\n" + "=" * 70)
    print(f"Day {closed_day} closed -> Day {state.day}")
    print("=" * 70)
    print(f"\nVibe: {describe_vibe(state.market_vibe)}")
    if state.vibe_targets:
        print(f"  Targets: {', '.join(state.vibe_targets)}")

    print("\nPrices:")
    for asset in state.asset_list():
        close = asset.price_history.m1.latest
        change = ""
        if close is not None and close.open > 0:
            change = f"{(close.close / close.open - 1) * 100:+7.2f}%"
        flags = " RUGGED" if asset.rugged else (" warned" if asset.rug_warned else "")
        print(f"  {asset.symbol:<8} ${asset.price:>14.6f}  {change:>8}  [{asset.tier.value}]{flags}")

    events = [e for e in state.events if e.day in (closed_day, state.day)]
    print(f"\nEvents ({len(events)}):")
    for event in reversed(events[:15]):
        print(f"  [{event.severity.value:>7}] {event.message}")

    articles = [a for a in state.articles if a.day == state.day]
    print(f"\nNews ({len(articles)}):")
    for article in articles:
        fake = " (fake)" if article.is_fake else ""
        print(f"  {article.sentiment.value:>8} w{article.weight:.0f} {article.headline}{fake}")

    if state.active_offers:
        print("\nOffers:")
        for offer in state.active_offers:
            print(f"  {offer.id}: {offer.description} (expires day {offer.expires_day})")

    kpis = game.get_kpis()
    print(f"\nNet worth: ${kpis['netWorth']:,.2f}  Cash: ${kpis['cash']:,.2f}  ROI: {kpis['roi']:+.2f}%")


def show_status(store: JsonSaveStore, profile_id: str) -> None:
    """Print a saved profile's summary."""
    print("\n" + "=" * 70)
    print(f"Saved Game: {profile_id}")
    print("=" * 70)

    game = Game.load(store, profile_id)
    if game is None:
        print(f"\nNo save found in {store.base_dir}")
        print(f"Profiles: {', '.join(store.list_profiles()) or 'none'}")
        return

    state = game.state
    print(f"\nDay {state.day}, tick {state.tick} ({state.status.value})")
    print(f"Seed: {state.seed}  Dev mode: {state.dev_mode}")
    print(f"Vibe: {describe_vibe(state.market_vibe)}")
    print(f"Assets: {len(state.assets)} ({sum(1 for a in state.assets.values() if a.rugged)} rugged)")
    print(f"Articles: {len(state.articles)}  Offers: {len(state.active_offers)}")
    kpis = game.get_kpis()
    print(f"Net worth: ${kpis['netWorth']:,.2f}  ROI: {kpis['roi']:+.2f}%")
    print("\n" + "=" * 70)


def run(args: argparse.Namespace, store: JsonSaveStore) -> int:
    if args.load:
        game = Game.load(store, args.profile)
        if game is None:
            print(f"Error: no saved game for profile '{args.profile}'")
            return 1
    else:
        game = Game.new_game(
            seed=args.seed,
            profile_id=args.profile,
            dev_mode=args.dev_mode,
            store=store,
        )

    print(f"\nRunning {args.days} days for profile '{args.profile}' (seed {game.state.seed})")
    for _ in range(args.days):
        closed_day = game.state.day
        if game.status is SimulationStatus.BEGINNING_OF_DAY:
            game.start_trading()
        game.process_day()
        print_day_report(game, closed_day)

    if not game.save() and game.dirty:
        print("\nWarning: the final save failed, see log for details")
        return 1
    print(f"\nSaved to {store.base_dir / (args.profile + '.json')}")
    return 0


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run the market simulation headless",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_simulation.py --seed test-1 --days 5
  python scripts/run_simulation.py --profile alice --load --days 10
  python scripts/run_simulation.py --profile alice --status
        """,
    )

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--load",
        action="store_true",
        help="Continue the saved game of --profile instead of starting a new one",
    )
    mode_group.add_argument(
        "--status",
        action="store_true",
        help="Show the saved game of --profile and exit",
    )

    parser.add_argument("--seed", default="crypto-wars", help="Seed for a new game (default: crypto-wars)")
    parser.add_argument("--days", type=int, default=5, metavar="N", help="Days to simulate (default: 5)")
    parser.add_argument("--profile", default="default", help="Save profile id (default: default)")
    parser.add_argument(
        "--dev-mode",
        action="store_true",
        default=DEV_MODE,
        help="Multiply risk-event rates",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args()
    if args.days < 1:
        parser.error("--days must be at least 1")

    store = JsonSaveStore(SAVE_DIR)

    if args.status:
        show_status(store, args.profile)
        return

    setup_logging(args.verbose)
    try:
        sys.exit(run(args, store))
    except StorageError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
