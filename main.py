#!/usr/bin/env python3
"""BTC-Predictor: multi-source BTC price analysis and short-horizon predictions.

Usage:
    python main.py price                 # spot price via the fallback chain
    python main.py price --json
    python main.py analyze               # indicators, signals and predictions
    python main.py analyze --json        # full analysis document
"""

import argparse
import json
import math
import sys

from btc_predictor.errors import AllSourcesExhausted, InsufficientHistory
from btc_predictor.pipeline.engine import AnalysisEngine
from btc_predictor.utils.logger import setup_logger

logger = setup_logger("main")


# ============================================================
# COMMANDS
# ============================================================

def cmd_price(args):
    """Print the current spot price."""
    try:
        quote = AnalysisEngine().get_spot_price()
    except AllSourcesExhausted as e:
        sys.exit(f"Error: {e}")
    if args.json:
        print(json.dumps(quote.to_dict(), indent=2))
        return
    print(f"BTC ${quote.price:,.2f}  ({quote.source}, {quote.timestamp:%Y-%m-%d %H:%M:%S} UTC)")


def cmd_analyze(args):
    """Run the full analysis and print predictions."""
    try:
        report = AnalysisEngine().get_analysis()
    except (AllSourcesExhausted, InsufficientHistory) as e:
        sys.exit(f"Error: {e}")
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
        return

    ind = report.indicators
    sent = report.signals.sentiment
    print(f"\n{'='*64}")
    print(f"  BTC ${report.current_price:,.2f}  (history: {report.history_source})")
    print(f"{'='*64}")
    print(f"  {'RSI':14s}: {ind.rsi:.1f}")
    print(f"  {'MACD':14s}: {ind.macd:.2f}")
    print(f"  {'ATR':14s}: {ind.atr:.2f}")
    print(f"  {'Bollinger':14s}: {ind.bollinger.lower:,.2f} / {ind.bollinger.middle:,.2f} / {ind.bollinger.upper:,.2f}")
    print(f"  {'Volume ratio':14s}: {ind.volume_ratio:.2f}")
    print(f"  {'Social':14s}: {sent.social:+.2f}   News: {sent.news:+.2f}")
    print(f"  {'Fear & Greed':14s}: {report.signals.onchain.fear_greed_index:+.2f}")
    active = [name for name, s in report.signals.market_hours.markets.items() if s.active]
    print(f"  {'Sessions':14s}: {', '.join(active) or 'none'}")
    print(f"\n  {'TF':4s} {'DIR':8s} {'TARGET':>12s} {'CONF':>6s} {'STOP':>12s} {'R/R':>6s}  REASONING")
    for p in report.predictions:
        rr = f"{p.risk_reward:.2f}" if math.isfinite(p.risk_reward) else "inf"
        print(
            f"  {p.timeframe.label:4s} {p.direction:8s} {p.target_price:12,.2f} {p.confidence_pct:5.1f}% "
            f"{p.stop_loss:12,.2f} {rr:>6s}  {' + '.join(p.reasoning) or '-'}"
        )


def main():
    parser = argparse.ArgumentParser(
        description="BTC-Predictor: multi-source BTC analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", help="Commands")

    # price
    p = sub.add_parser("price", help="Spot price")
    p.add_argument("--json", action="store_true", help="Print JSON")
    p.set_defaults(func=cmd_price)

    # analyze
    p = sub.add_parser("analyze", help="Full analysis with predictions")
    p.add_argument("--json", action="store_true", help="Print JSON")
    p.set_defaults(func=cmd_analyze)

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)
    args.func(args)


if __name__ == "__main__":
    main()
