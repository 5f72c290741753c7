#!/usr/bin/env python3
"""
Strategy Evaluation Script

Runs a backtest, A/B test, grid optimization or walk-forward
cross-validation over a stored signal file.
Input: CSV or JSON signal records (camelCase or snake_case fields)
Output: JSON result files in the output directory
"""

import argparse
import json
import sys
from pathlib import Path

from loguru import logger

from polyedge.backtest import (
    BacktestEngine,
    cross_validate,
    generate_recommendations,
    identify_weaknesses,
    optimize_parameters,
    run_ab_test,
)
from polyedge.core.constants import DEFAULT_FOLDS, DEFAULT_TRADE_SIZE
from polyedge.core.enums import OptimizationMetric
from polyedge.core.exceptions.backtest import BacktestException
from polyedge.core.models.signal import BacktestSignal
from polyedge.infrastructure.config.strategy_loader import load_strategy_config
from polyedge.infrastructure.data import JSONResultWriter, SignalCSVLoader, load_signals_json

MODES = ("backtest", "abtest", "optimize", "crossval")


def setup_logging(debug: bool = False):
    """Configure logging with loguru."""
    logger.remove()

    level = "DEBUG" if debug else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
    )


def load_signals(path: Path) -> list[BacktestSignal]:
    if path.suffix.lower() == ".json":
        return load_signals_json(path)
    return SignalCSVLoader().load(path)


def run_mode(args: argparse.Namespace, writer: JSONResultWriter) -> None:
    signals = load_signals(Path(args.signals))
    config = load_strategy_config(args.config)

    if args.mode == "backtest":
        result = BacktestEngine(config, args.trade_size).run(signals)
        for line in generate_recommendations(identify_weaknesses(result)):
            logger.info(line)
        logger.success(
            f"{result.trades_entered} trades, win rate {result.win_rate:.1%}, "
            f"pnl {result.total_pnl:.2f}, sharpe {result.sharpe_ratio:.2f}"
        )
        writer.save("backtest", result.to_dict())

    elif args.mode == "abtest":
        if not args.config_b:
            raise BacktestException("--config-b is required for abtest mode")
        config_b = load_strategy_config(args.config_b)
        result = run_ab_test(config, config_b, signals, args.trade_size)
        logger.success(
            f"Win rate diff {result.win_rate_diff:+.3f}, chi2 {result.chi_squared:.2f}, "
            f"p {result.p_value:.4f} ({'significant' if result.is_significant else 'not significant'})"
        )
        writer.save("abtest", result.to_dict())

    elif args.mode == "optimize":
        if not args.grid:
            raise BacktestException("--grid is required for optimize mode")
        with open(args.grid, encoding="utf-8") as f:
            grid = json.load(f)
        result = optimize_parameters(
            config, grid, signals, args.sort_by, args.trade_size, args.workers
        )
        logger.success(
            f"Best of {result.total_combinations}: {args.sort_by} "
            f"{result.best_result.metric(OptimizationMetric.parse(args.sort_by).value):.4f}"
        )
        writer.save(
            "optimization",
            {"best_config": result.best_config.to_dict(), "best_result": result.best_result.to_dict()},
        )
        result.to_frame().to_csv(writer.output_dir / "optimization.csv", index=False)

    elif args.mode == "crossval":
        result = cross_validate(config, signals, args.folds, args.trade_size)
        logger.success(
            f"{len(result.fold_results)} folds, avg win rate {result.avg_win_rate:.1%} "
            f"(std {result.std_win_rate:.3f}), overfit: {result.is_overfit}"
        )
        writer.save("crossval", result.to_dict())


def main():
    parser = argparse.ArgumentParser(
        description="Evaluate a 15-minute up/down strategy over historical signals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_backtest.py --signals data/signals.csv
  python run_backtest.py --signals data/signals.csv --mode abtest --config-b refined.json
  python run_backtest.py --signals data/signals.csv --mode optimize --grid grid.json --workers 4
  python run_backtest.py --signals data/signals.json --mode crossval --folds 5
        """,
    )

    parser.add_argument("--signals", type=str, required=True, help="CSV or JSON signal file")
    parser.add_argument("--mode", choices=MODES, default="backtest", help="Evaluation to run")
    parser.add_argument(
        "--config", type=str, help="Strategy config JSON (default: $POLYEDGE_CONFIG or config.json)"
    )
    parser.add_argument("--config-b", type=str, help="Second strategy config for abtest mode")
    parser.add_argument("--grid", type=str, help="Parameter grid JSON for optimize mode")
    parser.add_argument(
        "--sort-by",
        choices=[m.value for m in OptimizationMetric],
        default=OptimizationMetric.SHARPE_RATIO.value,
        help="Ranking metric for optimize mode (default: sharpe_ratio)",
    )
    parser.add_argument("--workers", type=int, help="Worker processes for optimize mode")
    parser.add_argument(
        "--folds", type=int, default=DEFAULT_FOLDS, help="Folds for crossval mode (default: 5)"
    )
    parser.add_argument(
        "--trade-size",
        type=float,
        default=DEFAULT_TRADE_SIZE,
        help="Stake per trade in USDC (default: 5)",
    )
    parser.add_argument(
        "--output-dir", type=str, default="data/results", help="Output directory for results"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    setup_logging(args.debug)

    try:
        run_mode(args, JSONResultWriter(args.output_dir))
        return 0

    except (BacktestException, OSError, json.JSONDecodeError) as e:
        logger.error(f"Evaluation failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
