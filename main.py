import argparse
import logging

from position_engine.logger import setup_logger
from position_engine.pipelines.positions import PositionPipeline


def parse_args():
    parser = argparse.ArgumentParser(
        description="Compute per-SKU net positions from the latest article and contract exports."
    )
    parser.add_argument(
        "--test", action="store_true", help="Run without posting to the webhook."
    )
    parser.add_argument(
        "--threshold-kg",
        type=float,
        default=None,
        help="Deficit (kg) at which a position becomes CRITICAL. Defaults to CRITICAL_THRESHOLD_KG.",
    )
    parser.add_argument(
        "--completion-policy",
        choices=["quantity", "quantity_or_expiry"],
        default=None,
        help="How contracts are marked completed. Defaults to CONTRACT_COMPLETION_POLICY.",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging.")
    return parser.parse_args()


def run_process():
    """Main orchestration function to run the position report."""
    args = parse_args()
    setup_logger(log_level=logging.DEBUG if args.debug else logging.INFO)

    pipeline = PositionPipeline(
        test_mode=args.test,
        threshold_kg=args.threshold_kg,
        completion_policy=args.completion_policy,
    )
    pipeline.run()


if __name__ == "__main__":
    run_process()
