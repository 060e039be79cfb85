import sys
import argparse
import logging
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).resolve().parents[1]))

from dropwatch.core.config import AgentConfig
from dropwatch.services.transfer_service import TransferExecutor, default_transports

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def main():
    """
    Pushes a single file through one configured transfer, bypassing the
    watcher and the post-actions. Handy for checking credentials.
    """
    parser = argparse.ArgumentParser(description="Push one file through a configured transfer")
    parser.add_argument("file")
    parser.add_argument("--transfer", required=True, help="Name of the transfer entry to use")
    parser.add_argument("--config", default="config.yaml")
    args = parser.parse_args()

    config = AgentConfig.load(args.config)
    entry = next((t for t in config.transfers if t.name == args.transfer), None)
    if entry is None:
        logger.error(f"No transfer named '{args.transfer}' in {args.config}")
        return 1

    executor = TransferExecutor(
        default_transports(timeout=config.transfer_timeout),
        max_attempts=config.max_attempts,
        retry_delay=config.retry_delay,
    )
    result = executor.execute(str(Path(args.file).resolve()), entry)
    logger.info(f"Result: {result.status.value} after {result.attempts} attempt(s) {result.error or ''}")
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
