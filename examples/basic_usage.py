"""REST walkthrough of the VALR client.

Shows:
1. Structured logging
2. Public market data without credentials
3. Loading credentials from environment or config file
4. Signed account calls, optionally as a subaccount
5. Typed error handling
"""
import sys
from pathlib import Path

# Add parent directory to path so we can import the valr package
sys.path.insert(0, str(Path(__file__).parent.parent))

from valr.client import ValrClient
from valr.config import ValrConfig
from valr.errors import ValrApiError, ValrConfigurationError, ValrRateLimitError, ValrValidationError
from valr.logging_setup import logger, setup_logging
from valr.secrets import load_credentials


def main():
    config_file = Path(__file__).parent.parent / "config.yaml"
    config = ValrConfig.from_yaml(str(config_file)) if config_file.exists() else ValrConfig()
    setup_logging(log_file=config.logging.log_file, level=config.logging.level, enable_console=config.logging.enable_console)
    logger.info("=== VALR REST Demo ===")

    with ValrClient.from_config(config) as public:
        server_time = public.public.get_server_time()
        logger.info(f"Server time: {server_time}")
        summary = public.public.get_market_summary_for_pair("BTCZAR")
        logger.info(f"BTCZAR last traded: {summary.get('lastTradedPrice')}")

    try:
        creds = load_credentials()
    except ValrConfigurationError as e:
        logger.error(f"Failed to load credentials: {e}")
        logger.info("Set environment variables: VALR_API_KEY, VALR_API_SECRET")
        return

    with ValrClient.from_config(config, creds) as client:
        try:
            balances = client.account.get_balances(exclude_zero_balances=True)
            for balance in balances:
                logger.info(f"{balance['currency']}: available={balance['available']}")

            open_orders = client.trading.get_all_open_orders()
            logger.info(f"Open orders: {len(open_orders)}")

            history = client.trading.get_order_history({"skip": 0, "limit": 10})
            logger.info(f"Recent orders: {len(history)}")
        except ValrRateLimitError as e:
            logger.warning(f"Rate limited, back off before retrying: {e}")
        except ValrValidationError as e:
            logger.error(f"Rejected: {e} {e.errors}")
        except ValrApiError as e:
            logger.error(f"API error (status={e.status_code}): {e}")

        if creds.subaccount_id:
            # Same signer, signed on behalf of the subaccount
            logger.info(f"Subaccount {creds.subaccount_id} balances: {client.account.get_balances()}")


if __name__ == "__main__":
    main()
