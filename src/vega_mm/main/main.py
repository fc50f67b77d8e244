"""
File: main.py

Main entry point for the Vega market maker.
Loads and validates the configuration, builds the market state store from the
data node, then runs the stream, reference poller and strategy tasks under
supervision until a shutdown signal arrives.
"""

import argparse
import asyncio
import json
import signal
import sys
import traceback
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from .modules.config_validator import ConfigValidator
from .modules.task_supervisor import TaskSupervisor

from ..data.market_store import MarketStateStore, update_forever
from ..exchange.reference_feeds import POLLERS, ReferencePrice
from ..exchange.vega_client import VegaClient
from ..trading.strategies.market_making import MarketMakingStrategy
from ..utils.config import Config
from ..utils.errors import ConfigurationError, MarketMakerError
from ..utils.logger import configure_logging, setup_logger

logger = setup_logger(__name__)


class MarketMakerBot:
    """Market maker orchestrator"""

    def __init__(self, config_path: str = "configs/config.yaml"):
        """
        Load and validate configuration.

        Args:
            config_path: Path to configuration file

        Raises:
            ConfigurationError: on any invalid or missing setting
        """
        self.config = Config(config_path)
        configure_logging(self.config.get('logging.log_dir'), self.config.get('logging.level', 'INFO'))
        logger.info(f"Loaded configuration from {config_path}")

        self.validator = ConfigValidator(self.config)
        self.validator.validate()
        logger.info(f"Configuration summary: {json.dumps(self.validator.get_config_summary(), indent=2)}")

        self.market_id = self.config.get('vega.market_id')
        self.party_id = self.config.get('vega.public_key') or ''

        self.client: Optional[VegaClient] = None
        self.store: Optional[MarketStateStore] = None
        self.strategy: Optional[MarketMakingStrategy] = None
        self.pollers = []
        self.ref_prices: Dict[str, ReferencePrice] = {}

        self.running = False
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.shutdown_event = asyncio.Event()
        self.task_supervisor = TaskSupervisor()

    def _create_client(self) -> VegaClient:
        return VegaClient(
            data_node_url=self.config.get('vega.data_node_url'),
            wallet_url=self.config.get('vega.wallet_url'),
            wallet_token=self.config.get('vega.wallet_token'),
            public_key=self.config.get('vega.public_key'),
            ws_url=self.config.get('vega.data_node_ws_url'),
            timeout=self.config.get('vega.request_timeout', 10),
        )

    def _create_pollers(self):
        for venue, settings in self.validator.enabled_venues().items():
            if venue not in POLLERS:
                raise ConfigurationError(f"Unknown reference venue: {venue}")
            ref_price = ReferencePrice(venue)
            poller = POLLERS[venue](
                url=settings['url'],
                symbol=settings['symbol'],
                ref_price=ref_price,
                poll_interval=settings.get('poll_interval', 1.0),
            )
            self.ref_prices[venue] = ref_price
            self.pollers.append(poller)
            logger.info(f"Reference venue enabled: {venue} ({settings['symbol']})")

    async def initialize(self):
        """Fetch market state; failures here are fatal"""
        self.client = self._create_client()
        self.store = await MarketStateStore.initialize(self.client, self.market_id)
        self._create_pollers()

        self.strategy = MarketMakingStrategy(
            params=self.config.get('strategy'),
            store=self.store,
            client=self.client,
            market_id=self.market_id,
            party_id=self.party_id,
            ref_prices=self.ref_prices,
            use_vega_bidask=self.config.get('reference.use_vega_bidask', True),
        )
        logger.info(f"Market maker initialized for {self.store.get_market().name}")

    def _get_task_definitions(self) -> List[Tuple[str, Callable[[], Awaitable]]]:
        tasks = [(f"{poller.venue} poller", poller.poll_forever) for poller in self.pollers]
        tasks.append(("strategy", self.strategy.start))
        return tasks

    async def start(self):
        """Start every task and wait for the shutdown signal"""
        self.loop = asyncio.get_running_loop()
        await self.initialize()
        self.running = True

        try:
            self.task_supervisor.adopt(update_forever(self.store, self.client, self.market_id, self.party_id))
            self.task_supervisor.start_all_tasks(self._get_task_definitions())
            logger.info("Market maker started")

            await self.shutdown_event.wait()
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Gracefully shutdown the bot"""
        if not self.running:
            return
        self.running = False
        logger.info("Shutting down market maker")

        if self.strategy is not None:
            self.strategy.stop()
        for poller in self.pollers:
            poller.stop()
        await self.task_supervisor.stop_all_tasks()

        summary = self.task_supervisor.error_summary()
        logger.info(f"Market maker stopped, task errors: {summary['errors']} {summary['component_errors']}")

    def signal_handler(self, sig, frame):
        """Handle shutdown signals"""
        logger.info(f"Received signal {sig}")
        if self.loop is not None:
            self.loop.call_soon_threadsafe(self.shutdown_event.set)
        else:
            self.shutdown_event.set()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Vega single-market market maker")
    parser.add_argument('--config', default="configs/config.yaml",
                        help="path to the YAML configuration file")
    return parser.parse_args(argv)


async def main(config_path: str) -> int:
    """Main entry point with error handling"""
    bot = None

    try:
        bot = MarketMakerBot(config_path)

        # Setup signal handlers
        signal.signal(signal.SIGINT, bot.signal_handler)
        signal.signal(signal.SIGTERM, bot.signal_handler)

        await bot.start()
        return 0

    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
        return 0
    except MarketMakerError as e:
        logger.critical(f"Fatal startup error: {e}")
        return 1
    except Exception as e:
        logger.critical(f"Fatal error: {e}")
        logger.critical(traceback.format_exc())
        return 1
    finally:
        if bot:
            await bot.shutdown()


def run(argv: Optional[List[str]] = None):
    """Console script entry point"""
    args = parse_args(argv)

    # Setup asyncio error handler
    def exception_handler(loop, context):
        exception = context.get('exception')
        if isinstance(exception, KeyboardInterrupt):
            return
        logger.error(f"Unhandled exception in event loop: {context}")

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    loop.set_exception_handler(exception_handler)

    try:
        code = loop.run_until_complete(main(args.config))
    finally:
        loop.close()
    sys.exit(code)


if __name__ == "__main__":
    run()
