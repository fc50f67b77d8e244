import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Optional

ROOT_LOGGER = 'vega_mm'
ORDER_LOGGER = 'vega_mm.orders'

_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
_DATEFMT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name: str = __name__, level: int = logging.INFO) -> logging.Logger:
    """Get a module logger; the package root logger gets a console handler once"""
    root = logging.getLogger(ROOT_LOGGER)

    # Avoid adding handlers multiple times
    if not root.handlers:
        root.setLevel(level)
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
        root.addHandler(console_handler)

    return logging.getLogger(name)


def configure_logging(log_dir: Optional[str] = "logs", level: str = "INFO") -> logging.Logger:
    """Set the package log level and attach the rotating file handlers"""
    root = setup_logger(ROOT_LOGGER)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if not log_dir:
        return root

    # Create logs directory
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    # File handler - rotating by size
    file_handler = RotatingFileHandler(
        path / 'market_maker.log',
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    # Error file handler
    error_handler = RotatingFileHandler(
        path / 'errors.log',
        maxBytes=5 * 1024 * 1024,  # 5MB
        backupCount=5
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)
    root.addHandler(error_handler)

    # Order log handler - daily rotation
    order_handler = TimedRotatingFileHandler(
        path / 'orders.log',
        when='midnight',
        interval=1,
        backupCount=30
    )
    order_handler.setLevel(logging.INFO)
    order_handler.setFormatter(logging.Formatter('%(asctime)s - %(message)s', datefmt=_DATEFMT))
    logging.getLogger(ORDER_LOGGER).addHandler(order_handler)

    return root


def log_order(side: str, size: float, price: float, size_units: int, price_units: int,
              reference: Optional[float] = None, reason: Optional[str] = None):
    """Log a constructed order"""
    order_logger = logging.getLogger(ORDER_LOGGER)

    message = (f"ORDER - Side: {side}, Size: {size:.4f}, Price: {price:.3f}, "
               f"Units: {size_units} @ {price_units}")

    if reference is not None:
        message += f", Ref: {reference}"

    if reason:
        message += f", Reason: {reason}"

    order_logger.info(message)


def log_batch(market_id: str, cancellations: int, submissions: int, dryrun: bool):
    """Log a batch of market instructions"""
    order_logger = logging.getLogger(ORDER_LOGGER)
    mode = "DRYRUN" if dryrun else "LIVE"
    order_logger.info(
        f"BATCH - Market: {market_id}, Mode: {mode}, "
        f"Cancellations: {cancellations}, Submissions: {submissions}"
    )
