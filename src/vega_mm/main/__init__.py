"""
Main bot orchestration module for the Vega market maker.

Main Components:
    - MarketMakerBot: loads configuration, builds the market state and runs
      the supervised stream, poller and strategy tasks
    - ConfigValidator: Configuration validation
    - TaskSupervisor: Task supervision and shutdown

Usage:
    from vega_mm.main import MarketMakerBot

    bot = MarketMakerBot("configs/config.yaml")
    await bot.start()
"""

from .main import MarketMakerBot, run

__all__ = ['MarketMakerBot', 'run']
