# fundbot/__init__.py
"""
fundbot package
- Daily funds-limited rebalancing agent for a single Alpaca account.
- Core planning lives in fundbot.allocation, scheduling in fundbot.funding.
- Importing the package has no side effects; .env loading happens in
  tools.env_loader when the runner or a broker asks for it.
"""

__version__ = "0.3.0"
