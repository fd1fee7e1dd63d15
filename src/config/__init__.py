"""Configuration module for asset certification.

Available Configurations:
- MintingConfig: Ledger, lease, and service identity settings
"""

from src.config.minting_config import (
    DEFAULT_CONTRACT_ADDRESS,
    TEST_MINTING_CONFIG,
    ChainSettings,
    MintingConfig,
)

__all__ = [
    "ChainSettings",
    "DEFAULT_CONTRACT_ADDRESS",
    "MintingConfig",
    "TEST_MINTING_CONFIG",
]
