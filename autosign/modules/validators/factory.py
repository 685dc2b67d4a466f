"""
Validator Factory following Black Box Design principles.

This factory:
- Reads the validation order from configuration
- Wires the configuration provider into the chain
- Returns only the chain (hiding validator construction)
"""

import logging
from typing import Any, Dict, Optional

from ...config.provider import ConfigProvider
from .chain import ValidatorChain

logger = logging.getLogger(__name__)


class ValidatorFactory:
    """Composition root for the validator chain."""

    @staticmethod
    def build(
        config_provider: ConfigProvider,
        overrides: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> ValidatorChain:
        """
        Build the validator chain.

        Args:
            config_provider: Configuration provider
            overrides: Optional per-validator settings overrides

        Returns:
            ValidatorChain using general.validation_order
        """
        general = config_provider.get_general_config()
        logger.debug(f"Building validator chain with order {general.validation_order}")
        return ValidatorChain(
            config_provider,
            validation_order=general.validation_order,
            overrides=overrides,
        )
