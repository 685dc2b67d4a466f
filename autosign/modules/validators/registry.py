"""
Validator registration table.

Maps the names used in validation_order to validator constructors. New
validators are added here rather than discovered at runtime.
"""

import logging
from typing import Dict, Iterable, List, Optional

from .interfaces import ValidatorConstructor
from .jwt_token import JWTTokenValidator
from .multiplexer import MultiplexerValidator
from .password_list import PasswordListValidator

logger = logging.getLogger(__name__)

VALIDATORS: Dict[str, ValidatorConstructor] = {
    JWTTokenValidator.NAME: JWTTokenValidator,
    MultiplexerValidator.NAME: MultiplexerValidator,
    PasswordListValidator.NAME: PasswordListValidator,
}


def resolve_validation_order(
    names: Iterable[str],
    registry: Optional[Dict[str, ValidatorConstructor]] = None,
) -> List[ValidatorConstructor]:
    """
    Turn a configured list of validator names into constructors.

    Unknown names are skipped with a warning, so a typo results in fewer
    active validators rather than a failed decision. Repeated names are
    only used once.

    Args:
        names: Validator names in the order they should run
        registry: Name to constructor table (defaults to VALIDATORS)

    Returns:
        Constructors in configured order
    """
    registry = VALIDATORS if registry is None else registry
    resolved: List[ValidatorConstructor] = []
    seen = set()

    for name in names:
        if name not in registry:
            logger.warning(f"Unknown validator '{name}' in validation_order, skipping")
            continue
        if name in seen:
            logger.debug(f"Validator '{name}' listed more than once, skipping repeat")
            continue
        seen.add(name)
        resolved.append(registry[name])

    return resolved
