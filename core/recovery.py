"""
Recovery code batches for 2FA backup.

Codes are independent draws; the batch makes no uniqueness guarantee.
Storing and consuming them is left to the caller.
"""

import logging
from typing import List

from core.entropy import ALPHANUMERIC, random_strings

logger = logging.getLogger(__name__)

DEFAULT_RECOVERY_COUNT = 10
DEFAULT_RECOVERY_LENGTH = 8


def generate_recovery_codes(
    count: int = DEFAULT_RECOVERY_COUNT,
    length: int = DEFAULT_RECOVERY_LENGTH,
    charset: str = ALPHANUMERIC,
) -> List[str]:
    """
    Generate ``count`` recovery codes of ``length`` characters each.

    Args:
        count:   Number of codes.
        length:  Characters per code.
        charset: Alphabet to draw from (alphanumeric by default).

    Returns:
        List of codes, in generation order.

    Raises:
        RandomSourceError: If the entropy source fails; no partial batch
            is returned.
    """
    codes = random_strings(count, length, charset)
    logger.debug("Generated %d recovery codes", len(codes))
    return codes
