"""
Block size parameters.

Block sizes arrive as Kubernetes-style quantity strings ("2Mi", "16Mi",
"4194304", "1e6") in backup parameters.
"""

import math
import re
from decimal import Decimal
from typing import Mapping, Optional

from blockfetch.core.contracts import DEFAULT_BLOCK_SIZE
from blockfetch.core.errors import InvalidBlockSizeError

BACKUP_BLOCK_SIZE_PARAMETER = "backupBlockSize"

_BINARY_SUFFIXES = {
    "Ki": 2**10,
    "Mi": 2**20,
    "Gi": 2**30,
    "Ti": 2**40,
    "Pi": 2**50,
    "Ei": 2**60,
}

_DECIMAL_SUFFIXES = {
    "": 1,
    "k": 10**3,
    "M": 10**6,
    "G": 10**9,
    "T": 10**12,
    "P": 10**15,
    "E": 10**18,
}

_QUANTITY_RE = re.compile(
    r"^(?P<number>[+-]?(?:\d+\.?\d*|\.\d+))"
    r"(?:(?P<suffix>Ki|Mi|Gi|Ti|Pi|Ei|k|M|G|T|P|E)|[eE](?P<exponent>[+-]?\d+))?$"
)


def parse_quantity(text: str) -> int:
    """
    Parse a quantity string into a whole number of bytes.

    Fractional results are rounded up ("1.5" -> 2, "0.5Ki" -> 512).

    Args:
        text: Quantity such as "2Mi", "500k" or "1e3"

    Returns:
        Number of bytes

    Raises:
        ValueError: If the text is not a valid quantity
    """
    match = _QUANTITY_RE.match(text.strip())
    if not match:
        raise ValueError(f"quantities must match the regular expression {_QUANTITY_RE.pattern!r}")

    suffix = match.group("suffix")
    exponent = match.group("exponent")
    try:
        number = Decimal(match.group("number"))
        if suffix in _BINARY_SUFFIXES:
            value = number * _BINARY_SUFFIXES[suffix]
        elif exponent is not None:
            value = number.scaleb(int(exponent))
        else:
            value = number * _DECIMAL_SUFFIXES[suffix or ""]
        return int(math.ceil(value))
    except ArithmeticError as e:
        raise ValueError(f"quantity {text!r} is out of range") from e


def block_size_from_parameters(
    parameters: Optional[Mapping[str, str]],
    default: int = DEFAULT_BLOCK_SIZE,
) -> int:
    """
    Resolve the block size from backup parameters.

    A missing mapping, a missing or empty parameter, or a zero quantity
    yields ``default``.

    Args:
        parameters: Backup parameters (may be None)
        default: Block size used when the parameter is not set

    Returns:
        Block size in bytes
    """
    if not parameters:
        return default

    size_val = parameters.get(BACKUP_BLOCK_SIZE_PARAMETER)
    if not size_val:
        return default

    try:
        size = parse_quantity(size_val)
    except ValueError as e:
        raise InvalidBlockSizeError(
            f"invalid block size {size_val} from parameter {BACKUP_BLOCK_SIZE_PARAMETER}"
        ) from e

    if size < 0:
        raise InvalidBlockSizeError(
            f"invalid block size {size_val} from parameter {BACKUP_BLOCK_SIZE_PARAMETER}: "
            "must not be negative"
        )
    if size == 0:
        return default
    return size
