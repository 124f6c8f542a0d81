"""
Gas price tiers computed from ``eth_feeHistory`` samples.

The estimate is the latest base fee plus an approximate 25th/50th/75th
percentile of the recent priority fees. Percentiles are picked by index
(``len // 4``, ``len // 2``, ``len * 3 // 4``) over the sorted fees, so very
short histories collapse: a single sample yields the same priority fee for
all three tiers, before floors are applied.
"""

from typing import List, Sequence, Tuple

from loguru import logger

from ..errors import InsufficientData
from ..models import FeeHistorySample, GasPriceTiers, utc_now

WEI_PER_GWEI = 1e9
DEFAULT_REWARD_PERCENTILES = (25.0, 50.0, 75.0)
# used when no block in the window reported a priority fee
FALLBACK_PRIORITY_FEES = (1.0, 2.0, 3.0)
# minimum low/average/high priority fee, gwei
PRIORITY_FEE_FLOORS = (1.0, 2.0, 3.0)


def wei_to_gwei(value: int) -> float:
    return value / WEI_PER_GWEI


def priority_fee_tiers(priority_fees_gwei: Sequence[float]) -> Tuple[float, float, float]:
    """Low/average/high priority fee in gwei from per-block samples."""
    if not priority_fees_gwei:
        logger.debug("No priority fee samples, using conservative estimates")
        return FALLBACK_PRIORITY_FEES
    fees = sorted(priority_fees_gwei)
    n = len(fees)
    low_floor, avg_floor, high_floor = PRIORITY_FEE_FLOORS
    low = max(fees[n // 4], low_floor)
    avg = max(fees[n // 2], avg_floor)
    high = max(fees[n * 3 // 4], high_floor)
    logger.debug(f"Priority fees from {n} samples: low={low:.6f}, avg={avg:.6f}, high={high:.6f}")
    return low, avg, high


def estimate_gas_tiers(samples: Sequence[FeeHistorySample]) -> GasPriceTiers:
    """
    Compute gas price tiers in gwei from fee history, oldest block first.

    Only the first reward percentile of each block is used. Raises
    ``InsufficientData`` when there is no base fee to build on.
    """
    if not samples:
        raise InsufficientData("No base fee data available", "onchain")

    base_fee_gwei = wei_to_gwei(samples[-1].base_fee_wei)
    priority_fees: List[float] = [
        wei_to_gwei(s.priority_fee_samples_wei[0]) for s in samples if s.priority_fee_samples_wei
    ]
    low_priority, avg_priority, high_priority = priority_fee_tiers(priority_fees)

    tiers = GasPriceTiers(
        low=base_fee_gwei + low_priority,
        average=base_fee_gwei + avg_priority,
        high=base_fee_gwei + high_priority,
        observed_at=utc_now(),
    )
    logger.debug(
        f"Gas tiers: low={tiers.low:.6f}, average={tiers.average:.6f}, high={tiers.high:.6f} "
        f"(base fee {base_fee_gwei:.6f} gwei)"
    )
    return tiers
