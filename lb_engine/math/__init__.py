from .bins import (
    ACTIVE_CENTER,
    BIN_STEPS,
    price_to_bin_id,
    bin_id_to_price,
    to_canonical_price,
    sort_tokens,
)
from .positions import BinPosition, BinReading, PositionSummary, aggregate_positions, calculate_bin_amounts
from .distribution import (
    DistributionStrategy,
    LiquidityRange,
    PlannedBin,
    plan_distribution,
    build_deposit_distribution,
    print_distribution
)
from .metrics import PositionMetrics, PriceSnapshot, calculate_position_metrics
from .quote import Quote, QuotePlan, plan_quote, minimum_amount_out
