"""
Portfolio aggregation - Net worth, allocation and health score for a wallet.

Pure computations over a wallet's holdings (balance + USD price per token):

- compute_metrics: USD value per holding, net worth, allocation percentages
- classify_health: qualitative concentration label from the computed metrics

Neither function performs I/O or keeps state. Callers resolve unknown prices
to 0 and unknown balances to "0" before invoking them.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import List, Sequence, Union
import enum

Numeric = Union[str, int, float, Decimal]

HIGH_RISK_CONCENTRATION = 80.0
MODERATE_RISK_CONCENTRATION = 60.0
DIVERSIFIED_MAX_CONCENTRATION = 50.0
DIVERSIFIED_MIN_TOKENS = 3


class InvalidInputError(ValueError):
    """A balance or price is not a finite, non-negative real number."""
    pass


class HealthScore(str, enum.Enum):
    """Portfolio health labels, listed in rule priority order."""
    NO_HOLDINGS = "No Holdings"
    HIGH_RISK = "High Risk"
    MODERATE_RISK = "Moderate Risk"
    WELL_DIVERSIFIED = "Well Diversified"
    MODERATE = "Moderate"
    CONCENTRATED = "Concentrated"


@dataclass(frozen=True)
class TokenHolding:
    """A wallet's balance of one token together with its USD price."""
    token_address: str
    balance: Numeric
    price_usd: Numeric
    decimals: int = 18  # informational, balance is already scaled


@dataclass(frozen=True)
class TokenAllocation:
    """USD value and share of net worth for one holding."""
    address: str
    balance: str
    usd_value: Decimal
    percentage: float


@dataclass(frozen=True)
class PortfolioMetrics:
    """Result of compute_metrics. total_value always equals net_worth."""
    net_worth: Decimal
    total_value: Decimal
    tokens: List[TokenAllocation] = field(default_factory=list)


def _to_decimal(value: Numeric, label: str) -> Decimal:
    """
    Parse a balance or price into a finite, non-negative Decimal.

    Floats go through str() so that 0.1 becomes Decimal("0.1") rather than
    its binary expansion.

    Raises:
        InvalidInputError: If the value is not numeric, not finite, or negative
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid {label}: {value!r}")

    try:
        if isinstance(value, Decimal):
            parsed = value
        elif isinstance(value, (int, float)):
            parsed = Decimal(str(value))
        else:
            parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInputError(f"Invalid {label}: {value!r}")

    if not parsed.is_finite() or parsed < 0:
        raise InvalidInputError(f"Invalid {label}: {value!r}")

    return parsed


def _percentage(usd_value: Decimal, net_worth: Decimal) -> float:
    if net_worth <= 0:
        return 0.0
    return float(usd_value * Decimal(100) / net_worth)


def compute_metrics(holdings: Sequence[TokenHolding]) -> PortfolioMetrics:
    """
    Compute net worth and per-token allocation.

    Args:
        holdings: Wallet holdings; may be empty

    Returns:
        PortfolioMetrics with one allocation per holding, in input order

    Raises:
        InvalidInputError: If any balance or price cannot be parsed
    """
    valued = []
    net_worth = Decimal(0)

    for holding in holdings:
        balance = _to_decimal(holding.balance, "balance")
        price = _to_decimal(holding.price_usd, "price")
        usd_value = balance * price
        net_worth += usd_value
        valued.append((holding, usd_value))

    tokens = [
        TokenAllocation(
            address=holding.token_address,
            balance=str(holding.balance),
            usd_value=usd_value,
            percentage=_percentage(usd_value, net_worth),
        )
        for holding, usd_value in valued
    ]

    return PortfolioMetrics(net_worth=net_worth, total_value=net_worth, tokens=tokens)


def classify_health(metrics: PortfolioMetrics) -> HealthScore:
    """
    Classify concentration risk of a portfolio.

    Rules are evaluated in order and the first match wins:
    >80% in one token is High Risk, >60% Moderate Risk, three or more tokens
    all below 50% Well Diversified, two or more tokens Moderate, otherwise
    Concentrated. Empty or worthless portfolios have No Holdings.
    """
    if metrics.net_worth == 0 or not metrics.tokens:
        return HealthScore.NO_HOLDINGS

    token_count = len(metrics.tokens)
    max_concentration = max(token.percentage for token in metrics.tokens)

    if max_concentration > HIGH_RISK_CONCENTRATION:
        return HealthScore.HIGH_RISK
    if max_concentration > MODERATE_RISK_CONCENTRATION:
        return HealthScore.MODERATE_RISK
    if token_count >= DIVERSIFIED_MIN_TOKENS and max_concentration < DIVERSIFIED_MAX_CONCENTRATION:
        return HealthScore.WELL_DIVERSIFIED
    if token_count >= 2:
        return HealthScore.MODERATE
    return HealthScore.CONCENTRATED
