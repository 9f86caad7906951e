"""
Loan mix allocation engine.

Ranks loan offers by an estimated cost per dollar borrowed and fills the financing
target cheapest-first. This is a greedy heuristic: a single pass with no backtracking,
so it does not guarantee the cost-minimizing mix when caps interact.
"""
import logging
import math
from typing import List, Optional, Sequence, Tuple

from schemas import AllocationEntry, LoanOffer, LoanStats, Plan, PlanSummary, TargetMode

logger = logging.getLogger(__name__)

DEFAULT_TERM_YEARS = 10
# Empirical stand-in for a declining-balance amortization curve; not a regulatory formula.
AMORTIZATION_WEIGHT = 0.55


def _finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def cost_per_dollar(offer: LoanOffer) -> float:
    """Estimated total dollars repaid per dollar of principal.

    Used only to rank offers. Never below 1 for valid offers, and non-decreasing in
    rate, fee, term and in-school months taken one at a time.
    """
    rate = offer.interest_rate / 100
    fee = offer.origination_fee_percent / 100
    term = max(1, offer.term_years or DEFAULT_TERM_YEARS)
    months = max(0, offer.in_school_months or 0)

    principal_effective = 1 + fee
    if offer.subsidized_in_school:
        in_school_factor = 1.0
    else:
        in_school_factor = 1 + rate * (months / 12)
    amortization_factor = 1 + rate * term * AMORTIZATION_WEIGHT

    return principal_effective * in_school_factor * amortization_factor


def _has_capacity(offer: LoanOffer) -> bool:
    if offer.origination_fee_percent >= 100:
        return False
    if offer.borrowing_cap is not None and offer.borrowing_cap <= 0:
        return False
    return True


def allocate(
    target: float, offers: Sequence[LoanOffer], mode: TargetMode = "gross"
) -> Tuple[List[AllocationEntry], float]:
    """Greedy cheapest-first allocation. Returns (entries, shortfall).

    In gross mode the target is principal; in net mode it is cash after fees and the
    shortfall is expressed in net cash.
    """
    if not math.isfinite(target) or target <= 0:
        raise ValueError("Target amount must be a positive number")
    if not offers:
        raise ValueError("At least one loan offer is required")
    if mode not in ("gross", "net"):
        raise ValueError(f"Unknown target mode: {mode}")

    # sorted() is stable, so equal costs keep input order
    ranked = sorted(((cost_per_dollar(o), o) for o in offers), key=lambda x: x[0])

    remaining = target
    entries: List[AllocationEntry] = []
    for cpd, offer in ranked:
        if remaining <= 0:
            break
        if not _has_capacity(offer):
            logger.debug(f"Skipping {offer.name}: no usable capacity")
            continue

        cap = offer.borrowing_cap
        if mode == "net":
            keep = 1 - offer.origination_fee_percent / 100
            if cap is not None and cap * keep <= remaining:
                use, covered = cap, cap * keep
            else:
                use, covered = remaining / keep, remaining
        else:
            capacity = cap if cap is not None else remaining
            use = min(capacity, remaining)
            covered = use

        if use <= 0:
            continue

        entries.append(AllocationEntry(offer=offer, principal_used=use, cost_per_dollar=cpd))
        remaining -= covered
        logger.debug(f"Allocated {use:,.2f} to {offer.name} (cpd={cpd:.4f}), remaining {remaining:,.2f}")

    shortfall = max(0.0, remaining)
    return entries, shortfall


def monthly_payment(balance: float, annual_rate_pct: float, months: int) -> float:
    """Level payment for a fixed-rate loan; zero rate divides evenly."""
    if months <= 0 or balance <= 0:
        return 0.0
    r = annual_rate_pct / 100 / 12
    # r / (1 - (1+r)^-n), written so neither the power nor the difference can overflow
    paid_down = -math.expm1(-months * math.log1p(r))
    if paid_down <= 0:
        return balance / months
    return _finite_or_zero(balance * r / paid_down)


def compute_loan_stats(
    entry: AllocationEntry, amortize: bool = True, total_principal: Optional[float] = None
) -> LoanStats:
    offer = entry.offer
    principal = entry.principal_used
    rate = offer.interest_rate / 100

    origination_fee = principal * (offer.origination_fee_percent / 100)
    net_proceeds = principal - origination_fee
    if offer.subsidized_in_school:
        in_school_interest = 0.0
    else:
        in_school_interest = _finite_or_zero(principal * rate * (offer.in_school_months / 12))
    capitalized = principal + in_school_interest

    share = 0.0
    if total_principal:
        share = _finite_or_zero(principal / total_principal)

    payment = repaid = interest = None
    if amortize:
        n = offer.term_years * 12
        n = max(1, round(n)) if math.isfinite(n) else 0
        payment = monthly_payment(capitalized, offer.interest_rate, n)
        repaid = _finite_or_zero(payment * n)
        # includes in-school interest that was capitalized
        interest = repaid - principal

    return LoanStats(
        loan_name=offer.name,
        principal_used=principal,
        share=share,
        origination_fee=origination_fee,
        net_proceeds=net_proceeds,
        in_school_interest=in_school_interest,
        capitalized_balance=capitalized,
        monthly_payment=payment,
        total_repaid=repaid,
        total_interest=interest,
    )


def summarize(entries: Sequence[AllocationEntry]) -> PlanSummary:
    total_principal = sum(e.principal_used for e in entries)
    weighted = sum(e.principal_used * e.cost_per_dollar for e in entries)
    blended = _finite_or_zero(weighted / total_principal) if total_principal > 0 else 0.0

    stats = [e.stats for e in entries if e.stats is not None]
    amortized = [s for s in stats if s.monthly_payment is not None]

    return PlanSummary(
        total_principal=total_principal,
        total_fees=sum(s.origination_fee for s in stats),
        total_net_proceeds=sum(s.net_proceeds for s in stats),
        total_in_school_interest=sum(s.in_school_interest for s in stats),
        total_monthly_payment=sum(s.monthly_payment for s in amortized) if amortized else None,
        total_repaid=sum(s.total_repaid for s in amortized) if amortized else None,
        blended_cost_per_dollar=blended,
    )


def optimize(
    target: float, offers: Sequence[LoanOffer], mode: TargetMode = "gross", amortize: bool = True
) -> Plan:
    entries, shortfall = allocate(target, offers, mode)

    total_principal = sum(e.principal_used for e in entries)
    entries = [
        e.model_copy(update={"stats": compute_loan_stats(e, amortize, total_principal)})
        for e in entries
    ]

    plan = Plan(
        target=target,
        mode=mode,
        allocation=entries,
        shortfall=shortfall,
        feasible=shortfall == 0,
        summary=summarize(entries),
        notes="Greedy allocation - cheapest cost per dollar first, up to each cap.",
    )
    if shortfall > 0:
        logger.info(f"Target {target:,.2f} not fully covered, shortfall {shortfall:,.2f}")
    return plan
