"""
kpi_engines.recommendations -- Rule-based advisory text per project.

Each rule inspects one dimension of a ``RiskResult`` and contributes one
line of advice.  When no rule fires a single "performing well" line is
returned, so the result is never empty.
"""

from __future__ import annotations

from kpi_engines.risk import (
    CollectionRisk,
    CostVarianceStatus,
    ProfitabilityRisk,
    RiskResult,
    ScheduleRisk,
)

ACCELERATE_WORK = "Accelerate work progress to meet planned targets"
REVIEW_COST_STRUCTURE = "Review and optimize cost structure to reduce overruns"
CUT_COSTS_REVIEW_PRICING = "Implement cost-saving measures and review pricing strategy"
FOLLOW_UP_VETTING = "Improve documentation and follow-up with client for vetting"
STRENGTHEN_COLLECTION = "Strengthen accounts receivable collection process"
PERFORMING_WELL = "Project is performing well. Maintain current operations."


def recommend_actions(risk: RiskResult) -> tuple[str, ...]:
    """Advice lines for a classified project, in a fixed rule order."""
    advice: list[str] = []
    if risk.lag_risk in (ScheduleRisk.HIGH, ScheduleRisk.DANGER):
        advice.append(ACCELERATE_WORK)
    if risk.cost_variance_risk == CostVarianceStatus.OVER_BUDGET:
        advice.append(REVIEW_COST_STRUCTURE)
    if risk.profitability_risk in (ProfitabilityRisk.RISK, ProfitabilityRisk.DANGER):
        advice.append(CUT_COSTS_REVIEW_PRICING)
    if risk.slippage_risk in (CollectionRisk.HIGH, CollectionRisk.DANGER):
        advice.append(FOLLOW_UP_VETTING)
    if risk.receivable_risk in (CollectionRisk.HIGH, CollectionRisk.DANGER):
        advice.append(STRENGTHEN_COLLECTION)
    return tuple(advice) or (PERFORMING_WELL,)
