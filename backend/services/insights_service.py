"""Insights Service - weekly posting guidance and a simple revenue forecast.

Both are basic-package features and sit behind the plan gate.
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict

PAYDAY_BOOST = 0.12
TREND_BOOST = 0.05
DEFAULT_BASELINE_WEEKLY_REVENUE = 10000
DEFAULT_MARKETING_SPEND = 1500
MAX_FORECAST_AMOUNT = 1_000_000_000_000


def _round_half_up(value: float, places: int = 0):
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def weekly_insights(tenant_id: str, industry: str) -> Dict[str, Any]:
    tag = "".join(industry.split()) or "general"
    return {
        "businessId": tenant_id,
        "weekOf": datetime.now(timezone.utc).date().isoformat(),
        "industry": industry,
        "trends": [
            "Payday promos boost conversions (15th, 25th–30th)",
            "Short-form video (15–30s) outperforms",
            "UGC/testimonials increase trust",
        ],
        "suggestedPosts": [
            {"platform": "Instagram", "day": "Thu", "time": "18:00",
             "caption": f"Payday glow-up ✨ Book now & save 10%. #PaydaySpecial #{tag}"},
            {"platform": "TikTok", "day": "Sat", "time": "11:00",
             "caption": f"Behind the scenes + quick tips 🎥 #{tag}Tips"},
            {"platform": "Facebook", "day": "Tue", "time": "12:30",
             "caption": "Client story + referral rewards 💬 #HappyClients"},
        ],
        "bestTimes": {"Instagram": ["18:00"], "TikTok": ["11:00"], "Facebook": ["12:30"]},
    }


def revenue_forecast(tenant_id: str, baseline_weekly_revenue: float, marketing_spend: float) -> Dict[str, Any]:
    projected = _round_half_up(baseline_weekly_revenue * (1 + PAYDAY_BOOST + TREND_BOOST))
    estimated_roi = _round_half_up(
        ((projected - baseline_weekly_revenue) - marketing_spend) / max(marketing_spend, 1), 2
    )
    return {
        "businessId": tenant_id,
        "baselineWeeklyRevenue": baseline_weekly_revenue,
        "projectedWeeklyRevenue": projected,
        "assumedLifts": {"paydayBoost": PAYDAY_BOOST, "trendBoost": TREND_BOOST},
        "marketingSpend": marketing_spend,
        "estimatedROI": estimated_roi,
    }
