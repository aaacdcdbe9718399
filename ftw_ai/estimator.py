"""Cost-aware scope estimates for posted jobs.

Common jobs are answered from a fixed pattern table, repeated descriptions
from a 24 h cache, and everything else by the tiered scope generator under
the monthly budget. Failures degrade to a canned estimate.
"""
from __future__ import annotations

import random
import re
from dataclasses import dataclass, replace

from ftw_ai.budget import BudgetController
from ftw_ai.cache import TTLCache
from ftw_ai.config import ProviderConfig, get_config
from ftw_ai.log import get_logger
from ftw_ai.models import JobData, ScopeEstimate
from ftw_ai.classifier import classify_job
from ftw_ai.scope import QUICK, get_job_scope, select_tier

log = get_logger(__name__)

MAX_MATERIALS = 6

COMMON_JOB_PATTERNS: dict[str, ScopeEstimate] = {
    "toilet flapper": ScopeEstimate(
        "Replace toilet flapper valve. Simple DIY repair.", 15, 50,
        ["Toilet flapper", "Chain clip"], 0.95, "cached", True,
    ),
    "leaky faucet": ScopeEstimate(
        "Repair leaking faucet. Replace washers/cartridge.", 50, 150,
        ["Faucet cartridge", "O-rings", "Plumber tape"], 0.95, "cached", True,
    ),
    "clogged drain": ScopeEstimate(
        "Clear clogged drain. Snake or chemical treatment.", 75, 200,
        ["Drain snake", "Drain cleaner"], 0.95, "cached", True,
    ),
    "outlet replacement": ScopeEstimate(
        "Replace electrical outlet. Standard swap.", 50, 100,
        ["Outlet", "Wall plate", "Wire nuts"], 0.95, "cached", True,
    ),
    "light fixture": ScopeEstimate(
        "Install/replace light fixture.", 75, 200,
        ["Light fixture", "Wire nuts", "Mounting hardware"], 0.95, "cached", True,
    ),
    "garbage disposal": ScopeEstimate(
        "Replace garbage disposal unit.", 150, 350,
        ["Garbage disposal", "Plumber putty", "Discharge tube"], 0.95, "cached", True,
    ),
    "thermostat": ScopeEstimate(
        "Install smart/programmable thermostat.", 75, 200,
        ["Thermostat", "Wire labels", "Wall anchors"], 0.95, "cached", True,
    ),
    "door lock": ScopeEstimate(
        "Replace door lock/deadbolt.", 50, 150,
        ["Lock set", "Strike plate", "Screws"], 0.95, "cached", True,
    ),
}

FALLBACK_SCOPES: list[ScopeEstimate] = [
    ScopeEstimate(
        "Replace leaking kitchen faucet cartridge, repair supply line connections, "
        "and test for proper water flow and sealing.",
        120, 180,
        ["Moen cartridge", "Basin wrench", "Plumber's grease", "Teflon tape", "Supply lines"],
        0.85, "fallback",
    ),
    ScopeEstimate(
        "Repair drywall hole, apply joint compound, sand smooth, prime, and repaint "
        "to match existing wall color.",
        150, 250,
        ["Drywall patch", "Joint compound", "Primer", "Paint", "Sandpaper"],
        0.88, "fallback",
    ),
    ScopeEstimate(
        "Install new 50-gallon water heater, connect supply and drain lines, test "
        "pressure relief valve, and ensure code compliance.",
        800, 1200,
        ["50-gal water heater", "Flex connectors", "PRV valve", "Drain pan", "Pipe fittings"],
        0.87, "fallback",
    ),
]

COMPLEX_KEYWORDS: list[str] = [
    "renovation", "remodel", "addition", "structural",
    "foundation", "roof replacement", "electrical panel",
    "hvac system", "plumbing rough-in", "multiple trades",
]


@dataclass
class UsageStats:
    total_calls: int = 0
    cached_calls: int = 0
    quick_calls: int = 0
    detailed_calls: int = 0
    estimated_cost: float = 0.0


_usage = UsageStats()
_scope_cache: TTLCache = TTLCache(max_size=200, ttl=24 * 60 * 60)
_budget: BudgetController | None = None


def get_usage_stats() -> UsageStats:
    return replace(_usage)


def reset_usage_stats() -> None:
    global _usage
    _usage = UsageStats()
    _scope_cache.clear()


def get_budget(config: ProviderConfig | None = None) -> BudgetController:
    """Process-wide budget controller, created on first use."""
    global _budget
    if _budget is None:
        _budget = BudgetController(monthly_budget=(config or get_config()).monthly_budget)
    return _budget


def determine_complexity(description: str, photos: list[str] | None = None) -> str:
    desc = description.lower()
    if any(k in desc for k in COMPLEX_KEYWORDS):
        return "complex"
    if len(desc.split()) < 20 and not photos:
        return "quick"
    return "standard"


def cache_key(description: str) -> str:
    """Order-insensitive key: lowercase words, punctuation stripped, sorted."""
    normalized = re.sub(r"[^a-z0-9\s]", "", description.lower())
    return "-".join(sorted(normalized.split()))[:100]


def extract_title(description: str) -> str:
    first_line = description.split("\n")[0]
    return first_line[:50].strip() or "Untitled Job"


def _copy(estimate: ScopeEstimate, **changes) -> ScopeEstimate:
    return replace(estimate, materials=list(estimate.materials), **changes)


def estimate_scope(
    description: str,
    config: ProviderConfig | None = None,
    budget: BudgetController | None = None,
) -> ScopeEstimate:
    config = config or get_config()
    budget = budget or get_budget(config)
    normalized = description.lower().strip()

    for pattern, known in COMMON_JOB_PATTERNS.items():
        if pattern in normalized:
            _usage.total_calls += 1
            _usage.cached_calls += 1
            log.debug("Common job pattern %r matched", pattern)
            return _copy(known)

    key = cache_key(normalized)
    cached = _scope_cache.get(key)
    if cached is not None:
        _usage.total_calls += 1
        _usage.cached_calls += 1
        return _copy(cached, confidence_score=0.9, model="cached", cached=True)

    job = JobData(
        description=description,
        title=extract_title(description),
        is_major_project=determine_complexity(description) == "complex",
    )
    try:
        # Budget tier must match the tier get_job_scope runs on
        classification = classify_job(description, config)
        simple = select_tier(job, classification) == QUICK
        result = budget.call_with_budget(
            simple, lambda: get_job_scope(job, config, classification)
        )
    except Exception as exc:
        log.error("AI scope generation failed, using fallback: %s", exc)
        return _copy(random.choice(FALLBACK_SCOPES))

    _usage.total_calls += 1
    if result.tier == QUICK:
        _usage.quick_calls += 1
        _usage.estimated_cost += budget.quick_cost
    else:
        _usage.detailed_calls += 1
        _usage.estimated_cost += budget.detailed_cost

    estimate = ScopeEstimate(
        scope=result.scope,
        price_low=result.price_low,
        price_high=result.price_high,
        materials=result.materials[:MAX_MATERIALS],
        confidence_score=0.85,
        model=result.model,
    )
    _scope_cache.set(key, estimate)
    return _copy(estimate)
