"""Command-line access to the classifier, scope generator and matcher."""
from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict, is_dataclass
from typing import Any

from ftw_ai.classifier import classify_job
from ftw_ai.estimator import estimate_scope, get_budget, get_usage_stats
from ftw_ai.log import get_logger
from ftw_ai.matching import find_best_contractors
from ftw_ai.models import ContractorQuery, JobData
from ftw_ai.rag import get_job_context
from ftw_ai.scope import ScopeUnavailableError, get_job_scope

log = get_logger(__name__)


def _emit(value: Any) -> None:
    if isinstance(value, list):
        value = [asdict(v) if is_dataclass(v) else v for v in value]
    elif is_dataclass(value):
        value = asdict(value)
    print(json.dumps(value, indent=2, default=str))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ftw-ai", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("classify", help="Classify a job description")
    p.add_argument("text")

    p = sub.add_parser("scope", help="Generate a tiered scope for a job")
    p.add_argument("text")
    p.add_argument("--title", default="")
    p.add_argument("--photos", type=int, default=0, help="Number of attached photos")
    p.add_argument("--multi-trade", action="store_true")
    p.add_argument("--major", action="store_true", help="Mark as a major project")

    p = sub.add_parser("estimate", help="Budget-aware scope estimate")
    p.add_argument("text")

    p = sub.add_parser("context", help="Show retrieved RAG context")
    p.add_argument("text")

    p = sub.add_parser("match", help="Rank contractors for a job")
    p.add_argument("text")
    p.add_argument("--title", default="")
    p.add_argument("--zip", dest="zip_code", default=None)

    sub.add_parser("budget", help="Show AI budget and usage")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.command == "classify":
        _emit(classify_job(args.text))
    elif args.command == "scope":
        job = JobData(
            title=args.title,
            description=args.text,
            photos=[f"photo-{i}" for i in range(args.photos)],
            multi_trade=args.multi_trade,
            is_major_project=args.major,
        )
        try:
            _emit(get_job_scope(job))
        except ScopeUnavailableError as exc:
            log.error("Scope generation failed: %s", exc)
            return 1
    elif args.command == "estimate":
        _emit(estimate_scope(args.text))
    elif args.command == "context":
        _emit(get_job_context(args.text))
    elif args.command == "match":
        _emit(find_best_contractors(
            ContractorQuery(description=args.text, title=args.title, zip_code=args.zip_code)
        ))
    elif args.command == "budget":
        budget = get_budget()
        _emit({
            "status": asdict(budget.status()),
            "estimates": budget.cost_estimates(),
            "usage": asdict(get_usage_stats()),
        })
    return 0


if __name__ == "__main__":
    sys.exit(main())
