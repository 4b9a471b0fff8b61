from __future__ import annotations

import argparse
import asyncio
import json
import sys

from dotenv import load_dotenv

from newsvote.config import load_settings
from newsvote.coordinator import RecalculationCoordinator
from newsvote.errors import RecalculationError, ValidationError
from newsvote.langfuse_logger import LangfuseAuditSink, flush, log_recalculation, maybe_create_langfuse
from newsvote.ledger import HttpLedger
from newsvote.policy import policy_from_settings
from newsvote.registry import ArticleRegistry
from newsvote.scoring import share_breakdown
from newsvote.status import status_text
from newsvote.tally import Tally


async def _recalculate(registry: ArticleRegistry, settings, article_id: str):
    async with HttpLedger.from_settings(settings) as ledger:
        coordinator = RecalculationCoordinator(registry, ledger)
        return await coordinator.recalculate(article_id)


def main() -> None:
    load_dotenv()

    p = argparse.ArgumentParser(description="Classify one news article from its vote counts.")
    p.add_argument("--article_id", type=str, required=True)
    p.add_argument("--fake", type=int, default=0)
    p.add_argument("--not_fake", type=int, default=0)
    p.add_argument("--invalid", type=int, default=0)
    p.add_argument("--threshold", type=float, default=None)
    p.add_argument("--min_votes", type=int, default=None)
    p.add_argument("--recalculate", action="store_true", help="fetch authoritative counts from the vote ledger")
    args = p.parse_args()

    settings = load_settings()
    try:
        policy = policy_from_settings(settings)
        if args.threshold is not None:
            policy = policy.with_threshold(args.threshold)
        if args.min_votes is not None:
            policy = policy.with_min_valid_votes(args.min_votes)
        registry = ArticleRegistry(policy)
    except ValidationError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        sys.exit(2)

    langfuse = maybe_create_langfuse(settings.langfuse_public_key, settings.langfuse_secret_key, settings.langfuse_host)
    LangfuseAuditSink(langfuse, registry).attach(registry.notifier)

    events = []
    registry.notifier.subscribe(lambda e: events.append(e.to_dict()))

    try:
        if args.recalculate:
            snapshot = asyncio.run(_recalculate(registry, settings, args.article_id))
            log_recalculation(langfuse, args.article_id, snapshot=snapshot)
        else:
            snapshot = registry.replace_tally(args.article_id, Tally(args.fake, args.not_fake, args.invalid))
    except RecalculationError as exc:
        log_recalculation(langfuse, args.article_id, error=exc)
        flush(langfuse)
        print(f"[ERROR] {exc}", file=sys.stderr)
        sys.exit(1)
    except ValidationError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        sys.exit(2)

    flush(langfuse)

    result = {
        "snapshot": snapshot.to_dict(),
        "statusText": status_text(snapshot.status),
        "shares": share_breakdown(snapshot),
        "tally": registry.tally(args.article_id).to_dict(),
        "policy": registry.policy.to_dict(),
        "events": events,
    }
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
