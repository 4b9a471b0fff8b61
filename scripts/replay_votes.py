from __future__ import annotations

import argparse
import json
from pathlib import Path

from dotenv import load_dotenv

from newsvote.config import load_settings
from newsvote.dataset import load_vote_events, replay_events, summarize_snapshots
from newsvote.langfuse_logger import LangfuseAuditSink, flush, maybe_create_langfuse
from newsvote.policy import policy_from_settings
from newsvote.registry import ArticleRegistry


def main() -> None:
    load_dotenv()

    p = argparse.ArgumentParser(description="Replay a CSV of vote events and print per-article verdicts.")
    p.add_argument("--events", type=str, required=True, help="CSV with article_id, vote_result[, action]")
    p.add_argument("--out", type=str, default="", help="optional CSV path for the summary table")
    p.add_argument("--langfuse", action="store_true", help="log status changes to Langfuse")
    args = p.parse_args()

    settings = load_settings()
    registry = ArticleRegistry(policy_from_settings(settings))

    langfuse = None
    if args.langfuse:
        langfuse = maybe_create_langfuse(settings.langfuse_public_key, settings.langfuse_secret_key, settings.langfuse_host)
        if langfuse is None:
            print("LANGFUSE_PUBLIC_KEY / LANGFUSE_SECRET_KEY not set. Running without Langfuse.")
        LangfuseAuditSink(langfuse, registry).attach(registry.notifier)

    changes = []
    registry.notifier.subscribe(lambda e: changes.append(e.to_dict()))

    events = load_vote_events(Path(args.events))
    _, skipped = replay_events(registry, events)
    for index, exc in skipped:
        print(f"Skipped row {index}: {exc}")
    flush(langfuse)

    summary = summarize_snapshots(registry.snapshots())
    print(summary.to_string(index=False))
    print(f"\n{len(events)} events, {len(summary)} articles, {len(changes)} status changes, {len(skipped)} rows skipped")
    print(json.dumps(summary["status"].value_counts().to_dict(), indent=2))

    if args.out:
        summary.to_csv(args.out, index=False)
        print(f"Wrote {args.out}")


if __name__ == "__main__":
    main()
