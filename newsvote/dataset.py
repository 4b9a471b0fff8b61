from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

from newsvote.errors import ValidationError
from newsvote.models import Snapshot, VoteIngestEvent, VoteInvalidationEvent
from newsvote.registry import ArticleRegistry
from newsvote.status import status_text
from newsvote.tally import VoteResult

ACTIONS = {"vote", "invalidate"}


def load_vote_events(path: Path | str) -> pd.DataFrame:
    """
    Read a vote-event CSV with columns article_id, vote_result and optional action.

    vote_result is normalised to 'Fake' / 'Not Fake'; action defaults to 'vote'.
    """
    df = pd.read_csv(path, dtype=str)
    if "article_id" not in df.columns or "vote_result" not in df.columns:
        raise ValueError("Vote event table must include columns: article_id, vote_result")

    df = df.copy()
    df["article_id"] = df["article_id"].fillna("").astype(str).str.strip()
    blank = df.index[df["article_id"] == ""].tolist()
    if blank:
        raise ValueError(f"Vote event table has rows without article_id: {blank}")
    if "action" not in df.columns:
        df["action"] = "vote"
    df["action"] = df["action"].fillna("vote").astype(str).str.strip().str.lower()

    unknown_actions = sorted(set(df["action"]) - ACTIONS)
    if unknown_actions:
        raise ValueError(f"Unknown action(s) in vote events: {unknown_actions}")

    try:
        df["vote_result"] = df["vote_result"].apply(lambda x: VoteResult.parse(x).value)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc
    return df


def replay_events(
    registry: ArticleRegistry,
    events: pd.DataFrame,
) -> tuple[dict[str, Snapshot], list[tuple[int, ValidationError]]]:
    """
    Apply events in row order.

    A row the registry rejects (e.g. invalidating a vote that was never cast)
    is skipped and reported; later rows still apply.

    Returns:
        (latest Snapshot per article touched, [(row index, error), ...])
    """
    touched: dict[str, Snapshot] = {}
    skipped: list[tuple[int, ValidationError]] = []
    for row in events.itertuples():
        try:
            if row.action == "invalidate":
                snapshot = registry.apply_invalidation(VoteInvalidationEvent(row.article_id, row.vote_result))
            else:
                snapshot = registry.apply_vote(VoteIngestEvent(row.article_id, row.vote_result))
        except ValidationError as exc:
            skipped.append((row.Index, exc))
            continue
        touched[row.article_id] = snapshot
    return touched, skipped


def summarize_snapshots(snapshots: Iterable[Snapshot]) -> pd.DataFrame:
    rows = []
    for snap in snapshots:
        row = snap.to_dict()
        row["statusText"] = status_text(snap.status)
        rows.append(row)
    columns = [
        "articleId", "status", "statusText", "fakeScore", "confidence",
        "validVotes", "invalidVotes", "fakeVotes", "nonFakeVotes",
    ]
    return pd.DataFrame(rows, columns=columns)
