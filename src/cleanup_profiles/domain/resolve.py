"""Pair repair candidates with merge targets."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .keys import canonical_key
from .model import MergeDecision

if TYPE_CHECKING:
    from .model import IdentityColumns, TargetIndex


def resolve_candidate(
    candidates: IdentityColumns,
    index: TargetIndex,
    position: int,
) -> MergeDecision:
    """Decide whether the candidate at ``position`` must be merged, and into what.

    Skips when no target shares the candidate's key, when the candidate has no
    profile to merge from, or when it already belongs to the target's profile.
    """

    key = canonical_key(
        candidates.sources[position],
        candidates.usernames[position],
        candidates.emails[position],
    )
    target_uuid = index.target_uuid(key)
    if target_uuid is None:
        return MergeDecision.skip(position)

    source_uuid = candidates.uuids[position]
    if source_uuid is None or source_uuid == target_uuid:
        return MergeDecision.skip(position)

    return MergeDecision(
        index=position,
        source_uuid=source_uuid,
        target_uuid=target_uuid,
        candidate_id=candidates.ids[position],
        target_id=index.target_id(key),
    )
