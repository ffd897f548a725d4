"""Effective group membership for the retained accounts.

This is the expensive part of a rebuild: one directory query per retained
group (or per retained account in entity mode).  Where that becomes a
problem, compute the caches centrally and distribute the files instead of
running the builder on every host.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

from .context import CacheContext
from .models.config import MembershipMode
from .source import DirectorySource, call_source

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def _fan_out(fn: Callable[[T], R], items: Iterable[T], workers: int) -> list[tuple[T, R]]:
    """Call ``fn`` for each item, returning results in input order."""
    items = list(items)
    if workers <= 1 or len(items) <= 1:
        return [(item, fn(item)) for item in items]
    with ThreadPoolExecutor(max_workers=min(workers, len(items))) as pool:
        return list(zip(items, pool.map(fn, items)))


def resolve_by_group(ctx: CacheContext, source: DirectorySource) -> dict[str, set[str]]:
    indirect = ctx.config.indirects

    def fetch(name: str) -> list[str]:
        return [a.id for a in call_source(f"group {name}", lambda: source.list_group_members(name, indirect))]

    members: dict[str, set[str]] = {}
    for name, ids in _fan_out(fetch, sorted(ctx.groups), ctx.config.workers):
        # Members dropped by the policy filter must not come back here.
        members[name] = {i for i in ids if i in ctx.accounts}
    return members


def resolve_by_entity(ctx: CacheContext, source: DirectorySource) -> dict[str, set[str]]:
    indirect = ctx.config.indirects

    def fetch(entity_id: str) -> list[str]:
        groups = call_source(f"entity {entity_id}", lambda: source.list_entity_groups(entity_id, indirect))
        return [g.name for g in groups]

    members: dict[str, set[str]] = {name: set() for name in ctx.groups}
    for entity_id, names in _fan_out(fetch, sorted(ctx.accounts), ctx.config.workers):
        for name in names:
            if name in members:
                members[name].add(entity_id)
    return members


def add_primary_members(ctx: CacheContext, members: dict[str, set[str]]) -> None:
    """Make every account a member of its own primary group.

    The directory does not always list these, and a login whose primary GID
    is valid but whose group omits it is confusing to everyone.
    """
    for account in ctx.accounts.values():
        members.setdefault(account.primary_group, set()).add(account.id)


def resolve_members(ctx: CacheContext, source: DirectorySource) -> dict[str, set[str]]:
    if ctx.config.membership_mode is MembershipMode.ENTITY:
        members = resolve_by_entity(ctx, source)
    else:
        members = resolve_by_group(ctx, source)
    add_primary_members(ctx, members)
    ctx.members = members
    logger.info(
        "Resolved memberships for %d groups (%s mode, indirects=%s)",
        len(members),
        ctx.config.membership_mode.value,
        ctx.config.indirects,
    )
    return members
