"""Render retained records as NSS files-backend lines."""

from __future__ import annotations

from .context import CacheContext
from .models.directory import Account, Group


def passwd_line(account: Account, gid: int) -> str:
    return f"{account.id}:x:{account.number}:{gid}:{account.gecos}:{account.home}:{account.shell}"


def group_line(group: Group, members: set[str] | list[str]) -> str:
    return f"{group.name}:x:{group.number}:{','.join(sorted(members))}"


def shadow_line(account: Account) -> str:
    # The directory never hands out password hashes.
    return f"{account.id}:*"


def passwd_lines(ctx: CacheContext) -> list[str]:
    return [passwd_line(a, ctx.gids[a.primary_group]) for a in ctx.sorted_accounts()]


def group_lines(ctx: CacheContext) -> list[str]:
    return [group_line(g, ctx.members.get(g.name, set())) for g in ctx.sorted_groups()]


def shadow_lines(ctx: CacheContext) -> list[str]:
    return [shadow_line(a) for a in ctx.sorted_accounts()]


def render_map(lines: list[str]) -> str:
    """Join lines into file contents, one record per line with a trailing newline."""
    # An empty map is an empty file, not a lone newline that reads as a blank record.
    if not lines:
        return ""
    return "\n".join(lines) + "\n"
