"""Local admission policy applied to records fetched from the directory.

Groups and accounts below the configured numeric cutoffs are dropped, as are
accounts whose primary group did not survive.  Shell and home directory
defaults are host-local choices and are filled in here, in place.
"""

from __future__ import annotations

import logging

from .context import CacheContext
from .models.config import HOME_TOKEN
from .models.directory import Account, Group

logger = logging.getLogger(__name__)


def filter_groups(ctx: CacheContext, groups: list[Group]) -> None:
    """Retain groups with a GID at or above ``min_gid``."""
    limit = ctx.config.min_gid
    for group in groups:
        if group.number < limit:
            logger.warning("Ignoring group %s, GID %d is below cutoff %d", group.name, group.number, limit)
            ctx.dropped_groups.append(group.name)
            continue
        ctx.groups[group.name] = group
        ctx.gids[group.name] = group.number
    logger.debug("Retained %d of %d groups", len(ctx.groups), len(groups))


def filter_accounts(ctx: CacheContext, accounts: list[Account]) -> None:
    """Retain accounts that pass the UID cutoff and have a valid primary group.

    Must run after :func:`filter_groups`, the primary group check reads the
    retained group index.
    """
    limit = ctx.config.min_uid
    for account in accounts:
        if account.number < limit:
            logger.warning("Ignoring entity %s, UID %d is below cutoff %d", account.id, account.number, limit)
            ctx.dropped_accounts.append(account.id)
            continue
        if account.primary_group not in ctx.gids:
            logger.warning("Ignoring entity %s, primary group %r is invalid", account.id, account.primary_group)
            ctx.dropped_accounts.append(account.id)
            continue
        apply_defaults(ctx, account)
        ctx.accounts[account.id] = account
    logger.debug("Retained %d of %d entities", len(ctx.accounts), len(accounts))


def apply_defaults(ctx: CacheContext, account: Account) -> None:
    if account.shell not in ctx.shells:
        logger.debug("Entity %s shell %r not allowed, using %s", account.id, account.shell, ctx.config.default_shell)
        account.shell = ctx.config.default_shell
    if not account.home:
        account.home = default_home(ctx.config.default_home, account.id)


def default_home(template: str, entity_id: str) -> str:
    return template.replace(HOME_TOKEN, entity_id)
