import logging
from pathlib import Path
from typing import Any

import click
import yaml
from pydantic import ValidationError

from .builder import update_caches
from .errors import ConfigError, NssCacheError
from .index import ID_FIELD, INDEX_LAYOUTS, NAME_FIELD, lookup_line, map_kind, verify_indexes
from .models.config import CacheConfig, MembershipMode
from .source import YamlDirectorySource

logger = logging.getLogger("netauth_nsscache")

# Settings for this tool live under this key so the file can be shared with
# other NetAuth clients.
_CONFIG_SECTION = "nsscache"


def _config_candidates() -> list[Path]:
    return [
        Path("/etc/netauth/config.yaml"),
        Path.home() / ".netauth" / "config.yaml",
        Path("config.yaml"),
    ]


def _load_config_yaml(config_file: str | None) -> dict[str, Any]:
    """Load the cache settings from an explicit or discovered config file."""
    if config_file:
        path: Path | None = Path(config_file)
    else:
        path = next((p for p in _config_candidates() if p.is_file()), None)
    if path is None:
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Error reading config {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Invalid config file: {path} (expected YAML mapping)")
    section = raw.get(_CONFIG_SECTION, {})
    if not isinstance(section, dict):
        raise ConfigError(f"Invalid config file: {path} ('{_CONFIG_SECTION}' must be a mapping)")
    logger.debug("Loaded config from %s", path)
    return section


def resolve_config(config_file: str | None, overrides: dict[str, Any]) -> CacheConfig:
    """Merge the config file with command line overrides (flags win)."""
    values = _load_config_yaml(config_file)
    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return CacheConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug-level logging.")
def main(verbose: bool) -> None:
    """Build NSS cache files from a NetAuth directory."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )


# ---------------------------------------------------------------------------
# build command
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--source", "-s", "source_file", required=True, type=click.Path(exists=True), help="Directory snapshot YAML."
)
@click.option("--config", "-c", "config_file", type=click.Path(exists=True), help="Config file to use.")
@click.option("--min-uid", type=int, help="Minimum UID number to accept.")
@click.option("--min-gid", type=int, help="Minimum GID number to accept.")
@click.option("--homedir", "default_home", help="Home directory to provide if none is set, {UID} is replaced.")
@click.option("--shell", "default_shell", help="Shell to use if the directory shell is not allowed here.")
@click.option("--shells-file", type=click.Path(), help="File listing the shells this host accepts.")
@click.option("--out", "out_dir", type=click.Path(file_okay=False), help="Output directory for cache files.")
@click.option("--indirects/--no-indirects", default=None, help="Include indirect memberships in the group map.")
@click.option(
    "--membership-mode",
    type=click.Choice([m.value for m in MembershipMode]),
    help="Query members per group or groups per entity.",
)
@click.option("--workers", type=click.IntRange(min=1), help="Concurrent membership queries.")
@click.option("--shadow/--no-shadow", "write_shadow", default=None, help="Also write the shadow map.")
def build(source_file: str, config_file: str | None, **overrides: Any) -> None:
    """Rebuild every cache file from the directory."""
    try:
        config = resolve_config(config_file, overrides)
        source = YamlDirectorySource.from_file(source_file)
        caches = update_caches(source, config)
    except NssCacheError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx = caches.context
    click.echo(f"Caches updated: {len(ctx.accounts)} accounts, {len(ctx.groups)} groups")


# ---------------------------------------------------------------------------
# lookup / verify commands
# ---------------------------------------------------------------------------


_KIND_OPTION = click.option(
    "--kind",
    type=click.Choice(list(INDEX_LAYOUTS)),
    help="Map kind, for files whose name does not start with passwd, group or shadow.",
)


def _suffix_for(kind: str, by: str) -> str:
    column = NAME_FIELD if by == "name" else ID_FIELD
    for suffix, col in INDEX_LAYOUTS[kind].items():
        if col == column:
            return suffix
    raise click.ClickException(f"The {kind} map has no {by} index")


@main.command()
@click.argument("map_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("key")
@click.option("--by", type=click.Choice(["name", "id"]), default="name", show_default=True, help="Index to search.")
@_KIND_OPTION
def lookup(map_file: Path, key: str, by: str, kind: str | None) -> None:
    """Look KEY up in MAP_FILE through its index and print the line."""
    try:
        suffix = _suffix_for(kind or map_kind(map_file), by)
        line = lookup_line(map_file, suffix, key)
    except (NssCacheError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc
    if line is None:
        click.echo(f"{key}: not found", err=True)
        raise SystemExit(1)
    click.echo(line)


@main.command()
@click.argument("map_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_KIND_OPTION
def verify(map_file: Path, kind: str | None) -> None:
    """Check that the indexes next to MAP_FILE match its contents."""
    try:
        stale = verify_indexes(map_file, kind or map_kind(map_file))
    except (NssCacheError, OSError, UnicodeDecodeError) as exc:
        raise click.ClickException(str(exc)) from exc
    if stale:
        click.echo(f"FAIL: {len(stale)} index file(s) out of date:")
        for path in stale:
            click.echo(f"  {path}")
        raise SystemExit(1)
    click.echo(f"OK: indexes for {map_file} are current")


if __name__ == "__main__":
    main()
