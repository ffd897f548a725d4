"""Shared fixtures for the cache builder tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from netauth_nsscache.models import CacheConfig

from fakes import FakeSource, sample_entities, sample_groups, sample_members


@pytest.fixture()
def source() -> FakeSource:
    return FakeSource(sample_groups(), sample_entities(), sample_members())


@pytest.fixture()
def config(tmp_path: Path) -> CacheConfig:
    return CacheConfig(
        min_uid=2000,
        min_gid=2000,
        default_shell="/bin/bash",
        default_home="/home/{UID}",
        shells_file=tmp_path / "shells",
        out_dir=tmp_path / "out",
    )
