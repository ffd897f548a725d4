from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

HOME_TOKEN = "{UID}"


class MembershipMode(str, Enum):
    GROUP = "group"  # one member query per retained group
    ENTITY = "entity"  # one group query per retained account


class CacheConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min_uid: int = Field(default=2000, ge=0)
    min_gid: int = Field(default=2000, ge=0)

    default_shell: str = "/bin/nologin"
    default_home: str = "/tmp/{UID}"
    shells_file: Path = Path("/etc/shells")

    out_dir: Path = Path("/etc")
    passwd_file: str = "passwd.cache"
    group_file: str = "group.cache"
    shadow_file: str = "shadow.cache"
    write_shadow: bool = True
    file_mode: int = 0o644

    indirects: bool = True
    membership_mode: MembershipMode = MembershipMode.GROUP
    workers: int = Field(default=1, ge=1)

    @field_validator("default_home")
    @classmethod
    def _home_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("default_home must not be empty")
        return value

    @field_validator("passwd_file", "group_file", "shadow_file")
    @classmethod
    def _plain_file_name(cls, value: str) -> str:
        if not value or "/" in value:
            raise ValueError(f"expected a bare file name, got {value!r}")
        return value

    def map_path(self, name: str) -> Path:
        return self.out_dir / name

    @property
    def passwd_path(self) -> Path:
        return self.map_path(self.passwd_file)

    @property
    def group_path(self) -> Path:
        return self.map_path(self.group_file)

    @property
    def shadow_path(self) -> Path:
        return self.map_path(self.shadow_file)
