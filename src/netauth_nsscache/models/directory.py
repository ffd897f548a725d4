from pydantic import BaseModel, ConfigDict, Field


class Group(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    number: int
    # Snapshot-only fields; remote sources leave them empty.
    members: list[str] = Field(default_factory=list)
    includes: list[str] = Field(default_factory=list)


class Account(BaseModel):
    """A directory entity as it will appear in the passwd map.

    ``shell`` and ``home`` are rewritten in place by the policy filter when
    the directory value is unusable on this host.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    number: int
    primary_group: str | None = None
    gecos: str = ""
    home: str = ""
    shell: str = ""
