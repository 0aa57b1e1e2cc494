"""
Watch-history schemas.

WatchEntry / WatchedEpisode double as the stored shape of
``users.watched_history`` items, so they serialise with the camelCase keys
existing documents already use (``model_dump(by_alias=True)``).
"""
from datetime import datetime, timezone

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _as_utc(value: datetime) -> datetime:
    # Older documents stored naive timestamps; they were always UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WatchedEpisode(CamelModel):
    """One watched episode inside a WatchEntry; unique per episode_id."""

    episode_id: int
    number: int | None = None
    name: str = ""
    season_number: int
    watched_at: datetime

    @field_validator("watched_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class WatchEntry(CamelModel):
    """Per-show record in a user's watch history."""

    show_id: str
    show_name: str
    poster_path: str | None = None
    last_watched_at: datetime
    episodes: list[WatchedEpisode] = Field(default_factory=list)

    @field_validator("last_watched_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class EpisodeInput(BaseModel):
    """An episode selected in the client. Accepts ``id`` or ``episodeId``."""

    episode_id: int = Field(validation_alias=AliasChoices("episodeId", "id", "episode_id"))
    number: int | None = None
    name: str = ""


class MarkWatchedRequest(CamelModel):
    """Payload for POST /users/mark-watched."""

    show_id: str = Field(..., min_length=1, max_length=64)
    show_name: str = Field(..., min_length=1, max_length=500)
    # Required key, but may be null when the show has no poster
    poster_path: str | None = Field(...)
    season_number: int = Field(..., ge=0)
    episodes: list[EpisodeInput] = Field(..., min_length=1)


class MarkWatchedResponse(CamelModel):
    """Returned after a successful mark-watched call."""

    success: bool = True
    message: str
    entry: WatchEntry
    history_size: int
