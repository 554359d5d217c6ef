from datetime import datetime
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # stored documents and request bodies use camelCase keys
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_doc(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# --- stored records ---

class PoolSettings(CamelModel):
    current_week: int = Field(1, ge=1)
    auto_reveal: bool = True
    reveal_dow: Optional[int] = Field(None, ge=0, le=6)  # 0=Sunday
    reveal_hour: Optional[int] = Field(None, ge=0, le=23)
    reveal_minute: Optional[int] = Field(None, ge=0, le=59)

    @property
    def has_schedule(self) -> bool:
        return None not in (self.reveal_dow, self.reveal_hour, self.reveal_minute)


class WeekIndexEntry(CamelModel):
    week: int
    tournament: str
    status: Literal["active", "revealed"] = "active"


class WeekMeta(CamelModel):
    week: int
    tournament: str
    locked: bool = False
    revealed: bool = False
    revealed_at: Optional[datetime] = None
    reveal_after: Optional[datetime] = None
    created_at: datetime


class PickEntry(CamelModel):
    pick: str
    # older documents stored the timestamp under "ts"
    submitted_at: datetime = Field(
        validation_alias=AliasChoices("submittedAt", "submitted_at", "ts"),
    )


# --- request bodies ---

class SubmitIn(CamelModel):
    name: Optional[str] = None
    golfer_pick: Optional[str] = None


class AdminActionIn(CamelModel):
    action: Optional[str] = None
    week_number: Optional[int] = None
    tournament: Optional[str] = None
    enabled: Optional[bool] = None
    reveal_dow: Optional[int] = Field(None, ge=0, le=6)
    reveal_hour: Optional[int] = Field(None, ge=0, le=23)
    reveal_minute: Optional[int] = Field(None, ge=0, le=59)
