"""
Itinerary Time Engine — Pydantic models (mirror the builder page's TypeScript interfaces).

Stop / Itinerary carry the schedule; the command models are the closed set
of edits the builder page can send, discriminated on `type`.
"""

from typing import List, Optional, Literal, Union, Annotated

from pydantic import BaseModel, Field, field_validator, model_validator

from engine.time_math import normalize_time

DEFAULT_DURATION_MINUTES = 75
DEFAULT_DRIVE_TIME_MINUTES = 15
LUNCH_DURATION_MINUTES = 90
MIN_DURATION_MINUTES = 15


# ─── Schedule ─────────────────────────────────────────────────────────────────

class Winery(BaseModel):
    id: int
    name: Optional[str] = None
    address: Optional[str] = None
    averageVisitDuration: Optional[int] = Field(default=None, ge=0)


class Stop(BaseModel):
    wineryId: int
    wineryName: Optional[str] = None
    address: Optional[str] = None
    order: int = Field(ge=1)
    arrivalTime: str
    departureTime: str
    durationMinutes: int = Field(default=DEFAULT_DURATION_MINUTES, ge=0)
    driveTimeToNextMinutes: int = Field(default=DEFAULT_DRIVE_TIME_MINUTES, ge=0)
    isLunchStop: bool = False
    cascade: bool = True
    reservationConfirmed: bool = False
    specialNotes: Optional[str] = None

    @field_validator("arrivalTime", "departureTime")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_time(v)


class Itinerary(BaseModel):
    pickupTime: str = "10:00"
    pickupLocation: str = ""
    dropoffLocation: str = ""
    pickupDriveTimeMinutes: int = Field(default=0, ge=0)
    dropoffDriveTimeMinutes: int = Field(default=0, ge=0)
    stops: List[Stop] = Field(default_factory=list)

    @field_validator("pickupTime")
    @classmethod
    def _normalize_pickup(cls, v: str) -> str:
        return normalize_time(v)

    @model_validator(mode="after")
    def _single_lunch_stop(self):
        lunch = [s.order for s in self.stops if s.isLunchStop]
        if len(lunch) > 1:
            raise ValueError(f"At most one lunch stop allowed, got stops {lunch}")
        return self


class ItinerarySummary(BaseModel):
    stopCount: int
    totalDriveTimeMinutes: int
    totalVisitMinutes: int
    estimatedDropoffTime: str
    lunchStopIndex: Optional[int] = None


# ─── Edit Commands ────────────────────────────────────────────────────────────

class SetPickupTime(BaseModel):
    type: Literal["SET_PICKUP_TIME"] = "SET_PICKUP_TIME"
    pickupTime: str

    @field_validator("pickupTime")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_time(v)


class SetArrival(BaseModel):
    type: Literal["SET_ARRIVAL"] = "SET_ARRIVAL"
    index: int = Field(ge=0)
    arrivalTime: str

    @field_validator("arrivalTime")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_time(v)


class SetDeparture(BaseModel):
    type: Literal["SET_DEPARTURE"] = "SET_DEPARTURE"
    index: int = Field(ge=0)
    departureTime: str

    @field_validator("departureTime")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_time(v)


class SetDuration(BaseModel):
    type: Literal["SET_DURATION"] = "SET_DURATION"
    index: int = Field(ge=0)
    minutes: int


class NudgeDuration(BaseModel):
    type: Literal["NUDGE_DURATION"] = "NUDGE_DURATION"
    index: int = Field(ge=0)
    delta: int


class SetDriveTime(BaseModel):
    type: Literal["SET_DRIVE_TIME"] = "SET_DRIVE_TIME"
    index: int = Field(ge=0)
    minutes: int


class NudgeDriveTime(BaseModel):
    type: Literal["NUDGE_DRIVE_TIME"] = "NUDGE_DRIVE_TIME"
    index: int = Field(ge=0)
    delta: int


class ToggleLunch(BaseModel):
    type: Literal["TOGGLE_LUNCH"] = "TOGGLE_LUNCH"
    index: int = Field(ge=0)


class ToggleCascade(BaseModel):
    type: Literal["TOGGLE_CASCADE"] = "TOGGLE_CASCADE"
    index: int = Field(ge=0)


class AddStop(BaseModel):
    type: Literal["ADD_STOP"] = "ADD_STOP"
    winery: Winery


class RemoveStop(BaseModel):
    type: Literal["REMOVE_STOP"] = "REMOVE_STOP"
    index: int = Field(ge=0)


class ReorderStop(BaseModel):
    type: Literal["REORDER_STOP"] = "REORDER_STOP"
    fromIndex: int = Field(ge=0)
    toIndex: int = Field(ge=0)


class Recompute(BaseModel):
    type: Literal["RECOMPUTE"] = "RECOMPUTE"


EditCommand = Annotated[
    Union[
        SetPickupTime,
        SetArrival,
        SetDeparture,
        SetDuration,
        NudgeDuration,
        SetDriveTime,
        NudgeDriveTime,
        ToggleLunch,
        ToggleCascade,
        AddStop,
        RemoveStop,
        ReorderStop,
        Recompute,
    ],
    Field(discriminator="type"),
]
