from __future__ import annotations
from datetime import datetime
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class LineEvent(BaseModel):
    """One classified device line. ``line`` is the cleaned text."""
    model_config = ConfigDict(frozen=True)

    line: str

class SensorSample(LineEvent):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    temperature: Optional[float] = Field(None, alias="Temperature", description="Degrees Celsius")
    pulse: Optional[int] = Field(None, alias="Pulse", description="Beats per minute")
    gas: Optional[int] = Field(None, alias="Gas")
    bt_connected: Optional[int] = Field(None, alias="BT connected", description="Bluetooth link flag 0/1")

    def payload(self) -> dict:
        """Mapping forwarded to live subscribers, only the fields that were read."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"line"})

class SessionStart(LineEvent):
    name: str

class SessionEnd(LineEvent):
    duration: Optional[str] = None

class Unrecognized(LineEvent):
    pass

Event = Union[SensorSample, SessionStart, SessionEnd, Unrecognized]


class SessionRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")
    duration: Optional[str] = Field(None, description="As reported by the device, not reparsed")

class ActiveSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    started_at: datetime
