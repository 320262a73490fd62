from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ResultRecord(BaseModel):
    """One participant's outcome in one program."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    position: str = ""
    chest_no: str = ""
    candidate_name: str = ""
    team_code: str = ""
    grade: str = ""
    status: str = ""
    program_code: str = ""
    program_name: str = ""
    program_section: str = ""

    @property
    def identity(self) -> tuple[str, str, str]:
        return (self.program_code, self.chest_no, self.candidate_name)


class ProgramInfo(BaseModel):
    code: str
    name: str = ""
    section: str = ""
    source_status: str = ""


class ProgramStatus(BaseModel):
    program_code: str
    is_published: bool
    updated_at: Optional[datetime] = None


class ProgramView(BaseModel):
    code: str
    name: str = ""
    section: str = ""
    source_status: str = ""
    is_published: bool = False


class ProgramGroup(BaseModel):
    program_code: str
    program_name: str = ""
    program_section: str = ""
    latest_index: int = -1
    entries: List[ResultRecord] = Field(default_factory=list)


class CycleStatus(BaseModel):
    ok: Optional[bool] = Field(default=None, examples=[None])
    error: Optional[str] = None
    error_kind: Optional[str] = None
    record_count: int = 0
    finished_at: Optional[datetime] = None


class RefreshResponse(BaseModel):
    cycle: CycleStatus
    auto_published: List[str] = Field(default_factory=list)


class ResultStats(BaseModel):
    programs: int = 0
    entries: int = 0
    teams: int = 0


class ResultsResponse(BaseModel):
    stats: ResultStats
    groups: List[ProgramGroup] = Field(default_factory=list)
    cycle: CycleStatus


class WallResponse(BaseModel):
    groups: List[ProgramGroup] = Field(default_factory=list)
    ticker: List[str] = Field(default_factory=list)


class PublicationRequest(BaseModel):
    is_published: bool


class Certificate(BaseModel):
    name: str
    team: str
    program_name: str
    position: str = ""
    grade: str = ""


class HealthResponse(BaseModel):
    ok: bool = True
