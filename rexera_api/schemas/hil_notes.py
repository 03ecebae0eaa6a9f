"""Request schemas for HIL notes."""

from typing import List, Optional

from pydantic import Field, constr

from ..enums import PriorityLevel
from .common import RexeraModel, UUIDStr


class HilNoteCreate(RexeraModel):
    workflow_id: UUIDStr
    content: constr(min_length=1)
    priority: PriorityLevel = PriorityLevel.NORMAL
    mentions: List[UUIDStr] = Field(default_factory=list)
    parent_note_id: Optional[UUIDStr] = None


class HilNoteUpdate(RexeraModel):
    content: Optional[constr(min_length=1)] = None
    priority: Optional[PriorityLevel] = None
    is_resolved: Optional[bool] = None
    mentions: Optional[List[UUIDStr]] = None


class HilNoteReply(RexeraModel):
    content: constr(min_length=1)
    mentions: List[UUIDStr] = Field(default_factory=list)
