"""Request schemas for communications."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, conint, constr

from ..enums import CommunicationStatus, CommunicationType, Direction, ExternalPlatformType
from .common import EmailStr, RexeraModel, UrlStr, UUIDStr

COMMUNICATION_SORT_FIELDS = ("created_at", "updated_at", "subject", "status")


class Attachment(BaseModel):
    filename: str
    content_type: str
    size: int
    url: Optional[UrlStr] = None


class EmailMetadataCreate(RexeraModel):
    message_id: Optional[str] = None
    in_reply_to: Optional[str] = None
    email_references: List[str] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    headers: Dict[str, Any] = Field(default_factory=dict)


class PhoneMetadataCreate(RexeraModel):
    phone_number: str
    duration_seconds: Optional[conint(gt=0)] = None
    call_recording_url: Optional[UrlStr] = None
    transcript: Optional[str] = None


class ClientChatMetadataCreate(RexeraModel):
    external_platform_type: Optional[ExternalPlatformType] = None
    external_platform_id: Optional[str] = None
    cc_recipients: List[EmailStr] = Field(default_factory=list)
    bcc_recipients: List[EmailStr] = Field(default_factory=list)


class CommunicationCreate(RexeraModel):
    workflow_id: Optional[UUIDStr] = None
    thread_id: Optional[UUIDStr] = None
    recipient_email: Optional[EmailStr] = None
    subject: Optional[constr(min_length=1, max_length=500)] = None
    body: constr(min_length=1)
    communication_type: CommunicationType
    direction: Direction
    metadata: Dict[str, Any] = Field(default_factory=dict)
    email_metadata: Optional[EmailMetadataCreate] = None
    phone_metadata: Optional[PhoneMetadataCreate] = None
    client_chat_metadata: Optional[ClientChatMetadataCreate] = None


class EmailMetadataUpdate(RexeraModel):
    attachments: Optional[List[Any]] = None
    headers: Optional[Dict[str, Any]] = None


class PhoneMetadataUpdate(RexeraModel):
    duration_seconds: Optional[conint(gt=0)] = None
    call_recording_url: Optional[UrlStr] = None
    transcript: Optional[str] = None


class ClientChatMetadataUpdate(RexeraModel):
    external_platform_type: Optional[ExternalPlatformType] = None
    external_platform_id: Optional[str] = None
    cc_recipients: Optional[List[EmailStr]] = None
    bcc_recipients: Optional[List[EmailStr]] = None


class CommunicationUpdate(RexeraModel):
    status: Optional[CommunicationStatus] = None
    metadata: Optional[Dict[str, Any]] = None
    email_metadata: Optional[EmailMetadataUpdate] = None
    phone_metadata: Optional[PhoneMetadataUpdate] = None
    client_chat_metadata: Optional[ClientChatMetadataUpdate] = None


class CommunicationReply(RexeraModel):
    recipient_email: EmailStr
    body: constr(min_length=1)
    include_team: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CommunicationForward(RexeraModel):
    recipient_email: EmailStr
    subject: constr(min_length=1, max_length=500)
    body: constr(min_length=1)
    include_team: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)
