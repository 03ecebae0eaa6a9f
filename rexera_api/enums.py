"""
Canonical enums for the Rexera workflow domain.

Values match the database enum types and the values exchanged with n8n.
"""

from enum import Enum


class WorkflowType(str, Enum):
    """Supported business workflow types."""

    MUNI_LIEN_SEARCH = "MUNI_LIEN_SEARCH"
    HOA_ACQUISITION = "HOA_ACQUISITION"
    PAYOFF_REQUEST = "PAYOFF_REQUEST"


class WorkflowStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    AWAITING_REVIEW = "AWAITING_REVIEW"
    BLOCKED = "BLOCKED"
    COMPLETED = "COMPLETED"


class TaskStatus(str, Enum):
    """Lifecycle states of a task execution."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    AWAITING_REVIEW = "AWAITING_REVIEW"
    INTERRUPT = "INTERRUPT"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ExecutorType(str, Enum):
    AI = "AI"
    HIL = "HIL"


class SlaStatus(str, Enum):
    ON_TIME = "ON_TIME"
    AT_RISK = "AT_RISK"
    BREACHED = "BREACHED"


class PriorityLevel(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class InterruptType(str, Enum):
    MISSING_DOCUMENT = "MISSING_DOCUMENT"
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"
    CLIENT_CLARIFICATION = "CLIENT_CLARIFICATION"
    MANUAL_VERIFICATION = "MANUAL_VERIFICATION"


class NotificationType(str, Enum):
    """Kinds of in-app notifications delivered to HIL users."""

    WORKFLOW_UPDATE = "WORKFLOW_UPDATE"
    TASK_INTERRUPT = "TASK_INTERRUPT"
    HIL_MENTION = "HIL_MENTION"
    CLIENT_MESSAGE_RECEIVED = "CLIENT_MESSAGE_RECEIVED"
    COUNTERPARTY_MESSAGE_RECEIVED = "COUNTERPARTY_MESSAGE_RECEIVED"
    SLA_WARNING = "SLA_WARNING"
    AGENT_FAILURE = "AGENT_FAILURE"


class CounterpartyType(str, Enum):
    HOA = "hoa"
    LENDER = "lender"
    MUNICIPALITY = "municipality"
    UTILITY = "utility"
    TAX_AUTHORITY = "tax_authority"


class WorkflowCounterpartyStatus(str, Enum):
    PENDING = "PENDING"
    CONTACTED = "CONTACTED"
    RESPONDED = "RESPONDED"
    COMPLETED = "COMPLETED"


class CommunicationType(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    SMS = "sms"
    CLIENT_CHAT = "client_chat"


class Direction(str, Enum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"


class CommunicationStatus(str, Enum):
    """Delivery status. DRAFT is only used by client chat messages."""

    DRAFT = "DRAFT"
    SENT = "SENT"
    DELIVERED = "DELIVERED"
    READ = "READ"
    BOUNCED = "BOUNCED"
    FAILED = "FAILED"


class ExternalPlatformType(str, Enum):
    QUALIA = "qualia"
    GRIDBASE = "gridbase"
    SALESFORCE = "salesforce"
    CUSTOM = "custom"


class DocumentType(str, Enum):
    WORKING = "WORKING"
    DELIVERABLE = "DELIVERABLE"


class DocumentStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class UserType(str, Enum):
    CLIENT_USER = "client_user"
    HIL_USER = "hil_user"


class UserRole(str, Enum):
    HIL = "HIL"
    HIL_ADMIN = "HIL_ADMIN"
    REQUESTOR = "REQUESTOR"
    CLIENT_ADMIN = "CLIENT_ADMIN"


class ActorType(str, Enum):
    """Who performed an audited action."""

    HUMAN = "human"
    AGENT = "agent"
    SYSTEM = "system"


class AuditAction(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    EXECUTE = "execute"
    APPROVE = "approve"
    REJECT = "reject"
    LOGIN = "login"
    LOGOUT = "logout"


class AuditEventType(str, Enum):
    WORKFLOW_MANAGEMENT = "workflow_management"
    TASK_EXECUTION = "task_execution"
    TASK_INTERVENTION = "task_intervention"
    SYSTEM_OPERATION = "system_operation"
    USER_AUTHENTICATION = "user_authentication"
    COMMUNICATION = "communication"
    DOCUMENT_MANAGEMENT = "document_management"
    COUNTERPARTY_MANAGEMENT = "counterparty_management"
    NOTIFICATION = "notification"


class N8nEventType(str, Enum):
    """Event discriminators sent by n8n webhooks."""

    WORKFLOW_COMPLETED = "workflow_completed"
    WORKFLOW_FAILED = "workflow_failed"
    TASK_COMPLETED = "task_completed"
    TASK_FAILED = "task_failed"
    AGENT_TASK_COMPLETED = "agent_task_completed"
    AGENT_TASK_FAILED = "agent_task_failed"
    ERROR_OCCURRED = "error_occurred"


class AgentType(str, Enum):
    NINA = "nina"
    MIA = "mia"
    FLORIAN = "florian"
    REX = "rex"
    IRIS = "iris"
    RIA = "ria"
    KOSHA = "kosha"
    CASSY = "cassy"
    MAX = "max"
    COREY = "corey"
