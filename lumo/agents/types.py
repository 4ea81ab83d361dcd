"""
Pipeline data model - scopes, guardrail decisions, evidence, proposals and results.

Models use snake_case attributes and serialise to camelCase at the wire
boundary (model_dump(by_alias=True)). Both spellings are accepted on input.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel


PROJECT_INTENTS: Tuple[str, ...] = ("status", "plan", "task_query", "meeting_prep", "general_q")
GLOBAL_INTENTS: Tuple[str, ...] = ("daily_digest", "task_query", "plan", "status", "general_q")

DEFAULT_INTENT = "general_q"


class WireModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# ============================================================================
# Scope
# ============================================================================

class Scope(WireModel):
    """
    What a conversation is about: one project, or everything a user owns.

    The scope decides the intent enum, the toolbox (reminders are global
    only) and which facts retrieval reads.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    kind: Literal["project", "global"]
    user_id: str
    project_id: Optional[str] = None
    project_slug: Optional[str] = None
    project_description: Optional[str] = None

    @classmethod
    def for_project(
        cls,
        user_id: str,
        project_id: str,
        project_slug: Optional[str] = None,
        project_description: Optional[str] = None,
    ) -> "Scope":
        return cls(
            kind="project",
            user_id=user_id,
            project_id=project_id,
            project_slug=project_slug or project_id,
            project_description=project_description,
        )

    @classmethod
    def for_user(cls, user_id: str) -> "Scope":
        return cls(kind="global", user_id=user_id)

    @property
    def is_global(self) -> bool:
        return self.kind == "global"

    @property
    def intents(self) -> Tuple[str, ...]:
        return GLOBAL_INTENTS if self.is_global else PROJECT_INTENTS

    @property
    def allows_reminders(self) -> bool:
        return self.is_global

    @property
    def label(self) -> str:
        """Short human label used in logs and prompts"""
        if self.is_global:
            return f"global:{self.user_id}"
        return f"project:{self.project_slug}"


class ConversationTurn(WireModel):
    """One prior message of the conversation"""
    role: Literal["user", "assistant"]
    content: str


# ============================================================================
# Guardrail decisions
# ============================================================================

class InputGuardrailDecision(WireModel):
    """Verdict of the input guardrail for the latest message"""
    tripwire: bool = False
    message: str = "OK"
    rewritten: Optional[str] = None
    intent: str = DEFAULT_INTENT


class OutputGuardrailDecision(WireModel):
    """Verdict of the output guardrail for a draft reply"""
    tripwire: bool = False
    message: Optional[str] = None
    patched: Optional[str] = None


class GuardrailReport(WireModel):
    input: InputGuardrailDecision
    output: Optional[OutputGuardrailDecision] = None


# ============================================================================
# Evidence
# ============================================================================

class Snippet(WireModel):
    item_id: str
    kind: str
    title: Optional[str] = None
    text: str
    distance: float
    project_id: Optional[str] = None


class Reference(WireModel):
    item_id: str
    confidence: float
    project_id: Optional[str] = None


class TaskSummary(WireModel):
    id: str
    title: str
    status: str
    due_date: Optional[str] = None
    project_id: Optional[str] = None
    project_slug: Optional[str] = None


class MeetingSummary(WireModel):
    id: str
    title: Optional[str] = None
    starts_at: Optional[str] = None
    ends_at: Optional[str] = None
    project_id: Optional[str] = None


class RiskSummary(WireModel):
    project_id: str
    project_slug: Optional[str] = None
    score: float
    label: Optional[str] = None
    computed_at: Optional[str] = None


class RetrievalBundle(WireModel):
    """Evidence gathered for one retrieval call"""
    snippets: List[Snippet] = Field(default_factory=list)
    references: List[Reference] = Field(default_factory=list)
    tasks: List[TaskSummary] = Field(default_factory=list)
    meetings: List[MeetingSummary] = Field(default_factory=list)
    risks: List[RiskSummary] = Field(default_factory=list)


# ============================================================================
# Proposals (validated tool arguments, never persisted by the pipeline)
# ============================================================================

class ProposalModel(WireModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


class ProposedTask(ProposalModel):
    """Task the agent suggests creating"""
    title: str = Field(min_length=3, max_length=200, description="Short imperative task title")
    status: Literal["TODO"] = "TODO"
    due_date: Optional[str] = Field(default=None, min_length=4, max_length=64, description="Due date, ISO-8601 preferred")
    project_id: Optional[str] = Field(default=None, min_length=6, max_length=30, description="Project the task belongs to")
    note: Optional[str] = Field(default=None, max_length=500, description="Optional context for the task")


Tag = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=32)]


class ProposedNote(ProposalModel):
    """Note the agent suggests saving"""
    body: str = Field(min_length=10, max_length=4000, description="Markdown body of the note")
    title: Optional[str] = Field(default=None, max_length=120)
    project_id: Optional[str] = Field(default=None, min_length=6, max_length=30, description="Project the note belongs to")
    tags: Optional[List[Tag]] = Field(default=None, max_length=10)


class ProposedReminder(ProposalModel):
    """Reminder the agent suggests scheduling"""
    content: str = Field(min_length=3, max_length=240, description="What to be reminded about")
    due_at: str = Field(min_length=4, max_length=64, description="When to remind, ISO-8601 preferred")


class ProposedAction(WireModel):
    """Flattened view of a proposal for the confirmation UI"""
    kind: Literal["create_task", "add_note", "set_reminder"]
    args: Dict[str, Any]


# ============================================================================
# Results
# ============================================================================

class ConversationResult(WireModel):
    """Everything one conversation turn produced"""
    reply: str
    intent: str = DEFAULT_INTENT
    references: List[Reference] = Field(default_factory=list)
    proposed_tasks: List[ProposedTask] = Field(default_factory=list)
    proposed_notes: List[ProposedNote] = Field(default_factory=list)
    proposed_reminders: List[ProposedReminder] = Field(default_factory=list)
    actions: List[ProposedAction] = Field(default_factory=list)
    guardrails: GuardrailReport
    retrieval: Optional[RetrievalBundle] = None


class DigestMeeting(WireModel):
    id: Optional[str] = None
    title: Optional[str] = None
    time: Optional[str] = None
    project_id: Optional[str] = None


class DigestTask(WireModel):
    id: Optional[str] = None
    title: str
    status: str
    due_date: Optional[str] = None
    project: Optional[str] = None
    project_id: Optional[str] = None


class DigestRisk(WireModel):
    project_id: str
    project: Optional[str] = None
    score: float
    label: Optional[str] = None


class DigestSections(WireModel):
    overview: List[str] = Field(default_factory=list)
    priorities: List[str] = Field(default_factory=list)
    meetings: List[DigestMeeting] = Field(default_factory=list)
    tasks: List[DigestTask] = Field(default_factory=list)
    risks: List[DigestRisk] = Field(default_factory=list)


class DigestPayload(WireModel):
    """Typed daily digest extracted from a conversation reply"""
    date: str
    markdown: str
    intent: str
    sections: DigestSections = Field(default_factory=DigestSections)
    actions: List[ProposedAction] = Field(default_factory=list)
    references: List[Reference] = Field(default_factory=list)
    followups: List[str] = Field(default_factory=list)


class DigestResult(WireModel):
    payload: DigestPayload
    conversation: ConversationResult
    tail: Optional[Dict[str, Any]] = None
