"""
Entity Registry

One place that says, per table: which columns clients may sort, filter and
search on, and which validator guards writes. Stores for a request are
bound from these definitions.
"""
from dataclasses import dataclass
from typing import Optional

from roadmapper.config import get_settings
from roadmapper.core.validation import RecordValidator, SchemaValidator
from roadmapper.data.associations import AssociationStore, JunctionSpec
from roadmapper.data.query import Membership, TableSpec
from roadmapper.data.records import RecordStore
from roadmapper.database import Executor
from roadmapper.models import Comment, Customer, Feedback, Goal, Idea, Initiative, Tenant, User
from roadmapper.schemas.auth import UserChanges, UserRecord
from roadmapper.schemas.comment import CommentRecord, CommentUpdate
from roadmapper.schemas.customer import CustomerRecord, CustomerUpdate
from roadmapper.schemas.feedback import FeedbackChanges, FeedbackRecord
from roadmapper.schemas.goal import GoalRecord, GoalUpdate
from roadmapper.schemas.idea import IdeaChanges, IdeaRecord
from roadmapper.schemas.initiative import InitiativeRecord, InitiativeUpdate
from roadmapper.schemas.tenant import TenantPlanUpdate, TenantRecord

TIMESTAMPS = ("created_at", "updated_at")

IDEA_CUSTOMERS = JunctionSpec("ideas_customers", "idea_id", "customer_id")
FEEDBACK_CUSTOMERS = JunctionSpec("feedback_customers", "feedback_id", "customer_id")
FEEDBACK_INITIATIVES = JunctionSpec("feedback_initiatives", "feedback_id", "initiative_id")


def _membership(junction: JunctionSpec) -> Membership:
    return Membership(junction.table, junction.owner_column, junction.related_column)


@dataclass(frozen=True)
class EntityDefinition:
    name: str
    spec: TableSpec
    validator: Optional[RecordValidator] = None


TENANTS = EntityDefinition(
    "tenant",
    TableSpec.from_model(Tenant, sortable=TIMESTAMPS + ("domain_name",)),
    SchemaValidator(TenantRecord, TenantPlanUpdate),
)

USERS = EntityDefinition(
    "user",
    TableSpec.from_model(User, sortable=TIMESTAMPS + ("name", "email"), filterable=("role",)),
    SchemaValidator(UserRecord, UserChanges),
)

GOALS = EntityDefinition(
    "goal",
    TableSpec.from_model(
        Goal,
        sortable=TIMESTAMPS + ("title", "status", "target_date"),
        filterable=("status",),
        searchable=("title", "description"),
    ),
    SchemaValidator(GoalRecord, GoalUpdate),
)

INITIATIVES = EntityDefinition(
    "initiative",
    TableSpec.from_model(
        Initiative,
        sortable=TIMESTAMPS + ("title", "status", "priority"),
        filterable=("status", "priority", "goal_id"),
        searchable=("title", "description"),
    ),
    SchemaValidator(InitiativeRecord, InitiativeUpdate),
)

IDEAS = EntityDefinition(
    "idea",
    TableSpec.from_model(
        Idea,
        sortable=TIMESTAMPS + ("title", "status", "priority", "effort"),
        filterable=("status", "priority", "effort", "initiative_id", "customer_id"),
        searchable=("title", "description"),
        memberships={"customer_id": _membership(IDEA_CUSTOMERS)},
    ),
    SchemaValidator(IdeaRecord, IdeaChanges),
)

FEEDBACK = EntityDefinition(
    "feedback",
    TableSpec.from_model(
        Feedback,
        sortable=TIMESTAMPS + ("title", "sentiment"),
        filterable=("sentiment", "customer_id", "initiative_id"),
        searchable=("title", "description"),
        memberships={
            "customer_id": _membership(FEEDBACK_CUSTOMERS),
            "initiative_id": _membership(FEEDBACK_INITIATIVES),
        },
    ),
    SchemaValidator(FeedbackRecord, FeedbackChanges),
)

CUSTOMERS = EntityDefinition(
    "customer",
    TableSpec.from_model(
        Customer,
        sortable=TIMESTAMPS + ("name", "status", "revenue"),
        filterable=("status",),
        searchable=("name",),
        default_sort="name",
        default_order="asc",
    ),
    SchemaValidator(CustomerRecord, CustomerUpdate),
)

COMMENTS = EntityDefinition(
    "comment",
    TableSpec.from_model(
        Comment,
        sortable=TIMESTAMPS,
        filterable=("entity_type", "entity_id", "user_id"),
        searchable=("content",),
        default_order="asc",
    ),
    SchemaValidator(CommentRecord, CommentUpdate),
)


@dataclass(frozen=True)
class Stores:
    """Every store a request handler may touch, bound to one executor."""
    tenants: RecordStore
    users: RecordStore
    goals: RecordStore
    initiatives: RecordStore
    ideas: RecordStore
    feedback: RecordStore
    customers: RecordStore
    comments: RecordStore
    idea_customers: AssociationStore
    feedback_customers: AssociationStore
    feedback_initiatives: AssociationStore

    @classmethod
    def bind(cls, executor: Executor) -> "Stores":
        settings = get_settings()

        def records(definition: EntityDefinition) -> RecordStore:
            return RecordStore(
                executor,
                definition.spec,
                definition.validator,
                default_page_size=settings.DEFAULT_PAGE_SIZE,
                max_page_size=settings.MAX_PAGE_SIZE,
                max_offset=settings.MAX_OFFSET,
            )

        return cls(
            tenants=records(TENANTS),
            users=records(USERS),
            goals=records(GOALS),
            initiatives=records(INITIATIVES),
            ideas=records(IDEAS),
            feedback=records(FEEDBACK),
            customers=records(CUSTOMERS),
            comments=records(COMMENTS),
            idea_customers=AssociationStore(executor, IDEA_CUSTOMERS),
            feedback_customers=AssociationStore(executor, FEEDBACK_CUSTOMERS),
            feedback_initiatives=AssociationStore(executor, FEEDBACK_INITIATIVES),
        )
