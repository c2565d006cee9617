"""
Database Models

All entity tables include tenant_id for multi-tenant isolation.
Junction tables inherit isolation from the two rows they connect.
"""
from roadmapper.models.tenant import Tenant
from roadmapper.models.user import User, UserRole
from roadmapper.models.goal import Goal
from roadmapper.models.initiative import Initiative
from roadmapper.models.idea import Idea
from roadmapper.models.feedback import Feedback
from roadmapper.models.customer import Customer
from roadmapper.models.comment import Comment
from roadmapper.models.associations import ideas_customers, feedback_customers, feedback_initiatives

__all__ = [
    "Tenant",
    "User",
    "UserRole",
    "Goal",
    "Initiative",
    "Idea",
    "Feedback",
    "Customer",
    "Comment",
    "ideas_customers",
    "feedback_customers",
    "feedback_initiatives",
]
