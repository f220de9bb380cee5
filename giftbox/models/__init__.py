"""SQLAlchemy ORM models.

All models are imported here so that Alembic can discover them
via ``Base.metadata`` when generating migrations.
"""

from giftbox.models.child import ChildProfile  # noqa: F401
from giftbox.models.family_group import FamilyGroup  # noqa: F401
from giftbox.models.link_request import ChildLinkRequest  # noqa: F401
from giftbox.models.parent import ParentProfile  # noqa: F401
from giftbox.models.user import RefreshToken, User  # noqa: F401

__all__ = [
    "ChildLinkRequest",
    "ChildProfile",
    "FamilyGroup",
    "ParentProfile",
    "RefreshToken",
    "User",
]
