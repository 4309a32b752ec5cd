from enum import Enum


class SortOrder(str, Enum):
    """
    Sort direction for list queries.

    Values:
        ASC: Ascending order (A-Z, 0-9, oldest first)
        DESC: Descending order (Z-A, 9-0, newest first)
    """

    ASC = "asc"
    DESC = "desc"


class UserSortField(str, Enum):
    """
    Allowed sort fields for user list queries.

    Whitelists fields that can be used for sorting to prevent SQL injection.
    Values must match SQLAlchemy model attribute names exactly.
    """

    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    EMAIL = "email"
    USERNAME = "username"
    LAST_LOGIN = "last_login"


class MessageSortField(str, Enum):
    """
    Allowed sort fields for message list queries.

    Whitelists fields that can be used for sorting to prevent SQL injection.
    Values must match SQLAlchemy model attribute names exactly.
    """

    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    TITLE = "title"
    VIEW_COUNT = "view_count"
    LIKE_COUNT = "like_count"
    PUBLISHED_AT = "published_at"
