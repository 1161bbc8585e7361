from enum import Enum
import sqlalchemy as sa
from sqlalchemy import Column


class NotificationType(str, Enum):
    COMMENT = 'comment'
    REPLY = 'reply'
    WISHLIST = 'wishlist'
    PROFILE_VISIT = 'profile_visit'
    SYSTEM = 'system'


class ProductCondition(str, Enum):
    NEW = 'new'
    LIKE_NEW = 'like_new'
    GOOD = 'good'
    FAIR = 'fair'
    USED = 'used'


def enum_column(enum_cls: type[Enum], name: str, index: bool = False) -> Column:
    return Column(
        sa.Enum(
            enum_cls,
            values_callable=lambda enum: [item.value for item in enum],
            name=name,
        ),
        nullable=False,
        index=index,
    )
