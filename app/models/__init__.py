from app.models.base import CreatedAtModel, IDModel, TimestampModel
from app.models.user import User
from app.models.refresh_token import RefreshToken
from app.models.product import Product, ProductImage
from app.models.favorite import Favorite
from app.models.comment import Comment
from app.models.notification import Notification
from app.models.search_history import SearchHistory

__all__ = [
    'CreatedAtModel',
    'IDModel',
    'TimestampModel',
    'User',
    'RefreshToken',
    'Product',
    'ProductImage',
    'Favorite',
    'Comment',
    'Notification',
    'SearchHistory',
]
