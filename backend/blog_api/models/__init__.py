"""ORM models. Importing this package registers every table on Base.metadata."""

from blog_api.models.category import Category
from blog_api.models.post import Comment, Post, post_categories
from blog_api.models.user import User

__all__ = ["Category", "Comment", "Post", "User", "post_categories"]
