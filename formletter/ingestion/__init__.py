"""Comment input models and readers."""

from .files import read_comments_file
from .models import Comment

__all__ = ["Comment", "read_comments_file"]
