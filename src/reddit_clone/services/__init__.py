"""Business logic: voting, the post feed, password resets and email."""

from reddit_clone.services.errors import InvalidCursorError, MailError, ServiceError
from reddit_clone.services.feed import FeedCursor, FeedPage, decode_cursor, encode_cursor, list_posts
from reddit_clone.services.mailer import Mailer, get_mailer
from reddit_clone.services.votes import cast_vote, normalize_vote_value

__all__ = [
    "ServiceError",
    "InvalidCursorError",
    "MailError",
    "FeedCursor",
    "FeedPage",
    "decode_cursor",
    "encode_cursor",
    "list_posts",
    "Mailer",
    "get_mailer",
    "cast_vote",
    "normalize_vote_value",
]
