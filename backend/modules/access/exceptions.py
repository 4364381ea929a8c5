"""
Access module exceptions.

The evaluator itself never raises; these cover lookups of the content
being evaluated.
"""

from shared.exceptions import NotFoundError


class PostNotFoundError(NotFoundError):
    """Raised when a post does not exist."""

    def __init__(self, post_id: str):
        super().__init__(
            f"Post not found: {post_id}",
            code="post-not-found",
            details={"post_id": post_id},
        )
