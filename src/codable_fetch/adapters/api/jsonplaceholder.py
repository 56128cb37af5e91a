"""
JSONPlaceholder client and verification adapter.

Reference: https://jsonplaceholder.typicode.com/guide/
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ...config import DEFAULT_BASE_URL
from ...fetch import AnyPublisher, FetchSession, shared_session
from ...models import Post, User
from ..base import DataSourceAdapter, VerificationResult
from .base import APIError, BaseAPIClient

_VERIFICATION_USER_ID = 1


class JSONPlaceholderClient(BaseAPIClient):
    """Typed access to the ``/users`` and ``/posts`` resources."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[FetchSession] = None,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(base_url=base_url, session=session or shared_session(), timeout=timeout)

    def get_user(self, user_id: int) -> User:
        return self._get(f"/users/{user_id}", User)

    def list_users(self) -> list[User]:
        return self._get("/users", list[User])

    def get_post(self, post_id: int) -> Post:
        return self._get(f"/posts/{post_id}", Post)

    def list_posts(self, *, user_id: Optional[int] = None) -> list[Post]:
        return self._get("/posts", list[Post], params={"userId": user_id})

    def posts_publisher(self, *, user_id: Optional[int] = None) -> AnyPublisher[list[Post]]:
        """Pipeline variant of :meth:`list_posts`."""

        return self._publisher("/posts", list[Post], params={"userId": user_id})


@dataclass(slots=True)
class JSONPlaceholderAdapter(DataSourceAdapter):
    """Checks that the API is reachable and still returns decodable users."""

    source_id: str = "jsonplaceholder"
    client: JSONPlaceholderClient = field(default_factory=JSONPlaceholderClient)

    def verify(self) -> VerificationResult:
        try:
            user = self.client.get_user(_VERIFICATION_USER_ID)
        except APIError as exc:
            return VerificationResult(
                success=False,
                message=f"JSONPlaceholder verification failed: {exc}",
                details={"reason": exc.kind},
            )
        return VerificationResult(
            success=True,
            message="JSONPlaceholder API reachable.",
            details={"user_id": user.id, "name": user.name, "city": user.address.city},
        )
