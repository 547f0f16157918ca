"""Driver interface following Black Box Design principles."""
from typing import Any, Dict, Optional, Protocol, Union

from ..session import BucketKind, Session, TTLDirective

TTLArgument = Union[int, TTLDirective, None]


class SessionDriver(Protocol):
    """
    Session lifecycle shared by every backend.

    Absent results (None/False) mean "no such session" or "token rejected".
    Backend failures are raised, never returned.
    """

    @property
    def raw_handle(self) -> Any:
        """Underlying client (redis.asyncio.Redis or httpx.AsyncClient)."""
        ...

    async def create_session(
        self,
        ttl: int,
        ip_address: Optional[str] = None,
        bucket_global: Any = None,
        bucket_local: Any = None,
        user: Any = None,
    ) -> Session:
        ...

    async def get_session(
        self, token: str, update_expiration: bool = True, ttl: TTLArgument = None
    ) -> Optional[Session]:
        ...

    async def get_all_sessions(
        self, count_only: bool = False, update_expiration: bool = False, ttl: TTLArgument = None
    ) -> Union[int, Dict[str, Session]]:
        ...

    async def set_session(self, session: Session) -> bool:
        ...

    async def set_bucket(
        self,
        token: str,
        kind: BucketKind,
        data: Any,
        update_expiration: bool = True,
        ttl: TTLArgument = None,
    ) -> Optional[Session]:
        ...

    async def touch_session(self, token: str, ttl: TTLArgument = None) -> Optional[Session]:
        ...

    async def delete_session(self, token: str) -> bool:
        ...

    async def aclose(self) -> None:
        ...
