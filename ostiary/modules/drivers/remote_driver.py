"""
Remote-service session driver.

Delegates token issuance, validation and storage to a remote session
authority over JSON/HTTP. Locally it only encodes requests, decodes and
validates responses and maps HTTP failures to the error taxonomy. Tokens and
record fields returned by the authority are trusted, never re-derived.
"""

import logging
from typing import Any, Dict, Optional, Union

import httpx
from pydantic import ValidationError

from ... import __version__
from ...exceptions import (
    AllocationExhausted,
    BackendProtocolError,
    BackendUnavailable,
    InvalidInput,
    TokenInvalid,
)
from ..session import BucketKind, Session, TTLDirective, User, validate_ttl
from ..token import TokenCodec
from .interfaces import TTLArgument
from .wire import (
    RESULT_ALLOCATION_EXHAUSTED,
    RESULT_NOT_FOUND,
    RESULT_OK,
    SessionEnvelope,
    parse_session,
)

USER_AGENT = f"Ostiary-Client-Python/{__version__}"


def _ttl_value(ttl: TTLArgument) -> Optional[int]:
    directive = TTLDirective.coerce(ttl)
    return None if directive.is_unchanged else directive.seconds


class RemoteSessionDriver:
    """Session driver backed by a remote session authority."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        client_id: str,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize remote driver.

        Args:
            http_client: Async HTTP client with base_url, auth and timeout set
            client_id: Identity the authority uses for this client's local buckets
            logger: Injected logger
        """
        self.http = http_client
        self.client_id = client_id
        self.logger = logger or logging.getLogger("ostiary.drivers.remote")

    @classmethod
    def from_settings(
        cls,
        server: str,
        client_id: str,
        secret: str,
        timeout: float,
        logger: Optional[logging.Logger] = None,
    ) -> "RemoteSessionDriver":
        """Build a driver with its own HTTP client (Basic auth, per-call timeout)."""
        http_client = httpx.AsyncClient(
            base_url=server,
            timeout=timeout,
            auth=httpx.BasicAuth(client_id, secret),
            headers={"User-Agent": USER_AGENT},
        )
        return cls(http_client, client_id, logger=logger)

    @property
    def raw_handle(self) -> httpx.AsyncClient:
        return self.http

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send one request and decode the JSON object it returns.

        Raises:
            BackendUnavailable: On timeout, transport failure, 5xx, 408 or 429
            InvalidInput: On 400
            BackendProtocolError: On any other unexpected status or body
        """
        try:
            response = await self.http.request(method, path, params=params, json=body)
        except httpx.TimeoutException as e:
            self.logger.warning(f"Ostiary server timed out on {method} {path}: {e}")
            raise BackendUnavailable(f"Timed out talking to the Ostiary server: {e}") from e
        except httpx.TransportError as e:
            self.logger.warning(f"Ostiary server unreachable on {method} {path}: {e}")
            raise BackendUnavailable(f"Unable to reach the Ostiary server: {e}") from e

        code = response.status_code
        if code == 200:
            pass
        elif code == 404:
            return {"res": RESULT_NOT_FOUND}
        elif code >= 500 or code in (408, 429):
            raise BackendUnavailable(
                f"The Ostiary server had a failure: HTTP {code} - {response.text}"
            )
        elif code == 400:
            raise InvalidInput(f"The Ostiary server rejected the request: {response.text}")
        elif code in (401, 403):
            raise BackendProtocolError(
                f"Access denied to the Ostiary server: HTTP {code} - {response.text}"
            )
        else:
            raise BackendProtocolError(
                f"There was an error interacting with the Ostiary server: HTTP {code} - {response.text}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise BackendProtocolError(
                f"Invalid data returned from the Ostiary server: HTTP {code} - {response.text}"
            ) from e
        if not isinstance(data, dict) or not isinstance(data.get("res"), str):
            raise BackendProtocolError(
                f"Invalid data returned from the Ostiary server: HTTP {code} - {response.text}"
            )
        return data

    def _result_ok(self, data: Dict[str, Any], operation: str) -> bool:
        result = data["res"]
        if result == RESULT_OK:
            return True
        if result == RESULT_ALLOCATION_EXHAUSTED:
            raise AllocationExhausted("Ostiary server could not allocate a unique session id")
        self.logger.debug(f"{operation} returned '{result}'")
        return False

    @staticmethod
    def _session_from(data: Dict[str, Any]) -> Session:
        if "ses" not in data:
            raise BackendProtocolError("Ostiary server response has no session")
        return parse_session(data["ses"])

    async def create_session(
        self,
        ttl: int,
        ip_address: Optional[str] = None,
        bucket_global: Any = None,
        bucket_local: Any = None,
        user: Optional[User] = None,
    ) -> Session:
        ttl = validate_ttl(ttl)

        body: Dict[str, Any] = {
            "ttl": ttl,
            "bkt": {"glb": bucket_global, "loc": bucket_local},
        }
        if ip_address is not None:
            body["ipa"] = ip_address
        if user is not None:
            body["usr"] = user.to_dict()

        data = await self._request("PUT", "/v1/createSession", body=body)
        if not self._result_ok(data, "createSession"):
            raise BackendProtocolError(f"Ostiary server refused to create a session: {data['res']}")

        session = self._session_from(data)
        self.logger.info(f"Created session {session.session_id} (ttl: {session.ttl}s)")
        return session

    async def get_session(
        self, token: str, update_expiration: bool = True, ttl: TTLArgument = None
    ) -> Optional[Session]:
        params: Dict[str, Any] = {"jwt": token, "tch": bool(update_expiration)}
        ttl_value = _ttl_value(ttl)
        if ttl_value is not None:
            params["ttl"] = ttl_value

        data = await self._request("GET", "/v1/getSession", params=params)
        if not self._result_ok(data, "getSession"):
            return None
        return self._session_from(data)

    async def get_all_sessions(
        self, count_only: bool = False, update_expiration: bool = False, ttl: TTLArgument = None
    ) -> Union[int, Dict[str, Session]]:
        params: Dict[str, Any] = {"cnt": bool(count_only), "tch": bool(update_expiration)}
        ttl_value = _ttl_value(ttl)
        if ttl_value is not None:
            params["ttl"] = ttl_value

        data = await self._request("GET", "/v1/getAllSessions", params=params)
        if not self._result_ok(data, "getAllSessions"):
            raise BackendProtocolError(f"Ostiary server refused to list sessions: {data['res']}")

        if count_only:
            count = data.get("cnt")
            if isinstance(count, bool) or not isinstance(count, int) or count < 0:
                raise BackendProtocolError("Ostiary server returned an invalid session count")
            return count

        listing = data.get("sar")
        if not isinstance(listing, dict):
            raise BackendProtocolError("Ostiary server returned an invalid session listing")
        sessions = {}
        for session_id, envelope in listing.items():
            session = parse_session(envelope)
            if session.session_id != session_id:
                raise BackendProtocolError(
                    f"Ostiary server listed session {session.session_id} under {session_id}"
                )
            sessions[session_id] = session
        return sessions

    async def set_session(self, session: Session) -> bool:
        """
        Send a view back to the authority.

        Validation happens before any request is made. If the authority
        re-issued the token because the expiry changed, session.token is
        replaced with it.
        """
        if not isinstance(session, Session):
            raise InvalidInput("session must be a Session object")
        session.check_expiry()

        try:
            envelope = SessionEnvelope.from_session(session).to_wire()
        except ValidationError as e:
            raise InvalidInput(f"Session cannot be sent to the Ostiary server: {e}") from e
        body = {
            "sid": envelope["sid"],
            "jwt": envelope["jwt"],
            "str": envelope["str"],
            "exp": envelope["exp"],
            "ttl": envelope["ttl"],
            "bkt": envelope["bkt"],
            "usr": envelope["usr"],
        }
        data = await self._request("PUT", "/v1/setSession", body=body)
        if not self._result_ok(data, "setSession"):
            return False

        token = data.get("jwt")
        if token is not None:
            try:
                session.token = TokenCodec.check_structure(token)
            except TokenInvalid as e:
                raise BackendProtocolError(f"Ostiary server returned an invalid token: {e}") from e
        return True

    async def set_bucket(
        self,
        token: str,
        kind: Any,
        data: Any,
        update_expiration: bool = True,
        ttl: TTLArgument = None,
    ) -> Optional[Session]:
        kind = BucketKind.parse(kind)
        body: Dict[str, Any] = {
            "jwt": token,
            "bkt": "glb" if kind is BucketKind.GLOBAL else "loc",
            "dat": data,
            "tch": bool(update_expiration),
        }
        ttl_value = _ttl_value(ttl)
        if ttl_value is not None:
            body["ttl"] = ttl_value

        response = await self._request("PUT", "/v1/setBucket", body=body)
        if not self._result_ok(response, "setBucket"):
            return None
        return self._session_from(response)

    async def touch_session(self, token: str, ttl: TTLArgument = None) -> Optional[Session]:
        body: Dict[str, Any] = {"jwt": token}
        ttl_value = _ttl_value(ttl)
        if ttl_value is not None:
            body["ttl"] = ttl_value

        data = await self._request("POST", "/v1/touchSession", body=body)
        if not self._result_ok(data, "touchSession"):
            return None
        return self._session_from(data)

    async def delete_session(self, token: str) -> bool:
        data = await self._request("DELETE", "/v1/deleteSession", body={"jwt": token})
        return self._result_ok(data, "deleteSession")

    async def aclose(self) -> None:
        await self.http.aclose()
