"""
HTTP client for the Verification Service.

Every call goes through :meth:`VerificationClient.request`, which resolves
the route, injects credentials for authenticated routes, and checks the
response envelope tag. Transport errors raised by ``requests`` propagate
unchanged; this client does not retry.
"""

from typing import Any, Dict, Optional

import requests

from ..config import MinerConfig
from ..errors.exceptions import AuthenticationRequiredError, ProtocolEnvelopeError
from ..logging import get_logger
from .protocol import ChainInfo, VerificationResult, resolve_route, unwrap_payload

logger = get_logger(__name__)


class VerificationClient:
    """Client for the ``info`` and ``mine`` routes."""

    def __init__(
        self,
        config: Optional[MinerConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config or MinerConfig()
        self.base_url = self.config.instance.rstrip("/")
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Call a service route and return its response envelope.

        Args:
            path: Route name (``info`` or ``mine``; a leading slash is ignored)
            payload: JSON body for the request

        Returns:
            The decoded response envelope, whose ``type`` matched the route

        Raises:
            InvalidPathError: If ``path`` is not a known route
            AuthenticationRequiredError: If the route needs credentials and none are set
            ProtocolEnvelopeError: If the envelope tag does not match the route
            requests.RequestException: On transport or unrecognized HTTP errors
        """
        route = resolve_route(path)
        expected_type = route.response_type.value

        body = dict(payload or {})
        if route.auth:
            if not self.config.has_credentials:
                raise AuthenticationRequiredError(route.path)
            body["id"] = self.config.auth.id
            body["key"] = self.config.auth.key

        kwargs: Dict[str, Any] = {"timeout": self.config.timeout}
        if route.method != "GET":
            kwargs["json"] = body

        logger.debug(f"{route.method} {route.path}", extra={"instance": self.base_url})
        response = self.session.request(route.method, self.url_for(route.path), **kwargs)

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            envelope = self._decode(response)
            if (
                isinstance(envelope, dict)
                and envelope.get("status")
                and envelope.get("type") != expected_type
            ):
                raise ProtocolEnvelopeError(
                    expected_type,
                    received_type=envelope.get("type"),
                    detail=envelope.get("detail"),
                    endpoint=route.path,
                    status_code=response.status_code,
                    cause=e,
                ) from e
            raise

        envelope = self._decode(response)
        received_type = envelope.get("type") if isinstance(envelope, dict) else None
        if received_type != expected_type:
            raise ProtocolEnvelopeError(
                expected_type,
                received_type=received_type,
                endpoint=route.path,
                status_code=response.status_code,
            )

        return envelope

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    def get_info(self) -> ChainInfo:
        """Fetch chain metadata."""
        return ChainInfo.from_dict(unwrap_payload(self.request("info")))

    def submit_block(self, block_hash: str) -> VerificationResult:
        """
        Submit a candidate hash for acceptance.

        A protocol-level refusal (mismatched envelope, or an error response
        carrying a status and a different tag) is returned as a rejected
        result; every other failure propagates.
        """
        try:
            envelope = self.request("mine", {"hash": block_hash})
        except ProtocolEnvelopeError as e:
            logger.debug(
                f"Candidate {block_hash[:16]} rejected: {e.message}",
                extra={"status_code": e.status_code},
            )
            return VerificationResult(
                accepted=False,
                block_hash=block_hash,
                detail=e.detail or e.message,
                status_code=e.status_code,
            )

        return VerificationResult(
            accepted=True, block_hash=block_hash, data=envelope.get("data")
        )

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "VerificationClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
