"""HTTP delivery client: one POST per payload, classified into an outcome."""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

CONTENT_TYPE = "text/plain"


class OutcomeKind(enum.Enum):
    SUCCESS = "success"
    AUTH_REJECTED = "auth_rejected"
    TRANSPORT_ERROR = "transport_error"
    OTHER_STATUS = "other_status"


@dataclass(frozen=True)
class DeliveryOutcome:
    kind: OutcomeKind
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def should_requeue(self) -> bool:
        """Auth and transport failures keep the batch for the next drain."""
        return self.kind in (OutcomeKind.AUTH_REJECTED, OutcomeKind.TRANSPORT_ERROR)

    @classmethod
    def success(cls) -> "DeliveryOutcome":
        return cls(OutcomeKind.SUCCESS, status_code=200)

    @classmethod
    def auth_rejected(cls) -> "DeliveryOutcome":
        return cls(OutcomeKind.AUTH_REJECTED, status_code=403)

    @classmethod
    def transport_error(cls, error: str) -> "DeliveryOutcome":
        return cls(OutcomeKind.TRANSPORT_ERROR, error=error)

    @classmethod
    def other_status(cls, status_code: int) -> "DeliveryOutcome":
        return cls(OutcomeKind.OTHER_STATUS, status_code=status_code)

    @classmethod
    def from_status(cls, status_code: int) -> "DeliveryOutcome":
        if status_code == 200:
            return cls.success()
        if status_code == 403:
            return cls.auth_rejected()
        return cls.other_status(status_code)


class DeliveryClient:
    """Posts encoded payloads to the collection endpoint.

    Wraps a shared httpx.Client (safe to use from several worker threads).
    ``deliver`` never raises; every failure comes back as a DeliveryOutcome.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def deliver(self, payload: bytes, url: str) -> DeliveryOutcome:
        """POST *payload* to *url* and classify the response."""
        try:
            with self._client.stream(
                "POST",
                url,
                content=payload,
                headers={"Content-Type": CONTENT_TYPE},
            ) as response:
                outcome = DeliveryOutcome.from_status(response.status_code)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("Transport error posting %d bytes: %s", len(payload), exc)
            return DeliveryOutcome.transport_error(str(exc) or type(exc).__name__)
        except RuntimeError as exc:
            # httpx refuses to send once the client has been closed
            logger.debug("Delivery after close: %s", exc)
            return DeliveryOutcome.transport_error(str(exc))

        if outcome.kind is OutcomeKind.SUCCESS:
            logger.debug("Shipped %d bytes: HTTP %d", len(payload), outcome.status_code)
        elif outcome.kind is OutcomeKind.AUTH_REJECTED:
            logger.warning("Token is invalid: HTTP 403")
        else:
            logger.warning("Unexpected response from log endpoint: HTTP %d", outcome.status_code)
        return outcome

    def close(self):
        """Release pooled connections."""
        self._client.close()
