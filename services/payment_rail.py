"""
Payment rail client (Dwolla REST API).

Only the contract this service needs:
- client-credentials token
- create transfer / get transfer status
- create receive-only customer / attach a bank funding source from a Plaid
  processor token

The HTTP client is injected so the process owns one connection pool and tests
can mount an `httpx.MockTransport`.

REFERENCES:
    - https://developers.dwolla.com/docs/balance/transfer-money-between-users
    - https://developers.dwolla.com/docs/balance/secure-exchange-solutions/plaid
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, Optional

import httpx

from domain.errors import ServiceError
from domain.money import to_amount, to_wire

logger = logging.getLogger(__name__)

HAL_JSON = "application/vnd.dwolla.v1.hal+json"


class PaymentRailError(ServiceError):
    """The payment rail rejected a request or could not be reached."""

    status_code = 502


@dataclass(frozen=True, slots=True)
class RailToken:
    access_token: str
    expires_in: Optional[int] = None


@dataclass(frozen=True, slots=True)
class Transfer:
    transfer_id: str
    href: Optional[str]
    status: Optional[str]
    amount: Optional[Decimal]


def resource_id(location: Optional[str]) -> Optional[str]:
    """Last path segment of a resource URL (`.../transfers/<id>` -> `<id>`)."""

    if not location:
        return None
    return location.rstrip("/").rsplit("/", 1)[-1] or None


def _describe(response: httpx.Response) -> str:
    try:
        body: Any = response.json()
    except ValueError:
        body = response.text
    return f"{response.status_code}: {body}"


class PaymentRailClient:
    def __init__(self, http: httpx.Client, *, base_url: str, key: str, secret: str) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._key = key
        self._secret = secret

    def funding_source_url(self, funding_source_id: str) -> str:
        if funding_source_id.startswith(("http://", "https://")):
            return funding_source_id
        return f"{self._base_url}/funding-sources/{funding_source_id}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[RailToken] = None,
        json: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        action: str,
    ) -> httpx.Response:
        request_headers = {"Accept": HAL_JSON}
        if json is not None:
            request_headers["Content-Type"] = HAL_JSON
        if token is not None:
            request_headers["Authorization"] = f"Bearer {token.access_token}"
        if headers:
            request_headers.update(headers)

        url = path if path.startswith(("http://", "https://")) else f"{self._base_url}{path}"
        try:
            response = self._http.request(method, url, json=json, headers=request_headers)
        except httpx.HTTPError as exc:
            raise PaymentRailError(f"Payment rail unreachable while trying to {action}: {exc}") from exc

        if response.is_error:
            raise PaymentRailError(f"Payment rail failed to {action} ({_describe(response)})")
        return response

    def get_token(self) -> RailToken:
        """Obtain a bearer token through the client-credentials grant."""

        try:
            response = self._http.post(
                f"{self._base_url}/token",
                data={"grant_type": "client_credentials"},
                auth=(self._key, self._secret),
            )
        except httpx.HTTPError as exc:
            raise PaymentRailError(f"Payment rail unreachable while requesting a token: {exc}") from exc

        if response.is_error:
            raise PaymentRailError(f"Failed to get payment rail token ({_describe(response)})")

        body = response.json()
        access_token = body.get("access_token")
        if not access_token:
            raise PaymentRailError("Payment rail token response has no access_token")
        return RailToken(access_token=str(access_token), expires_in=body.get("expires_in"))

    def create_transfer(
        self,
        token: RailToken,
        *,
        source_funding_source: str,
        destination_funding_source: str,
        amount: Decimal,
        metadata: Optional[Mapping[str, str]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Transfer:
        """
        Move `amount` USD between two funding sources.

        The rail answers 201 with the new transfer in the Location header.
        """

        if amount <= 0:
            raise ValueError("Transfer amount must be positive")

        payload: dict[str, Any] = {
            "_links": {
                "source": {"href": self.funding_source_url(source_funding_source)},
                "destination": {"href": self.funding_source_url(destination_funding_source)},
            },
            "amount": {"currency": "USD", "value": to_wire(amount)},
        }
        if metadata:
            payload["metadata"] = dict(metadata)

        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        response = self._request(
            "POST", "/transfers", token=token, json=payload, headers=headers, action="create transfer"
        )

        location = response.headers.get("location")
        body: Mapping[str, Any] = {}
        if response.content:
            try:
                body = response.json()
            except ValueError:
                body = {}

        transfer_id = body.get("id") or resource_id(location)
        if not transfer_id:
            raise PaymentRailError("Payment rail created a transfer without returning its id")

        logger.info("Transfer %s created for %s", transfer_id, to_wire(amount))
        return Transfer(
            transfer_id=str(transfer_id),
            href=location or body.get("_links", {}).get("self", {}).get("href"),
            status=body.get("status") or "pending",
            amount=amount,
        )

    def get_transfer(self, token: RailToken, transfer_id: str) -> Transfer:
        response = self._request("GET", f"/transfers/{transfer_id}", token=token, action="get transfer")
        body = response.json()
        amount = body.get("amount", {}).get("value")
        return Transfer(
            transfer_id=str(body.get("id") or transfer_id),
            href=body.get("_links", {}).get("self", {}).get("href"),
            status=body.get("status"),
            amount=to_amount(amount) if amount is not None else None,
        )

    def create_customer(
        self,
        token: RailToken,
        *,
        first_name: str,
        last_name: str,
        email: str,
        business_name: Optional[str] = None,
        customer_type: str = "receive-only",
    ) -> str:
        """Create a customer able to receive payouts; returns its id."""

        payload: dict[str, Any] = {
            "firstName": first_name,
            "lastName": last_name,
            "email": email,
            "type": customer_type,
        }
        if business_name:
            payload["businessName"] = business_name

        response = self._request("POST", "/customers", token=token, json=payload, action="create customer")
        customer_id = resource_id(response.headers.get("location"))
        if not customer_id:
            raise PaymentRailError("Payment rail created a customer without returning its id")
        return customer_id

    def create_funding_source(
        self,
        token: RailToken,
        *,
        customer_id: str,
        plaid_processor_token: str,
        name: str,
    ) -> str:
        """Attach a bank account (via Plaid processor token) to a customer; returns its id."""

        response = self._request(
            "POST",
            f"/customers/{customer_id}/funding-sources",
            token=token,
            json={"plaidToken": plaid_processor_token, "name": name},
            action="create funding source",
        )
        funding_source_id = resource_id(response.headers.get("location"))
        if not funding_source_id:
            raise PaymentRailError("Payment rail created a funding source without returning its id")
        return funding_source_id


__all__ = ["PaymentRailClient", "PaymentRailError", "RailToken", "Transfer", "resource_id"]
