"""
Funding source repository (persistence).

Each payout party keeps its payment-rail identifiers in its own account table.
The table is chosen by the owner's role through `_ACCOUNT_TABLES`, never by a
caller-supplied string.
"""

from __future__ import annotations

from typing import Any, Mapping, NamedTuple, Optional

from domain.retailer import AccountOwner, PartyRole
from repositories.client import Client, first_or_none, rows_or_raise


class _AccountTable(NamedTuple):
    table: str
    owner_column: str


_ACCOUNT_TABLES: Mapping[PartyRole, _AccountTable] = {
    PartyRole.VENDOR: _AccountTable("vendor_accounts", "vendor_id"),
    PartyRole.RETAILER: _AccountTable("retailer_accounts", "retailer_id"),
    PartyRole.SOURCER: _AccountTable("sourcer_accounts", "sourcer_id"),
}


class FundingSourceRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def _account(self, owner: AccountOwner) -> Optional[Mapping[str, Any]]:
        account_table = _ACCOUNT_TABLES[owner.role]
        response = (
            self._client.table(account_table.table)
            .select("*")
            .eq(account_table.owner_column, owner.owner_id)
            .limit(1)
            .execute()
        )
        return first_or_none(response, f"fetch {owner.role.value} account")

    def get_funding_source_id(self, owner: AccountOwner) -> Optional[str]:
        account = self._account(owner)
        if not account:
            return None
        value = account.get("dwolla_funding_source_id")
        return str(value) if value else None

    def get_customer_id(self, owner: AccountOwner) -> Optional[str]:
        account = self._account(owner)
        if not account:
            return None
        value = account.get("dwolla_customer_id")
        return str(value) if value else None

    def save(
        self,
        owner: AccountOwner,
        *,
        customer_id: str,
        funding_source_id: str,
        bank_name: Optional[str] = None,
    ) -> None:
        """Create or replace the owner's account row."""

        account_table = _ACCOUNT_TABLES[owner.role]
        payload: dict[str, Any] = {
            account_table.owner_column: owner.owner_id,
            "dwolla_customer_id": customer_id,
            "dwolla_funding_source_id": funding_source_id,
        }
        if bank_name is not None:
            payload["bank_name"] = bank_name

        response = (
            self._client.table(account_table.table)
            .upsert(payload, on_conflict=account_table.owner_column)
            .execute()
        )
        rows_or_raise(response, f"save {owner.role.value} account")


__all__ = ["FundingSourceRepository"]
