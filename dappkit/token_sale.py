"""Ticketed token sale with a per-buyer allocation cap."""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Any

from dappkit.ledger import (
    DIVISIBILITY_NONE,
    Bucket,
    ContractError,
    Ledger,
    Proof,
    ResourceDef,
    Vault,
    to_decimal,
)


def _resource(ledger: Ledger, value: ResourceDef | str) -> ResourceDef:
    return value if isinstance(value, ResourceDef) else ledger.resource(value)


def _require(proof: Proof, badge: ResourceDef) -> None:
    if proof.resource is not badge or proof.amount <= 0:
        raise ContractError("Not authorized")


class TokenSale:
    """Sells tokens at a fixed price to holders of a sale ticket."""

    def __init__(
        self,
        admin_badge: ResourceDef,
        tokens_for_sale: Vault,
        payment_vault: Vault,
        sale_ticket_minter: Vault,
        sale_tickets: ResourceDef,
        price_per_token: Decimal,
        max_personal_allocation: Decimal,
    ) -> None:
        self.admin_badge = admin_badge
        self.tokens_for_sale = tokens_for_sale
        self.payment_vault = payment_vault
        self.sale_ticket_minter = sale_ticket_minter
        self.sale_tickets = sale_tickets
        self.price_per_token = price_per_token
        self.max_personal_allocation = max_personal_allocation
        self.sale_started = False

    @classmethod
    def create(
        cls,
        ledger: Ledger,
        tokens_for_sale: Bucket,
        payment_token: ResourceDef | str,
        price_per_token: Any,
        max_personal_allocation: Any,
    ) -> tuple[TokenSale, Bucket]:
        """Create the component; returns it together with the admin badge."""
        admin_badge = ledger.new_fungible(1, {"name": "admin_badge"}, DIVISIBILITY_NONE)
        minter = ledger.new_fungible(1, {"name": "sale_ticket_minter"}, DIVISIBILITY_NONE)
        sale_tickets = ledger.new_resource(
            {"name": "Sale Ticket Token", "symbol": "STT"},
            divisibility=DIVISIBILITY_NONE,
            authority=minter.resource,
        )
        component = cls(
            admin_badge=admin_badge.resource,
            tokens_for_sale=Vault.with_bucket(tokens_for_sale),
            payment_vault=Vault(_resource(ledger, payment_token)),
            sale_ticket_minter=Vault.with_bucket(minter),
            sale_tickets=sale_tickets,
            price_per_token=to_decimal(price_per_token),
            max_personal_allocation=to_decimal(max_personal_allocation),
        )
        return component, admin_badge

    def create_tickets(self, amount: int, proof: Proof) -> Bucket:
        _require(proof, self.admin_badge)
        return self.sale_tickets.mint(amount, self.sale_ticket_minter.present())

    def start_sale(self, proof: Proof) -> None:
        _require(proof, self.admin_badge)
        self.sale_started = True

    def withdraw_payments(self, proof: Proof) -> Bucket:
        _require(proof, self.admin_badge)
        return self.payment_vault.take_all()

    def buy_tokens(self, payment: Bucket, ticket: Bucket) -> tuple[Bucket, Bucket]:
        """Spend one ticket; returns the bought tokens and the unspent payment."""
        if not self.sale_started:
            raise ContractError("The sale has not started yet")
        if self.tokens_for_sale.amount <= 0:
            raise ContractError("The sale has ended already")
        if ticket.amount != 1:
            raise ContractError(
                "You need to send exactly one ticket in order to participate in the sale"
            )
        if payment.resource is not self.payment_vault.resource:
            raise ContractError("Resource mismatch")
        if self.price_per_token == 0:
            raise ContractError("Division by zero")
        self.sale_tickets.burn(ticket, self.sale_ticket_minter.present())

        payment_amount = min(payment.amount, self.max_personal_allocation)
        with localcontext() as ctx:
            ctx.prec = 80
            buy_amount = to_decimal(payment_amount / self.price_per_token)
            actual_buy_amount = min(self.tokens_for_sale.amount, buy_amount)
            actual_payment_amount = to_decimal(actual_buy_amount * self.price_per_token)

        self.payment_vault.put(payment.take(actual_payment_amount))
        bought_tokens = self.tokens_for_sale.take(actual_buy_amount)
        return bought_tokens, payment