"""Transit tickets bought with dollars or euros and spent on rides."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable

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


class Transit:
    """Sells ride tickets and records the last epoch each rider travelled in."""

    def __init__(
        self,
        ledger: Ledger,
        ticket_resource_def: ResourceDef,
        ticket_minter: Vault,
        ticket_price: Decimal,
        ride_price: Decimal,
        american_host_badge: ResourceDef,
        european_host_badge: ResourceDef,
        collected_dollars: Vault,
        collected_euros: Vault,
    ) -> None:
        self.ledger = ledger
        self.riders: dict[tuple[str, ...], int] = {}
        self.ticket_resource_def = ticket_resource_def
        self.ticket_minter = ticket_minter
        self.american_rides = True
        self.european_rides = True
        self.ticket_price = ticket_price
        self.ride_price = ride_price
        self.american_host_badge = american_host_badge
        self.european_host_badge = european_host_badge
        self.collected_dollars = collected_dollars
        self.collected_euros = collected_euros

    @classmethod
    def create(
        cls,
        ledger: Ledger,
        price_per_ticket: Any,
        price_per_ride: Any,
        dollar: ResourceDef | str,
        euro: ResourceDef | str,
    ) -> tuple[Transit, Bucket, Bucket]:
        """Create the component; returns it with the American and European host badges."""
        ticket_price = to_decimal(price_per_ticket)
        ride_price = to_decimal(price_per_ride)
        if not (ticket_price > 0 and ride_price > 0):
            raise ContractError("Invalid CLI arguments")
        american_badge = ledger.new_fungible(
            1,
            {
                "name": "American Host Badge",
                "symbol": "APB",
                "description": "A badge that grants american host privileges",
            },
            DIVISIBILITY_NONE,
        )
        european_badge = ledger.new_fungible(
            1,
            {
                "name": "European Host Badge",
                "symbol": "EPB",
                "description": "A badge that grants european host privileges",
            },
            DIVISIBILITY_NONE,
        )
        minter = ledger.new_fungible(1, {"name": "Ticket Mint Auth"}, DIVISIBILITY_NONE)
        tickets = ledger.new_resource(
            {"name": "Ticket", "symbol": "TK", "description": "A ticket used for rides"},
            divisibility=DIVISIBILITY_NONE,
            authority=minter.resource,
        )
        component = cls(
            ledger=ledger,
            ticket_resource_def=tickets,
            ticket_minter=Vault.with_bucket(minter),
            ticket_price=ticket_price,
            ride_price=ride_price,
            american_host_badge=american_badge.resource,
            european_host_badge=european_badge.resource,
            collected_dollars=Vault(_resource(ledger, dollar)),
            collected_euros=Vault(_resource(ledger, euro)),
        )
        return component, american_badge, european_badge

    def withdraw_dollars(self, availability: bool, proof: Proof) -> Bucket:
        """Set whether American rides run and take the collected dollars."""
        _require(proof, self.american_host_badge)
        self.american_rides = availability
        return self.collected_dollars.take_all()

    def withdraw_euros(self, availability: bool, proof: Proof) -> Bucket:
        """Set whether European rides run and take the collected euros."""
        _require(proof, self.european_host_badge)
        self.european_rides = availability
        return self.collected_euros.take_all()

    def buy_ticket(self, payment: Bucket) -> tuple[Bucket, Bucket]:
        """Buy one ticket; returns it with the change."""
        dollars = payment.resource is self.collected_dollars.resource
        euros = payment.resource is self.collected_euros.resource
        if payment.amount < self.ticket_price:
            raise ContractError("Invalid ticket price")
        if not (dollars or euros):
            raise ContractError("Invalid currency")
        ticket = self.ticket_resource_def.mint(1, self.ticket_minter.present())
        vault = self.collected_dollars if dollars else self.collected_euros
        vault.put(payment.take(self.ticket_price))
        return ticket, payment

    def ride(self, payment: Bucket, ride_type: str, signers: Iterable[str]) -> None:
        """Spend tickets on a ride of ``ride_type`` ("American" or "European")."""
        valid_ride = (ride_type == "American" and self.american_rides) or (
            ride_type == "European" and self.european_rides
        )
        if not valid_ride:
            raise ContractError("Invalid ride")
        if payment.resource is not self.ticket_resource_def:
            raise ContractError("Invalid currency")
        if payment.amount != self.ride_price:
            raise ContractError("Invalid price per ride")
        self.ticket_resource_def.burn(payment, self.ticket_minter.present())

        key = tuple(signers)
        epoch = self.ledger.epoch
        last = self.riders.get(key)
        if last is None:
            self.ledger.info("Hi, this is your first ride on a transit, have fun!")
            self.riders[key] = epoch
        elif last == epoch:
            self.ledger.info(
                f"Hi, you have already used the transit more than once during epoch: {epoch}"
            )
        else:
            self.ledger.info(
                f"Hi, welcome back, you have not used the transit during epoch: {epoch}"
            )
            self.riders[key] = epoch