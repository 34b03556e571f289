"""Sealed-bond auction: bidders post a bond, the highest bid wins and pays the rest."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
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

PAYMENT_DEADLINE = 100


def _resource(ledger: Ledger, value: ResourceDef | str) -> ResourceDef:
    return value if isinstance(value, ResourceDef) else ledger.resource(value)


@dataclass
class Bidder:
    """State of one registered bidder."""

    bid: Decimal = Decimal(0)
    bid_bond_reclaimed: bool = False


class Auction:
    """Auctions an offering for a payment resource over a number of epochs."""

    def __init__(
        self,
        ledger: Ledger,
        offering: Vault,
        payment_resource: ResourceDef,
        duration: int,
        reserve_price: Decimal,
        bid_bond: Decimal,
    ) -> None:
        self.ledger = ledger
        self.component_address = ledger.new_address("component")
        self.offering = offering
        self.bid_bonds = Vault(payment_resource)
        self.payment = Vault(payment_resource)
        self.start = ledger.epoch
        self.duration = duration
        self.payment_resource = payment_resource
        self.reserve_price = reserve_price
        self.bid_bond = bid_bond
        self.bidders: dict[ResourceDef, Bidder] = {}
        self.highest_bid = Decimal(0)
        self.auctioneer_badge: ResourceDef | None = None
        self.payment_claimed = False

    @classmethod
    def create(
        cls,
        ledger: Ledger,
        offering: Bucket,
        duration: int,
        payment_resource: ResourceDef | str,
        reserve_price: Any,
        bid_bond: Any,
    ) -> tuple[Auction, Bucket]:
        """Create the auction; returns it together with the auctioneer badge."""
        if offering.amount <= 0:
            raise ContractError("Incorrect offering")
        reserve_price = to_decimal(reserve_price)
        bid_bond = to_decimal(bid_bond)
        if bid_bond > reserve_price:
            raise ContractError("Bid bond higher than the reserve price")
        auction = cls(
            ledger=ledger,
            offering=Vault.with_bucket(offering),
            payment_resource=_resource(ledger, payment_resource),
            duration=duration,
            reserve_price=reserve_price,
            bid_bond=bid_bond,
        )
        badge = ledger.new_fungible(
            1,
            {"name": "Acutioneer badge", "auction": auction.component_address},
            DIVISIBILITY_NONE,
        )
        auction.auctioneer_badge = badge.resource
        return auction, badge

    @property
    def _end(self) -> int:
        return self.start + self.duration

    def _is_open(self) -> bool:
        return self.ledger.epoch <= self._end

    def _get_bidder(self, bidder_badge: Proof) -> Bidder:
        if bidder_badge.amount <= 0:
            raise ContractError("No bidder badge presented")
        bidder = self.bidders.get(bidder_badge.resource)
        if bidder is None:
            raise ContractError("Incorrect bidder badge")
        return bidder

    def register(self, bid_bond: Bucket) -> Bucket:
        """Post the bid bond; returns a bidder badge."""
        if not self._is_open():
            raise ContractError("Auction closed")
        if bid_bond.resource is not self.payment_resource:
            raise ContractError("Incorrect payment token")
        if bid_bond.amount != self.bid_bond:
            raise ContractError("Incorrect bid bond")
        self.bid_bonds.put(bid_bond)
        badge = self.ledger.new_fungible(
            1,
            {"name": "Bidder badge", "auction": self.component_address},
            DIVISIBILITY_NONE,
        )
        self.bidders[badge.resource] = Bidder()
        return badge

    def bid(self, bid: Any, bidder_badge: Proof) -> None:
        """Place a bid higher than the current highest one."""
        if not self._is_open():
            raise ContractError("Auction closed")
        bidder = self._get_bidder(bidder_badge)
        bid = to_decimal(bid)
        if bid < self.reserve_price:
            raise ContractError("Bid lower than the reserve price")
        if bid <= self.highest_bid:
            raise ContractError("Bid not higer than the current highest bid")
        bidder.bid = bid
        self.highest_bid = bid

    def claim_offering(self, payment: Bucket, bidder_badge: Proof) -> Bucket:
        """Winning bidder pays the bid minus the bond and receives the offering."""
        epoch = self.ledger.epoch
        if epoch <= self._end:
            raise ContractError("Auction open")
        if epoch > self._end + PAYMENT_DEADLINE:
            raise ContractError("Payment deadline passed")
        bidder = self._get_bidder(bidder_badge)
        if not (bidder.bid > 0 and bidder.bid == self.highest_bid):
            raise ContractError("Not the winning bidder")
        if self.offering.is_empty():
            raise ContractError("Offering already claimed")
        if payment.resource is not self.payment_resource:
            raise ContractError("Incorrect payment token")
        if payment.amount != to_decimal(self.highest_bid - self.bid_bond):
            raise ContractError("Incorrect payment amount")
        self.payment.put(payment)
        return self.offering.take_all()

    def reclaim_bid_bond(self, bidder_badge: Proof) -> Bucket:
        """A losing bidder takes back the bond once the auction is closed."""
        if self.ledger.epoch <= self._end:
            raise ContractError("Acution open")
        bidder = self._get_bidder(bidder_badge)
        if not (bidder.bid == 0 or bidder.bid != self.highest_bid):
            raise ContractError("Winning bidder cannot reclaim the bid bond")
        if bidder.bid_bond_reclaimed:
            raise ContractError("Bid bond already reclaimed")
        bidder.bid_bond_reclaimed = True
        return self.bid_bonds.take(self.bid_bond)

    def claim_payment(self, proof: Proof) -> tuple[Bucket, Bucket]:
        """Auctioneer takes the payment (with the winner's bond) and any unsold offering."""
        if (
            self.auctioneer_badge is None
            or proof.resource is not self.auctioneer_badge
            or proof.amount <= 0
        ):
            raise ContractError("Not authorized")
        epoch = self.ledger.epoch
        if epoch <= self._end:
            raise ContractError("Auction open")
        if self.payment_claimed:
            raise ContractError("Payment already claimed")
        if not (
            self.highest_bid == 0
            or not self.payment.is_empty()
            or epoch > self._end + PAYMENT_DEADLINE
        ):
            raise ContractError(
                "Payment not received and the payment deadline not passed"
            )
        if self.highest_bid > 0:
            self.payment.put(self.bid_bonds.take(self.bid_bond))
        self.payment_claimed = True
        return self.payment.take_all(), self.offering.take_all()