from decimal import Decimal

import pytest

from dappkit.auction import PAYMENT_DEADLINE, Auction
from dappkit.ledger import ContractError, Ledger

OFFERED = 100
DURATION = 10
RESERVE = 50
BOND = 5
BID = 60


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def setup(ledger):
    offering = ledger.new_fungible(OFFERED, {"name": "Art"})
    auction, badge = Auction.create(
        ledger, offering, DURATION, ledger.xrd, RESERVE, BOND
    )
    return auction, badge, offering.resource


def _bidder(ledger, auction):
    account = ledger.new_account()
    badge = auction.register(account.withdraw(ledger.xrd, BOND))
    return account, badge


def test_create_rejects_empty_offering(ledger):
    empty = ledger.new_fungible(0)
    with pytest.raises(ContractError, match="Incorrect offering"):
        Auction.create(ledger, empty, DURATION, ledger.xrd, RESERVE, BOND)


def test_create_rejects_bond_above_reserve(ledger):
    offering = ledger.new_fungible(OFFERED)
    with pytest.raises(ContractError, match="Bid bond higher than the reserve price"):
        Auction.create(ledger, offering, DURATION, ledger.xrd, BOND, RESERVE)


def test_auctioneer_badge_metadata(setup):
    auction, badge, _ = setup
    assert badge.amount == 1
    assert badge.resource.metadata["name"] == "Acutioneer badge"
    assert badge.resource.metadata["auction"] == auction.component_address


def test_register_checks_bond(ledger, setup):
    auction, _, _ = setup
    account = ledger.new_account()
    with pytest.raises(ContractError, match="Incorrect bid bond"):
        auction.register(account.withdraw(ledger.xrd, BOND + 1))
    other = ledger.new_fungible(BOND)
    with pytest.raises(ContractError, match="Incorrect payment token"):
        auction.register(other)


def test_register_after_close(ledger, setup):
    auction, _, _ = setup
    ledger.advance_epoch(DURATION + 1)
    account = ledger.new_account()
    with pytest.raises(ContractError, match="Auction closed"):
        auction.register(account.withdraw(ledger.xrd, BOND))


def test_register_keeps_bond(ledger, setup):
    auction, _, _ = setup
    _, badge = _bidder(ledger, auction)
    assert auction.bid_bonds.amount == BOND
    assert badge.resource.metadata["name"] == "Bidder badge"


def test_bid_rules(ledger, setup):
    auction, _, _ = setup
    _, badge = _bidder(ledger, auction)
    with pytest.raises(ContractError, match="Bid lower than the reserve price"):
        auction.bid(RESERVE - 1, badge.present())
    auction.bid(BID, badge.present())
    assert auction.highest_bid == BID
    with pytest.raises(ContractError, match="Bid not higer"):
        auction.bid(BID, badge.present())


def test_bid_with_unknown_badge(ledger, setup):
    auction, _, _ = setup
    stranger = ledger.new_fungible(1)
    with pytest.raises(ContractError, match="Incorrect bidder badge"):
        auction.bid(BID, stranger.present())


def test_full_auction(ledger, setup):
    auction, auctioneer, offered = setup
    winner, winner_badge = _bidder(ledger, auction)
    loser, loser_badge = _bidder(ledger, auction)
    auction.bid(RESERVE, loser_badge.present())
    auction.bid(BID, winner_badge.present())

    with pytest.raises(ContractError, match="Auction open"):
        auction.claim_offering(
            winner.withdraw(ledger.xrd, BID - BOND), winner_badge.present()
        )
    ledger.advance_epoch(DURATION + 1)

    with pytest.raises(ContractError, match="Not the winning bidder"):
        auction.claim_offering(
            loser.withdraw(ledger.xrd, BID - BOND), loser_badge.present()
        )
    with pytest.raises(ContractError, match="Incorrect payment amount"):
        auction.claim_offering(winner.withdraw(ledger.xrd, BID), winner_badge.present())

    goods = auction.claim_offering(
        winner.withdraw(ledger.xrd, BID - BOND), winner_badge.present()
    )
    assert goods.resource is offered
    assert goods.amount == OFFERED

    with pytest.raises(ContractError, match="Winning bidder cannot reclaim"):
        auction.reclaim_bid_bond(winner_badge.present())
    bond = auction.reclaim_bid_bond(loser_badge.present())
    assert bond.amount == BOND
    with pytest.raises(ContractError, match="Bid bond already reclaimed"):
        auction.reclaim_bid_bond(loser_badge.present())

    payment, rest = auction.claim_payment(auctioneer.present())
    assert payment.amount == BID
    assert rest.is_empty()
    with pytest.raises(ContractError, match="Payment already claimed"):
        auction.claim_payment(auctioneer.present())


def test_claim_payment_without_bids_returns_offering(ledger, setup):
    auction, auctioneer, offered = setup
    ledger.advance_epoch(DURATION + 1)
    payment, rest = auction.claim_payment(auctioneer.present())
    assert payment.is_empty()
    assert rest.resource is offered
    assert rest.amount == OFFERED


def test_claim_payment_waits_for_deadline(ledger, setup):
    auction, auctioneer, _ = setup
    _, badge = _bidder(ledger, auction)
    auction.bid(BID, badge.present())
    ledger.advance_epoch(DURATION + 1)
    with pytest.raises(ContractError, match="Payment not received"):
        auction.claim_payment(auctioneer.present())
    ledger.advance_epoch(PAYMENT_DEADLINE)
    payment, rest = auction.claim_payment(auctioneer.present())
    assert payment.amount == BOND
    assert rest.amount == OFFERED


def test_claim_offering_after_deadline(ledger, setup):
    auction, _, _ = setup
    winner, badge = _bidder(ledger, auction)
    auction.bid(BID, badge.present())
    ledger.advance_epoch(DURATION + PAYMENT_DEADLINE + 1)
    with pytest.raises(ContractError, match="Payment deadline passed"):
        auction.claim_offering(winner.withdraw(ledger.xrd, BID - BOND), badge.present())


def test_claim_payment_requires_auctioneer(ledger, setup):
    auction, _, _ = setup
    _, badge = _bidder(ledger, auction)
    ledger.advance_epoch(DURATION + 1)
    with pytest.raises(ContractError, match="Not authorized"):
        auction.claim_payment(badge.present())


def test_reclaim_while_open(ledger, setup):
    auction, _, _ = setup
    _, badge = _bidder(ledger, auction)
    with pytest.raises(ContractError, match="Acution open"):
        auction.reclaim_bid_bond(badge.present())
    assert auction.bid_bonds.amount == Decimal(BOND)