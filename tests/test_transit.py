from decimal import Decimal

import pytest

from dappkit.ledger import ContractError, Ledger
from dappkit.transit import Transit


@pytest.fixture
def env():
    ledger = Ledger()
    rider = ledger.new_account()
    dollars = ledger.new_fungible(1000, {"symbol": "USD"})
    euros = ledger.new_fungible(1000, {"symbol": "EUR"})
    rider.deposit(dollars)
    rider.deposit(euros)
    transit, american, european = Transit.create(
        ledger, 10, 1, dollars.resource, euros.resource
    )
    return ledger, rider, dollars.resource, euros.resource, transit, american, european


def test_create_rejects_non_positive_prices():
    ledger = Ledger()
    usd = ledger.new_resource({"symbol": "USD"})
    with pytest.raises(ContractError, match="Invalid CLI arguments"):
        Transit.create(ledger, 0, 1, usd, ledger.xrd)


def test_buy_ticket_returns_ticket_and_change(env):
    ledger, rider, usd, eur, transit, *_ = env
    ticket, change = transit.buy_ticket(rider.withdraw(usd, 15))
    assert ticket.resource is transit.ticket_resource_def
    assert ticket.amount == Decimal(1)
    assert change.amount == Decimal(5)
    assert transit.collected_dollars.amount == Decimal(10)


def test_buy_ticket_with_euros(env):
    ledger, rider, usd, eur, transit, *_ = env
    ticket, change = transit.buy_ticket(rider.withdraw(eur, 10))
    assert ticket.amount == Decimal(1)
    assert change.is_empty()
    assert transit.collected_euros.amount == Decimal(10)


def test_buy_ticket_errors(env):
    ledger, rider, usd, eur, transit, *_ = env
    with pytest.raises(ContractError, match="Invalid ticket price"):
        transit.buy_ticket(rider.withdraw(usd, 5))
    with pytest.raises(ContractError, match="Invalid currency"):
        transit.buy_ticket(rider.withdraw(ledger.xrd, 20))


def test_ride_logs_by_epoch(env):
    ledger, rider, usd, eur, transit, *_ = env
    signers = [rider.address]
    for _ in range(3):
        ticket, _change = transit.buy_ticket(rider.withdraw(usd, 10))
        rider.deposit(ticket)

    transit.ride(rider.withdraw(transit.ticket_resource_def, 1), "American", signers)
    assert ledger.logs[-1] == "Hi, this is your first ride on a transit, have fun!"

    transit.ride(rider.withdraw(transit.ticket_resource_def, 1), "European", signers)
    assert ledger.logs[-1] == (
        "Hi, you have already used the transit more than once during epoch: "
        f"{ledger.epoch}"
    )

    ledger.advance_epoch(3)
    transit.ride(rider.withdraw(transit.ticket_resource_def, 1), "American", signers)
    assert ledger.logs[-1] == (
        f"Hi, welcome back, you have not used the transit during epoch: {ledger.epoch}"
    )
    assert transit.riders[tuple(signers)] == ledger.epoch
    assert transit.ticket_resource_def.total_supply == Decimal(0)


def test_ride_errors(env):
    ledger, rider, usd, eur, transit, *_ = env
    first, _ = transit.buy_ticket(rider.withdraw(usd, 10))
    second, _ = transit.buy_ticket(rider.withdraw(usd, 10))
    with pytest.raises(ContractError, match="Invalid ride"):
        transit.ride(first, "Asian", [rider.address])
    with pytest.raises(ContractError, match="Invalid currency"):
        transit.ride(rider.withdraw(usd, 1), "American", [rider.address])
    first.put(second)
    with pytest.raises(ContractError, match="Invalid price per ride"):
        transit.ride(first, "American", [rider.address])


def test_withdraw_dollars_disables_american_rides(env):
    ledger, rider, usd, eur, transit, american, european = env
    ticket, _ = transit.buy_ticket(rider.withdraw(usd, 10))
    collected = transit.withdraw_dollars(False, american.present())
    assert collected.amount == Decimal(10)
    assert transit.collected_dollars.is_empty()
    with pytest.raises(ContractError, match="Invalid ride"):
        transit.ride(ticket, "American", [rider.address])
    transit.ride(ticket, "European", [rider.address])
    assert ledger.logs[-1] == "Hi, this is your first ride on a transit, have fun!"


def test_withdraw_euros_requires_european_badge(env):
    ledger, rider, usd, eur, transit, american, european = env
    with pytest.raises(ContractError, match="Not authorized"):
        transit.withdraw_euros(False, american.present())
    assert transit.european_rides is True
    collected = transit.withdraw_euros(True, european.present())
    assert collected.is_empty()