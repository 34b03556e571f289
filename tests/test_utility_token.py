import pytest

from dappkit.ledger import Account, ContractError, Ledger
from dappkit.utility_token import UtilityTokenFactory


def _account(ledger):
    account = ledger.new_account()
    return account if isinstance(account, Account) else ledger.account(account)


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def user(ledger):
    return _account(ledger)


def _factory(ledger, price=5, mint_size=500, max_buy=100):
    return UtilityTokenFactory.create(
        ledger, "factory", "My Service", "STUB", "Do nothing service",
        price, mint_size, max_buy,
    )


def test_create_rejects_zero_mint_size(ledger):
    with pytest.raises(ContractError, match="non-zero number for the mint_size"):
        _factory(ledger, mint_size=0, max_buy=0)


def test_create_rejects_max_buy_above_mint_size(ledger):
    with pytest.raises(ContractError, match="max buy size"):
        _factory(ledger, mint_size=10, max_buy=11)


def test_address_is_token_resource(ledger):
    factory, _ = _factory(ledger)
    assert factory.address() == factory.available_ut.resource.address
    assert ledger.resource(factory.address()) is factory.available_ut.resource


def test_purchase(ledger, user):
    factory, badge = _factory(ledger)
    change, tokens = factory.purchase(10, user.withdraw(ledger.xrd, 100))
    assert tokens.amount == 10
    assert tokens.resource is factory.available_ut.resource
    assert change.resource is ledger.xrd
    claimed = factory.claim(badge.present())
    assert claimed.amount + change.amount == 100
    assert factory.total_claimed == claimed.amount
    assert factory.collected_xrd.amount == 0


def test_purchase_is_capped_at_max_buy(ledger, user):
    factory, _ = _factory(ledger, price=1, mint_size=500, max_buy=100)
    _, tokens = factory.purchase(200, user.withdraw(ledger.xrd, 1000))
    assert tokens.amount == 100


def test_purchase_insufficient_funds_returns_payment(ledger, user):
    factory, _ = _factory(ledger)
    change, tokens = factory.purchase(10, user.withdraw(ledger.xrd, 1))
    assert change.amount == 1
    assert tokens.is_empty()
    assert factory.collected_xrd.amount == 0


def test_purchase_requires_xrd(ledger):
    factory, _ = _factory(ledger)
    with pytest.raises(ContractError, match="with Radix"):
        factory.purchase(1, ledger.new_fungible(100))


def test_purchase_mints_more_when_needed(ledger, user):
    factory, _ = _factory(ledger, price=1, mint_size=10, max_buy=10)
    _, first = factory.purchase(10, user.withdraw(ledger.xrd, 10))
    _, second = factory.purchase(10, user.withdraw(ledger.xrd, 10))
    assert first.amount == 10
    assert second.amount == 10
    assert factory.total_minted == factory.ut_mint_size * 2
    assert factory.available_ut.amount == 0


def test_redeem_burns_tokens(ledger, user):
    factory, _ = _factory(ledger, price=1)
    _, tokens = factory.purchase(10, user.withdraw(ledger.xrd, 10))
    factory.redeem(tokens.take(4))
    assert factory.total_redeemed == 4
    assert tokens.amount == 6


def test_redeem_empty_bucket_is_ignored(ledger):
    factory, _ = _factory(ledger)
    factory.redeem(factory.available_ut.take(0))
    assert factory.total_redeemed == 0


def test_redeem_rejects_other_tokens(ledger):
    factory, _ = _factory(ledger)
    with pytest.raises(ContractError, match="expected utility tokens"):
        factory.redeem(ledger.new_fungible(5))


def test_claim_requires_minter_badge(ledger):
    factory, _ = _factory(ledger)
    other = ledger.new_fungible(1)
    with pytest.raises(ContractError, match="Not authorized"):
        factory.claim(other.present())


def test_show_bank(ledger):
    factory, badge = _factory(ledger)
    lines = factory.show_bank(badge.present())
    assert lines[0] == f"Available STUB: {factory.available_ut.amount}"
    assert lines[2] == f"Total XRD Claimed: {factory.total_claimed}"
    assert lines[3] == f"Total STUB Minted: {factory.total_minted}"
    assert len(lines) == 5