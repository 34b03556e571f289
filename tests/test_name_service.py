from decimal import Decimal

import pytest

from dappkit.ledger import Account, ContractError, Ledger
from dappkit.name_service import EPOCHS_PER_YEAR, RadixNameService, hash_name


def _account(ledger):
    account = ledger.new_account()
    return account if isinstance(account, Account) else ledger.account(account)


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def service(ledger):
    component, _admin = RadixNameService.create(ledger)
    return component


@pytest.fixture
def user(ledger):
    return _account(ledger)


def _xrd(ledger, user, amount):
    return user.withdraw(ledger.xrd, amount)


def test_hash_name_is_deterministic_and_fits_128_bits():
    first = hash_name("alice.xrd")
    assert first == hash_name("alice.xrd")
    assert 0 <= first < 2**128
    assert hash_name("alice.xrd") != hash_name("bob.xrd")


def test_register_and_lookup(ledger, service, user):
    name_nft, change = service.register_name(
        "alice.xrd", "target-address", 1, _xrd(ledger, user, 100)
    )
    assert name_nft.amount == 1
    assert name_nft.nft_id() == hash_name("alice.xrd")
    assert change.amount + service.deposits.amount == 100
    assert service.deposits.amount == service.deposit_per_year
    assert service.lookup_address("alice.xrd") == "target-address"


def test_register_sets_expiry(ledger, service, user):
    start = ledger.epoch
    service.register_name("alice.xrd", "target", 3, _xrd(ledger, user, 200))
    data = service.name_resource.get_nft_data(hash_name("alice.xrd"))
    assert data.last_valid_epoch == start + EPOCHS_PER_YEAR * 3
    assert data.deposit_amount == service.deposit_per_year * 3


def test_register_requires_xrd_suffix(ledger, service, user):
    with pytest.raises(ContractError, match="must end on '.xrd'"):
        service.register_name("alice.com", "target", 1, _xrd(ledger, user, 100))


def test_register_requires_at_least_one_year(ledger, service, user):
    with pytest.raises(ContractError, match="at least one year"):
        service.register_name("alice.xrd", "target", 0, _xrd(ledger, user, 100))


def test_register_requires_xrd_deposit(ledger, service):
    other = ledger.new_fungible(100)
    with pytest.raises(ContractError, match="The deposit must be made in XRD"):
        service.register_name("alice.xrd", "target", 1, other)


def test_register_insufficient_deposit(ledger, service, user):
    with pytest.raises(
        ContractError,
        match="Insufficient deposit. You need to send a deposit of 50 XRD",
    ):
        service.register_name("alice.xrd", "target", 1, _xrd(ledger, user, 10))


def test_update_address(ledger, service, user):
    name_nft, _ = service.register_name("alice.xrd", "old", 1, _xrd(ledger, user, 50))
    change = service.update_address(name_nft.present(), "new", _xrd(ledger, user, 15))
    assert service.lookup_address("alice.xrd") == "new"
    assert change.amount + service.fees.amount == 15
    assert service.fees.amount == service.fee_address_update


def test_update_address_insufficient_fee(ledger, service, user):
    name_nft, _ = service.register_name("alice.xrd", "old", 1, _xrd(ledger, user, 50))
    with pytest.raises(ContractError, match="fee of 10 XRD"):
        service.update_address(name_nft.present(), "new", _xrd(ledger, user, 5))
    assert service.lookup_address("alice.xrd") == "old"


def test_update_address_wrong_resource(ledger, service, user):
    fake = ledger.new_fungible(1)
    with pytest.raises(ContractError, match="does not represent a domain name NFT"):
        service.update_address(fake.present(), "new", _xrd(ledger, user, 10))


def test_renew_name(ledger, service, user):
    name_nft, _ = service.register_name("alice.xrd", "target", 1, _xrd(ledger, user, 50))
    before = service.name_resource.get_nft_data(hash_name("alice.xrd")).last_valid_epoch
    change = service.renew_name(name_nft.present(), 2, _xrd(ledger, user, 60))
    after = service.name_resource.get_nft_data(hash_name("alice.xrd")).last_valid_epoch
    assert after == before + EPOCHS_PER_YEAR * 2
    assert service.fees.amount == service.fee_renewal_per_year * 2
    assert change.amount + service.fees.amount == 60


def test_renew_requires_positive_years(ledger, service, user):
    name_nft, _ = service.register_name("alice.xrd", "target", 1, _xrd(ledger, user, 50))
    with pytest.raises(ContractError, match="renewed for at least one year"):
        service.renew_name(name_nft.present(), 0, _xrd(ledger, user, 50))


def test_unregister_returns_deposit(ledger, service, user):
    name_nft, _ = service.register_name("alice.xrd", "target", 2, _xrd(ledger, user, 100))
    refund = service.unregister_name(name_nft)
    assert refund.resource is ledger.xrd
    assert refund.amount == service.deposit_per_year * 2
    assert service.deposits.amount == Decimal(0)


def test_unregister_wrong_resource(ledger, service):
    fake = ledger.new_fungible(1)
    with pytest.raises(ContractError, match="does not represent a domain name NFT"):
        service.unregister_name(fake)