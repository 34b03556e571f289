"""Register human-readable ``.xrd`` names that point at addresses."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace
from decimal import Decimal

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

# Assuming an average epoch of about 35 minutes, 15k epochs roughly make a year.
EPOCHS_PER_YEAR = 15_000


def hash_name(name: str) -> int:
    """NFT id of ``name``: the first 16 bytes of its SHA-256 digest, little-endian."""
    digest = hashlib.sha256(name.encode("utf-8")).digest()
    return int.from_bytes(digest[:16], "little")


@dataclass
class DomainName:
    """Data carried by a domain name NFT."""

    address: str
    last_valid_epoch: int
    deposit_amount: Decimal


class RadixNameService:
    """Maps names to addresses; each registration locks a deposit in XRD."""

    def __init__(
        self,
        ledger: Ledger,
        admin_badge: ResourceDef,
        minter: Vault,
        name_resource: ResourceDef,
    ) -> None:
        self.ledger = ledger
        self.admin_badge = admin_badge
        self.minter = minter
        self.name_resource = name_resource
        self.deposits = Vault(ledger.xrd)
        self.fees = Vault(ledger.xrd)
        self.deposit_per_year = Decimal(50)
        self.fee_address_update = Decimal(10)
        self.fee_renewal_per_year = Decimal(25)
        self._registered: set[int] = set()

    @classmethod
    def create(cls, ledger: Ledger) -> tuple[RadixNameService, Bucket]:
        """Create the service; returns it together with the admin badge."""
        admin_badge = ledger.new_fungible(1, divisibility=DIVISIBILITY_NONE)
        minter = ledger.new_fungible(1, divisibility=DIVISIBILITY_NONE)
        name_resource = ledger.new_resource(
            {"name": "DomainName"},
            non_fungible=True,
            authority=minter.resource,
        )
        component = cls(
            ledger=ledger,
            admin_badge=admin_badge.resource,
            minter=Vault.with_bucket(minter),
            name_resource=name_resource,
        )
        return component, admin_badge

    def lookup_address(self, name: str) -> str:
        """Address that ``name`` points at; fails if the name is not registered."""
        data: DomainName = self.name_resource.get_nft_data(hash_name(name))
        return data.address

    def register_name(
        self,
        name: str,
        target_address: str,
        reserve_years: int,
        deposit: Bucket,
    ) -> tuple[Bucket, Bucket]:
        """Register ``name`` for ``reserve_years``; returns the name NFT and the change."""
        if not name.endswith(".xrd"):
            raise ContractError("The domain name must end on '.xrd'")
        if reserve_years <= 0:
            raise ContractError("A name must be reserved for at least one year")
        if deposit.resource is not self.ledger.xrd:
            raise ContractError("The deposit must be made in XRD")

        nft_id = hash_name(name)
        deposit_amount = to_decimal(self.deposit_per_year * reserve_years)
        last_valid_epoch = self.ledger.epoch + EPOCHS_PER_YEAR * reserve_years
        if deposit.amount < deposit_amount:
            raise ContractError(
                f"Insufficient deposit. You need to send a deposit of {deposit_amount} XRD"
            )

        data = DomainName(
            address=target_address,
            last_valid_epoch=last_valid_epoch,
            deposit_amount=deposit_amount,
        )
        name_nft = self.name_resource.mint_nft(nft_id, data, self.minter.present())
        self._registered.add(nft_id)
        self.deposits.put(deposit.take(deposit_amount))
        return name_nft, deposit

    def _split_names(self, name_nft: Bucket) -> list[tuple[int, Bucket]]:
        if name_nft.amount == 1:
            nft_id = name_nft.nft_id()
            return [(nft_id, name_nft)]
        pieces = []
        for nft_id in sorted(self._registered):
            if name_nft.is_empty():
                break
            try:
                pieces.append((nft_id, name_nft.take_nft(nft_id)))
            except ContractError:
                continue
        if not name_nft.is_empty():
            raise ContractError("The supplied bucket holds unknown domain names")
        return pieces

    def unregister_name(self, name_nft: Bucket) -> Bucket:
        """Burn the names in ``name_nft``; returns the deposits locked for them."""
        if name_nft.resource is not self.name_resource:
            raise ContractError("The supplied bucket does not represent a domain name NFT")
        if name_nft.is_empty():
            raise ContractError("The supplied bucket is empty")

        total_deposit_amount = Decimal(0)
        for nft_id, piece in self._split_names(name_nft):
            data: DomainName = self.name_resource.get_nft_data(nft_id)
            total_deposit_amount += data.deposit_amount
            self.name_resource.burn(piece, self.minter.present())
            self._registered.discard(nft_id)
        return self.deposits.take(to_decimal(total_deposit_amount))

    def _check_name_proof(self, name_nft: Proof, label: str) -> None:
        if name_nft.resource is not self.name_resource:
            raise ContractError(f"The {label} bucket does not represent a domain name NFT")
        if name_nft.amount != 1:
            raise ContractError(
                f"The {label} bucket must contain exactly one DomainName NFT"
            )

    def update_address(self, name_nft: Proof, new_address: str, fee: Bucket) -> Bucket:
        """Point the presented name at ``new_address``; returns any overpaid fee."""
        self._check_name_proof(name_nft, "name_nft")
        if fee.resource is not self.ledger.xrd:
            raise ContractError("The fee must be payed in XRD")
        fee_amount = self.fee_address_update
        if fee.amount < fee_amount:
            raise ContractError(
                f"Insufficient fee amount. You need to send a fee of {fee_amount} XRD"
            )

        nft_id = name_nft.nft_id()
        old: DomainName = self.name_resource.get_nft_data(nft_id)
        self.name_resource.update_nft_data(
            nft_id, replace(old, address=new_address), self.minter.present()
        )
        self.fees.put(fee.take(fee_amount))
        return fee

    def renew_name(self, name_nft: Proof, renew_years: int, fee: Bucket) -> Bucket:
        """Extend the presented name by ``renew_years``; returns any overpaid fee."""
        self._check_name_proof(name_nft, "supplied")
        if fee.resource is not self.ledger.xrd:
            raise ContractError("The fee must be payed in XRD")
        if renew_years <= 0:
            raise ContractError("The name must be renewed for at least one year")
        fee_amount = to_decimal(self.fee_renewal_per_year * renew_years)
        if fee.amount < fee_amount:
            raise ContractError(
                f"Insufficient fee amount. You need to send a fee of {fee_amount} XRD"
            )

        nft_id = name_nft.nft_id()
        data: DomainName = self.name_resource.get_nft_data(nft_id)
        renewed = replace(
            data, last_valid_epoch=data.last_valid_epoch + EPOCHS_PER_YEAR * renew_years
        )
        self.name_resource.update_nft_data(nft_id, renewed, self.minter.present())
        self.fees.put(fee.take(fee_amount))
        return fee