"""Hold tokens until enough signers approve sending them."""

from __future__ import annotations

from dappkit.ledger import (
    DIVISIBILITY_NONE,
    Account,
    Bucket,
    ContractError,
    Ledger,
    ResourceDef,
    Vault,
)


class MultiSigMaker:
    """Sends its tokens to a destination once ``min_required_sig`` badges approve."""

    def __init__(
        self,
        tokens: Vault,
        min_required_sig: int,
        badge_minter_badge: Vault,
        signer_badge: ResourceDef,
        destination: Account,
    ) -> None:
        self.tokens = tokens
        self.min_required_sig = min_required_sig
        self.badge_minter_badge = badge_minter_badge
        self.signer_badge = signer_badge
        self.badges_approved = 0
        self.destination = destination

    @classmethod
    def create(
        cls,
        ledger: Ledger,
        nb_badges: int,
        min_required_sig: int,
        destination: str,
        amount: Bucket,
    ) -> tuple[MultiSigMaker, Bucket]:
        """Create the component; returns it together with the signer badges."""
        if min_required_sig > nb_badges:
            raise ContractError("Min required sig can't be greater than amount of badges")
        badge_minter_badge = ledger.new_fungible(1, divisibility=DIVISIBILITY_NONE)
        signer_badge = ledger.new_resource(
            {"name": "MultiSig Signer Badge"},
            divisibility=DIVISIBILITY_NONE,
            authority=badge_minter_badge.resource,
        )
        badges = signer_badge.mint(nb_badges, badge_minter_badge.present())
        component = cls(
            tokens=Vault.with_bucket(amount),
            min_required_sig=min_required_sig,
            badge_minter_badge=Vault.with_bucket(badge_minter_badge),
            signer_badge=signer_badge,
            destination=ledger.account(destination),
        )
        return component, badges

    def approve(self, auth_badge: Bucket) -> None:
        """Burn one signer badge as an approval; send the tokens on the last one needed."""
        if auth_badge.amount <= 0:
            raise ContractError("Invalid auth")
        if auth_badge.resource is not self.signer_badge:
            raise ContractError("Invalid badge")
        if self.badges_approved >= self.min_required_sig:
            raise ContractError("Transaction already approved by majority")
        self.signer_badge.burn(auth_badge, self.badge_minter_badge.present())
        self.badges_approved += 1
        if self.badges_approved >= self.min_required_sig:
            self.destination.deposit(self.tokens.take_all())