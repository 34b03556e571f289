"""Airdrop where each recipient holds an NFT badge and withdraws their own share."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from dappkit.ledger import (
    DIVISIBILITY_NONE,
    Bucket,
    ContractError,
    Ledger,
    Proof,
    ResourceDef,
    Vault,
)


def _resource(ledger: Ledger, value: ResourceDef | str) -> ResourceDef:
    return value if isinstance(value, ResourceDef) else ledger.resource(value)


def _require(proof: Proof, badge: ResourceDef) -> None:
    if proof.resource is not badge or proof.amount <= 0:
        raise ContractError("Not authorized")


@dataclass
class AirdropWithWithdrawData:
    """Data carried by a recipient badge."""

    amount: Decimal
    token_type: str
    is_collected: bool = False


class AirdropWithWithdraw:
    """Holds airdropped tokens until each recipient withdraws them."""

    def __init__(
        self,
        ledger: Ledger,
        admin_badge: ResourceDef,
        tokens: Vault,
        recipient_badge_def: ResourceDef,
        minter_badge_vault: Vault,
    ) -> None:
        self.ledger = ledger
        self.admin_badge = admin_badge
        self.tokens = tokens
        self.recipient_badge_def = recipient_badge_def
        self.minter_badge_vault = minter_badge_vault

    @classmethod
    def create(
        cls, ledger: Ledger, token_type: ResourceDef | str
    ) -> tuple[AirdropWithWithdraw, Bucket]:
        """Create the component; returns it together with the admin badge."""
        token = _resource(ledger, token_type)
        admin_badge = ledger.new_fungible(1, divisibility=DIVISIBILITY_NONE)
        minter_badge = ledger.new_fungible(
            1, {"name": "minter badge"}, divisibility=DIVISIBILITY_NONE
        )
        recipient_badge_def = ledger.new_resource(
            {"name": "recipient badge"},
            non_fungible=True,
            authority=minter_badge.resource,
        )
        component = cls(
            ledger=ledger,
            admin_badge=admin_badge.resource,
            tokens=Vault(token),
            recipient_badge_def=recipient_badge_def,
            minter_badge_vault=Vault.with_bucket(minter_badge),
        )
        return component, admin_badge

    def add_recipient(self, recipient: str, tokens: Bucket, proof: Proof) -> None:
        """Lock ``tokens`` for ``recipient`` and send them a badge to claim them."""
        _require(proof, self.admin_badge)
        if tokens.amount <= 0:
            raise ContractError("tokens quantity cannot be 0")
        if tokens.resource is not self.tokens.resource:
            raise ContractError("token address must match")
        account = self.ledger.account(recipient)
        data = AirdropWithWithdrawData(
            amount=tokens.amount,
            token_type=tokens.resource.address,
            is_collected=False,
        )
        badge = self.recipient_badge_def.mint_nft(
            self.ledger.new_id(), data, self.minter_badge_vault.present()
        )
        self.tokens.put(tokens)
        account.deposit(badge)

    def available_token(self, proof: Proof) -> Decimal:
        """Amount the presented badge may still withdraw."""
        _require(proof, self.recipient_badge_def)
        data: AirdropWithWithdrawData = self.recipient_badge_def.get_nft_data(
            proof.nft_id()
        )
        result = Decimal(0) if data.is_collected else data.amount
        self.ledger.info(f"available : {result}")
        return result

    def withdraw_token(self, proof: Proof) -> Bucket:
        """Withdraw the tokens reserved for the presented badge, once."""
        _require(proof, self.recipient_badge_def)
        nft_id = proof.nft_id()
        data: AirdropWithWithdrawData = self.recipient_badge_def.get_nft_data(nft_id)
        if data.is_collected:
            raise ContractError("withdraw already done")
        data.is_collected = True
        amount = data.amount
        self.recipient_badge_def.update_nft_data(
            nft_id, data, self.minter_badge_vault.present()
        )
        self.ledger.info(f"withdraw_token : {amount}")
        return self.tokens.take(amount)