"""Sell a utility token for XRD, minting more in batches as it runs out."""

from __future__ import annotations

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


def _require(proof: Proof, badge: ResourceDef) -> None:
    if proof.resource is not badge or proof.amount <= 0:
        raise ContractError("Not authorized")


class UtilityTokenFactory:
    """Creates and sells a utility token used to pay for services."""

    def __init__(
        self,
        ledger: Ledger,
        ut_minter_vault: Vault,
        ut_minter_badge: ResourceDef,
        available_ut: Vault,
        ut_symbol: str,
        ut_token_price: Decimal,
        ut_max_buy: int,
        ut_mint_size: int,
    ) -> None:
        self.ledger = ledger
        self.ut_minter_vault = ut_minter_vault
        self.ut_minter_badge = ut_minter_badge
        self.available_ut = available_ut
        self.ut_symbol = ut_symbol
        self.ut_token_price = ut_token_price
        self.collected_xrd = Vault(ledger.xrd)
        self.ut_max_buy = ut_max_buy
        self.ut_mint_size = ut_mint_size
        self.total_claimed = Decimal(0)
        self.total_minted = ut_mint_size
        self.total_redeemed = Decimal(0)

    @classmethod
    def create(
        cls,
        ledger: Ledger,
        my_id: str,
        ut_name: str,
        ut_symbol: str,
        ut_description: str,
        price: int,
        mint_size: int,
        max_buy: int,
    ) -> tuple[UtilityTokenFactory, Bucket]:
        """Create the factory; returns it together with one minter badge for the caller."""
        if mint_size <= 0:
            raise ContractError("You must specify a non-zero number for the mint_size.")
        if max_buy > mint_size:
            raise ContractError(
                "The single purchase max buy size should be less than or equal "
                "to the mint size."
            )
        minter = ledger.new_fungible(2, {"name": my_id}, DIVISIBILITY_NONE)
        returned_badge = minter.take(1)
        ut_resource = ledger.new_resource(
            {"name": ut_name, "symbol": ut_symbol, "description": ut_description},
            authority=minter.resource,
        )
        tokens = ut_resource.mint(mint_size, minter.present())
        component = cls(
            ledger=ledger,
            ut_minter_vault=Vault.with_bucket(minter),
            ut_minter_badge=minter.resource,
            available_ut=Vault.with_bucket(tokens),
            ut_symbol=ut_symbol,
            ut_token_price=to_decimal(price),
            ut_max_buy=max_buy,
            ut_mint_size=mint_size,
        )
        return component, returned_badge

    def address(self) -> str:
        """Address of the utility token resource."""
        return self.available_ut.resource.address

    def purchase(self, number: int, payment: Bucket) -> tuple[Bucket, Bucket]:
        """Buy up to ``number`` tokens; returns the change and the tokens bought."""
        if payment.resource is not self.ledger.xrd:
            raise ContractError("You must purchase the utility tokens with Radix (XRD).")
        num = number
        if num > self.ut_max_buy:
            num = self.ut_max_buy
            self.ledger.info(
                f"A max of {self.ut_max_buy} tokens can be purcahsed at a time."
            )
        cost = to_decimal(self.ut_token_price * num)
        ut_bucket = self.available_ut.take(Decimal(0))
        if payment.amount < cost:
            self.ledger.info(
                f"Insufficient funds. Required payment for {num} UT tokens is {cost} XRD."
            )
            return payment, ut_bucket

        self.ledger.info("Thank you!")
        if self.available_ut.amount < num:
            resource = self.available_ut.resource
            self.available_ut.put(
                resource.mint(self.ut_mint_size, self.ut_minter_vault.present())
            )
            self.total_minted += self.ut_mint_size
        self.collected_xrd.put(payment.take(cost))
        ut_bucket.put(self.available_ut.take(num))
        return payment, ut_bucket

    def show_bank(self, proof: Proof) -> list[str]:
        """Log the factory's totals; returns the lines logged."""
        _require(proof, self.ut_minter_badge)
        symbol = self.ut_symbol
        lines = [
            f"Available {symbol}: {self.available_ut.amount}",
            f"Claimable XRD: {self.collected_xrd.amount}",
            f"Total XRD Claimed: {self.total_claimed}",
            f"Total {symbol} Minted: {self.total_minted}",
            f"Total {symbol} Redeemed: {self.total_redeemed}",
        ]
        for line in lines:
            self.ledger.info(line)
        return lines

    def claim(self, proof: Proof) -> Bucket:
        """Take all collected XRD."""
        _require(proof, self.ut_minter_badge)
        self.total_claimed += self.collected_xrd.amount
        return self.collected_xrd.take_all()

    def redeem(self, used_tokens: Bucket) -> None:
        """Burn spent utility tokens."""
        if used_tokens.amount <= 0:
            return
        if used_tokens.resource is not self.available_ut.resource:
            raise ContractError("You can only redeem the expected utility tokens.")
        self.total_redeemed += used_tokens.amount
        self.available_ut.resource.burn(used_tokens, self.ut_minter_vault.present())