"""Split a bucket of tokens evenly among registered recipients."""

from __future__ import annotations

from decimal import localcontext

from dappkit.ledger import (
    DIVISIBILITY_NONE,
    Bucket,
    ContractError,
    Ledger,
    Proof,
    ResourceDef,
    to_decimal,
)


def _require(proof: Proof, badge: ResourceDef) -> None:
    if proof.resource is not badge or proof.amount <= 0:
        raise ContractError("Not authorized")


class Airdrop:
    """An airdrop controlled by an admin badge."""

    def __init__(self, ledger: Ledger, admin_badge: ResourceDef) -> None:
        self.ledger = ledger
        self.admin_badge = admin_badge
        self.recipients: list[str] = []

    @classmethod
    def create(cls, ledger: Ledger) -> tuple[Airdrop, Bucket]:
        """Create the component; returns it together with the admin badge."""
        admin_badge = ledger.new_fungible(1, divisibility=DIVISIBILITY_NONE)
        return cls(ledger, admin_badge.resource), admin_badge

    def add_recipient(self, recipient: str, proof: Proof) -> None:
        _require(proof, self.admin_badge)
        self.recipients.append(recipient)

    def perform_airdrop(self, tokens: Bucket, proof: Proof) -> None:
        """Share ``tokens`` between all recipients; the last one gets the remainder."""
        _require(proof, self.admin_badge)
        if not self.recipients:
            raise ContractError(
                "You must register at least one recipient before performing an airdrop"
            )
        accounts = [self.ledger.account(address) for address in self.recipients]
        with localcontext() as ctx:
            ctx.prec = 80
            amount_per_recipient = to_decimal(tokens.amount / len(accounts))
        *others, last = accounts
        for account in others:
            account.deposit(tokens.take(amount_per_recipient))
        last.deposit(tokens)