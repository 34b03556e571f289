"""Two-party token swap held in escrow until both accept or one cancels."""

from __future__ import annotations

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


class Escrow:
    """Holds token A from party A and token B from party B."""

    def __init__(
        self,
        token_a: Vault,
        token_b: Vault,
        account_a_badge: ResourceDef,
        account_b_badge: ResourceDef,
    ) -> None:
        self.token_a = token_a
        self.token_b = token_b
        self.account_a_badge = account_a_badge
        self.account_b_badge = account_b_badge
        self.account_a_accepted = False
        self.account_b_accepted = False
        self.trade_canceled = False

    @classmethod
    def create(
        cls,
        ledger: Ledger,
        token_a: ResourceDef | str,
        token_b: ResourceDef | str,
    ) -> tuple[Escrow, Bucket, Bucket]:
        """Create the component; returns it with the badges of party A and party B."""
        badge_a = ledger.new_fungible(1, {"symbol": "BADGE A"}, DIVISIBILITY_NONE)
        badge_b = ledger.new_fungible(1, {"symbol": "BADGE B"}, DIVISIBILITY_NONE)
        component = cls(
            token_a=Vault(_resource(ledger, token_a)),
            token_b=Vault(_resource(ledger, token_b)),
            account_a_badge=badge_a.resource,
            account_b_badge=badge_b.resource,
        )
        return component, badge_a, badge_b

    def _is_party_a(self, proof: Proof) -> bool:
        if proof.resource is not self.account_a_badge and (
            proof.resource is not self.account_b_badge
        ):
            raise ContractError("Not authorized")
        if proof.amount <= 0:
            raise ContractError("Invalid user proof")
        return proof.resource is self.account_a_badge

    def put_tokens(self, tokens: Bucket, proof: Proof) -> None:
        """Deposit the presenting party's side of the trade."""
        is_a = self._is_party_a(proof)
        if self.account_a_accepted or self.account_b_accepted:
            raise ContractError("Can't add more tokens when someone accepted")
        if self.trade_canceled:
            raise ContractError("The trade was canceled")
        (self.token_a if is_a else self.token_b).put(tokens)

    def withdraw(self, proof: Proof) -> Bucket:
        """After acceptance take the other side; after cancellation take one's own back."""
        is_a = self._is_party_a(proof)
        if not (
            self.trade_canceled or (self.account_a_accepted and self.account_b_accepted)
        ):
            raise ContractError("The trade must be accepted or canceled")
        own, other = (self.token_a, self.token_b) if is_a else (self.token_b, self.token_a)
        return own.take_all() if self.trade_canceled else other.take_all()

    def accept(self, proof: Proof) -> None:
        is_a = self._is_party_a(proof)
        if not (self.token_a.amount > 0 and self.token_b.amount > 0):
            raise ContractError(
                "Both parties must add their tokens before you can accept"
            )
        if self.trade_canceled:
            raise ContractError("The trade was canceled")
        if is_a:
            if self.account_a_accepted:
                raise ContractError("You already accepted the offer !")
            self.account_a_accepted = True
        else:
            if self.account_b_accepted:
                raise ContractError("You already accepted the offer !")
            self.account_b_accepted = True

    def cancel(self, proof: Proof) -> None:
        self._is_party_a(proof)
        if self.account_a_accepted and self.account_b_accepted:
            raise ContractError("The trade is already over, everyone accepted")
        if self.trade_canceled:
            raise ContractError("The trade is already canceled")
        self.trade_canceled = True