"""Two demo services paid for in utility tokens."""

from __future__ import annotations

from dappkit.ledger import Bucket, ContractError, Ledger, Vault
from dappkit.utility_token import UtilityTokenFactory

REDEEM_THRESHOLD = 100


class ServiceStub:
    """Charges utility tokens for a simple and a premium service."""

    def __init__(self, ledger: Ledger, utf: UtilityTokenFactory, used_tokens: Vault) -> None:
        self.ledger = ledger
        self.utf = utf
        self.used_tokens = used_tokens
        self.simple_service_count = 0
        self.premium_service_count = 0

    @classmethod
    def create(cls, ledger: Ledger, factory: UtilityTokenFactory) -> ServiceStub:
        """Wrap an existing utility token factory."""
        return cls(ledger, factory, Vault(ledger.resource(factory.address())))

    def _maybe_redeem(self) -> None:
        if self.used_tokens.amount > REDEEM_THRESHOLD:
            self.utf.redeem(self.used_tokens.take_all())

    def show(self) -> list[str]:
        """Log how many services were performed; returns the lines logged."""
        lines = [
            f"Simple Services performed: {self.simple_service_count}",
            f"Premium Services performed: {self.premium_service_count}",
        ]
        for line in lines:
            self.ledger.info(line)
        return lines

    def simple_service(self, payment: Bucket) -> Bucket:
        """Charge one utility token; returns the change."""
        message = "Simple service requires 1 util token"
        if payment.resource.address != self.utf.address():
            raise ContractError(message)
        if payment.amount < 1:
            raise ContractError(message)
        if self.utf.address() != self.used_tokens.resource.address:
            raise ContractError("Mismatch in Vault setup.")
        self.used_tokens.put(payment.take(1))
        self.ledger.info("Performing Simple Service now.")
        self.simple_service_count += 1
        self._maybe_redeem()
        return payment

    def premium_service(self, payment: Bucket) -> Bucket:
        """Charge three utility tokens; returns the change."""
        message = "Premium service requires 3 util tokens"
        if payment.resource.address != self.utf.address():
            raise ContractError(message)
        if payment.amount < 3:
            raise ContractError(message)
        self.used_tokens.put(payment.take(3))
        self.ledger.info("Performing Premium Service now.")
        self.premium_service_count += 1
        self._maybe_redeem()
        return payment