"""In-memory ledger of resources, buckets, vaults, proofs and accounts."""

from __future__ import annotations

import copy
import itertools
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext
from typing import Any, Iterable

DIVISIBILITY_NONE = 0
DIVISIBILITY_MAXIMUM = 18
INITIAL_ACCOUNT_BALANCE = 1_000_000

_PRECISION = 80
_QUANTUM = Decimal(1).scaleb(-DIVISIBILITY_MAXIMUM)


class ContractError(Exception):
    """Raised where a contract or the ledger refuses an operation."""


def to_decimal(value: Any) -> Decimal:
    """Convert a number or numeric string to a ledger amount (18 places, truncated)."""
    if isinstance(value, bool):
        raise ContractError(f"Invalid decimal: {value!r}")
    if isinstance(value, float):
        value = repr(value)
    try:
        with localcontext() as ctx:
            ctx.prec = _PRECISION
            number = value if isinstance(value, Decimal) else Decimal(value)
            if not number.is_finite():
                raise ContractError(f"Invalid decimal: {value!r}")
            number = number.quantize(_QUANTUM, rounding=ROUND_DOWN)
            if number == 0:
                return Decimal(0)
            if number == number.to_integral_value():
                return number.quantize(Decimal(1))
            return number.normalize()
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ContractError(f"Invalid decimal: {value!r}") from exc


def _add(left: Decimal, right: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return to_decimal(left + right)


def _sub(left: Decimal, right: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return to_decimal(left - right)


def _fits(amount: Decimal, divisibility: int) -> bool:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        step = Decimal(1).scaleb(-divisibility)
        return amount == amount.quantize(step, rounding=ROUND_DOWN)


class ResourceDef:
    """Definition of a fungible or non-fungible resource."""

    def __init__(
        self,
        address: str,
        metadata: dict[str, str] | None = None,
        divisibility: int = DIVISIBILITY_MAXIMUM,
        non_fungible: bool = False,
        authority: ResourceDef | None = None,
    ) -> None:
        self.address = address
        self.metadata = dict(metadata or {})
        self.divisibility = divisibility
        self.non_fungible = non_fungible
        self.authority = authority
        self.total_supply = Decimal(0)
        self._nft_data: dict[int, Any] = {}

    def __repr__(self) -> str:
        return f"ResourceDef({self.address!r})"

    def _authorize(self, auth: Proof | None) -> None:
        if (
            self.authority is None
            or auth is None
            or auth.resource is not self.authority
            or auth.amount <= 0
        ):
            raise ContractError("Not authorized")

    def _issue(self, amount: Decimal) -> Bucket:
        amount = to_decimal(amount)
        if amount < 0:
            raise ContractError("Negative amount")
        if not _fits(amount, self.divisibility):
            raise ContractError("Amount exceeds the divisibility of the resource")
        self.total_supply = _add(self.total_supply, amount)
        return Bucket(self, amount)

    def mint(self, amount: Any, auth: Proof) -> Bucket:
        """Mint new fungible units, authorised by a proof of the minting badge."""
        if self.non_fungible:
            raise ContractError("Non-fungible resources are minted with mint_nft")
        self._authorize(auth)
        amount = to_decimal(amount)
        if amount <= 0:
            raise ContractError("Mint amount must be positive")
        return self._issue(amount)

    def mint_nft(self, nft_id: int, data: Any, auth: Proof) -> Bucket:
        """Mint one non-fungible unit carrying ``data``."""
        if not self.non_fungible:
            raise ContractError("Fungible resources are minted with mint")
        self._authorize(auth)
        if nft_id in self._nft_data:
            raise ContractError(f"NFT {nft_id} already exists")
        self._nft_data[nft_id] = copy.deepcopy(data)
        self.total_supply = _add(self.total_supply, Decimal(1))
        return Bucket(self, nft_ids=[nft_id])

    def burn(self, bucket: Bucket, auth: Proof) -> None:
        """Destroy everything in ``bucket``."""
        if bucket.resource is not self:
            raise ContractError("Resource mismatch")
        self._authorize(auth)
        burned = bucket.take_all()
        for nft_id in burned.nft_ids:
            del self._nft_data[nft_id]
        self.total_supply = _sub(self.total_supply, burned.amount)

    def get_nft_data(self, nft_id: int) -> Any:
        """Return a copy of the data of one NFT."""
        try:
            return copy.deepcopy(self._nft_data[nft_id])
        except KeyError:
            raise ContractError(f"NFT {nft_id} not found") from None

    def update_nft_data(self, nft_id: int, data: Any, auth: Proof) -> None:
        """Replace the data of one NFT."""
        self._authorize(auth)
        if nft_id not in self._nft_data:
            raise ContractError(f"NFT {nft_id} not found")
        self._nft_data[nft_id] = copy.deepcopy(data)


class Bucket:
    """A transient container of one resource."""

    def __init__(
        self,
        resource: ResourceDef,
        amount: Any = 0,
        nft_ids: Iterable[int] = (),
    ) -> None:
        self.resource = resource
        self._amount = Decimal(0) if resource.non_fungible else to_decimal(amount)
        self._nft_ids: set[int] = set(nft_ids)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.resource.address!r}, {self.amount})"

    @property
    def amount(self) -> Decimal:
        if self.resource.non_fungible:
            return Decimal(len(self._nft_ids))
        return self._amount

    @property
    def nft_ids(self) -> list[int]:
        return sorted(self._nft_ids)

    def take(self, amount: Any) -> Bucket:
        """Split ``amount`` off into a new bucket."""
        amount = to_decimal(amount)
        if amount < 0:
            raise ContractError("Negative amount")
        if amount > self.amount:
            raise ContractError("Insufficient balance")
        if not _fits(amount, self.resource.divisibility):
            raise ContractError("Amount exceeds the divisibility of the resource")
        if self.resource.non_fungible:
            taken = self.nft_ids[: int(amount)]
            self._nft_ids.difference_update(taken)
            return Bucket(self.resource, nft_ids=taken)
        self._amount = _sub(self._amount, amount)
        return Bucket(self.resource, amount)

    def take_all(self) -> Bucket:
        return self.take(self.amount)

    def take_nft(self, nft_id: int) -> Bucket:
        if nft_id not in self._nft_ids:
            raise ContractError(f"NFT {nft_id} not found")
        self._nft_ids.remove(nft_id)
        return Bucket(self.resource, nft_ids=[nft_id])

    def put(self, other: Bucket) -> None:
        """Move everything in ``other`` into this container."""
        if other.resource is not self.resource:
            raise ContractError("Resource mismatch")
        if self.resource.non_fungible:
            self._nft_ids.update(other._nft_ids)
            other._nft_ids.clear()
        else:
            self._amount = _add(self._amount, other._amount)
            other._amount = Decimal(0)

    def is_empty(self) -> bool:
        return self.amount == 0

    def nft_id(self) -> int:
        if len(self._nft_ids) != 1:
            raise ContractError("Expected exactly one NFT")
        return next(iter(self._nft_ids))

    def present(self) -> Proof:
        """Prove ownership of the contents without giving them away."""
        return Proof(self.resource, self.amount, frozenset(self._nft_ids))


class Vault(Bucket):
    """A permanent container of one resource, owned by a component."""

    @classmethod
    def with_bucket(cls, bucket: Bucket) -> Vault:
        vault = cls(bucket.resource)
        vault.put(bucket)
        return vault


@dataclass(frozen=True)
class Proof:
    """Evidence that the holder owns some amount of a resource."""

    resource: ResourceDef
    amount: Decimal
    nft_ids: frozenset = frozenset()

    def nft_id(self) -> int:
        if len(self.nft_ids) != 1:
            raise ContractError("Expected exactly one NFT")
        return next(iter(self.nft_ids))


class Account:
    """A user account holding one vault per resource."""

    def __init__(self, address: str) -> None:
        self.address = address
        self._vaults: dict[str, Vault] = {}

    def __repr__(self) -> str:
        return f"Account({self.address!r})"

    @staticmethod
    def _key(resource: ResourceDef | str) -> str:
        return resource.address if isinstance(resource, ResourceDef) else resource

    def _vault(self, resource: ResourceDef | str) -> Vault:
        try:
            return self._vaults[self._key(resource)]
        except KeyError:
            raise ContractError("Insufficient balance") from None

    def deposit(self, bucket: Bucket) -> None:
        vault = self._vaults.get(bucket.resource.address)
        if vault is None:
            vault = self._vaults[bucket.resource.address] = Vault(bucket.resource)
        vault.put(bucket)

    def withdraw(self, resource: ResourceDef | str, amount: Any) -> Bucket:
        return self._vault(resource).take(amount)

    def withdraw_nft(self, resource: ResourceDef | str, nft_id: int) -> Bucket:
        return self._vault(resource).take_nft(nft_id)

    def present(self, resource: ResourceDef | str, amount: Any = 1) -> Proof:
        """Prove ownership of ``amount`` of ``resource`` held by this account."""
        bucket = self.withdraw(resource, amount)
        proof = bucket.present()
        self.deposit(bucket)
        return proof

    def balance(self, resource: ResourceDef | str) -> Decimal:
        vault = self._vaults.get(self._key(resource))
        return vault.amount if vault is not None else Decimal(0)

    def nft_ids(self, resource: ResourceDef | str) -> list[int]:
        vault = self._vaults.get(self._key(resource))
        return vault.nft_ids if vault is not None else []


class Ledger:
    """Registry of resources and accounts, with an epoch clock and a log."""

    def __init__(self, epoch: int = 0) -> None:
        self.epoch = epoch
        self.logs: list[str] = []
        self._addresses = itertools.count(1)
        self._ids = itertools.count(1)
        self._resources: dict[str, ResourceDef] = {}
        self._accounts: dict[str, Account] = {}
        self.xrd = self.new_resource({"name": "Radix", "symbol": "XRD"})

    def new_address(self, kind: str) -> str:
        return f"{kind}_{next(self._addresses):024x}"

    def new_id(self) -> int:
        return next(self._ids)

    def new_resource(
        self,
        metadata: dict[str, str] | None = None,
        divisibility: int = DIVISIBILITY_MAXIMUM,
        non_fungible: bool = False,
        authority: ResourceDef | None = None,
    ) -> ResourceDef:
        """Define a resource with no supply."""
        if not DIVISIBILITY_NONE <= divisibility <= DIVISIBILITY_MAXIMUM:
            raise ContractError("Invalid divisibility")
        if non_fungible:
            divisibility = DIVISIBILITY_NONE
        resource = ResourceDef(
            self.new_address("resource"), metadata, divisibility, non_fungible, authority
        )
        self._resources[resource.address] = resource
        return resource

    def new_fungible(
        self,
        amount: Any,
        metadata: dict[str, str] | None = None,
        divisibility: int = DIVISIBILITY_MAXIMUM,
    ) -> Bucket:
        """Define a fungible resource with a fixed initial supply."""
        resource = self.new_resource(metadata, divisibility)
        return resource._issue(to_decimal(amount))

    def new_account(self) -> Account:
        """Open an account funded with the starting XRD balance."""
        account = Account(self.new_address("account"))
        account.deposit(self.xrd._issue(Decimal(INITIAL_ACCOUNT_BALANCE)))
        self._accounts[account.address] = account
        return account

    def account(self, address: str) -> Account:
        try:
            return self._accounts[address]
        except KeyError:
            raise ContractError(f"No account at {address}") from None

    def resource(self, address: str) -> ResourceDef:
        try:
            return self._resources[address]
        except KeyError:
            raise ContractError(f"No resource at {address}") from None

    def advance_epoch(self, count: int = 1) -> None:
        if count < 0:
            raise ContractError("Epochs cannot go backwards")
        self.epoch += count

    def info(self, message: str) -> None:
        self.logs.append(message)