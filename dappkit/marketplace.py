"""Marketplace where sellers list products and payment is held until delivery."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from decimal import Decimal
from itertools import islice
from typing import Any

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

MAX_PRODUCTS_BY_PAGE = 100


def _resource(ledger: Ledger, value: ResourceDef | str) -> ResourceDef:
    return value if isinstance(value, ResourceDef) else ledger.resource(value)


def _require(proof: Proof, badge: ResourceDef) -> None:
    if proof.resource is not badge or proof.amount <= 0:
        raise ContractError("Not authorized")


@dataclass
class Product:
    """A product offered for sale."""

    id: int
    name: str
    price: Decimal

    def __str__(self) -> str:
        return f"{self.id}|{self.name}|{self.price}"


@dataclass
class PostalAddress:
    street: str = ""
    zip_code: str = ""
    city: str = ""


@dataclass
class _PermanentSellerNftData:
    """Data of a permanent seller badge; it carries nothing."""


@dataclass
class SellerNftData:
    """Data of the badge a seller receives for one listed product."""

    product_id: int
    has_been_sent: bool = False
    postal_stamp_collected: bool = False
    was_received_by_buyer: bool = False
    buyer_address: PostalAddress = field(default_factory=PostalAddress)
    product_has_been_purchased: bool = False


@dataclass
class BuyerNftData:
    """Data of the badge a buyer receives for one purchased product."""

    product_id: int
    fees: Decimal
    has_been_sent_by_seller: bool = False


class ProductMarketPlace:
    """Lists products, escrows payments and releases them once reception is confirmed."""

    def __init__(
        self,
        ledger: Ledger,
        token_type: ResourceDef,
        admin_badge: ResourceDef,
        seller_buyer_product_minter_badge_vault: Vault,
        seller_permanent_badge_vault: Vault,
        seller_buyer_product_badge_def: ResourceDef,
        seller_permanent_badge_def: ResourceDef,
        sell_fees: Decimal,
        buy_fees: Decimal,
    ) -> None:
        self.ledger = ledger
        self.fees_vault = Vault(token_type)
        self.permanent_seller_nft_id_by_products_id: dict[int, int] = {}
        self.products_for_sale: dict[int, Product] = {}
        self.seller_nft_id_by_product_id: dict[int, int] = {}
        self.buyer_nft_id_by_product_id: dict[int, int] = {}
        self.admin_badge = admin_badge
        self.seller_buyer_product_minter_badge_vault = seller_buyer_product_minter_badge_vault
        self.seller_permanent_badge_vault = seller_permanent_badge_vault
        self.seller_buyer_product_badge_def = seller_buyer_product_badge_def
        self.seller_permanent_badge_def = seller_permanent_badge_def
        self.vault_by_seller: dict[int, Vault] = {}
        self.sell_fees = sell_fees
        self.buy_fees = buy_fees
        self.token_type = token_type
        self.payment_by_buyer_nft_id: dict[int, Vault] = {}

    @classmethod
    def create(
        cls,
        ledger: Ledger,
        token_type: ResourceDef | str,
        sell_fees: Any,
        buy_fees: Any,
    ) -> tuple[ProductMarketPlace, Bucket]:
        """Create the marketplace; returns it together with the admin badge."""
        token = _resource(ledger, token_type)
        admin_badge = ledger.new_fungible(1, divisibility=DIVISIBILITY_NONE)
        product_minter = ledger.new_fungible(
            1, {"name": "seller buyer minter product badge"}, DIVISIBILITY_NONE
        )
        permanent_minter = ledger.new_fungible(
            1, {"name": "seller minter permanent badge"}, DIVISIBILITY_NONE
        )
        product_badge_def = ledger.new_resource(
            {
                "name": "seller or buyer badge ",
                "description": "this badge give to seller rigth to get postal stamp "
                "to send product to buyer. The buyer use this badge for confirming "
                "product reception",
            },
            non_fungible=True,
            authority=product_minter.resource,
        )
        permanent_badge_def = ledger.new_resource(
            {
                "name": "permanent seller badge",
                "description": "this badge give to seller rigth to collect money",
            },
            non_fungible=True,
            authority=permanent_minter.resource,
        )
        component = cls(
            ledger=ledger,
            token_type=token,
            admin_badge=admin_badge.resource,
            seller_buyer_product_minter_badge_vault=Vault.with_bucket(product_minter),
            seller_permanent_badge_vault=Vault.with_bucket(permanent_minter),
            seller_buyer_product_badge_def=product_badge_def,
            seller_permanent_badge_def=permanent_badge_def,
            sell_fees=to_decimal(sell_fees),
            buy_fees=to_decimal(buy_fees),
        )
        return component, admin_badge

    def _product_auth(self) -> Proof:
        return self.seller_buyer_product_minter_badge_vault.present()

    def _seller_data(self, nft_id: int) -> SellerNftData:
        data = self.seller_buyer_product_badge_def.get_nft_data(nft_id)
        if not isinstance(data, SellerNftData):
            raise ContractError("Not a seller badge")
        return data

    def _buyer_data(self, nft_id: int) -> BuyerNftData:
        data = self.seller_buyer_product_badge_def.get_nft_data(nft_id)
        if not isinstance(data, BuyerNftData):
            raise ContractError("Not a buyer badge")
        return data

    def _is_available(self, product_id: int) -> bool:
        seller_nft_id = self.seller_nft_id_by_product_id.get(product_id)
        if seller_nft_id is None:
            return False
        return not self._seller_data(seller_nft_id).product_has_been_purchased

    def register_as_seller(self) -> Bucket:
        """Issue a permanent seller badge."""
        return self.seller_permanent_badge_def.mint_nft(
            self.ledger.new_id(),
            _PermanentSellerNftData(),
            self.seller_permanent_badge_vault.present(),
        )

    def list_product(
        self, name: str, price: Any, fees: Bucket, proof: Proof
    ) -> tuple[Bucket, Bucket]:
        """List a product; returns the seller badge for it and the unspent fees."""
        _require(proof, self.seller_permanent_badge_def)
        permanent_seller_nft_id = proof.nft_id()
        if fees.resource is not self.token_type:
            raise ContractError("token address must match")
        if fees.amount < self.sell_fees:
            raise ContractError(f"the fees must be >= {self.sell_fees}")

        product_id = self.ledger.new_id()
        seller_nft_id = self.ledger.new_id()
        buyer_nft_id = self.ledger.new_id()
        self.products_for_sale[product_id] = Product(product_id, name, to_decimal(price))
        self.permanent_seller_nft_id_by_products_id[product_id] = permanent_seller_nft_id

        seller_badge = self.seller_buyer_product_badge_def.mint_nft(
            seller_nft_id, SellerNftData(product_id=product_id), self._product_auth()
        )
        self.seller_nft_id_by_product_id[product_id] = seller_nft_id
        self.buyer_nft_id_by_product_id[product_id] = buyer_nft_id

        self.fees_vault.put(fees.take(self.sell_fees))
        return seller_badge, fees

    def get_available_products(self, page_index: int) -> list[Product]:
        """Return the products still for sale within one page of 100 listings."""
        start = MAX_PRODUCTS_BY_PAGE * page_index
        page = islice(self.products_for_sale, start, start + MAX_PRODUCTS_BY_PAGE)
        result = [
            dataclasses.replace(self.products_for_sale[product_id])
            for product_id in page
            if self._is_available(product_id)
        ]
        self.ledger.info("products : " + ";".join(str(product) for product in result))
        return result

    def buy_product(
        self,
        product_id: int,
        city: str,
        street: str,
        zip_code: str,
        payment: Bucket,
    ) -> tuple[Bucket, Bucket]:
        """Pay for a product; returns the buyer badge and the change."""
        if payment.resource is not self.token_type:
            raise ContractError("token address must match")
        if product_id not in self.products_for_sale:
            raise ContractError("product not found")
        if not self._is_available(product_id):
            raise ContractError("product is not available")
        product = self.products_for_sale[product_id]
        total_amount = to_decimal(self.buy_fees + product.price)
        if payment.amount < total_amount:
            raise ContractError(
                f"payment amount must be greather than or equal {total_amount}"
            )

        buyer_nft_id = self.buyer_nft_id_by_product_id[product_id]
        buyer_badge = self.seller_buyer_product_badge_def.mint_nft(
            buyer_nft_id,
            BuyerNftData(product_id=product_id, fees=self.buy_fees),
            self._product_auth(),
        )

        seller_nft_id = self.seller_nft_id_by_product_id[product_id]
        seller_data = self._seller_data(seller_nft_id)
        seller_data.buyer_address = PostalAddress(street=street, zip_code=zip_code, city=city)
        seller_data.product_has_been_purchased = True
        self.seller_buyer_product_badge_def.update_nft_data(
            seller_nft_id, seller_data, self._product_auth()
        )

        self.fees_vault.put(payment.take(self.buy_fees))
        held = self.payment_by_buyer_nft_id.setdefault(buyer_nft_id, Vault(self.token_type))
        held.put(payment.take(product.price))
        return buyer_badge, payment

    def collect_postal_stamp(self, proof: Proof) -> PostalAddress:
        """Seller obtains the buyer's postal address, once."""
        _require(proof, self.seller_buyer_product_badge_def)
        nft_id = proof.nft_id()
        data = self._seller_data(nft_id)
        if data.postal_stamp_collected:
            raise ContractError("postale stamp has already collected")
        if not data.product_has_been_purchased:
            raise ContractError("product must be purchased")
        address = dataclasses.replace(data.buyer_address)
        data.postal_stamp_collected = True
        self.seller_buyer_product_badge_def.update_nft_data(
            nft_id, data, self._product_auth()
        )
        return address

    def send_product(self, proof: Proof) -> None:
        """Seller marks the purchased product as shipped."""
        _require(proof, self.seller_buyer_product_badge_def)
        seller_nft_id = proof.nft_id()
        seller_data = self._seller_data(seller_nft_id)
        if not seller_data.product_has_been_purchased:
            raise ContractError("product must be purchased")
        product_id = seller_data.product_id
        seller_data.has_been_sent = True
        self.seller_buyer_product_badge_def.update_nft_data(
            seller_nft_id, seller_data, self._product_auth()
        )

        buyer_nft_id = self.buyer_nft_id_by_product_id[product_id]
        buyer_data = self._buyer_data(buyer_nft_id)
        buyer_data.has_been_sent_by_seller = True
        self.seller_buyer_product_badge_def.update_nft_data(
            buyer_nft_id, buyer_data, self._product_auth()
        )

    def confirm_reception(self, buyer_nft: Bucket) -> None:
        """Buyer confirms delivery; the payment goes to the seller and the badge is burned."""
        if buyer_nft.amount <= 0:
            raise ContractError("the nft bucket quantity must be greather than or equal 1")
        if buyer_nft.resource is not self.seller_buyer_product_badge_def:
            raise ContractError("the nft bucket is not buyer nft")
        buyer_nft_id = buyer_nft.nft_id()
        buyer_data = self._buyer_data(buyer_nft_id)

        seller_nft_id = self.seller_nft_id_by_product_id.get(buyer_data.product_id)
        if seller_nft_id is None:
            raise ContractError("Seller badge not found")
        seller_data = self._seller_data(seller_nft_id)
        seller_data.was_received_by_buyer = True
        product_id = seller_data.product_id
        self.seller_buyer_product_badge_def.update_nft_data(
            seller_nft_id, seller_data, self._product_auth()
        )

        payment = self.payment_by_buyer_nft_id.get(buyer_nft_id)
        if payment is None:
            raise ContractError("Payment not found")
        permanent_nft_id = self.permanent_seller_nft_id_by_products_id[product_id]
        vault = self.vault_by_seller.setdefault(permanent_nft_id, Vault(self.token_type))
        vault.put(payment.take_all())
        del self.payment_by_buyer_nft_id[buyer_nft_id]

        self.seller_buyer_product_badge_def.burn(buyer_nft, self._product_auth())

    def get_available_amount(self, proof: Proof) -> Decimal:
        """Amount the presenting seller may collect."""
        _require(proof, self.seller_permanent_badge_def)
        vault = self.vault_by_seller.get(proof.nft_id())
        return vault.amount if vault is not None else Decimal(0)

    def collect_by_seller(self, proof: Proof) -> Bucket:
        _require(proof, self.seller_permanent_badge_def)
        vault = self.vault_by_seller.get(proof.nft_id())
        if vault is None or vault.amount <= 0:
            raise ContractError("Nothing to collect")
        return vault.take_all()

    def collect_by_admin(self, proof: Proof) -> Bucket:
        _require(proof, self.admin_badge)
        if self.fees_vault.amount <= 0:
            raise ContractError("Nothing to collect")
        return self.fees_vault.take_all()

    def burn_seller_nft(self, seller_nft: Bucket) -> None:
        """Burn a seller's product badge."""
        if seller_nft.amount <= 0:
            raise ContractError("the nft bucket quantity must be greather than or equal 1")
        if seller_nft.resource is not self.seller_buyer_product_badge_def:
            raise ContractError("bucket must be seller nft")
        nft_id = seller_nft.nft_id()
        self.seller_nft_id_by_product_id.pop(nft_id, None)
        self.seller_buyer_product_badge_def.burn(seller_nft, self._product_auth())