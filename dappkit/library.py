"""A lending library with paid memberships and late fees."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
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

LATE_FEE = Decimal(1)


@dataclass
class Book:
    title: str
    author: str


@dataclass
class BorrowedBook:
    """Record of a loan: when it started and which badge borrowed it."""

    epoch: int
    user_id: str


def _require(proof: Proof, badge: ResourceDef) -> None:
    if proof.resource is not badge or proof.amount <= 0:
        raise ContractError("Not authorized")


class Library:
    """Lends books to holders of a membership badge."""

    def __init__(
        self,
        ledger: Ledger,
        librarian_badge_def: ResourceDef,
        member_badges: Vault,
        membership_price: Decimal,
        borrow_epochs: int,
    ) -> None:
        self.ledger = ledger
        self.librarian_badge_def = librarian_badge_def
        self.fees = Vault(ledger.xrd)
        self.books: dict[str, Book] = {
            "9781611297560": Book("Leviathan Wakes", "James S. A. Corey"),
            "9780450011849": Book("Dune", "Frank Herbert"),
            "9781844162949": Book("Horus Rising", "Dan Abnett"),
        }
        self.member_badges = member_badges
        self.member_badge_def = member_badges.resource
        self.membership_price = membership_price
        self.borrowed_books: dict[str, BorrowedBook] = {}
        self.borrow_epochs = borrow_epochs

    @classmethod
    def create(
        cls,
        ledger: Ledger,
        member_badge_count: int,
        membership_price: Any,
        borrow_epochs: int,
    ) -> tuple[Library, Bucket]:
        """Create the library; returns it together with the librarian badge."""
        librarian = ledger.new_fungible(
            1, {"name": "Librarian Badge", "symbol": "LB"}, DIVISIBILITY_NONE
        )
        members = ledger.new_fungible(
            member_badge_count,
            {"name": "Library Membership Badge", "symbol": "LMB"},
            DIVISIBILITY_NONE,
        )
        library = cls(
            ledger=ledger,
            librarian_badge_def=librarian.resource,
            member_badges=Vault.with_bucket(members),
            membership_price=to_decimal(membership_price),
            borrow_epochs=borrow_epochs,
        )
        return library, librarian

    def print_library(self) -> list[str]:
        """Log the state of the library; returns the lines logged."""
        lines = [
            f"Current epoch, {self.ledger.epoch}",
            f"Membership price: {self.membership_price}, "
            f"memberships available: {self.member_badges.amount}",
            "All books:",
            *(f"{isbn}: {book.title}, {book.author}" for isbn, book in self.books.items()),
            "Borrowed books:",
            *(
                f"{isbn}: {loan.user_id}, {loan.epoch}"
                for isbn, loan in self.borrowed_books.items()
            ),
        ]
        for line in lines:
            self.ledger.info(line)
        return lines

    def register(self, payment: Bucket) -> Bucket:
        """Pay the membership price in XRD; returns a membership badge."""
        self.ledger.info(
            "Attempting to register user, membership badges remaining "
            f"{self.member_badges.amount}, payment amount {payment.amount}"
        )
        if self.member_badges.is_empty():
            raise ContractError("No memberships available")
        if payment.amount != self.membership_price:
            raise ContractError("Wrong amount sent")
        if payment.resource is not self.ledger.xrd:
            raise ContractError("Can only pay with XRD")
        self.fees.put(payment)
        self.ledger.info("Successfully registered user")
        return self.member_badges.take(1)

    @staticmethod
    def _user_id(badge: Proof) -> str:
        if badge.amount <= 0:
            raise ContractError("Invalid badge provided")
        return badge.resource.address

    def _log_book(self, isbn: str) -> None:
        book = self.books[isbn]
        self.ledger.info(
            f"Book found (ISBN: {isbn}, Title: {book.title}, Author: {book.author})"
        )

    def borrow_book(self, isbn: str, proof: Proof) -> None:
        _require(proof, self.member_badge_def)
        self.ledger.info(f"Attempting to borrow book with ISBN {isbn}")
        if isbn not in self.books:
            raise ContractError("Book not in library")
        if isbn in self.borrowed_books:
            raise ContractError("Book already borrowed")
        self._log_book(isbn)
        self.borrowed_books[isbn] = BorrowedBook(self.ledger.epoch, self._user_id(proof))
        self.ledger.info("Book borrowed")

    def _get_borrowed_book(self, isbn: str, badge: Proof) -> BorrowedBook:
        loan = self.borrowed_books.get(isbn)
        if loan is None:
            raise ContractError("Book not borrowed")
        if loan.user_id != self._user_id(badge):
            raise ContractError("Book not borrowed by this user")
        self._log_book(isbn)
        return loan

    def _is_overdue(self, loan: BorrowedBook) -> bool:
        overdue = self.ledger.epoch > loan.epoch + self.borrow_epochs
        self.ledger.info(
            f"Book borrowed on epoch {loan.epoch}, current epoch {self.ledger.epoch}, "
            f"overdue = {str(overdue).lower()}"
        )
        return overdue

    def return_book(self, isbn: str, proof: Proof) -> None:
        _require(proof, self.member_badge_def)
        self.ledger.info(f"Attempting to return book with ISBN {isbn}")
        loan = self._get_borrowed_book(isbn, proof)
        if self._is_overdue(loan):
            raise ContractError("Book is overdue")
        del self.borrowed_books[isbn]
        self.ledger.info("Book returned")

    def pay_fee(self, isbn: str, payment: Bucket, proof: Proof) -> None:
        """Pay the late fee of one XRD, which also returns the book."""
        _require(proof, self.member_badge_def)
        self.ledger.info(f"Attempting to pay fee with payment amount: {payment.amount}")
        loan = self._get_borrowed_book(isbn, proof)
        if not self._is_overdue(loan):
            raise ContractError("Book is not overdue")
        if payment.amount != LATE_FEE:
            raise ContractError("Wrong amount sent")
        if payment.resource is not self.ledger.xrd:
            raise ContractError("Can only pay with XRD")
        self.fees.put(payment)
        del self.borrowed_books[isbn]
        self.ledger.info("Late fee paid and book returned")

    def withdraw_fees(self, proof: Proof) -> Bucket:
        _require(proof, self.librarian_badge_def)
        self.ledger.info(f"Withdrawing all late fees: {self.fees.amount}")
        return self.fees.take_all()