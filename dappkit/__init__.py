"""In-memory ledger with badge-guarded asset components: airdrops, escrow, auctions, sales, a library, a marketplace, a name service and utility tokens."""

__version__ = "0.1.0"