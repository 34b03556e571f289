# dappkit

`dappkit` is a small in-memory ledger with a set of asset-handling components
on top of it. Fungible and non-fungible resources, buckets, vaults, accounts
and badge proofs live in a `Ledger`. Components use them to enforce the rules
of financial applications such as airdrops, escrows, auctions and sales.

Amounts are `decimal.Decimal` values, kept to 18 decimal places and truncated
beyond that. Calling a method in a way that breaks a component's rules raises
`dappkit.ledger.ContractError` with a message that explains why.

## Components

| Module | Component | What it does |
| --- | --- | --- |
| `dappkit.airdrop` | `Airdrop` | Splits a bucket evenly across registered recipients; the last one gets any rounding remainder. |
| `dappkit.airdrop_with_withdraw` | `AirdropWithWithdraw` | Gives recipients an NFT badge that they use to withdraw their allocation once. |
| `dappkit.escrow` | `Escrow` | Two-party token swap that needs both sides to accept, with a cancel option. |
| `dappkit.multisig` | `MultiSigMaker` | Sends held tokens to a destination once enough signer badges have been burned as approvals. |
| `dappkit.token_sale` | `TokenSale` | Ticket-gated token sale with a per-buyer allocation cap. |
| `dappkit.transit` | `Transit` | Sells ride tickets for dollars or euros and burns them on each ride. |
| `dappkit.auction` | `Auction` | Epoch-limited auction with bid bonds and a payment deadline of 100 epochs. |
| `dappkit.library` | `Library` | Paid membership, book borrowing and a late fee of 1 XRD. |
| `dappkit.marketplace` | `ProductMarketPlace` | Listing, buying, shipping and payout of physical products, 100 listings per page. |
| `dappkit.name_service` | `RadixNameService` | Registers `.xrd` names as NFTs backed by an XRD deposit. |
| `dappkit.utility_token` | `UtilityTokenFactory` | Sells and redeems a utility token, minting more in batches on demand. |
| `dappkit.service_stub` | `ServiceStub` | Simple and premium services paid in tokens from a `UtilityTokenFactory`. |

## Example

```python
from dappkit.ledger import Ledger
from dappkit.airdrop import Airdrop

ledger = Ledger()
admin = ledger.new_account()
alice = ledger.new_account()
bob = ledger.new_account()

airdrop, admin_badge = Airdrop.create(ledger)
admin.deposit(admin_badge)

proof = admin.present(admin_badge.resource, 1)
airdrop.add_recipient(alice.address, proof)
airdrop.add_recipient(bob.address, proof)

coins = ledger.new_fungible(1000, {"symbol": "CNS"})
coin_resource = coins.resource
airdrop.perform_airdrop(coins, proof)

print(alice.balance(coin_resource))   # 500
print(bob.balance(coin_resource))     # 500
```

Each component's constructor is a `create` class method that takes the
`Ledger` first and returns the component along with any badges it issues
(`ServiceStub.create` returns only the component). Methods that need a badge
take a `Proof`, which you get from `Account.present(...)` or
`Bucket.present()`.

Every account opened with `Ledger.new_account()` starts with 1,000,000 of the
ledger's built-in XRD resource (`ledger.xrd`). The ledger's epoch moves
forward with `Ledger.advance_epoch(count)`. Messages that components log
through `Ledger.info(...)` are appended to `ledger.logs`, so you can read them
back.

## What it does not do

`dappkit` is a library only. Everything lives in memory for as long as the
`Ledger` object does: there is no storage, no transactions that roll back on
failure, no network and no command-line tool. Transaction signers are passed
in explicitly where a component needs them (`Transit.ride`), and the name
service has no way to burn expired names.

## Running the tests

```
pip install -e ".[test]"
pytest
```