[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dappkit"
version = "0.1.0"
description = "In-memory ledger with badge-guarded asset components: airdrops, escrow, auctions, token sales, marketplaces and more"
requires-python = ">=3.10"
dependencies = []
keywords = ["ledger", "tokens", "badges", "escrow", "auction", "airdrop", "nft", "simulation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dappkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
