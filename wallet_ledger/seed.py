"""
Seed Data

The initial contents of each collection, used exactly once: when the
store loads and a collection has never been written. Seeds come from a
directory of JSON fixtures in the same camelCase format the collections
are persisted in.
"""

import json
from importlib import resources
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from wallet_ledger.models.ledger import Account, FilterPreset, Goal, Transaction, User
from wallet_ledger.services.storage import ACCOUNTS, FILTER_PRESETS, GOALS, TRANSACTIONS, USER


class SeedData(BaseModel):
    """Initial collections. Anything left empty seeds an empty collection."""

    accounts: list[Account] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    filter_presets: list[FilterPreset] = Field(default_factory=list)
    user: Optional[User] = None

    @classmethod
    def from_collections(cls, collections: dict[str, Any]) -> "SeedData":
        """Build from raw collection values keyed by collection name."""
        return cls(
            accounts=[Account.model_validate(a) for a in collections.get(ACCOUNTS) or []],
            transactions=[
                Transaction.model_validate(t) for t in collections.get(TRANSACTIONS) or []
            ],
            goals=[Goal.model_validate(g) for g in collections.get(GOALS) or []],
            filter_presets=[
                FilterPreset.model_validate(p) for p in collections.get(FILTER_PRESETS) or []
            ],
            user=User.model_validate(collections[USER]) if collections.get(USER) else None,
        )

    @classmethod
    def from_directory(cls, directory: Path) -> "SeedData":
        """
        Load `<collection>.json` files from a directory.

        Missing files are simply empty collections.
        """
        directory = Path(directory)
        collections = {}
        for name in (ACCOUNTS, TRANSACTIONS, GOALS, FILTER_PRESETS, USER):
            path = directory / f"{name}.json"
            if path.exists():
                collections[name] = json.loads(path.read_text(encoding="utf-8"))
        return cls.from_collections(collections)

    @classmethod
    def default(cls) -> "SeedData":
        """The demo fixtures shipped with the package."""
        fixtures = resources.files("wallet_ledger") / "fixtures"
        collections = {}
        for name in (ACCOUNTS, TRANSACTIONS, GOALS, FILTER_PRESETS, USER):
            resource = fixtures / f"{name}.json"
            if resource.is_file():
                collections[name] = json.loads(resource.read_text(encoding="utf-8"))
        return cls.from_collections(collections)
