"""recordkit Quickstart Example.

Demonstrates basic record usage:
- Connection registration
- Model definition with a declared schema
- insert / load / update / delete
- Change tracking and listeners

The connection below only prints the statements it receives, so the
example runs without a MySQL server. Swap it for a real driver adapter
(see recordkit.db.executor) to talk to a database.

Usage:
    python examples/quickstart.py
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Any

from recordkit import (
    DATETIME,
    INT,
    VARCHAR,
    Model,
    Schema,
    WriteResult,
    register_connection,
)


# =============================================================================
# Demo connection
# =============================================================================

class EchoConnection:
    """Prints statements and answers like an empty MySQL table would."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)

    async def execute(self, sql: str, params: list[Any]) -> Any:
        print(f"  SQL: {' '.join(sql.split())}  {params}")
        if sql.lstrip().upper().startswith(("SELECT", "DESCRIBE")):
            return []
        if sql.lstrip().upper().startswith(("INSERT", "REPLACE")):
            return WriteResult(insert_id=next(self._ids), affected_rows=1)
        return WriteResult(affected_rows=1)


# =============================================================================
# Model Definitions
# =============================================================================

class Author(Model):
    """Author record with an autoincrement primary key."""

    class Meta:
        table_name = "authors"
        schema = Schema(
            columns={
                "id": INT(unsigned=True),
                "name": VARCHAR(100),
                "email": VARCHAR(255),
                "joined": DATETIME(),
            },
            primaries=["id"],
            autoincrement="id",
        )

    def rename(self, name: str) -> Author:
        return self.set("name", name)


# =============================================================================
# Demo
# =============================================================================

async def main() -> None:
    register_connection(EchoConnection())

    print("\n=== Insert ===")
    author = Author(name="Alice", email="alice@example.com", joined="2024-03-01 09:30:00")
    await author.save()
    print(f"  Created: {author!r}")

    print("\n=== Change tracking ===")
    author.add_listener(lambda record, value: print(f"  name -> {value}"), "name")
    author.rename("Alice Smith")
    print(f"  Changed: {author.changed}")

    print("\n=== Update ===")
    await author.update()

    print("\n=== Load ===")
    missing = Author()
    found = await missing.load(999)
    print(f"  Found: {found}, exists: {missing.exists}")

    print("\n=== Delete ===")
    await author.delete()
    print(f"  exists: {author.exists}")


if __name__ == "__main__":
    asyncio.run(main())
