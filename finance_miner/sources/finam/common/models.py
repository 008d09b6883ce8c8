"""
Finam source models (source-shaped, no normalization).

`Emitent` mirrors what the Finam catalog and profile pages expose for one
tradable instrument. Values are kept as the display strings found on the
site; mapping to any downstream domain model happens elsewhere.

Lifecycle
---------
- `internal_id`, `id`, `name`, `market_id` and `uri` are filled by the catalog
  assembler from the four embedded collections.
- `market_name` and `code` stay empty until the profile page is resolved; a
  resolved record is a *new* instance (see `dataclasses.replace`), the
  catalog record is never updated in place by the batch.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class Emitent:
    internal_id: int = 0  # position in the catalog's identifier array
    id: str = ""  # provider's stable instrument id
    name: str = ""
    market_id: str = ""
    market_name: str = ""  # resolved from the profile page
    uri: str = ""  # URL slug of the profile page
    code: str = ""  # trading code, resolved from the profile page

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


__all__ = ["Emitent"]
