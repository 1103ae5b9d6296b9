"""Completeness scoring for master records."""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from masterdata.domain.model.enums import EntityType
from masterdata.domain.model.values import is_blank

if TYPE_CHECKING:
    from collections.abc import Mapping

REQUIRED_FIELDS: Final[Mapping[str, tuple[str, ...]]] = MappingProxyType(
    {
        EntityType.COMPANY: ("name", "email", "phone", "address"),
        EntityType.PERSON: ("firstName", "lastName", "email"),
        EntityType.PRODUCT: ("name", "sku", "price"),
        EntityType.ADDRESS: ("street", "city", "postalCode", "country"),
        EntityType.CONTACT: ("type", "value"),
    }
)


def score(
    entity_type: str,
    data: Mapping[str, object],
    *,
    required_fields: Mapping[str, tuple[str, ...]] = REQUIRED_FIELDS,
) -> int:
    """Return the 0-100 share of required fields present in ``data``.

    Entity types without a configured schema always score 100. Halves round up.
    """

    fields = required_fields.get(entity_type, ())
    if not fields:
        return 100
    present = sum(1 for name in fields if not is_blank(data.get(name)))
    return math.floor(100 * present / len(fields) + 0.5)
