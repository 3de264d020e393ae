"""Normalization of free-form NFT attributes for display.

Attributes arrive either in the standard trait list form
``[{"trait_type": "Background", "value": "Blue"}]`` or as a flat mapping
``{"background": "Blue"}``. Both are normalized to the trait list form with
title-cased trait names and string values, skipping bookkeeping keys written by
the minting pipeline.
"""

import json
import re
from typing import Any

SYSTEM_FIELDS = frozenset(
    {
        "quantity_index",
        "total_quantity",
        "minted_at",
        "explicit_content",
        "standalone",
        "edition",
        "max_supply",
        "__list",
        "metadata_uri",
        "mint_address",
        "created_at",
        "updated_at",
    }
)

_WORD_START = re.compile(r"\b\w")


def normalize_trait_type(trait_type: str) -> str:
    """``background_color`` -> ``Background Color``."""
    return _WORD_START.sub(lambda m: m.group(0).upper(), trait_type.replace("_", " "))


def format_value(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def normalize_attributes(attributes: Any) -> list[dict[str, Any]]:
    """Return display-ready traits for either attribute form; anything else yields []."""
    traits: list[dict[str, Any]] = []

    if isinstance(attributes, list):
        for attr in attributes:
            if not isinstance(attr, dict) or not attr.get("trait_type"):
                continue
            if attr.get("value") is None:
                continue
            if str(attr["trait_type"]).lower() in SYSTEM_FIELDS:
                continue
            trait = dict(attr)
            trait["trait_type"] = normalize_trait_type(str(attr["trait_type"]))
            trait["value"] = format_value(attr["value"])
            traits.append(trait)
    elif isinstance(attributes, dict):
        for key, value in attributes.items():
            if key.lower() in SYSTEM_FIELDS or value is None:
                continue
            traits.append({"trait_type": normalize_trait_type(key), "value": format_value(value)})

    return traits
