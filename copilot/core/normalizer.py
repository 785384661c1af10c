"""Token symbol and chain name canonicalization.

Both lookups are total: unknown tokens fall back to their uppercased text and
unknown chains fall back to the default network the caller passes in.
"""

from __future__ import annotations

import re
from typing import Optional, Union

from .registry import CHAIN_ALIAS_TO_ID, CHAIN_METADATA, TOKEN_ALIASES

_WHITESPACE = re.compile(r'\s+')


def normalize_token(raw: Optional[str]) -> str:
    if not raw:
        return ''
    cleaned = _WHITESPACE.sub(' ', raw.strip().lstrip('$')).strip()
    if not cleaned:
        return ''
    return TOKEN_ALIASES.get(cleaned.lower(), cleaned.upper())


def resolve_chain(raw: Union[str, int, None], default_chain_id: int) -> int:
    """Map a chain name, alias or numeric id to a chain id."""
    if raw is None:
        return default_chain_id
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw if raw in CHAIN_METADATA else default_chain_id

    cleaned = _WHITESPACE.sub(' ', str(raw).strip().lower())
    if not cleaned:
        return default_chain_id
    if cleaned.isdigit():
        numeric = int(cleaned)
        return numeric if numeric in CHAIN_METADATA else default_chain_id
    return CHAIN_ALIAS_TO_ID.get(cleaned, default_chain_id)


def chain_name(chain_id: int) -> str:
    meta = CHAIN_METADATA.get(chain_id)
    if not meta:
        return f'Chain {chain_id}'
    return str(meta.get('name', f'Chain {chain_id}'))


def native_symbol(chain_id: int) -> str:
    meta = CHAIN_METADATA.get(chain_id) or {}
    return str(meta.get('native_symbol', 'ETH'))
