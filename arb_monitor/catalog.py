"""
Token catalog construction.

Reads token lists (bare arrays or ``{"tokens": [...]}`` documents), keeps
the entries for one chain and narrows them to an allow-list of
high-liquidity addresses. The resulting catalog is read-only.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from web3 import Web3

from .exceptions import ValidationError
from .types import Network, Token, Triple

logger = logging.getLogger(__name__)

# Ethereum mainnet tokens with deep Uniswap V3 liquidity
HIGH_LIQUIDITY_ADDRESSES = [
    "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",  # WETH
    "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",  # USDC
    "0x6B175474E89094C44Da98b954EedeAC495271d0F",  # DAI
    "0xdAC17F958D2ee523a2206206994597C13D831ec7",  # USDT
    "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599",  # WBTC
    "0x7D1AfA7B718fb893dB30A3aBc0Cfc608AaCfeBB0",  # MATIC
]


def _token_entries(document: Any) -> List[Dict[str, Any]]:
    if isinstance(document, list):
        return document
    if isinstance(document, dict) and isinstance(document.get("tokens"), list):
        return document["tokens"]
    raise ValidationError("Token list must be an array or an object with 'tokens'")


def load_token_list(
    source: Union[str, Path, Dict[str, Any], List[Dict[str, Any]]],
    network: Network,
) -> List[Token]:
    """
    Load tokens for ``network`` from a token list.

    Args:
        source: Path to a JSON token list, or an already parsed document
        network: Only entries whose chainId matches are kept

    Returns:
        Tokens in list order
    """
    if isinstance(source, (str, Path)):
        with open(source, "r") as f:
            document = json.load(f)
    else:
        document = source

    tokens = []
    for entry in _token_entries(document):
        if entry.get("chainId") != network.chain_id:
            continue
        if not Web3.is_address(entry.get("address")):
            logger.warning(f"Skipping token entry with invalid address {entry!r}")
            continue
        try:
            tokens.append(
                Token(
                    address=entry["address"],
                    symbol=entry["symbol"],
                    decimals=int(entry["decimals"]),
                    network=network.id,
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed token entry {entry!r}: {e}")
    logger.debug(f"Loaded {len(tokens)} {network.name} tokens from token list")
    return tokens


def filter_allow_list(tokens: Iterable[Token], addresses: Iterable[str]) -> List[Token]:
    """Keep tokens whose address is allowed, preserving catalog order."""
    allowed = {address.lower() for address in addresses}
    return [token for token in tokens if token.key in allowed]


def build_catalog(
    tokens: Sequence[Token],
    network: Network,
    allow_list: Optional[Iterable[str]] = None,
) -> List[Token]:
    """
    Build the catalog for ``network``.

    Args:
        tokens: Candidate tokens, possibly for several networks
        network: Network the monitor runs on
        allow_list: Addresses to keep; None keeps every network token

    Raises:
        ValidationError: If fewer than three tokens remain
    """
    catalog = [token for token in tokens if token.network == network.id]
    if allow_list is not None:
        catalog = filter_allow_list(catalog, allow_list)

    if len(catalog) < 3:
        raise ValidationError(
            f"Catalog needs at least 3 tokens on {network.name}, got {len(catalog)}"
        )
    logger.info(
        f"Catalog: {len(catalog)} tokens ({', '.join(t.symbol for t in catalog)})"
    )
    return catalog


def find_token(catalog: Sequence[Token], query: str) -> Token:
    """
    Look up a catalog token by address or symbol (case-insensitive).

    Raises:
        ValidationError: If no token matches
    """
    needle = query.lower()
    for token in catalog:
        if token.key == needle or token.symbol.lower() == needle:
            return token
    raise ValidationError(f"Token '{query}' is not in the catalog")


def default_selection(catalog: Sequence[Token]) -> Triple:
    """The first three catalog tokens, in order."""
    if len(catalog) < 3:
        raise ValidationError(f"Catalog needs at least 3 tokens, got {len(catalog)}")
    return Triple(catalog[0], catalog[1], catalog[2])
