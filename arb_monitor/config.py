"""
Configuration loading and validation for the arbitrage monitor.
"""

import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from web3 import Web3

from .catalog import HIGH_LIQUIDITY_ADDRESSES, build_catalog, load_token_list
from .exceptions import ConfigurationError, ValidationError
from .quoter import DEFAULT_FEE_TIER, V3_FEE_TIERS
from .searcher import DEFAULT_MAX_CONCURRENCY, DEFAULT_PROFIT_FLOOR, DEFAULT_TOP_K
from .types import ETHEREUM, Network, Token

RPC_URL_ENV = "ARB_MONITOR_RPC_URL"


class MonitorConfig:
    """
    Parsed and validated monitor configuration.

    Attributes:
        network: Network to quote on
        fee_tier: Quoter fee tier for every leg
        refresh_interval_sec: Seconds between evaluations of the selection
        starting_amount: Human amount of token1 each cycle starts with
        profit_floor: Discovery keeps triples with profit above this
        top_k: Number of suggestions kept
        max_concurrency: Triples quoted concurrently during discovery
        cache_dir: Directory holding one cache file per network
        cache_key: Entry name of the suggestion list
        tokens: Inline token definitions
        token_list: Optional path to a JSON token list
        allow_list: Addresses the catalog is narrowed to (None keeps all)
    """

    def __init__(self, config_dict: Dict[str, Any], base_dir: Optional[Path] = None):
        """
        Parse and validate config from dictionary.

        Args:
            config_dict: Loaded YAML config
            base_dir: Directory a relative token_list path is resolved against

        Raises:
            ConfigurationError: If required fields missing or invalid
        """
        self.base_dir = base_dir or Path.cwd()

        self.network: Network = self._parse_network(config_dict.get("network", {}))

        self.fee_tier: int = int(config_dict.get("fee_tier", DEFAULT_FEE_TIER))
        if self.fee_tier not in V3_FEE_TIERS.values():
            raise ConfigurationError(
                f"fee_tier must be one of {sorted(V3_FEE_TIERS.values())}, got {self.fee_tier}"
            )

        self.refresh_interval_sec: float = float(
            config_dict.get("refresh_interval_sec", 30)
        )
        if self.refresh_interval_sec <= 0:
            raise ConfigurationError("refresh_interval_sec must be positive")

        self.starting_amount: Decimal = self._parse_decimal(
            config_dict.get("starting_amount", "1"), "starting_amount"
        )
        if self.starting_amount <= 0:
            raise ConfigurationError("starting_amount must be positive")

        # Discovery
        search = config_dict.get("search", {}) or {}
        if not isinstance(search, dict):
            raise ConfigurationError("search must be a dict")
        self.profit_floor: Decimal = self._parse_decimal(
            search.get("profit_floor", DEFAULT_PROFIT_FLOOR), "search.profit_floor"
        )
        self.top_k: int = int(search.get("top_k", DEFAULT_TOP_K))
        self.max_concurrency: int = int(
            search.get("max_concurrency", DEFAULT_MAX_CONCURRENCY)
        )
        if self.top_k <= 0:
            raise ConfigurationError("search.top_k must be positive")
        if self.max_concurrency <= 0:
            raise ConfigurationError("search.max_concurrency must be positive")

        # Cache
        cache = config_dict.get("cache", {}) or {}
        if not isinstance(cache, dict):
            raise ConfigurationError("cache must be a dict")
        self.cache_dir: Path = Path(cache.get("dir", ".cache"))
        self.cache_key: str = str(cache.get("key", "profitableTrios"))

        # Catalog sources
        self.tokens: List[Token] = self._parse_tokens(
            config_dict.get("tokens", []), self.network
        )
        token_list = config_dict.get("token_list")
        self.token_list: Optional[Path] = self._resolve(token_list) if token_list else None

        if "allow_list" in config_dict:
            allow_list = config_dict["allow_list"]
            if allow_list is not None and not isinstance(allow_list, list):
                raise ConfigurationError("allow_list must be a list of addresses")
            self.allow_list: Optional[List[str]] = allow_list
        else:
            self.allow_list = list(HIGH_LIQUIDITY_ADDRESSES)

        if not self.tokens and not self.token_list:
            raise ConfigurationError("Either tokens or token_list must be configured")

    @staticmethod
    def _get_required(d: Dict, key: str, expected_type: type) -> Any:
        """Get required config field with type validation."""
        if key not in d:
            raise ConfigurationError(f"Missing required config field: {key}")
        val = d[key]
        if not isinstance(val, expected_type):
            raise ConfigurationError(
                f"Config field '{key}' must be {expected_type.__name__}, got {type(val).__name__}"
            )
        return val

    @staticmethod
    def _parse_decimal(value: Any, name: str) -> Decimal:
        try:
            return Decimal(str(value))
        except InvalidOperation as e:
            raise ConfigurationError(f"{name} must be a number, got {value!r}") from e

    def _resolve(self, path: str) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self.base_dir / p

    @classmethod
    def _parse_network(cls, network_raw: Dict[str, Any]) -> Network:
        """Parse network section; omitted fields fall back to Ethereum mainnet."""
        if not network_raw:
            return ETHEREUM
        if not isinstance(network_raw, dict):
            raise ConfigurationError("network must be a dict")

        network = Network(
            id=str(network_raw.get("id", ETHEREUM.id)),
            name=str(network_raw.get("name", ETHEREUM.name)),
            chain_id=int(network_raw.get("chain_id", ETHEREUM.chain_id)),
            rpc_url=str(network_raw.get("rpc_url", ETHEREUM.rpc_url)),
            quoter_address=str(
                network_raw.get("quoter_address", ETHEREUM.quoter_address)
            ),
        )
        if not network.rpc_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Invalid RPC URL format: {network.rpc_url}")
        return network

    @classmethod
    def _parse_tokens(cls, tokens_raw: List[Any], network: Network) -> List[Token]:
        """Parse and validate inline tokens config."""
        if not isinstance(tokens_raw, list):
            raise ConfigurationError("tokens must be a list")

        tokens = []
        for i, info in enumerate(tokens_raw):
            if not isinstance(info, dict):
                raise ConfigurationError(f"Token config {i} must be a dict")
            symbol = cls._get_required(info, "symbol", str)
            address = cls._get_required(info, "address", str)
            if not Web3.is_address(address):
                raise ConfigurationError(f"Token '{symbol}' has invalid address: {address}")
            if "decimals" not in info:
                raise ConfigurationError(f"Token '{symbol}' missing 'decimals'")
            try:
                tokens.append(
                    Token(
                        address=address,
                        symbol=symbol,
                        decimals=int(info["decimals"]),
                        network=str(info.get("network", network.id)),
                    )
                )
            except (ValueError, ValidationError) as e:
                raise ConfigurationError(f"Token '{symbol}' is invalid: {e}") from e
        return tokens

    @property
    def rpc_url(self) -> str:
        """Configured RPC URL, overridden by ARB_MONITOR_RPC_URL when set."""
        return os.getenv(RPC_URL_ENV) or self.network.rpc_url

    def load_catalog(self) -> List[Token]:
        """
        Build the token catalog from inline tokens and the token list.

        Raises:
            ConfigurationError: If the token list is unreadable or too few
                tokens remain
        """
        tokens = list(self.tokens)
        if self.token_list is not None:
            try:
                tokens.extend(load_token_list(self.token_list, self.network))
            except (OSError, ValueError, ValidationError) as e:
                raise ConfigurationError(
                    f"Failed to load token list {self.token_list}: {e}"
                ) from e
        try:
            return build_catalog(tokens, self.network, self.allow_list)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e


def load_config(config_path: str) -> MonitorConfig:
    """
    Load and validate config from YAML file.

    Args:
        config_path: Path to config YAML file

    Returns:
        Validated MonitorConfig instance

    Raises:
        ConfigurationError: If config invalid or file not found
    """
    if not os.path.exists(config_path):
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigurationError("Config file must contain a YAML dictionary")

    return MonitorConfig(config_dict, base_dir=Path(config_path).resolve().parent)
