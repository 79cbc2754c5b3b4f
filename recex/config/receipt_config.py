"""
Receipt Configuration

Read-only configuration for receipt parsing and validation:
- Known-merchant table (name variants, website, tax profile)
- Regional tax rates and tax label aliases
- Payment vocabulary and the accepted payment whitelist
- Keyword lists used to classify receipt lines

The packaged default_config.yaml is loaded once per process and cached.
Every parser and validator component takes a ReceiptConfig argument, so
tests and callers can inject their own table without touching globals.
"""

import logging
import os
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from recex.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / 'default_config.yaml'
CONFIG_ENV_VAR = 'RECEX_CONFIG'


def _parse_rate(v: Any) -> Any:
    """Read rates through str() so YAML floats keep their written precision"""
    if isinstance(v, float):
        return Decimal(str(v))
    return v


class KnownMerchant(BaseModel):
    """Canonical identity and tax profile of a merchant"""
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    variations: Tuple[str, ...] = ()
    website: Optional[str] = None
    tax_rates: Dict[str, Decimal] = Field(default_factory=dict)

    @field_validator('tax_rates', mode='before')
    @classmethod
    def parse_rates(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {name: _parse_rate(rate) for name, rate in v.items()}
        return v

    def matches(self, line: str) -> bool:
        """Check whether a receipt line names this merchant"""
        if self.key.lower() in line.lower():
            return True
        return any(variation in line for variation in self.variations)


class ReceiptConfig(BaseModel):
    """
    Immutable receipt processing configuration.

    Usage:
        config = ReceiptConfig.load_default()
        custom = ReceiptConfig.from_dict({'vendor_scan_lines': 15})
        other = ReceiptConfig.from_file('merchants.yaml')
    """
    model_config = ConfigDict(frozen=True)

    vendor_scan_lines: int = Field(10, ge=1)
    tolerance: Decimal = Field(Decimal('0.02'), ge=0)

    default_tax_rates: Dict[str, Decimal] = Field(
        default_factory=lambda: {'TPS': Decimal('0.05'), 'TVQ': Decimal('0.09975')}
    )
    tax_aliases: Dict[str, Tuple[str, ...]] = Field(
        default_factory=lambda: {'TPS': ('TPS', 'GST'), 'TVQ': ('TVQ', 'QST')}
    )

    known_merchants: Tuple[KnownMerchant, ...] = ()

    payment_keywords: Tuple[str, ...] = ()
    accepted_payment_methods: Tuple[str, ...] = ()

    subtotal_keywords: Tuple[str, ...] = ('SOUS-TOTAL', 'SUBTOTAL')
    total_keywords: Tuple[str, ...] = ('TOTAL',)
    item_exclusion_keywords: Tuple[str, ...] = ()
    vendor_exclusion_keywords: Tuple[str, ...] = ()

    @field_validator('tolerance', mode='before')
    @classmethod
    def parse_tolerance(cls, v: Any) -> Any:
        return _parse_rate(v)

    @field_validator('default_tax_rates', mode='before')
    @classmethod
    def parse_default_rates(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {name: _parse_rate(rate) for name, rate in v.items()}
        return v

    @field_validator('accepted_payment_methods', mode='before')
    @classmethod
    def upper_methods(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return tuple(str(method).strip().upper() for method in v)
        return v

    @property
    def tax_names(self) -> List[str]:
        """Tax codes every invoice carries (TPS, TVQ by default)"""
        return list(self.default_tax_rates.keys())

    @property
    def item_exclusions(self) -> Tuple[str, ...]:
        """Words that disqualify a line from being a line item"""
        words = list(self.item_exclusion_keywords) + list(self.subtotal_keywords)
        words += list(self.total_keywords) + list(self.payment_keywords)
        for aliases in self.tax_aliases.values():
            words.extend(aliases)
        # dict.fromkeys keeps first-seen order while dropping duplicates
        return tuple(dict.fromkeys(words))

    def find_merchant(self, name: Optional[str]) -> Optional[KnownMerchant]:
        """Look up a known merchant by canonical name or key"""
        if not name:
            return None
        wanted = name.strip().lower()
        for merchant in self.known_merchants:
            if merchant.name.lower() == wanted or merchant.key.lower() == wanted:
                return merchant
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional[Dict[str, Any]] = None) -> 'ReceiptConfig':
        """Build a configuration from a dict merged over the packaged defaults

        Args:
            data: Top-level configuration keys to override
            base: Starting values, the packaged defaults when omitted

        Returns:
            ReceiptConfig instance

        Raises:
            ConfigurationError: If the merged values do not form a valid configuration
        """
        merged = dict(base if base is not None else _read_yaml(DEFAULT_CONFIG_PATH))
        merged.update(data or {})
        try:
            return cls(**merged)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid receipt configuration: {e}")

    @classmethod
    def from_file(cls, config_path: str) -> 'ReceiptConfig':
        """Load configuration from a YAML file, merged over the packaged defaults

        Args:
            config_path: Path to configuration file

        Returns:
            ReceiptConfig instance
        """
        data = _read_yaml(Path(config_path))
        try:
            return cls.from_dict(data)
        except ConfigurationError as e:
            logger.error(f"Failed to load receipt configuration from {config_path}: {e}")
            raise

    @classmethod
    def load_default(cls) -> 'ReceiptConfig':
        """Return the process-wide configuration, loading it on first use

        The file named by RECEX_CONFIG is merged over the packaged defaults when set.
        """
        return _load_cached(os.environ.get(CONFIG_ENV_VAR) or str(DEFAULT_CONFIG_PATH))


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Read a YAML mapping from disk"""
    if not path.exists():
        raise ConfigurationError("Configuration file not found", str(path))
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}", str(path))
    if data is None:
        raise ConfigurationError("Configuration file is empty", str(path))
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a mapping", str(path))
    return data


@lru_cache(maxsize=None)
def _load_cached(config_path: str) -> ReceiptConfig:
    path = Path(config_path)
    if path == DEFAULT_CONFIG_PATH:
        config = ReceiptConfig.from_dict({})
    else:
        config = ReceiptConfig.from_file(config_path)
    logger.info(f"Receipt configuration loaded from {config_path}")
    return config
