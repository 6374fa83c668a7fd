import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .errors import ConfigMergeError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "ETH:"
DEFAULT_RPC_SERVER = ""
DEFAULT_CONTRACT_ADDRESS = ""
DEFAULT_DIAL_TIMEOUT_MS = 5000

# Any cache timeout <= 0 keeps entries forever.
NO_EXPIRATION = -1.0


@dataclass(frozen=True)
class Config:
    prefix: str = DEFAULT_PREFIX
    rpc_server: str = DEFAULT_RPC_SERVER
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    cache_timeout: float = NO_EXPIRATION  # seconds
    dial_timeout: int = DEFAULT_DIAL_TIMEOUT_MS  # milliseconds, <= 0 disables
    call_timeout: int = 0  # milliseconds, <= 0 disables

    @property
    def dial_timeout_seconds(self) -> Optional[float]:
        return _ms_to_seconds(self.dial_timeout)

    @property
    def call_timeout_seconds(self) -> Optional[float]:
        return _ms_to_seconds(self.call_timeout)

    @property
    def expires(self) -> bool:
        return self.cache_timeout > 0


DEFAULT_CONFIG = Config()

_FIELD_TYPES: Dict[str, Tuple[type, ...]] = {
    "prefix": (str,),
    "rpc_server": (str,),
    "contract_address": (str,),
    "cache_timeout": (int, float),
    "dial_timeout": (int,),
    "call_timeout": (int,),
}

ENV_VARS = {
    "prefix": "ETH_RESOLVER_PREFIX",
    "rpc_server": "ETH_RPC_SERVER",
    "contract_address": "NKN_CONTRACT_ADDRESS",
    "cache_timeout": "CACHE_TIMEOUT_SECONDS",
    "dial_timeout": "DIAL_TIMEOUT_MS",
    "call_timeout": "CALL_TIMEOUT_MS",
}


def _ms_to_seconds(value: int) -> Optional[float]:
    if value <= 0:
        return None
    return value / 1000.0


def _check_type(name: str, value: Any) -> None:
    expected = _FIELD_TYPES[name]
    if isinstance(value, bool) or not isinstance(value, expected):
        allowed = " or ".join(t.__name__ for t in expected)
        raise ConfigMergeError(
            f"Config field '{name}' expects {allowed}, got {type(value).__name__}."
        )


def _explicit_fields(config: Config) -> Dict[str, Any]:
    # A Config override only carries the fields that differ from their zero value.
    explicit: Dict[str, Any] = {}
    for field in fields(config):
        value = getattr(config, field.name)
        if value in ("", 0):
            continue
        explicit[field.name] = value
    return explicit


def merge_config(
    override: Optional[Union[Config, Mapping[str, Any]]] = None,
    defaults: Config = DEFAULT_CONFIG,
) -> Config:
    """Overlay explicitly-set override fields onto the defaults."""
    if override is None:
        return defaults

    if isinstance(override, Config):
        values = _explicit_fields(override)
    elif isinstance(override, Mapping):
        values = {}
        for name, value in override.items():
            if name not in _FIELD_TYPES:
                raise ConfigMergeError(f"Unknown config field '{name}'.")
            if value is None:
                continue
            values[name] = value
    else:
        raise ConfigMergeError(
            f"Config override must be a Config or a mapping, got {type(override).__name__}."
        )

    for name, value in values.items():
        _check_type(name, value)
    if "cache_timeout" in values:
        values["cache_timeout"] = float(values["cache_timeout"])

    return replace(defaults, **values)


def _parse_env_number(name: str, raw: str, allow_float: bool) -> Union[int, float]:
    normalized = raw.strip().lower()
    if normalized in {"never", "disabled", "none"}:
        return NO_EXPIRATION if allow_float else 0
    try:
        return float(normalized) if allow_float else int(normalized)
    except ValueError as exc:
        raise ConfigMergeError(f"{name} must be a number, got '{raw}'.") from exc


def env_overrides(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect the config fields set through environment variables."""
    source = os.environ if env is None else env
    override: Dict[str, Any] = {}

    for field_name, var in ENV_VARS.items():
        raw = source.get(var)
        if raw is None or raw.strip() == "":
            continue
        if field_name == "cache_timeout":
            override[field_name] = _parse_env_number(var, raw, allow_float=True)
        elif field_name in {"dial_timeout", "call_timeout"}:
            override[field_name] = _parse_env_number(var, raw, allow_float=False)
        else:
            override[field_name] = raw.strip()
    return override


def load_config(env: Optional[Mapping[str, str]] = None) -> Config:
    """Load configuration from environment variables, falling back to defaults."""
    override = env_overrides(env)
    logger.debug("Loaded config from environment: %s", sorted(override))
    return merge_config(override)
