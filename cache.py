"""Persistent config and lookup cache.

One JSON file holds credentials, per-project mappings and everything
resolved from Jira/Tempo so later runs can skip the lookups. Every field
has a default, so files written by older versions load without errors.
"""

import copy
import json
import os
from dataclasses import dataclass, field

from models import (
    AutoExtractMapping,
    Category,
    CategoryCatalog,
    Mapping,
    SkipMapping,
    TicketMapping,
)

DEFAULT_ACCOUNT_FIELD = "customfield_10048"
DEFAULT_CONFIG_PATH = os.path.join("~", ".config", "watson-tempo", "config.json")
CONFIG_ENV_VAR = "WATSON_TEMPO_CONFIG"


class ConfigError(Exception):
    """The config file exists but cannot be used."""


@dataclass
class Cache:
    """Everything persisted between runs."""

    # Credentials
    tempo_token: str = ""
    jira_base_url: str = ""
    jira_email: str = ""
    jira_token: str = ""
    jira_account_id: str = ""
    jira_account_field: str = DEFAULT_ACCOUNT_FIELD

    # Watson project -> policy
    mappings: dict[str, Mapping] = field(default_factory=dict)

    # Ticket key -> resolved remote identifiers
    issue_ids: dict[str, int] = field(default_factory=dict)
    account_keys: dict[str, str] = field(default_factory=dict)
    ticket_categories: dict[str, str] = field(default_factory=dict)  # last chosen
    category_overrides: dict[str, str] = field(default_factory=dict)  # pinned, never prompted

    # Discovered Tempo work attribute keys
    account_attr_key: str = ""
    category_attr_key: str = ""
    category_catalog: CategoryCatalog | None = None

    daily_target_minutes: int = 450
    start_time: str = "09:00"

    def copy(self) -> "Cache":
        return copy.deepcopy(self)

    def get_mapping(self, project: str) -> Mapping | None:
        return self.mappings.get(project)

    def set_mapping(self, project: str, mapping: Mapping) -> None:
        self.mappings[project] = mapping

    def has_credentials(self) -> bool:
        return all([self.tempo_token, self.jira_base_url, self.jira_email, self.jira_token])


# ---------------------------------------------------------------------------
# (De)serialization
# ---------------------------------------------------------------------------


def mapping_to_dict(mapping: Mapping) -> dict:
    if isinstance(mapping, TicketMapping):
        return {"mode": "ticket", "ticket": mapping.ticket}
    if isinstance(mapping, SkipMapping):
        return {"mode": "skip"}
    if isinstance(mapping, AutoExtractMapping):
        return {"mode": "auto_extract"}
    raise ValueError(f"Unknown mapping: {mapping!r}")


def mapping_from_dict(project: str, data) -> Mapping:
    mode = data.get("mode") if isinstance(data, dict) else None
    if mode == "ticket" and data.get("ticket"):
        return TicketMapping(str(data["ticket"]))
    if mode == "skip":
        return SkipMapping()
    if mode == "auto_extract":
        return AutoExtractMapping()
    raise ConfigError(f"Invalid mapping for project '{project}': {data!r}")


def _object(data: dict, name: str) -> dict:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be an object")
    return value


def _str_dict(data: dict, name: str) -> dict[str, str]:
    return {str(k): str(v) for k, v in _object(data, name).items()}


def cache_to_dict(cache: Cache) -> dict:
    catalog = None
    if cache.category_catalog is not None:
        catalog = {
            "options": [{"value": c.value, "name": c.name} for c in cache.category_catalog.options],
            "fetched_at": cache.category_catalog.fetched_at,
        }
    return {
        "tempo_token": cache.tempo_token,
        "jira_base_url": cache.jira_base_url,
        "jira_email": cache.jira_email,
        "jira_token": cache.jira_token,
        "jira_account_id": cache.jira_account_id,
        "jira_account_field": cache.jira_account_field,
        "mappings": {p: mapping_to_dict(m) for p, m in sorted(cache.mappings.items())},
        "issue_ids": dict(sorted(cache.issue_ids.items())),
        "account_keys": dict(sorted(cache.account_keys.items())),
        "ticket_categories": dict(sorted(cache.ticket_categories.items())),
        "category_overrides": dict(sorted(cache.category_overrides.items())),
        "account_attr_key": cache.account_attr_key,
        "category_attr_key": cache.category_attr_key,
        "category_catalog": catalog,
        "daily_target_minutes": cache.daily_target_minutes,
        "start_time": cache.start_time,
    }


def cache_from_dict(data: dict) -> Cache:
    """Build a Cache, substituting defaults for anything missing."""
    if not isinstance(data, dict):
        raise ConfigError("Top level must be a JSON object")

    defaults = Cache()

    mappings = {str(p): mapping_from_dict(p, m) for p, m in _object(data, "mappings").items()}

    try:
        issue_ids = {str(k): int(v) for k, v in _object(data, "issue_ids").items()}
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'issue_ids' must map tickets to numbers: {e}")

    catalog = None
    raw_catalog = data.get("category_catalog")
    if raw_catalog is not None:
        try:
            catalog = CategoryCatalog(
                options=[Category(value=str(o["value"]), name=str(o["name"])) for o in raw_catalog.get("options", [])],
                fetched_at=str(raw_catalog.get("fetched_at", "")),
            )
        except (AttributeError, KeyError, TypeError) as e:
            raise ConfigError(f"Invalid 'category_catalog': {e}")

    try:
        daily_target = int(data.get("daily_target_minutes", defaults.daily_target_minutes))
    except (TypeError, ValueError):
        raise ConfigError("'daily_target_minutes' must be a number")

    return Cache(
        tempo_token=data.get("tempo_token", defaults.tempo_token),
        jira_base_url=data.get("jira_base_url", defaults.jira_base_url),
        jira_email=data.get("jira_email", defaults.jira_email),
        jira_token=data.get("jira_token", defaults.jira_token),
        jira_account_id=data.get("jira_account_id", defaults.jira_account_id),
        jira_account_field=data.get("jira_account_field") or defaults.jira_account_field,
        mappings=mappings,
        issue_ids=issue_ids,
        account_keys=_str_dict(data, "account_keys"),
        ticket_categories=_str_dict(data, "ticket_categories"),
        category_overrides=_str_dict(data, "category_overrides"),
        account_attr_key=data.get("account_attr_key", defaults.account_attr_key),
        category_attr_key=data.get("category_attr_key", defaults.category_attr_key),
        category_catalog=catalog,
        daily_target_minutes=daily_target,
        start_time=data.get("start_time") or defaults.start_time,
    )


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def default_path() -> str:
    """Config location: $WATSON_TEMPO_CONFIG or ~/.config/watson-tempo/config.json."""
    return os.path.expanduser(os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)


def load(path: str) -> Cache:
    """Load the cache. A missing file gives an empty cache; a broken one raises ConfigError."""
    if not os.path.exists(path):
        return Cache()

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path} is not valid JSON (line {e.lineno}, column {e.colno}: {e.msg})")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}")

    try:
        return cache_from_dict(data)
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}")


def save(path: str, cache: Cache) -> None:
    """Write the whole cache to `path`, replacing what was there."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(cache_to_dict(cache), f, indent=2, ensure_ascii=False)
        f.write("\n")
