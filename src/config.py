"""Application configuration using Pydantic BaseSettings."""

from functools import lru_cache
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.constants import DEFAULT_LIST_LIMIT
from src.models.search_models import MenuItem


class ComponentParams(BaseModel):
    """Search component parameters.

    These are the site-wide defaults; the active menu entry's params are
    layered on top per request (see SiteParameters).
    """

    model_config = ConfigDict(populate_by_name=True)

    page_title: str = ""
    pageclass_sfx: str = ""
    robots: str = ""
    menu_meta_description: str = Field(default="", alias="menu-meta_description")
    menu_meta_keywords: str = Field(default="", alias="menu-meta_keywords")
    show_feed_link: int = 1
    opensearch: int = 1
    opensearch_name: str = ""
    opensearch_description: str = ""
    show_suggested_query: int = 1
    gather_search_statistics: int = 1
    article_layout: str = ""
    list_limit: int = DEFAULT_LIST_LIMIT

    def as_params(self) -> dict[str, Any]:
        """Return params keyed the way templates and menu entries name them.

        Empty strings are dropped so that `params.get(key, default)` falls
        back to its default, matching how unset params behave.
        """
        values = self.model_dump(by_alias=True)
        return {key: value for key, value in values.items() if value != ""}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Load .env first, then .env.local (for local/test overrides)
        # Later files override earlier ones, so .env.local takes precedence
        env_file=[".env", ".env.local"],
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    # Site Configuration
    sitename: str = Field(default="My Site", description="Site name")
    sitename_pagetitles: int = Field(
        default=0,
        ge=0,
        le=2,
        description="Include site name in page titles: 0 no, 1 before, 2 after",
    )
    site_meta_description: str = Field(
        default="", description="Site-wide meta description"
    )
    base_url: str | None = Field(
        default=None,
        description="Public scheme://host[:port]; taken from the request when unset",
    )
    base_path: str = Field(
        default="", description="Path prefix the site is mounted under"
    )

    # Search Component
    search: ComponentParams = Field(default_factory=ComponentParams)
    menu_items: list[MenuItem] = Field(
        default_factory=list, description="Navigation entries pointing at search"
    )
    default_menu_item_id: int | None = Field(
        default=None, description="Menu entry used when no Itemid is given"
    )
    query_suggestions: dict[str, str] = Field(
        default_factory=dict,
        description="Alternate spellings offered as 'Did you mean' suggestions",
    )
    static_filters: dict[int, list[int]] = Field(
        default_factory=dict,
        description="Static search filters selected with f: filter id -> taxonomy ids",
    )

    # Templates & Content
    template_paths: list[str] = Field(
        default_factory=list,
        description="Template override directories, searched before the packaged templates",
    )
    corpus_path: str | None = Field(
        default=None, description="JSON file with the documents to search"
    )

    # Environment
    env: Literal["local", "railway", "prod"] = Field(
        default="local", description="Current environment"
    )
    debug: bool = Field(default=False, description="Record profiler marks")

    # Sentry Configuration
    sentry_dsn: str | None = Field(
        default=None, description="Sentry DSN for error tracking (optional)"
    )
    sentry_traces_sample_rate: float = Field(
        default=1.0, description="Sentry traces sample rate (0.0 to 1.0)"
    )

    # Logfire Configuration
    logfire_token: str | None = Field(
        default=None, description="Pydantic Logfire token for observability"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
