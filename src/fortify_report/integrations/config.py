"""Configuration model for one Fortify backend instance."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fortify_report.models.enums import ProviderKind

DEFAULT_MAX_ISSUES = 10000


class ProviderConfig(BaseModel):
    """Inputs needed to talk to one SSC or FoD instance.

    Credential fields are kept out of ``repr`` so the config can be logged.
    Completeness is checked by ``validate_provider_config`` rather than here,
    so a partial config can still be built and reported on in one pass.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    provider_kind: ProviderKind | None = None
    base_url: str = ""
    app_name: str = ""
    app_version: str = ""

    # SSC
    ci_token: str | None = Field(None, repr=False)

    # FoD
    api_key: str | None = Field(None, repr=False)
    api_secret: str | None = Field(None, repr=False)
    tenant_id: str | None = None

    max_issues: int = Field(DEFAULT_MAX_ISSUES, gt=0)

    # Filled in after resolution, for link generation
    project_version_id: str | None = None
    build_id: str | None = None

    @field_validator("base_url")
    @classmethod
    def _normalize_base_url(cls, value: str) -> str:
        return value.strip().rstrip("/")
