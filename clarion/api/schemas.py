"""
Clarion backend wire models.

Pydantic models for request/response payloads of the /api/v2 endpoints the
client talks to. Field names follow the backend's JSON.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.models import FilterSpec


class PreviewFilterRequest(BaseModel):
    """Request for per-path glob verdicts."""
    file_paths: List[str] = Field(default_factory=list, description="Relative file paths to evaluate")
    include_globs: List[str] = Field(default_factory=list)
    exclude_globs: List[str] = Field(default_factory=list)


class PreviewFilterResponse(BaseModel):
    """Verdict map keyed by path."""
    status: Dict[str, str] = Field(default_factory=dict, description="path -> 'included' | 'excluded'")

    @field_validator("status", mode="before")
    @classmethod
    def _null_status(cls, value):
        return value or {}


class LoadDirectoryRequest(BaseModel):
    path: str


class ReadFilesRequest(BaseModel):
    paths: List[str]


class ReadFilesResponse(BaseModel):
    files: Dict[str, str] = Field(default_factory=dict)

    @field_validator("files", mode="before")
    @classmethod
    def _null_files(cls, value):
        return value or {}


# Agent persona models

class AgentProfile(BaseModel):
    """Identity block of an agent persona (PascalCase on the wire)."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field("", alias="ID")
    name: str = Field("", alias="Name")
    description: str = Field("", alias="Description")
    author: str = Field("", alias="Author")
    version: str = Field("", alias="Version")
    icon: str = Field("", alias="Icon")


class CodebaseFilters(BaseModel):
    """
    Persisted codebase filter configuration of an agent.

    content_regex_include and max_total_files are stored and sent back
    unchanged; nothing on the client reads them.
    """
    include_globs: List[str] = Field(default_factory=list)
    exclude_globs: List[str] = Field(default_factory=list)
    content_regex_include: str = ""
    max_total_files: int = 0

    @field_validator("include_globs", "exclude_globs", mode="before")
    @classmethod
    def _null_globs(cls, value):
        return value or []

    @field_validator("content_regex_include", mode="before")
    @classmethod
    def _null_regex(cls, value):
        return value or ""

    @field_validator("max_total_files", mode="before")
    @classmethod
    def _null_max(cls, value):
        return value or 0

    def to_filter_spec(self) -> FilterSpec:
        return FilterSpec.of(self.include_globs, self.exclude_globs)


class LLMConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    provider: str = "OpenAI"
    model: str = "gpt-4o"
    parameters: Dict[str, Any] = Field(default_factory=lambda: {"temperature": 0.7})
    config_id: str = Field("", alias="configId")


class AgentPersona(BaseModel):
    """An agent configuration as stored by the backend."""
    model_config = ConfigDict(populate_by_name=True)

    profile: AgentProfile = Field(default_factory=AgentProfile, alias="Profile")
    system_prompt: str = ""
    codebase_filters: CodebaseFilters = Field(default_factory=CodebaseFilters)
    output_schema: Dict[str, Any] = Field(default_factory=dict)
    user_variables: List[Dict[str, Any]] = Field(default_factory=list)
    llm_config: LLMConfig = Field(default_factory=LLMConfig)

    @field_validator("profile", "codebase_filters", "llm_config", "output_schema", mode="before")
    @classmethod
    def _null_block(cls, value):
        return value if value is not None else {}

    @field_validator("user_variables", "system_prompt", mode="before")
    @classmethod
    def _null_scalar(cls, value, info):
        if value is None:
            return [] if info.field_name == "user_variables" else ""
        return value

    @property
    def id(self) -> str:
        return self.profile.id

    @property
    def name(self) -> str:
        return self.profile.name

    @property
    def filter_spec(self) -> FilterSpec:
        return self.codebase_filters.to_filter_spec()

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
