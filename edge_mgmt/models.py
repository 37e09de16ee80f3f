"""Internal data models for edge-mgmt.

All models use Pydantic v2. The HTTP models describe one request/response
cycle through the execution core; the entity models describe what the
resource objects read back from the Management API.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_ENDPOINT = "https://api.enterprise.apigee.com/v1"
DEFAULT_MIME_TYPE = "application/json; charset=utf-8"

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "HEAD"]


# =============================================================================
# Core HTTP Models
# =============================================================================


class RequestOptions(BaseModel):
    """Per-call transport options, layered over the client configuration."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    timeout: float | None = Field(default=None, description="Read timeout override in seconds")
    follow_redirects: bool | None = Field(
        default=None, description="Redirect override (None keeps the client setting)"
    )


class RequestDescriptor(BaseModel):
    """One outgoing HTTP request. Immutable once built.

    Header keys are lowercased on validation. Because the input is an ordered
    mapping, a later key that lowercases to an earlier one wins.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    method: HttpMethod = Field(description="HTTP method")
    uri: str | None = Field(default=None, description="URI relative to the resource base URL")
    headers: dict[str, str] = Field(default_factory=dict, description="Lowercase name -> value")
    body: bytes | None = Field(default=None, description="Wire body, None for bodyless requests")
    options: RequestOptions = Field(default_factory=RequestOptions, description="Per-call options")

    @field_validator("headers", mode="before")
    @classmethod
    def lowercase_header_names(cls, v: Any) -> Any:
        if isinstance(v, dict):
            headers: dict[str, Any] = {}
            for key, value in v.items():
                headers[str(key).lower()] = value
            return headers
        return v

    @property
    def is_entity_enclosing(self) -> bool:
        """True for methods that carry a request body (POST, PUT)."""
        return self.method in ("POST", "PUT")


class ResponseDescriptor(BaseModel):
    """One HTTP response, produced exactly once per call.

    Header keys are lowercase. Header values are arrays for repeated headers.
    ``data`` is the decoded JSON body, or an empty dict when the body is not
    JSON; it is never None.
    """

    model_config = ConfigDict(extra="forbid")

    status_code: int = Field(description="HTTP status code")
    headers: dict[str, list[str]] = Field(
        default_factory=dict, description="Response headers (lowercase keys, array values)"
    )
    body: bytes = Field(default=b"", description="Raw response body")
    text: str = Field(default="", description="Response body as trimmed text")
    content_type: str = Field(default="", description="Content-Type header value")
    content_length: int | None = Field(default=None, description="Content-Length, if known")
    data: dict[str, Any] | list[Any] = Field(
        default_factory=dict, description="Decoded JSON body, empty when not JSON"
    )

    @property
    def status_class(self) -> int:
        return self.status_code // 100


# =============================================================================
# Diagnostic Models
# =============================================================================


class DiagnosticOptions(BaseModel):
    """Structured options bag captured alongside each exchange."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    request_headers: str = Field(default="", description="Raw request header block, credentials masked")
    response_headers: str | None = Field(default=None, description="Raw response header block")
    request_body: str | None = Field(default=None, description="Body of entity-enclosing requests")
    request_kind: Literal["entity_enclosing", "plain"] = Field(
        default="plain", description="Whether the request carried a body"
    )


class DiagnosticRecord(BaseModel):
    """Snapshot of the most recent request/response exchange.

    ``status_class`` is always ``status_code // 100``, except for transport
    failures where no HTTP response exists and it is 0.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    raw: str = Field(default="", description="Raw response body text")
    options: DiagnosticOptions = Field(default_factory=DiagnosticOptions)
    data: Any = Field(default=None, description="Decoded body, or None")
    status_code: int = Field(default=0, description="HTTP status, or transport error code")
    status_reason: str = Field(default="", description="Reason phrase or transport error message")
    status_class: int = Field(default=0, description="status_code // 100, 0 for transport errors")
    exception: str | None = Field(default=None, description="Failure summary, None on success")
    elapsed: float | None = Field(default=None, description="Seconds spent in the transport")

    @property
    def succeeded(self) -> bool:
        return self.status_class == 2


# =============================================================================
# Runtime Configuration Models
# =============================================================================


class HttpOptions(BaseModel):
    """Transport options applied to every call made from one configuration."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    timeout: float = Field(default=30.0, description="Read/write/pool timeout in seconds")
    connect_timeout: float | None = Field(
        default=None, description="Connect timeout in seconds (defaults to timeout)"
    )
    headers: dict[str, str] = Field(
        default_factory=dict, description="Extra headers sent on every request"
    )


class ClientConfig(BaseModel):
    """Connection settings for one organization.

    Owned by the caller and shared by reference into every resource object
    created from it. The core never mutates it.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    org_name: str = Field(description="Organization name")
    endpoint: str = Field(default=DEFAULT_ENDPOINT, description="Management API base URL")
    user: str | None = Field(default=None, description="Username for Basic authentication")
    password: str | None = Field(default=None, repr=False, description="Password for Basic authentication")
    bearer_token: str | None = Field(
        default=None, repr=False, description="OAuth token, used instead of user/password"
    )
    user_agent: str | None = Field(default=None, description="User-Agent header override")
    http_options: HttpOptions = Field(default_factory=HttpOptions)
    redirect_disable: bool = Field(default=False, description="Do not follow redirects")
    debug_callbacks: list[Callable[..., Any]] = Field(
        default_factory=list, description="Observers called with each DiagnosticRecord"
    )
    event_hooks: dict[str, list[Callable[..., Any]]] = Field(
        default_factory=dict, description="httpx event hooks keyed by 'request'/'response'"
    )
    logger: logging.Logger | None = Field(default=None, description="Logger used by the core")

    @field_validator("event_hooks")
    @classmethod
    def validate_event_hook_names(
        cls, v: dict[str, list[Callable[..., Any]]]
    ) -> dict[str, list[Callable[..., Any]]]:
        unknown = set(v) - {"request", "response"}
        if unknown:
            raise ValueError(f"unknown event hook(s): {', '.join(sorted(unknown))}")
        return v


# =============================================================================
# Management API Entities
# =============================================================================


class OrganizationInfo(BaseModel):
    """An organization as returned by GET /organizations/{name}."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    display_name: str | None = Field(default=None, alias="displayName")
    environments: list[str] = Field(default_factory=list)
    properties: dict[str, str] = Field(default_factory=dict)
    type: str | None = None
    created_at: int | None = Field(default=None, alias="createdAt")
    created_by: str | None = Field(default=None, alias="createdBy")
    last_modified_at: int | None = Field(default=None, alias="lastModifiedAt")
    last_modified_by: str | None = Field(default=None, alias="lastModifiedBy")

    @field_validator("properties", mode="before")
    @classmethod
    def flatten_properties(cls, v: Any) -> Any:
        # Wire format: {"property": [{"name": ..., "value": ...}, ...]}
        if isinstance(v, dict) and "property" in v:
            flattened: dict[str, str] = {}
            for prop in v.get("property") or []:
                if isinstance(prop, dict) and "name" in prop and "value" in prop:
                    flattened[prop["name"]] = prop["value"]
            return flattened
        return v or {}

    def get_property(self, name: str) -> str | None:
        return self.properties.get(name)


class DeveloperInfo(BaseModel):
    """A developer registered in an organization."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    email: str
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    user_name: str | None = Field(default=None, alias="userName")
    developer_id: str | None = Field(default=None, alias="developerId")
    organization_name: str | None = Field(default=None, alias="organizationName")
    status: str | None = None
    apps: list[str] = Field(default_factory=list)
    companies: list[str] = Field(default_factory=list)
    attributes: list[dict[str, str]] = Field(default_factory=list)
    created_at: int | None = Field(default=None, alias="createdAt")
    last_modified_at: int | None = Field(default=None, alias="lastModifiedAt")

    def to_payload(self) -> dict[str, Any]:
        """Body for create/update calls (wire names, unset fields omitted)."""
        return self.model_dump(
            by_alias=True,
            exclude_none=True,
            include={"email", "first_name", "last_name", "user_name", "status", "attributes"},
        )


class InviteRequest(BaseModel):
    """A request inviting a developer into a company."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = ""
    company_id: str = Field(default="", alias="companyId")
    developer_id: str = Field(default="", alias="developerId")
    org_id: str = Field(default="", alias="orgId")
    requestor: str = ""
    state: str = ""
    type: str = ""
    created_at: Any = ""
    lastmodified_at: Any = ""
    updated: Any = ""
    source_developer_email: str | None = Field(
        default=None, alias="sourceDeveloperEmail", exclude=True
    )

    def to_payload(self) -> dict[str, Any]:
        """Body for create/update calls; empty optional fields are omitted."""
        payload: dict[str, Any] = {
            "companyId": self.company_id,
            "developerId": self.developer_id,
        }
        if self.requestor:
            payload["requestor"] = self.requestor
        if self.type:
            payload["type"] = self.type
        if self.state:
            payload["state"] = self.state
        return payload
