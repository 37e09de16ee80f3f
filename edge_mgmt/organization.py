"""Organization resource: reads an organization's metadata."""

from __future__ import annotations

from urllib.parse import quote

import httpx

from edge_mgmt.api_object import ApiObject
from edge_mgmt.models import ClientConfig, OrganizationInfo


class Organization(ApiObject):
    """Loads organizations through GET /organizations/{name}."""

    def __init__(self, config: ClientConfig, transport: httpx.BaseTransport | None = None) -> None:
        super().__init__(config, "/organizations", transport=transport)
        self.name = config.org_name
        self.info: OrganizationInfo | None = None

    def load(self, org_name: str | None = None) -> OrganizationInfo:
        """Load an organization, defaulting to the configured one."""
        org_name = org_name or self.name
        self.get(quote(org_name, safe=""))
        self.info = OrganizationInfo.model_validate(self.responseObj)
        self.name = self.info.name
        return self.info
