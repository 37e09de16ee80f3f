"""Developer resource: developers registered in one organization.

Only marshaling lives here; every call goes through ApiObject's verbs.
"""

from __future__ import annotations

from urllib.parse import quote

import httpx

from edge_mgmt.api_object import ApiObject, InvalidArgumentFailure
from edge_mgmt.executor import ApiFailure
from edge_mgmt.models import ClientConfig, DeveloperInfo


class Developer(ApiObject):
    """CRUD access to /o/{org}/developers."""

    def __init__(self, config: ClientConfig, transport: httpx.BaseTransport | None = None) -> None:
        super().__init__(config, f"/o/{quote(config.org_name, safe='')}/developers", transport=transport)

    def load(self, email: str) -> DeveloperInfo:
        if not email:
            raise InvalidArgumentFailure("No developer email given.")
        self.get(quote(email, safe="@"))
        return DeveloperInfo.model_validate(self.responseObj)

    def getList(self) -> list[str]:
        """Return the email addresses of all developers in the organization."""
        self.get()
        return [str(email) for email in self.responseObj] if isinstance(self.responseObj, list) else []

    def getListDetail(self) -> list[DeveloperInfo]:
        """Return full records for all developers in the organization."""
        self.get("?expand=true")
        records = self.responseObj.get("developer", []) if isinstance(self.responseObj, dict) else []
        return [DeveloperInfo.model_validate(record) for record in records]

    def save(self, developer: DeveloperInfo, force_update: bool | None = False) -> DeveloperInfo:
        """Create or update a developer.

        With force_update=True an existing developer is updated (PUT); with
        False a new one is created (POST). None tries the update first and
        creates the developer if the update reports 404.
        """
        if force_update is None:
            try:
                return self.save(developer, force_update=True)
            except ApiFailure as e:
                if e.status_code != 404:
                    raise
                return self.save(developer, force_update=False)

        if force_update:
            self.put(quote(developer.email, safe="@"), developer.to_payload())
        else:
            self.post(None, developer.to_payload())
        return DeveloperInfo.model_validate(self.responseObj)

    def delete(self, email: str | None = None) -> None:
        if not email:
            raise InvalidArgumentFailure("No developer email given.")
        self.httpDelete(quote(email, safe="@"))
