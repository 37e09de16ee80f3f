"""CompanyInviteRequest resource: requests inviting developers into companies."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote, urlencode

import httpx

from edge_mgmt.api_object import ApiObject, InvalidArgumentFailure
from edge_mgmt.executor import ApiFailure
from edge_mgmt.models import ClientConfig, InviteRequest


class CompanyInviteRequest(ApiObject):
    """Lists, saves and deletes invite requests under /o/{org}/requests.

    Write calls carry a ``source`` header naming the developer on whose
    behalf the request is made.
    """

    def __init__(self, config: ClientConfig, transport: httpx.BaseTransport | None = None) -> None:
        super().__init__(config, f"/o/{quote(config.org_name, safe='')}/requests", transport=transport)

    def getAllRequestsForCompany(self, company_id: str, state: str | None = None) -> list[InviteRequest]:
        return self._list({"company_id": company_id}, state)

    def getAllRequestsForDeveloper(self, developer_id: str, state: str | None = None) -> list[InviteRequest]:
        return self._list({"dev_id": developer_id}, state)

    def getAllRequestsForOrg(self) -> list[InviteRequest]:
        self.get()
        return self._load_request_list(self.responseObj)

    def save(self, invite: InviteRequest, force_update: bool | None = False) -> InviteRequest:
        """Create or update an invite request.

        force_update=True updates (PUT), False creates (POST). None tries
        the update first and falls back to a create when it reports 404.
        """
        if force_update is None:
            try:
                return self.save(invite, force_update=True)
            except ApiFailure as e:
                if e.status_code != 404:
                    raise
                return self.save(invite, force_update=False)

        uri = None
        if force_update or invite.created_at:
            uri = quote(invite.id, safe="")

        if force_update:
            self.put(uri, invite.to_payload(), custom_headers=self._source_header(invite))
        else:
            self.post(uri, invite.to_payload(), custom_headers=self._source_header(invite))

        saved = invite.model_copy(update=_known_fields(self.responseObj))
        return saved

    def delete(self, request_id: str | None = None, source_developer_email: str | None = None) -> None:
        if not request_id:
            raise InvalidArgumentFailure("No requestId given.")
        self.httpDelete(quote(request_id, safe=""), custom_headers={"source": source_developer_email})

    def toArray(self, invite: InviteRequest) -> dict[str, Any]:
        """Invite fields plus the diagnostic record of the last call."""
        output = invite.model_dump()
        debug_data = self.getDebugData()
        output["debugData"] = debug_data.model_dump() if debug_data is not None else None
        return output

    def _list(self, query: dict[str, str], state: str | None) -> list[InviteRequest]:
        if state:
            query["state"] = state
        self.get("?" + urlencode(query))
        return self._load_request_list(self.responseObj)

    @staticmethod
    def _source_header(invite: InviteRequest) -> dict[str, str | None]:
        return {"source": invite.source_developer_email}

    @staticmethod
    def _load_request_list(response_obj: Any) -> list[InviteRequest]:
        if not isinstance(response_obj, list):
            return []
        return [InviteRequest.model_validate(item) for item in response_obj if isinstance(item, dict)]


def _known_fields(response_obj: Any) -> dict[str, Any]:
    """Response keys that map onto InviteRequest fields, keyed by field name."""
    if not isinstance(response_obj, dict):
        return {}
    by_wire_name = {
        (field.alias or name): name for name, field in InviteRequest.model_fields.items()
    }
    by_wire_name.update({name: name for name in InviteRequest.model_fields})
    return {by_wire_name[key]: value for key, value in response_obj.items() if key in by_wire_name}
