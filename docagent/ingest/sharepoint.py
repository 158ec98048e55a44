"""
SharePoint document library connector (Microsoft Graph).

App-only bearer token from azure-identity (ClientSecretCredential), fetched
once and cached for the process lifetime (no refresh on expiry). The site's
default drive id is cached too.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from azure.core.exceptions import AzureError
from azure.identity import ClientSecretCredential

from docagent.core.errors import DocumentSourceError, ServiceUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class DocumentRef:
    """One file in the document library."""

    id: str
    name: str
    web_url: str = ""
    last_modified: str = ""


class SharePointClient:
    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        site_id: str,
        graph_base_url: str = "https://graph.microsoft.com/v1.0",
        scope: str = "https://graph.microsoft.com/.default",
        timeout: float = 60.0,
        http: httpx.Client | None = None,
        credential: Any = None,
    ) -> None:
        missing = [
            name for name, value in (
                ("TENANT_ID", tenant_id), ("CLIENT_ID", client_id),
                ("CLIENT_SECRET", client_secret), ("SITE_ID", site_id),
            ) if not value
        ]
        if missing:
            raise ServiceUnavailableError(f"{', '.join(missing)} must be set in .env")
        self.site_id = site_id
        self.graph_base_url = graph_base_url.rstrip("/")
        self.scope = scope
        self._credential = credential or ClientSecretCredential(tenant_id, client_id, client_secret)
        self._http = http or httpx.Client(timeout=timeout)
        self._access_token: str | None = None
        self._drive_id: str | None = None

    def close(self) -> None:
        self._http.close()
        close = getattr(self._credential, "close", None)
        if close is not None:
            close()

    def get_access_token(self) -> str:
        """Retrieve an app-only token from Azure AD (cached after the first call)."""
        if self._access_token:
            return self._access_token
        try:
            token = self._credential.get_token(self.scope).token
        except AzureError as e:
            raise DocumentSourceError(f"Failed to get access token from Azure AD: {e}") from e
        if not token:
            raise DocumentSourceError("Failed to get access token from Azure AD")
        self._access_token = token
        logger.info("[sharepoint] access token acquired")
        return token

    def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.get_access_token()}"}
        try:
            response = self._http.get(url, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise DocumentSourceError(f"Graph request failed for {url}: {e}") from e
        return response

    def _get_json(self, url: str) -> dict[str, Any]:
        try:
            return self._get(url).json()
        except ValueError as e:
            raise DocumentSourceError(f"Graph returned invalid JSON for {url}") from e

    def get_drive_id(self) -> str:
        """Id of the site's first (default) document library."""
        if self._drive_id:
            return self._drive_id
        data = self._get_json(f"{self.graph_base_url}/sites/{self.site_id}/drives")
        drives = data.get("value") or []
        if not drives:
            raise DocumentSourceError("No drives found in SharePoint response")
        self._drive_id = drives[0]["id"]
        return self._drive_id

    def list_documents(self) -> list[DocumentRef]:
        """Files at the root of the default document library; folders are skipped."""
        url: str | None = f"{self.graph_base_url}/drives/{self.get_drive_id()}/root/children"
        refs: list[DocumentRef] = []
        while url:
            data = self._get_json(url)
            if "value" not in data:
                raise DocumentSourceError("No documents found in SharePoint response")
            for item in data["value"]:
                if "folder" in item:
                    continue
                refs.append(DocumentRef(
                    id=item["id"],
                    name=item.get("name") or "Untitled",
                    web_url=item.get("webUrl") or "",
                    last_modified=item.get("lastModifiedDateTime") or "",
                ))
            url = data.get("@odata.nextLink")
        logger.info("[sharepoint:list_documents] OUT documents=%d", len(refs))
        return refs

    def fetch_document_content(self, ref: DocumentRef) -> tuple[bytes, str]:
        """Raw bytes and declared content type of one document."""
        url = f"{self.graph_base_url}/drives/{self.get_drive_id()}/items/{ref.id}/content"
        response = self._get(url, follow_redirects=True)
        content_type = response.headers.get("content-type", "")
        logger.info("[sharepoint:fetch] name=%r content_type=%s bytes=%d", ref.name, content_type, len(response.content))
        return response.content, content_type
