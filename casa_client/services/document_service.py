"""Case document service - listing, upload and download."""

import logging
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

from casa_client.schemas.common import ApiResponse
from casa_client.services.api_client import (
    CASA_PREFIX,
    ApiClient,
    FileInput,
    ProgressCallback,
    fetch_collection,
    fetch_envelope,
    service_call,
)
from casa_client.services.case_activity_service import matches_case_number

logger = logging.getLogger(__name__)

DOCUMENT_KEYS = ("documents",)
DOWNLOAD_URL_KEYS = ("download_url", "url", "file_url")


@service_call("Failed to fetch documents")
async def list_documents(client: ApiClient, case_id: str | None = None) -> ApiResponse:
    return await fetch_collection(client, "documents", DOCUMENT_KEYS, case_id=case_id)


@service_call("Failed to fetch case documents")
async def get_documents_for_case(client: ApiClient, case_number: str) -> ApiResponse:
    """All documents whose ``case_number`` equals the given one."""
    response = await fetch_collection(client, "documents", DOCUMENT_KEYS)
    if not response.success:
        return response
    documents = [doc for doc in response.data if matches_case_number(doc, case_number)]
    return ApiResponse.ok(documents, status_code=response.status_code)


@service_call("Failed to create document")
async def create_document(
    client: ApiClient,
    metadata: dict[str, Any],
    file: FileInput | None = None,
) -> ApiResponse:
    """Create a document record, optionally with the file in the same request."""
    if file is None:
        return await client.casa_post("documents", metadata)
    return await client.upload_file(CASA_PREFIX + "documents", file, fields=metadata)


@service_call("Failed to upload document")
async def upload_document(
    client: ApiClient,
    case_id: str,
    file: FileInput,
    document_type: str,
    description: str | None = None,
    on_progress: ProgressCallback | None = None,
) -> ApiResponse:
    fields = {"case_id": case_id, "document_type": document_type}
    if description:
        fields["description"] = description
    return await client.upload_file(
        CASA_PREFIX + "documents/upload",
        file,
        fields=fields,
        on_progress=on_progress,
    )


@service_call("Failed to delete document")
async def delete_document(client: ApiClient, document_id: str) -> ApiResponse:
    return await client.casa_delete(f"documents/{document_id}")


@service_call("Failed to resolve download URL")
async def get_download_url(client: ApiClient, document_id: str) -> ApiResponse:
    response = await fetch_envelope(client, f"documents/{document_id}/download")
    if not response.success:
        return response
    data = response.data if isinstance(response.data, dict) else {}
    for key in DOWNLOAD_URL_KEYS:
        if data.get(key):
            return ApiResponse.ok(data[key], status_code=response.status_code)
    return ApiResponse.fail("Download URL not available", status_code=response.status_code)


@service_call("Failed to download document")
async def download_document(
    client: ApiClient,
    document_id: str,
    destination_dir: str | Path,
    filename: str | None = None,
) -> ApiResponse:
    """Download a document into ``destination_dir``; data is the written path."""
    url_response = await get_download_url(client, document_id)
    if not url_response.success:
        return url_response

    url = url_response.data
    body = await client.fetch_bytes(url)
    if not body.success:
        return body

    name = filename or Path(unquote(urlparse(url).path)).name or f"document_{document_id}"
    target = Path(destination_dir) / name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(body.data)
    logger.info("Downloaded document %s (%d bytes)", document_id, len(body.data))
    return ApiResponse.ok(target, status_code=body.status_code)
