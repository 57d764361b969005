"""
# Catalog API Client

Async HTTP adapter for the admin REST API that stores SKU families, sub-families and
master data. The services in this package only rely on the method names and return types
below, so tests and other backends can substitute any object with the same coroutines.

## Endpoint Mapping

All calls are `POST {API_BASE_URL}/api/{ADMIN_ROUTE}/<path>` with a JSON body. Responses use
the `{"status", "message", "data"}` envelope.

| operation | path |
|-----------|------|
| `list_references` | `<resource>/list` |
| `create_reference` | `<resource>/create` |
| `list_families` | `skuFamily/list` |
| `save_family` | `skuFamily/create` / `skuFamily/update` |
| `delete_family` | `skuFamily/delete` |
| `update_family_sequence` | `skuFamily/update-sequence` |
| `list_children` | `skuFamily/list-sub-sku-families` |
| `save_sub_family` | `skuFamily/add-sub-sku-family` / `skuFamily/update-sub-sku-family` |
| `delete_sub_family` | `skuFamily/delete-sub-sku-family` |
| `update_sub_family_sequence` | `skuFamily/update-sub-sku-family-sequence` |

## Error Mapping

| condition | exception |
|-----------|-----------|
| HTTP 400 / 422 | `CatalogValidationError` |
| HTTP 404 | `NotFoundError` |
| HTTP 409 | `ConflictError` |
| HTTP >= 500, timeouts, connection, protocol and decoding errors | `TransientError` |
| any other non-2xx | `CatalogError` |
"""

from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from sku_catalog.config import settings
from sku_catalog.exceptions import (
    CatalogError,
    CatalogValidationError,
    ConflictError,
    NotFoundError,
    TransientError,
)
from sku_catalog.managers.logging_manager import get_logger
from sku_catalog.models.catalog_models import (
    ChildPage,
    FamilyDraft,
    FamilyPage,
    ResolvedRefs,
    SaveResult,
    SubFamilyDraft,
)
from sku_catalog.models.reference_models import (
    CreateReferenceRequest,
    ReferenceEntity,
    ReferenceListResponse,
    ReferenceType,
)

logger = get_logger(prefix="[CatalogAPI]")

FAMILY_RESOURCE = "skuFamily"

_STATUS_ERRORS = {
    400: CatalogValidationError,
    404: NotFoundError,
    409: ConflictError,
    422: CatalogValidationError,
}


class CatalogApiClient:
    """
    Admin API client over a pooled `httpx.AsyncClient`.

    Use it as an async context manager, or call `aclose()` when done:

    ```python
    async with CatalogApiClient() as api:
        page = await api.list_children("fam_1", page=1, limit=5)
    ```
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: Optional[float] = None,
        pool_size: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Admin API root, e.g. `http://localhost:8000/api/admin`.
                Defaults to `settings.admin_api_root`.
            api_token: Bearer token. Defaults to `settings.API_TOKEN`.
            timeout: Request timeout in seconds. Defaults to `settings.REQUEST_TIMEOUT_SECONDS`.
            pool_size: Maximum pooled connections. Defaults to `settings.HTTP_POOL_SIZE`.
            transport: Optional httpx transport (e.g. `httpx.MockTransport` in tests).
        """
        if api_token is None and settings.API_TOKEN is not None:
            api_token = settings.API_TOKEN.get_secret_value() or None

        headers = {"Accept": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"

        size = pool_size or settings.HTTP_POOL_SIZE
        self.base_url = (base_url or settings.admin_api_root).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout or settings.REQUEST_TIMEOUT_SECONDS,
            limits=httpx.Limits(max_keepalive_connections=size, max_connections=size),
            transport=transport,
        )

    async def __aenter__(self) -> "CatalogApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close pooled connections."""
        await self._client.aclose()

    # --- Transport ---

    async def _post(self, path: str, payload: Dict[str, Any]) -> Any:
        try:
            response = await self._client.post(path, json=payload)
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout calling {path}: {e}")
            raise TransientError(f"Request to {path} timed out") from e
        except httpx.HTTPError as e:
            logger.warning(f"HTTP error calling {path}: {e}")
            raise TransientError(f"Request to {path} failed: {e}") from e

        body = self._json_body(response)
        message = body.get("message") if isinstance(body, dict) else None

        if response.is_success:
            return body.get("data") if isinstance(body, dict) else body

        status_code = response.status_code
        detail = message or f"{path} failed with HTTP {status_code}"
        if status_code >= 500:
            logger.warning(f"Server error on {path}: {status_code} {detail}")
            raise TransientError(detail, status_code=status_code)
        error_cls = _STATUS_ERRORS.get(status_code, CatalogError)
        logger.info(f"{path} rejected with HTTP {status_code}: {detail}")
        raise error_cls(detail, status_code=status_code)

    @staticmethod
    def _json_body(response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {"message": response.text}

    @staticmethod
    def _unwrap_record(data: Any) -> Dict[str, Any]:
        """Create calls return the record as `data` or, on some endpoints, as `data.data`."""
        if isinstance(data, dict) and "_id" not in data and isinstance(data.get("data"), dict):
            return data["data"]
        if not isinstance(data, dict):
            raise CatalogError("Unexpected response shape: missing record")
        return data

    def _parse(self, model, data: Any):
        try:
            return model.model_validate(data or {})
        except ValidationError as e:
            raise CatalogError(f"Unexpected response shape for {model.__name__}: {e}") from e

    # --- Master data ---

    async def list_references(self, ref_type: ReferenceType, page: int, limit: int) -> ReferenceListResponse:
        data = await self._post(f"{ref_type.api_resource}/list", {"page": page, "limit": limit})
        if isinstance(data, dict):
            # Rows without a usable title cannot be matched against labels
            data = dict(data)
            data["docs"] = [
                doc for doc in data.get("docs") or []
                if isinstance(doc, dict) and doc.get("_id") and isinstance(doc.get("title"), str)
            ]
        return self._parse(ReferenceListResponse, data)

    async def create_reference(self, ref_type: ReferenceType, request: CreateReferenceRequest) -> ReferenceEntity:
        data = await self._post(f"{ref_type.api_resource}/create", request.model_dump())
        record = self._unwrap_record(data)
        record.setdefault("title", request.title)
        record.setdefault("code", request.code)
        return self._parse(ReferenceEntity, record)

    # --- Families ---

    async def list_families(self, page: int, limit: int, search: Optional[str] = None) -> FamilyPage:
        body: Dict[str, Any] = {"page": page, "limit": limit}
        if search:
            body["search"] = search
        data = await self._post(f"{FAMILY_RESOURCE}/list", body)
        return self._parse(FamilyPage, data)

    async def save_family(self, record: FamilyDraft, refs: ResolvedRefs) -> SaveResult:
        body: Dict[str, Any] = {
            "name": record.name,
            "brand": refs.get(ReferenceType.BRAND),
            "productcategoriesId": refs.get(ReferenceType.PRODUCT_CATEGORY),
            "conditionCategoryId": refs.get(ReferenceType.CONDITION_CATEGORY),
            "sequence": record.sequence,
        }
        if record.id:
            body["id"] = record.id
            if record.code:
                body["code"] = record.code
            data = await self._post(f"{FAMILY_RESOURCE}/update", body)
        else:
            data = await self._post(f"{FAMILY_RESOURCE}/create", body)
        result = self._unwrap_record(data) if data else {"_id": record.id}
        return self._parse(SaveResult, result)

    async def delete_family(self, family_id: str) -> None:
        await self._post(f"{FAMILY_RESOURCE}/delete", {"id": family_id})

    async def update_family_sequence(self, family_id: str, sequence: int) -> None:
        await self._post(f"{FAMILY_RESOURCE}/update-sequence", {"id": family_id, "sequence": sequence})

    # --- Sub-families ---

    async def list_children(
        self, parent_id: str, page: int, limit: int, search: Optional[str] = None
    ) -> ChildPage:
        body: Dict[str, Any] = {"page": page, "limit": limit, "skuFamilyId": parent_id}
        if search:
            body["search"] = search
        data = await self._post(f"{FAMILY_RESOURCE}/list-sub-sku-families", body)
        return self._parse(ChildPage, data)

    async def save_sub_family(self, parent_id: str, record: SubFamilyDraft, refs: ResolvedRefs) -> SaveResult:
        sub_family: Dict[str, Any] = {
            "subName": record.name or "",
            "storageId": refs.get(ReferenceType.STORAGE),
            "ramId": refs.get(ReferenceType.RAM),
            "colorId": refs.get(ReferenceType.COLOR),
            "subSkuSequence": record.sequence,
            "images": list(record.images),
            "videos": list(record.videos),
        }
        body: Dict[str, Any] = {"skuFamilyId": parent_id, "subSkuFamily": sub_family}
        if record.id:
            body["subSkuFamilyId"] = record.id
            data = await self._post(f"{FAMILY_RESOURCE}/update-sub-sku-family", body)
        else:
            data = await self._post(f"{FAMILY_RESOURCE}/add-sub-sku-family", body)
        result = self._unwrap_record(data) if data else {"_id": record.id}
        return self._parse(SaveResult, result)

    async def delete_sub_family(self, parent_id: str, sub_family_id: str) -> None:
        await self._post(
            f"{FAMILY_RESOURCE}/delete-sub-sku-family",
            {"skuFamilyId": parent_id, "subSkuFamilyId": sub_family_id},
        )

    async def update_sub_family_sequence(self, parent_id: str, sub_family_id: str, sequence: int) -> None:
        await self._post(
            f"{FAMILY_RESOURCE}/update-sub-sku-family-sequence",
            {"skuFamilyId": parent_id, "subSkuFamilyId": sub_family_id, "sequence": sequence},
        )
