import json

import httpx
import pytest

from sku_catalog.clients.catalog_api import CatalogApiClient
from sku_catalog.exceptions import (
    CatalogError,
    CatalogValidationError,
    ConflictError,
    NotFoundError,
    TransientError,
)
from sku_catalog.models.catalog_models import FamilyDraft, SubFamilyDraft
from sku_catalog.models.reference_models import CreateReferenceRequest, ReferenceType
from sku_catalog.services.child_cache import ChildCollectionCache

BASE_URL = "http://catalog.test/api/admin"


def envelope(data, status_code=200, message="ok"):
    return httpx.Response(status_code, json={"status": status_code < 400, "message": message, "data": data})


def make_client(handler):
    return CatalogApiClient(base_url=BASE_URL, api_token="secret", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_list_references_posts_page_and_skips_unusable_rows():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        return envelope(
            {
                "docs": [
                    {"_id": "b1", "title": "Apple", "code": "BRD00A"},
                    {"_id": "b2", "title": None},
                    {"title": "Orphan"},
                ],
                "totalDocs": 3,
            }
        )

    async with make_client(handler) as api:
        result = await api.list_references(ReferenceType.PRODUCT_CATEGORY, 1, 1000)

    assert seen["path"] == "/api/admin/productCategory/list"
    assert seen["body"] == {"page": 1, "limit": 1000}
    assert seen["auth"] == "Bearer secret"
    assert [entity.id for entity in result.docs] == ["b1"]
    assert result.total_docs == 3


@pytest.mark.asyncio
async def test_create_reference_unwraps_nested_record():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/admin/color/create"
        assert json.loads(request.content) == {"title": "Space Gray", "code": "COL00C"}
        return envelope({"data": {"_id": "c3"}})

    async with make_client(handler) as api:
        entity = await api.create_reference(
            ReferenceType.COLOR, CreateReferenceRequest(title="Space Gray", code="COL00C")
        )

    assert (entity.id, entity.title, entity.code) == ("c3", "Space Gray", "COL00C")


@pytest.mark.asyncio
async def test_list_children_parses_wire_names_and_populated_refs():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/admin/skuFamily/list-sub-sku-families"
        assert json.loads(request.content) == {"page": 2, "limit": 5, "skuFamilyId": "fam-1", "search": "pro"}
        return envelope(
            {
                "docs": [
                    {
                        "_id": "s1",
                        "skuFamilyId": "fam-1",
                        "subName": "Pro",
                        "storageId": {"_id": "st1", "title": "128gb"},
                        "ramId": "",
                        "colorId": "c1",
                        "subSkuSequence": 4,
                        "subSkuCode": "SUB00004",
                        "images": ["a.png", ""],
                    }
                ],
                "totalDocs": 6,
                "totalPages": 2,
                "page": 2,
            }
        )

    async with make_client(handler) as api:
        page = await api.list_children("fam-1", 2, 5, "pro")

    record = page.docs[0]
    assert (record.id, record.parent_id, record.name, record.sequence) == ("s1", "fam-1", "Pro", 4)
    assert (record.storage_ref, record.ram_ref, record.color_ref) == ("st1", None, "c1")
    assert record.images == ["a.png"]
    assert (page.total_docs, page.total_pages, page.page) == (6, 2, 2)


@pytest.mark.asyncio
async def test_save_family_picks_create_or_update():
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append((request.url.path, json.loads(request.content)))
        return envelope({"_id": "fam-1", "code": "SKU00001"})

    refs = {ReferenceType.BRAND: "b1", ReferenceType.PRODUCT_CATEGORY: None, ReferenceType.CONDITION_CATEGORY: "cc1"}
    async with make_client(handler) as api:
        created = await api.save_family(FamilyDraft(name="Iphone", sequence=2), refs)
        await api.save_family(FamilyDraft(id="fam-1", code="SKU00001", name="Iphone"), refs)

    assert created.id == "fam-1"
    assert paths[0] == (
        "/api/admin/skuFamily/create",
        {"name": "Iphone", "brand": "b1", "productcategoriesId": None, "conditionCategoryId": "cc1", "sequence": 2},
    )
    assert paths[1][0] == "/api/admin/skuFamily/update"
    assert paths[1][1]["id"] == "fam-1"


@pytest.mark.asyncio
async def test_save_sub_family_nests_record_under_parent():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append((request.url.path, json.loads(request.content)))
        return envelope({"_id": "s9"})

    refs = {ReferenceType.STORAGE: "st1", ReferenceType.RAM: None, ReferenceType.COLOR: "c1"}
    async with make_client(handler) as api:
        result = await api.save_sub_family("fam-1", SubFamilyDraft(name="Pro", images=["a.png"]), refs)

    assert result.id == "s9"
    path, body = bodies[0]
    assert path == "/api/admin/skuFamily/add-sub-sku-family"
    assert body["skuFamilyId"] == "fam-1"
    assert body["subSkuFamily"]["subName"] == "Pro"
    assert body["subSkuFamily"]["storageId"] == "st1"
    assert body["subSkuFamily"]["images"] == ["a.png"]


@pytest.mark.asyncio
async def test_sequence_updates_use_separate_endpoints():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.url.path, json.loads(request.content)))
        return envelope(None)

    async with make_client(handler) as api:
        await api.update_family_sequence("fam-1", 3)
        await api.update_sub_family_sequence("fam-1", "s1", 2)

    assert calls == [
        ("/api/admin/skuFamily/update-sequence", {"id": "fam-1", "sequence": 3}),
        (
            "/api/admin/skuFamily/update-sub-sku-family-sequence",
            {"skuFamilyId": "fam-1", "subSkuFamilyId": "s1", "sequence": 2},
        ),
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code, error_cls",
    [
        (400, CatalogValidationError),
        (422, CatalogValidationError),
        (404, NotFoundError),
        (409, ConflictError),
        (500, TransientError),
        (503, TransientError),
        (403, CatalogError),
    ],
)
async def test_error_statuses_map_to_exceptions(status_code, error_cls):
    def handler(request: httpx.Request) -> httpx.Response:
        return envelope(None, status_code=status_code, message="rejected")

    async with make_client(handler) as api:
        with pytest.raises(error_cls) as exc_info:
            await api.delete_family("fam-1")

    assert exc_info.value.status_code == status_code
    assert exc_info.value.message == "rejected"


@pytest.mark.asyncio
async def test_connection_errors_are_transient():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as api:
        with pytest.raises(TransientError):
            await api.list_families(1, 10)


@pytest.mark.asyncio
async def test_malformed_response_raises_catalog_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return envelope({"docs": [{"name": "no id"}]})

    async with make_client(handler) as api:
        with pytest.raises(CatalogError):
            await api.list_families(1, 10)


@pytest.mark.asyncio
async def test_missing_and_non_positive_sequences_read_as_one():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("list-sub-sku-families"):
            return envelope(
                {
                    "docs": [
                        {"_id": "s1", "subSkuSequence": 2},
                        {"_id": "s2", "subSkuSequence": None},
                        {"_id": "s3", "subSkuSequence": 0},
                        {"_id": "s4"},
                    ],
                    "totalDocs": 4,
                }
            )
        return envelope(
            {
                "docs": [
                    {"_id": "f1", "name": "Iphone", "sequence": None},
                    {"_id": "f2", "name": "Pixel", "sequence": -3},
                    {"_id": "f3", "name": "Galaxy", "sequence": "4"},
                ],
                "totalDocs": 3,
            }
        )

    async with make_client(handler) as api:
        children = await api.list_children("fam-1", 1, 5)
        families = await api.list_families(1, 10)

    assert [record.sequence for record in children.docs] == [2, 1, 1, 1]
    assert [record.sequence for record in families.docs] == [1, 1, 4]


@pytest.mark.asyncio
async def test_decoding_errors_are_transient():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.DecodingError("bad gzip stream", request=request)

    async with make_client(handler) as api:
        with pytest.raises(TransientError):
            await api.list_children("fam-1", 1, 5)


@pytest.mark.asyncio
async def test_cache_loads_page_with_unset_sequences():
    def handler(request: httpx.Request) -> httpx.Response:
        return envelope(
            {
                "docs": [
                    {"_id": "s1", "subSkuSequence": 2},
                    {"_id": "s2", "subSkuSequence": None},
                    {"_id": "s3", "subSkuSequence": 0},
                ],
                "totalDocs": 3,
            }
        )

    async with make_client(handler) as api:
        view = await ChildCollectionCache(api, page_size=5, debounce_seconds=0).expand("fam-1")

    assert [(item.id, item.sequence) for item in view.items] == [("s2", 1), ("s3", 1), ("s1", 2)]
