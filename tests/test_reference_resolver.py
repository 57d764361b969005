import pytest

from sku_catalog.exceptions import ConflictError, TransientError
from sku_catalog.models.reference_models import (
    CreateReferenceRequest,
    ReferenceEntity,
    ReferenceListResponse,
    ReferenceType,
)
from sku_catalog.services.reference_resolver import ReferenceResolver


def listing(*entities):
    return ReferenceListResponse(docs=list(entities), total_docs=len(entities))


@pytest.mark.asyncio
async def test_existing_title_is_reused_without_create(mock_api):
    mock_api.list_references.return_value = listing(ReferenceEntity(id="b1", title="Apple", code="BRD00A"))
    resolver = ReferenceResolver(mock_api)

    assert await resolver.resolve(ReferenceType.BRAND, "  aPPLE ") == "b1"
    mock_api.create_reference.assert_not_awaited()
    mock_api.list_references.assert_awaited_once_with(ReferenceType.BRAND, 1, 1000)


@pytest.mark.asyncio
async def test_blank_label_resolves_to_none(mock_api):
    resolver = ReferenceResolver(mock_api)

    assert await resolver.resolve(ReferenceType.COLOR, "   ") is None
    assert await resolver.resolve(ReferenceType.COLOR, None) is None
    mock_api.list_references.assert_not_awaited()
    mock_api.create_reference.assert_not_awaited()


@pytest.mark.asyncio
async def test_new_label_is_created_with_next_code(mock_api):
    mock_api.list_references.return_value = listing(
        ReferenceEntity(id="c1", title="Black", code="COL00A"),
        ReferenceEntity(id="c2", title="White", code="COL00B"),
    )
    resolver = ReferenceResolver(mock_api)

    entity_id = await resolver.resolve(ReferenceType.COLOR, "space gray")

    assert entity_id == "color-COL00C"
    mock_api.create_reference.assert_awaited_once_with(
        ReferenceType.COLOR, CreateReferenceRequest(title="Space Gray", code="COL00C")
    )


@pytest.mark.asyncio
async def test_same_label_twice_creates_once(mock_api):
    resolver = ReferenceResolver(mock_api)

    first = await resolver.resolve(ReferenceType.BRAND, "apple")
    second = await resolver.resolve(ReferenceType.BRAND, "Apple")

    assert first == second == "brand-BRD00A"
    assert mock_api.create_reference.await_count == 1
    assert resolver.find(ReferenceType.BRAND, "APPLE").code == "BRD00A"


@pytest.mark.asyncio
async def test_created_code_feeds_next_allocation(mock_api):
    resolver = ReferenceResolver(mock_api)

    await resolver.resolve(ReferenceType.STORAGE, "128gb")
    await resolver.resolve(ReferenceType.STORAGE, "256gb")

    codes = [call.args[1].code for call in mock_api.create_reference.await_args_list]
    assert codes == ["STO00A", "STO00B"]


@pytest.mark.asyncio
async def test_refresh_before_create_reuses_entity_added_elsewhere(mock_api):
    mock_api.list_references.side_effect = [
        listing(),
        listing(ReferenceEntity(id="r9", title="8gb", code="RAM00A")),
    ]
    resolver = ReferenceResolver(mock_api)

    assert await resolver.resolve(ReferenceType.RAM, "8GB") == "r9"
    assert mock_api.list_references.await_count == 2
    mock_api.create_reference.assert_not_awaited()


@pytest.mark.asyncio
async def test_refresh_before_create_sees_codes_taken_elsewhere(mock_api):
    mock_api.list_references.side_effect = [
        listing(ReferenceEntity(id="k1", title="Phones", code="CAT00A")),
        listing(
            ReferenceEntity(id="k1", title="Phones", code="CAT00A"),
            ReferenceEntity(id="k2", title="Tablets", code="CAT00B"),
        ),
    ]
    resolver = ReferenceResolver(mock_api)

    await resolver.resolve(ReferenceType.PRODUCT_CATEGORY, "laptops")

    request = mock_api.create_reference.await_args.args[1]
    assert request.code == "CAT00C"


@pytest.mark.asyncio
async def test_snapshot_is_loaded_once_without_refresh(mock_api):
    resolver = ReferenceResolver(mock_api, refresh_before_create=False)

    await resolver.resolve(ReferenceType.BRAND, "apple")
    await resolver.resolve(ReferenceType.BRAND, "samsung")

    mock_api.list_references.assert_awaited_once()
    assert [e.title for e in resolver.entities(ReferenceType.BRAND)] == ["Apple", "Samsung"]


@pytest.mark.asyncio
async def test_create_failure_propagates_and_is_not_remembered(mock_api):
    mock_api.create_reference.side_effect = ConflictError("code already exists", status_code=409)
    resolver = ReferenceResolver(mock_api)

    with pytest.raises(ConflictError):
        await resolver.resolve(ReferenceType.BRAND, "apple")

    assert resolver.find(ReferenceType.BRAND, "apple") is None


@pytest.mark.asyncio
async def test_list_failure_propagates(mock_api):
    mock_api.list_references.side_effect = TransientError("connection refused")
    resolver = ReferenceResolver(mock_api)

    with pytest.raises(TransientError):
        await resolver.resolve(ReferenceType.BRAND, "apple")
    mock_api.create_reference.assert_not_awaited()
