from unittest.mock import AsyncMock

import pytest

from sku_catalog.models.catalog_models import ChildPage, FamilyPage, SaveResult
from sku_catalog.models.reference_models import ReferenceEntity, ReferenceListResponse


def created_entity(ref_type, request):
    """Echo a create call back the way the admin API does, with a deterministic id."""
    return ReferenceEntity(id=f"{ref_type.value}-{request.code}", title=request.title, code=request.code)


def child_page(*docs, total_docs=None, total_pages=1, page=1):
    return ChildPage(
        docs=list(docs),
        total_docs=len(docs) if total_docs is None else total_docs,
        total_pages=total_pages,
        page=page,
    )


@pytest.fixture
def mock_api():
    """Catalog API collaborator with empty, well-typed default responses."""
    api = AsyncMock()
    api.list_references.return_value = ReferenceListResponse(docs=[], total_docs=0)
    api.create_reference.side_effect = created_entity
    api.list_families.return_value = FamilyPage(docs=[], total_docs=0, total_pages=1, page=1)
    api.list_children.return_value = child_page()
    api.save_family.return_value = SaveResult(id="fam-new", code="SKU00001")
    api.save_sub_family.return_value = SaveResult(id="sub-new", code="SUB00001")
    return api
