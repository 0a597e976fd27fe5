from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from tutorials_api.core.deps import get_page_request, get_sort, get_tutorial_repository
from tutorials_api.core.errors import NotFound
from tutorials_api.repositories.query import Page, PageRequest, Sort
from tutorials_api.repositories.tutorials import TutorialRepository
from tutorials_api.schemas.common import PageResponse
from tutorials_api.schemas.tutorials import PublishResult, TutorialCreate, TutorialRead

router = APIRouter(prefix="/tutorials", tags=["Tutorials"])


def _to_read(rows) -> List[TutorialRead]:
    return [TutorialRead.model_validate(x) for x in rows]


def _to_page(page: Page) -> PageResponse[TutorialRead]:
    return PageResponse[TutorialRead](
        content=_to_read(page.content),
        total_elements=page.total_elements,
        total_pages=page.total_pages,
        page=page.page,
        size=page.size,
    )


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TutorialRead],
    summary="List tutorials",
    description=(
        "List tutorials, optionally filtered by title (case-insensitive substring) and "
        "published flag, with dynamic sorting."
    ),
)
async def list_tutorials(
    title: Optional[str] = Query(None, description="Case-insensitive title substring"),
    published: Optional[bool] = Query(None, description="Filter by published flag"),
    sort: Sort = Depends(get_sort),
    repo: TutorialRepository = Depends(get_tutorial_repository),
) -> List[TutorialRead]:
    if title is not None and published is not None:
        rows = await repo.find_by_title_containing_case_insensitive_and_published(
            title, published, sort=sort
        )
    elif title is not None:
        rows = await repo.find_by_title_and_sort(title, sort)
    elif published is not None:
        rows = await repo.find_by_published_and_sort(published, sort)
    else:
        rows = await repo.find_many(repo.query(), sort)
    return _to_read(rows)


# PUBLIC_INTERFACE
@router.get(
    "/page",
    response_model=PageResponse[TutorialRead],
    summary="Page through tutorials",
    description="Paged variant of the list endpoint. Pages are zero-based.",
)
async def page_tutorials(
    title: Optional[str] = Query(None, description="Case-insensitive title substring"),
    published: Optional[bool] = Query(None, description="Filter by published flag"),
    page_request: PageRequest = Depends(get_page_request),
    repo: TutorialRepository = Depends(get_tutorial_repository),
) -> PageResponse[TutorialRead]:
    if title is not None and published is not None:
        page = await repo.find_by_title_and_published_with_pagination(title, published, page_request)
    elif title is not None:
        page = await repo.find_by_title_with_pagination(title, page_request)
    elif published is not None:
        page = await repo.find_by_published_with_pagination(published, page_request)
    else:
        page = await repo.find_all_with_pagination(page_request)
    return _to_page(page)


# PUBLIC_INTERFACE
@router.get(
    "/published",
    response_model=List[TutorialRead],
    summary="List published tutorials",
    description="Published tutorials, newest first.",
)
async def list_published(
    repo: TutorialRepository = Depends(get_tutorial_repository),
) -> List[TutorialRead]:
    return _to_read(await repo.find_all_published_order_by_created_desc())


# PUBLIC_INTERFACE
@router.get(
    "/levels",
    response_model=List[TutorialRead],
    summary="Tutorials by level range",
    description="Tutorials whose level lies in [start, end] (inclusive), optionally filtered by published flag.",
)
async def list_by_level_range(
    start: int = Query(..., description="Lowest level, inclusive"),
    end: int = Query(..., description="Highest level, inclusive"),
    published: Optional[bool] = Query(None, description="Filter by published flag"),
    repo: TutorialRepository = Depends(get_tutorial_repository),
) -> List[TutorialRead]:
    if published is None:
        rows = await repo.find_by_level_between(start, end)
    else:
        rows = await repo.find_by_level_between_and_published(
            start=start, end=end, is_published=published
        )
    return _to_read(rows)


# PUBLIC_INTERFACE
@router.get(
    "/search",
    response_model=List[TutorialRead],
    summary="Search tutorials",
    description="Case-insensitive keyword match against title or description.",
)
async def search_tutorials(
    keyword: str = Query(..., min_length=1, description="Keyword to look for"),
    repo: TutorialRepository = Depends(get_tutorial_repository),
) -> List[TutorialRead]:
    return _to_read(await repo.find_by_title_or_description_containing_case_insensitive(keyword))


# PUBLIC_INTERFACE
@router.get(
    "/{tutorial_id}",
    response_model=TutorialRead,
    summary="Get tutorial",
)
async def get_tutorial(
    tutorial_id: int,
    repo: TutorialRepository = Depends(get_tutorial_repository),
) -> TutorialRead:
    tutorial = await repo.get_by_id(tutorial_id)
    if tutorial is None:
        raise NotFound(f"Tutorial {tutorial_id} not found")
    return TutorialRead.model_validate(tutorial)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TutorialRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create tutorial",
)
async def create_tutorial(
    payload: TutorialCreate,
    repo: TutorialRepository = Depends(get_tutorial_repository),
) -> TutorialRead:
    fields = payload.model_dump(exclude_none=True)
    created = await repo.create(**fields)
    return TutorialRead.model_validate(created)


# PUBLIC_INTERFACE
@router.put(
    "/{tutorial_id}/publish",
    response_model=PublishResult,
    summary="Publish tutorial",
    description="Set the published flag. Publishing an already published tutorial is a no-op success.",
)
async def publish_tutorial(
    tutorial_id: int,
    repo: TutorialRepository = Depends(get_tutorial_repository),
) -> PublishResult:
    updated = await repo.publish_tutorial(tutorial_id)
    if updated == 0:
        raise NotFound(f"Tutorial {tutorial_id} not found")
    return PublishResult(updated=updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{tutorial_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete tutorial",
)
async def delete_tutorial(
    tutorial_id: int,
    repo: TutorialRepository = Depends(get_tutorial_repository),
) -> Response:
    deleted = await repo.delete_by_id(tutorial_id)
    if deleted == 0:
        raise NotFound(f"Tutorial {tutorial_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
