from datetime import timedelta

import pytest

from conftest import BASE_TIME, ids
from tutorials_api.core.errors import InvalidQuery, InvalidRange
from tutorials_api.repositories.query import Order, Sort
from tutorials_api.repositories.tutorials import TutorialRepository


@pytest.mark.asyncio
async def test_find_all_returns_every_row_in_insertion_order(repo, tutorials):
    rows = await repo.find_all()
    assert ids(rows) == [1, 2, 3, 4, 5, 6, 7]
    assert {r.title for r in rows} == {t.title for t in tutorials}


@pytest.mark.asyncio
async def test_find_all_on_empty_table(repo):
    assert await repo.find_all() == []
    assert await repo.count() == 0


@pytest.mark.asyncio
async def test_native_find_all_matches_structured(repo, tutorials):
    assert ids(await repo.find_all_native()) == ids(await repo.find_all())


@pytest.mark.asyncio
async def test_published_filter_partitions_the_table(repo, tutorials):
    published = await repo.find_by_published(True)
    unpublished = await repo.find_by_published(False)

    assert ids(published) == [2, 3, 6, 7]
    assert ids(unpublished) == [1, 4, 5]
    assert all(r.published for r in published)
    assert not any(r.published for r in unpublished)
    assert set(ids(published)) | set(ids(unpublished)) == set(ids(await repo.find_all()))
    assert not set(ids(published)) & set(ids(unpublished))


@pytest.mark.asyncio
async def test_native_published_filter_binds_named_parameter(repo, tutorials):
    assert ids(await repo.find_by_published_native(True)) == [2, 3, 6, 7]
    assert ids(await repo.find_by_published_native(False)) == [1, 4, 5]


@pytest.mark.asyncio
async def test_title_case_insensitive_match(repo, tutorials):
    assert ids(await repo.find_by_title_like_case_insensitive("java")) == [1, 2]
    assert ids(await repo.find_by_title_like_case_insensitive("JAVA")) == [1, 2]
    assert ids(await repo.find_by_title_like_case_insensitive("AB")) == [3]
    assert ids(await repo.find_by_title_like_case_insensitive("ab")) == [3]


@pytest.mark.asyncio
async def test_title_case_sensitive_match(repo, tutorials):
    assert ids(await repo.find_by_title_like("Java")) == [1, 2]
    assert await repo.find_by_title_like("java") == []
    assert await repo.find_by_title_like("ab") == []


@pytest.mark.asyncio
async def test_title_match_without_hits_is_empty(repo, tutorials):
    assert await repo.find_by_title_like_case_insensitive("kotlin") == []


@pytest.mark.asyncio
async def test_like_wildcards_in_input_are_literal(repo, tutorials):
    assert ids(await repo.find_by_title_like("%")) == [4]
    assert ids(await repo.find_by_title_like("100%_")) == [4]
    assert ids(await repo.find_by_title_like_case_insensitive("_cov")) == [4]


@pytest.mark.asyncio
async def test_level_threshold(repo, tutorials):
    assert ids(await repo.find_by_level_greater_than_equal(3)) == [2, 4, 6]
    assert await repo.find_by_level_greater_than_equal(6) == []


@pytest.mark.asyncio
async def test_date_threshold(repo, tutorials):
    rows = await repo.find_by_date_greater_than_equal(BASE_TIME + timedelta(days=5))
    assert ids(rows) == [6, 7]


@pytest.mark.asyncio
async def test_level_range_is_inclusive(repo, tutorials):
    assert ids(await repo.find_by_level_between(1, 2)) == [1, 3, 5, 7]
    assert ids(await repo.find_by_level_between(2, 2)) == [3, 5]


@pytest.mark.asyncio
async def test_date_range_is_inclusive(repo, tutorials):
    rows = await repo.find_by_date_between(
        BASE_TIME + timedelta(days=1), BASE_TIME + timedelta(days=3)
    )
    assert ids(rows) == [2, 3, 4]


@pytest.mark.asyncio
async def test_reversed_ranges_fail_fast(repo, tutorials):
    with pytest.raises(InvalidRange):
        await repo.find_by_level_between(3, 1)
    with pytest.raises(InvalidRange):
        await repo.find_by_date_between(BASE_TIME + timedelta(days=3), BASE_TIME)
    with pytest.raises(InvalidRange):
        await repo.find_by_level_between_and_published(start=5, end=1, is_published=True)


@pytest.mark.asyncio
async def test_level_range_and_published_with_named_parameters(repo, tutorials):
    assert ids(
        await repo.find_by_level_between_and_published(start=1, end=3, is_published=True)
    ) == [2, 3, 7]
    assert ids(
        await repo.find_by_level_between_and_published(start=1, end=3, is_published=False)
    ) == [1, 5]


@pytest.mark.asyncio
async def test_keyword_in_title_or_description(repo, tutorials):
    rows = await repo.find_by_title_or_description_containing_case_insensitive("JAVA")
    assert ids(rows) == [1, 2, 5]


@pytest.mark.asyncio
async def test_title_and_published(repo, tutorials):
    assert ids(await repo.find_by_title_containing_case_insensitive_and_published("java", True)) == [2]
    assert ids(await repo.find_by_title_containing_case_insensitive_and_published("java", False)) == [1]


@pytest.mark.asyncio
async def test_order_by_level_desc(repo, tutorials):
    rows = await repo.find_all_order_by_level_desc()
    assert ids(rows) == [6, 4, 2, 3, 5, 1, 7]
    levels = [r.level for r in rows]
    assert levels == sorted(levels, reverse=True)


@pytest.mark.asyncio
async def test_order_by_level_desc_small_set(repo):
    for level in (1, 3, 2):
        await repo.create(title=f"Level {level}", level=level)
    assert [r.level for r in await repo.find_all_order_by_level_desc()] == [3, 2, 1]


@pytest.mark.asyncio
async def test_title_filter_ordered_by_level_asc(repo, tutorials):
    rows = await repo.find_by_title_order_by_level_asc("a")
    assert ids(rows) == [1, 3, 2, 4, 6]


@pytest.mark.asyncio
async def test_published_ordered_by_created_desc(repo, tutorials):
    assert ids(await repo.find_all_published_order_by_created_desc()) == [7, 6, 3, 2]


@pytest.mark.asyncio
async def test_title_with_caller_sort(repo, tutorials):
    rows = await repo.find_by_title_and_sort("java", Sort.by(Order.desc("level")))
    assert ids(rows) == [2, 1]


@pytest.mark.asyncio
async def test_published_with_multi_field_sort(repo, tutorials):
    sort = Sort.by(Order.desc("level"), Order.asc("title"))
    assert ids(await repo.find_by_published_and_sort(True, sort)) == [6, 2, 3, 7]


@pytest.mark.asyncio
async def test_sort_accepts_created_at_alias(repo, tutorials):
    rows = await repo.find_by_published_and_sort(False, Sort.parse(["createdAt,desc"]))
    assert ids(rows) == [5, 4, 1]


@pytest.mark.asyncio
async def test_sort_on_unknown_field_is_rejected(repo, tutorials):
    with pytest.raises(InvalidQuery):
        await repo.find_by_title_and_sort("java", Sort.by(Order.asc("popularity")))


@pytest.mark.asyncio
async def test_publish_sets_flag_and_reports_one_row(repo, tutorials):
    assert await repo.publish_tutorial(1) == 1
    tutorial = await repo.get_by_id(1)
    assert tutorial.published is True
    assert 1 in ids(await repo.find_by_published(True))


@pytest.mark.asyncio
async def test_publish_is_idempotent(repo, tutorials):
    assert await repo.publish_tutorial(4) == 1
    assert await repo.publish_tutorial(4) == 1
    assert (await repo.get_by_id(4)).published is True


@pytest.mark.asyncio
async def test_publish_unknown_id_changes_nothing(repo, tutorials):
    before = ids(await repo.find_by_published(True))
    assert await repo.publish_tutorial(999) == 0
    assert ids(await repo.find_by_published(True)) == before
    assert await repo.count() == 7


@pytest.mark.asyncio
async def test_publish_is_visible_to_other_sessions(repo, session_factory, tutorials):
    await repo.publish_tutorial(5)
    async with session_factory() as other:
        assert (await TutorialRepository(other).get_by_id(5)).published is True


@pytest.mark.asyncio
async def test_end_to_end_example(repo):
    await repo.create(id=1, title="Java Basics", level=1, published=False)
    await repo.create(id=2, title="Advanced Java", level=3, published=True)

    assert ids(await repo.find_by_title_like_case_insensitive("java")) == [1, 2]
    assert await repo.publish_tutorial(1) == 1
    assert ids(await repo.find_by_published(True)) == [1, 2]


@pytest.mark.asyncio
async def test_case_insensitive_match_covers_non_ascii_titles(repo):
    await repo.create(id=1, title="École de Java", level=1)
    await repo.create(id=2, title="Über Python", level=2)

    assert ids(await repo.find_by_title_like("École")) == [1]
    assert ids(await repo.find_by_title_like_case_insensitive("École")) == [1]
    assert ids(await repo.find_by_title_like_case_insensitive("ÉCOLE DE JAVA")) == [1]
    assert ids(await repo.find_by_title_like_case_insensitive("Über")) == [2]
    assert ids(
        await repo.find_by_title_or_description_containing_case_insensitive("de JAVA")
    ) == [1]
