import pytest

from tutorials_api.db.seed import SAMPLE_TUTORIALS, sample_tutorials, seed_tutorials
from tutorials_api.repositories.tutorials import TutorialRepository


def test_sample_tutorials_are_ordered_oldest_first():
    rows = sample_tutorials()
    assert len(rows) == len(SAMPLE_TUTORIALS)
    stamps = [r.created_at for r in rows]
    assert stamps == sorted(stamps)


@pytest.mark.asyncio
async def test_seed_only_fills_an_empty_table(session):
    assert await seed_tutorials(session) == len(SAMPLE_TUTORIALS)
    assert await seed_tutorials(session) == 0

    repo = TutorialRepository(session)
    assert await repo.count() == len(SAMPLE_TUTORIALS)
    published = await repo.find_by_published(True)
    assert {t.title for t in published} == {
        title for title, _, _, is_published in SAMPLE_TUTORIALS if is_published
    }
