"""
Feed assembler: the viewer's timeline.

  1. Read the viewer's followed set from the social graph store.
  2. Following nobody → empty feed (even if posts exist elsewhere).
  3. Otherwise every post by those authors, newest first. No pagination.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from triptalk.models import Content
from triptalk.results import Result, success
from triptalk.stores import content, graph


async def build_feed(db: AsyncSession, viewer: str) -> Result[list[Content]]:
    followees = await graph.list_followees(db, viewer)
    if not followees.ok:
        return followees
    if not followees.value:
        return success([])
    return await content.list_by_authors(db, followees.value)
