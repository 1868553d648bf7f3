from fastapi import APIRouter, Depends

from onlibrary.library.stats import StatsFilter, compute_stats
from onlibrary.store import LibraryMirror

from ..core.deps import get_mirror
from ..core.serialize import serialize_stats

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("")
def get_stats(
    author: str | None = None,
    year: str | None = None,
    tag: str | None = None,
    timeline_year: str | None = None,
    mirror: LibraryMirror = Depends(get_mirror),
):
    """Reading statistics; unknown filter values fall back to "all"."""
    stats_filter = StatsFilter(author=author, year=year, tag=tag, timeline_year=timeline_year)
    return serialize_stats(compute_stats(mirror.books, stats_filter))
