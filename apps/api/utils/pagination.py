"""Page arithmetic shared by the paginated listings"""
import math


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def page_metadata(page: int, limit: int, total: int) -> dict:
    """currentPage/totalPages/hasNextPage/hasPrevPage/limit for a listing.

    An empty result has zero pages and no next page.
    """
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "current_page": page,
        "total_pages": total_pages,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
        "limit": limit,
    }
