# app/api/news/category_models.py
# NewsAPI top-headlines categories and the fixed orders used by the feeds
NEWS_CATEGORIES = (
    "business",
    "entertainment",
    "general",
    "health",
    "science",
    "sports",
    "technology",
)

# first-visit feed, in display order
DEFAULT_CATEGORIES = ["technology", "general", "business", "entertainment", "health", "sports"]

# backfill order for personalized feeds
BACKFILL_CATEGORIES = DEFAULT_CATEGORIES + ["science"]


def normalize_category(category: str | None) -> str:
    return (category or "").strip().lower()


def is_known_category(category: str | None) -> bool:
    return normalize_category(category) in NEWS_CATEGORIES
