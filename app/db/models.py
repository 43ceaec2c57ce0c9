# app/db/models.py
# every table model, imported once so SQLModel.metadata knows about all of them
from app.api.user.models import User, UserPreferences
from app.api.activity.models import UserAnalytics, UserCategoryView, ArticleClick

__all__ = [
    "User",
    "UserPreferences",
    "UserAnalytics",
    "UserCategoryView",
    "ArticleClick",
]
