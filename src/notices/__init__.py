"""Notice logging package."""

from src.notices.logger import NoticeLogger

__all__ = ["NoticeLogger"]
