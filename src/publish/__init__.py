# Publish: file-based profile pages under /users/<username>
from src.publish.publisher import (
    ProfilePublisher,
    PublishResult,
    is_valid_username,
    slugify,
)

__all__ = ["ProfilePublisher", "PublishResult", "is_valid_username", "slugify"]
