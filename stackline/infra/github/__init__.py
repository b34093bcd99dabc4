from stackline.infra.github.client import GitHubClient
from stackline.infra.github.provider import GitHubReviewProvider

__all__ = ["GitHubClient", "GitHubReviewProvider"]
