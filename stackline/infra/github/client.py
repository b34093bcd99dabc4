from typing import Optional

from github import Auth, Github


class GitHubClient:
    def __init__(self, token: Optional[str]) -> None:
        auth = Auth.Token(token) if token else None
        self._client = Github(auth=auth)

    def get_repo(self, owner: str, name: str):
        return self._client.get_repo(f'{owner}/{name}')

    def current_login(self) -> str:
        return self._client.get_user().login

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> 'GitHubClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()
