import json
from datetime import datetime
from typing import Any, Dict, List

from stackline.core.schema.checks import CheckConclusion, CheckRun, CheckStatus
from stackline.core.schema.pr import (
    BranchRef,
    Mergeability,
    RepoRef,
    RequestState,
    ReviewRequest,
)


def dump_requests(requests: List[ReviewRequest]) -> str:
    return json.dumps([_request_to_dict(request) for request in requests])


def load_requests(data: bytes | str) -> List[ReviewRequest]:
    return [_request_from_dict(item) for item in json.loads(data)]


def dump_check_runs(check_runs: List[CheckRun]) -> str:
    return json.dumps(
        [
            {
                "id": run.id,
                "name": run.name,
                "status": run.status.value,
                "conclusion": run.conclusion.value,
            }
            for run in check_runs
        ]
    )


def load_check_runs(data: bytes | str) -> List[CheckRun]:
    return [
        CheckRun(
            id=item["id"],
            name=item["name"],
            status=CheckStatus(item["status"]),
            conclusion=CheckConclusion(item["conclusion"]),
        )
        for item in json.loads(data)
    ]


def _request_to_dict(request: ReviewRequest) -> Dict[str, Any]:
    return {
        "repo": request.repo.full_name,
        "number": request.number,
        "title": request.title,
        "author": request.author,
        "state": request.state.value,
        "draft": request.draft,
        "merged_at": request.merged_at.isoformat() if request.merged_at else None,
        "head": [request.head.name, request.head.sha],
        "base": [request.base.name, request.base.sha],
        "mergeability": request.mergeability.value,
        "requested_reviewers": list(request.requested_reviewers),
    }


def _request_from_dict(item: Dict[str, Any]) -> ReviewRequest:
    merged_at = item["merged_at"]
    return ReviewRequest(
        repo=RepoRef.parse(item["repo"]),
        number=item["number"],
        title=item["title"],
        author=item["author"],
        state=RequestState(item["state"]),
        draft=item["draft"],
        merged_at=datetime.fromisoformat(merged_at) if merged_at else None,
        head=BranchRef(*item["head"]),
        base=BranchRef(*item["base"]),
        mergeability=Mergeability(item["mergeability"]),
        requested_reviewers=tuple(item["requested_reviewers"]),
    )
