import re
from typing import Optional

from stackline.core.schema.pr import RepoRef
from stackline.core.schema.stack import Chain, Stack

SINGLE_PR_PREFIX = "Single PR: "
FORK_SEPARATOR = "--"

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
_ROOT_NUMBER_PATTERN = re.compile(r"^(\d+)(?:-|$)")


def slugify(value: str) -> str:
    return _SLUG_PATTERN.sub("-", value.lower()).strip("-")


def derive_stack_id(repo: RepoRef, chain: Chain) -> str:
    """Identifier built only from durable properties of the chain root.

    The root number and head branch survive unrelated changes elsewhere in
    the repository, so a stack URL stays valid across recomputation. Chains
    that leave a fork through a later sibling share the root and are told
    apart by their fork path.
    """
    root = chain.root
    parts = [
        _repo_prefix(repo),
        str(root.number),
        slugify(root.head.name),
    ]
    stack_id = "-".join(part for part in parts if part)
    for branch in chain.fork_path:
        stack_id += f"{FORK_SEPARATOR}{slugify(branch)}"
    return stack_id


def derive_stack_name(chain: Chain) -> str:
    title = chain.root.title
    if len(chain) == 1:
        return f"{SINGLE_PR_PREFIX}{title}"
    return title


def derive_stack_description(chain: Chain) -> str:
    if len(chain) == 1:
        return f"{SINGLE_PR_PREFIX}{chain.root.title}"
    return f"Stack from {chain.root.base.name} with {len(chain)} PRs"


def to_stack(repo: RepoRef, chain: Chain) -> Stack:
    return Stack(
        id=derive_stack_id(repo, chain),
        name=derive_stack_name(chain),
        description=derive_stack_description(chain),
        repo=repo,
        chain=chain,
    )


def root_number_from_stack_id(repo: RepoRef, stack_id: str) -> Optional[int]:
    prefix = _repo_prefix(repo)
    if prefix:
        prefix += "-"
    if not stack_id.startswith(prefix):
        return None
    match = _ROOT_NUMBER_PATTERN.match(stack_id[len(prefix):])
    if match is None:
        return None
    return int(match.group(1))


def _repo_prefix(repo: RepoRef) -> str:
    return "-".join(
        part for part in (slugify(repo.owner), slugify(repo.name)) if part
    )
