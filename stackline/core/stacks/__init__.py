from stackline.core.stacks.chains import build_chains
from stackline.core.stacks.identity import (
    SINGLE_PR_PREFIX,
    derive_stack_description,
    derive_stack_id,
    derive_stack_name,
    root_number_from_stack_id,
    to_stack,
)
from stackline.core.stacks.readiness import evaluate_readiness

__all__ = [
    "build_chains",
    "derive_stack_id",
    "derive_stack_name",
    "derive_stack_description",
    "root_number_from_stack_id",
    "to_stack",
    "evaluate_readiness",
    "SINGLE_PR_PREFIX",
]
