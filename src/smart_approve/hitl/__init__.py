"""Human-in-the-loop batch approval.

Groups the commands of an agent's stated plan into one batch that the
user approves with a single reply.
"""

from smart_approve.hitl.batch import BatchApprovalManager, format_summary
from smart_approve.hitl.consent import detect_consent, is_affirmative, is_negative
from smart_approve.hitl.plan import extract_plan_commands

__all__ = [
    "BatchApprovalManager",
    "detect_consent",
    "extract_plan_commands",
    "format_summary",
    "is_affirmative",
    "is_negative",
]
