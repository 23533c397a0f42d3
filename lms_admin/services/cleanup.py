"""Best-effort cleanup plans for resources held outside the primary database.

A plan is an ordered list of independent deletion steps against the media
host or the identity provider. ``execute`` runs every step in order; a step
that raises is logged and recorded as failed, and the remaining steps still
run. Nothing is retried and nothing is rolled back, so a failed step leaves
an orphaned asset or account behind.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from lms_admin.core.errors import ExternalServiceError
from lms_admin.core.logging import get_logger
from lms_admin.core.utils import has_external_identity, public_id_of
from lms_admin.services.identity_provider import IdentityProvider
from lms_admin.services.media_host import MediaHost

logger = get_logger("cleanup")

MEDIA = "media"
IDENTITY = "identity"


@dataclass(frozen=True)
class CleanupStep:
    system: str
    kind: str
    target: str
    action: Callable[[], None] = field(compare=False, repr=False)


@dataclass
class StepOutcome:
    step: CleanupStep
    succeeded: bool
    error: Optional[str] = None


@dataclass
class CleanupReport:
    label: str
    outcomes: List[StepOutcome] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    def succeeded(self, kind: Optional[str] = None) -> int:
        return sum(
            1
            for outcome in self.outcomes
            if outcome.succeeded and (kind is None or outcome.step.kind == kind)
        )

    @property
    def failures(self) -> List[StepOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    def summary(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "attempted": self.attempted,
            "succeeded": self.succeeded(),
            "failed": [
                {"kind": o.step.kind, "target": o.step.target, "error": o.error}
                for o in self.failures
            ],
        }


class CleanupPlan:
    def __init__(self, label: str):
        self.label = label
        self.steps: List[CleanupStep] = []

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[CleanupStep]:
        return iter(self.steps)

    def add(
        self, system: str, kind: str, target: str, action: Callable[[], None]
    ) -> CleanupStep:
        step = CleanupStep(system=system, kind=kind, target=target, action=action)
        self.steps.append(step)
        return step

    def execute(self) -> CleanupReport:
        report = CleanupReport(label=self.label)
        for step in self.steps:
            try:
                step.action()
            except Exception as e:
                logger.warning(
                    f"Failed to delete {step.kind} {step.target}: {e}",
                    extra={"cleanup": {"plan": self.label, "system": step.system}},
                )
                report.outcomes.append(StepOutcome(step, succeeded=False, error=str(e)))
                continue
            logger.info(f"Deleted {step.kind}: {step.target}")
            report.outcomes.append(StepOutcome(step, succeeded=True))

        if self.steps:
            logger.info(
                f"Cleanup '{self.label}' finished: "
                f"{report.succeeded()}/{report.attempted} steps succeeded",
                extra={"cleanup": report.summary()},
            )
        return report


def _destroy(media_host: Optional[MediaHost], public_id: str, resource_type: str):
    def action() -> None:
        if media_host is None:
            raise ExternalServiceError("Media host", "not configured")
        media_host.destroy(public_id, resource_type)

    return action


def course_media_plan(
    course: Dict[str, Any], media_host: Optional[MediaHost]
) -> CleanupPlan:
    """Videos first, in course order, then the cover image."""
    plan = CleanupPlan(label=f"course:{course.get('_id')}")
    for video in course.get("videos") or []:
        public_id = public_id_of(video)
        if public_id:
            plan.add(MEDIA, "video", public_id, _destroy(media_host, public_id, "video"))

    cover_id = public_id_of(course.get("coverImage"))
    if cover_id:
        plan.add(MEDIA, "image", cover_id, _destroy(media_host, cover_id, "image"))
    return plan


def identity_account_plan(
    account: Dict[str, Any], identity_provider: Optional[IdentityProvider]
) -> CleanupPlan:
    """Empty unless the account signed in through Google or GitHub."""
    plan = CleanupPlan(label=f"identity:{account.get('_id')}")
    if not has_external_identity(account):
        return plan

    email = account.get("email")

    def action() -> None:
        if identity_provider is None:
            raise ExternalServiceError("Identity provider", "not configured")
        if not email:
            raise ExternalServiceError("Identity provider", "account has no email")
        uid = identity_provider.find_user_id_by_email(email)
        if uid is None:
            logger.info(f"No identity provider account for {email}")
            return
        identity_provider.delete_user(uid)

    plan.add(IDENTITY, "account", email or str(account.get("_id")), action)
    return plan
