from dataclasses import dataclass
from uuid import UUID

from models.relational_models import JobApplication
from utilities.enumerables import JobApplicationAction, UserRole
from utilities.exceptions import AuthorizationException


@dataclass(frozen=True)
class Actor:
    id: UUID
    role: UserRole
    full_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def display_name(self) -> str:
        return self.full_name or "A candidate"

    @classmethod
    def from_claims(cls, user: dict) -> "Actor":
        """Build an Actor from the dict returned by `get_current_user`."""
        return cls(
            id=UUID(str(user["id"])),
            role=UserRole(user["role"]),
            full_name=user.get("full_name"),
        )


def authorize(
    actor: Actor,
    action: JobApplicationAction,
    application: JobApplication,
    poster_id: UUID | None,
) -> bool:
    """
    Role rules for a single application:

    - VIEW: the applicant, the job's poster, or an admin
    - CHANGE_STATUS / SCHEDULE_INTERVIEW: the job's poster or an admin
    - WITHDRAW: the applicant only
    """
    is_applicant = actor.id == application.user_id
    is_poster = poster_id is not None and actor.id == poster_id

    if action == JobApplicationAction.WITHDRAW:
        return is_applicant
    if action == JobApplicationAction.VIEW:
        return is_applicant or is_poster or actor.is_admin
    if action in (JobApplicationAction.CHANGE_STATUS, JobApplicationAction.SCHEDULE_INTERVIEW):
        return is_poster or actor.is_admin
    return False


def ensure_authorized(
    actor: Actor,
    action: JobApplicationAction,
    application: JobApplication,
    poster_id: UUID | None,
) -> None:
    if not authorize(actor, action, application, poster_id):
        raise AuthorizationException(
            f"User {actor.id} is not allowed to {action.value.replace('_', ' ')} application {application.id}"
        )
