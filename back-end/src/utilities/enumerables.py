from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    EMPLOYER = "employer"
    JOB_SEEKER = "job_seeker"


class UserAccountStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class JobPostingJobType(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    INTERNSHIP = "internship"
    FREELANCE = "freelance"


class JobPostingExperienceLevel(str, Enum):
    ENTRY_LEVEL = "entry_level"
    MID_LEVEL = "mid_level"
    SENIOR_LEVEL = "senior_level"
    EXECUTIVE = "executive"


class JobApplicationStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    SHORTLISTED = "shortlisted"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEWED = "interviewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"

    @property
    def label(self) -> str:
        # "interview_scheduled" -> "interview scheduled"
        return self.value.replace("_", " ")


class JobApplicationAction(str, Enum):
    VIEW = "view"
    CHANGE_STATUS = "change_status"
    SCHEDULE_INTERVIEW = "schedule_interview"
    WITHDRAW = "withdraw"


class NotificationType(str, Enum):
    JOB_APPLICATION = "job_application"
    JOB_MATCH = "job_match"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    APPLICATION_STATUS_UPDATE = "application_status_update"
    NEW_JOB_POSTED = "new_job_posted"
    SYSTEM_NOTIFICATION = "system_notification"
    REMINDER = "reminder"
