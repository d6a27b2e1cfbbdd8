from datetime import datetime

from sqlmodel import Column, DateTime, Field, SQLModel, Text

from utilities.enumerables import JobPostingExperienceLevel, JobPostingJobType


class JobPostingBase(SQLModel):
    # min_length=5, max_length=200
    title: str = Field(index=True)

    # min_length=20
    description: str = Field(sa_column=Column(Text, nullable=False))

    # max_length=100
    location: str = Field(index=True)

    job_type: JobPostingJobType = Field(index=True)

    experience_level: JobPostingExperienceLevel | None = Field(default=None)

    is_remote: bool = Field(default=False)

    # No deadline means the posting stays open until it is deactivated
    application_deadline: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
    )
