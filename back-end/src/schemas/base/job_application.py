from sqlmodel import Column, Field, SQLModel, Text


class JobApplicationBase(SQLModel):
    cover_letter: str | None = Field(default=None, sa_column=Column(Text))

    resume_url: str | None = Field(default=None)
