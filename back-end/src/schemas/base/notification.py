from sqlmodel import Column, Field, SQLModel, Text

from utilities.enumerables import NotificationType


class NotificationBase(SQLModel):
    title: str = Field(...)

    message: str = Field(sa_column=Column(Text, nullable=False))

    type: NotificationType = Field(index=True)

    action_url: str | None = Field(default=None)
