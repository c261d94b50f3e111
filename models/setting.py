# fieldpulse/models/setting.py
from sqlmodel import Field, SQLModel


class Setting(SQLModel, table=True):
    """Free-form key/value pair; ``value`` holds serialized JSON text."""

    __tablename__ = "fp_settings"

    key: str = Field(primary_key=True)
    value: str = Field(default="{}", sa_column_kwargs={"server_default": "{}"})


__all__ = ["Setting"]
