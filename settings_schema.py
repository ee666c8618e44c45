from typing import Literal

from pydantic import BaseModel, Field, ValidationError


class SettingsSchema(BaseModel):
    weight_unit: Literal["lb", "kg"] = "lb"
    date_format: str = "%b %d, %y"
    recent_workout_limit: int = Field(5, ge=1)
    chart_width: int = Field(640, ge=100)
    chart_height: int = Field(320, ge=100)
    chart_padding: int = Field(40, ge=0)
    log_level: str = "INFO"


def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
