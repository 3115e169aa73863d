from pydantic import BaseModel, Field, field_validator


class SubjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    teacher_name: str | None = Field(default=None, max_length=200)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Subject name cannot be blank")
        return cleaned

    @field_validator("teacher_name")
    @classmethod
    def blank_teacher_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class SubjectUpdate(SubjectCreate):
    pass


class SubjectOut(BaseModel):
    id: str
    name: str
    teacher_name: str | None

    model_config = {"from_attributes": True}
