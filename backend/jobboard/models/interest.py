from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Interest(BaseModel):
    """An employee's interest in a job; unique per (job_id, user_id)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    job_id: str
    user_id: str
    created_at: str

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)
