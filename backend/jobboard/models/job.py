from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Job(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    description: str
    company: str = ""
    location: str = ""
    requirements: str = ""
    posted_by: str
    is_closed: bool = False
    created_at: str
    updated_at: str

    @property
    def status(self) -> str:
        # open -> closed is the only transition
        return "closed" if self.is_closed else "open"

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)
