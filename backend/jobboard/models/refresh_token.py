from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RefreshTokenRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    token: str
    user_id: str
    created_at: str

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)
