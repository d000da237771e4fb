from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ROLES = ("employer", "employee")


class Experience(BaseModel):
    company: str = ""
    position: str = ""
    years: float = Field(default=0, ge=0)


class User(BaseModel):
    # camelCase on disk and on the wire, snake_case in Python.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    email: str
    phone: str
    photo: str | None = None
    role: Literal["employer", "employee"]
    created_at: str

    # employer
    company_name: str | None = None
    company_location: str | None = None
    company_description: str | None = None

    # employee
    experiences: list[Experience] | None = None

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True, exclude=self._foreign_role_fields())

    def to_public(self) -> dict:
        payload = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "photo": self.photo,
            "role": self.role,
        }
        if self.role == "employer":
            payload["companyName"] = self.company_name
            payload["companyLocation"] = self.company_location
            payload["companyDescription"] = self.company_description or ""
        else:
            payload["experiences"] = [e.model_dump() for e in (self.experiences or [])]
        return payload

    def to_summary(self) -> dict:
        """Snapshot embedded in job listings."""
        return {"id": self.id, "name": self.name, "photo": self.photo}

    def _foreign_role_fields(self) -> set[str]:
        if self.role == "employer":
            return {"experiences"}
        return {"company_name", "company_location", "company_description"}
