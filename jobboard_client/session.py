import json
from dataclasses import asdict, dataclass

LOGIN = "/login"
REGISTER = "/register"
FEED = "/feed"
CREATE_JOB = "/create-job"
MY_JOBS = "/my-jobs"
ROOT = "/"

SIGNED_OUT_ONLY = {LOGIN, REGISTER}
SIGNED_IN_ONLY = {FEED, CREATE_JOB, MY_JOBS}
EMPLOYER_ONLY = {CREATE_JOB, MY_JOBS}


@dataclass
class Session:
    """Signed-in user plus the token pair issued by register/login."""

    user: dict | None = None
    access_token: str | None = None
    refresh_token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self.access_token)

    @property
    def role(self) -> str | None:
        return (self.user or {}).get("role")

    @property
    def user_id(self) -> str | None:
        return (self.user or {}).get("id")

    def start(self, payload: dict) -> None:
        self.user = payload.get("user")
        self.access_token = payload.get("accessToken")
        self.refresh_token = payload.get("refreshToken")

    def clear(self) -> None:
        self.user = None
        self.access_token = None
        self.refresh_token = None

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str | None) -> "Session":
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return cls()
        if not isinstance(data, dict):
            return cls()
        return cls(
            user=data.get("user"),
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
        )


def resolve_route(path: str, session: Session) -> str:
    """
    Apply the route guards and return the path that should actually render.

    Signed-in users are bounced off login/register, signed-out users off the app pages,
    and employees off the employer pages.
    """
    path = (path or ROOT).rstrip("/") or ROOT
    signed_in = session.is_authenticated

    if path in SIGNED_OUT_ONLY:
        return FEED if signed_in else path

    if path in SIGNED_IN_ONLY:
        if not signed_in:
            return LOGIN
        if path in EMPLOYER_ONLY and session.role != "employer":
            return FEED
        return path

    # "/" and anything unknown
    return FEED if signed_in else LOGIN
