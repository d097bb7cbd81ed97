"""Module: actions.

Request payloads accepted by ``POST /admin-ops``. The body's ``action`` field
selects one model from the ``AdminAction`` union; each model carries the
roles allowed to run it.
"""

import uuid
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from portal.core.errors import ValidationError
from portal.members.roles import ADMIN_ONLY, ELEVATED_ROLES, ROLE_MANAGERS, AppRole


class _Action(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    allowed_roles: ClassVar[frozenset[AppRole]] = ELEVATED_ROLES


class LogAction(_Action):
    action: Literal["log_action"]
    event: str = "custom"
    entity_type: str = "custom"
    entity_id: str | None = None
    details: dict[str, Any] | None = None

    @field_validator("event", "entity_type", mode="before")
    @classmethod
    def _default_custom(cls, value):
        # Null and empty values fall back to "custom".
        return value or "custom"


class SuspendMember(_Action):
    action: Literal["suspend_member"]
    member_id: uuid.UUID
    reason: str | None = None
    # "permanent" runs the delete_member flow and needs its confirmation.
    mode: Literal["suspend", "permanent"] = "suspend"
    confirmation: str | None = None
    force: bool = False


class DeleteMember(_Action):
    allowed_roles: ClassVar[frozenset[AppRole]] = ADMIN_ONLY

    action: Literal["delete_member"]
    member_id: uuid.UUID
    confirmation: str | None = None
    force: bool = False


class RejectMember(_Action):
    action: Literal["reject_member"]
    member_id: uuid.UUID
    reason: str | None = None
    delete_account: bool = False
    confirmation: str | None = None
    force: bool = False


class ApproveUser(_Action):
    action: Literal["approve_user"]
    user_id: uuid.UUID


class ApprovePayment(_Action):
    action: Literal["approve_payment"]
    payment_id: str = Field(min_length=1)


class AssignOfficialRole(_Action):
    allowed_roles: ClassVar[frozenset[AppRole]] = ROLE_MANAGERS

    action: Literal["assign_official_role"]
    user_id: uuid.UUID
    role: str = Field(min_length=1)


AdminAction = Annotated[
    Union[
        LogAction,
        SuspendMember,
        DeleteMember,
        RejectMember,
        ApproveUser,
        ApprovePayment,
        AssignOfficialRole,
    ],
    Field(discriminator="action"),
]

_ACTION_ADAPTER = TypeAdapter(AdminAction)

ACTION_NAMES = frozenset(
    {
        "log_action",
        "suspend_member",
        "delete_member",
        "reject_member",
        "approve_user",
        "approve_payment",
        "assign_official_role",
    }
)


def _format_validation_errors(exc: PydanticValidationError) -> list[dict[str, Any]]:
    detail_list = []
    for err in exc.errors():
        loc = err.get("loc", ())
        detail_list.append(
            {
                "field": ".".join(str(part) for part in loc[1:]) or None,
                "message": err.get("msg"),
                "type": err.get("type"),
            }
        )
    return detail_list


def parse_action(body: Any) -> AdminAction:
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON payload")

    action = body.get("action")
    if not action or not isinstance(action, str):
        raise ValidationError("Missing action")
    if action not in ACTION_NAMES:
        raise ValidationError(f"Unknown action: {action}")

    try:
        return _ACTION_ADAPTER.validate_python(body)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid payload for {action}",
            {"errors": _format_validation_errors(exc)},
        ) from exc
