"""Module: notify."""

import uuid

from sqlalchemy.orm import Session

from portal.db.models.notification import Notification
from portal.db.steps import commit_step

IN_APP = "in_app"


def notify_member(
    db: Session,
    user_id: uuid.UUID,
    title: str,
    message: str,
    type: str,
    action_url: str | None = None,
) -> Notification:
    # Delivery to the member's bell happens through the real-time feed on this table.
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        read=False,
        action_url=action_url,
        sent_via=[IN_APP],
    )
    db.add(notification)
    commit_step(db, "notify member")
    return notification
