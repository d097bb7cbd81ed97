# backend/portal/db/models/__init__.py

from portal.db.models.profile import Profile
from portal.db.models.user_role import UserRole
from portal.db.models.admin_audit_log import AdminAuditLog
from portal.db.models.notification import Notification
