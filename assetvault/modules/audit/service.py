import uuid
from sqlalchemy.ext.asyncio import AsyncSession
from assetvault.modules.audit.models import ActivityLog

class ActivityLogService:
    """Append-only audit trail.

    ``record`` only stages the row on the session; it is committed together with
    the ledger change it describes, so a log entry never exists for a change
    that was rolled back.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def record(self,
               event_type: str,
               user_id: uuid.UUID | None,
               asset_id: uuid.UUID | None = None,
               message: str | None = None) -> ActivityLog:
        ev = ActivityLog(
            event_type=event_type,
            user_id=user_id,
            asset_id=asset_id,
            message=message,
        )
        self.session.add(ev)
        return ev
